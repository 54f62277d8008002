"""Path confinement for the file tools."""

from pathlib import Path

from ..errors import ValidationError


class Sandbox:
    """Resolves model-supplied paths inside a single root directory.

    The model only ever sees paths relative to the root. Resolution follows
    symlinks, so a link pointing outside the root is rejected like a
    ``..`` traversal or an absolute path.
    """

    def __init__(self, root: str | Path) -> None:
        root = Path(root)
        root.mkdir(parents=True, exist_ok=True)
        self.root = root.resolve()

    def resolve(self, path: str) -> Path:
        """Map a relative path onto the filesystem.

        Args:
            path: Path relative to the sandbox root

        Returns:
            Absolute, symlink-free path under the root

        Raises:
            ValidationError: If the path escapes the root
        """
        try:
            full_path = (self.root / path).resolve()
        except (OSError, RuntimeError) as e:
            raise ValidationError(f"invalid path '{path}': {e}") from e

        if full_path != self.root and self.root not in full_path.parents:
            raise ValidationError(f"invalid path: '{path}' resolves outside the workspace directory")
        return full_path

    def relative(self, full_path: Path) -> str:
        """Root-relative posix form of a resolved path."""
        return full_path.relative_to(self.root).as_posix()
