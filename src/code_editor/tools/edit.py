"""File editing tools: edit_file and create_file."""

from langchain_core.tools import StructuredTool
from pydantic import BaseModel, Field

from ..errors import ToolError, ValidationError
from ..logging_config import get_logger
from .sandbox import Sandbox

logger = get_logger(__name__)


class EditFileInput(BaseModel):
    path: str = Field(description="The path to the file relative to the workspace directory.")
    old_str: str = Field(
        description="Text to search for - must match exactly and must only have one match exactly."
    )
    new_str: str = Field(description="Text to replace old_str with.")


class CreateFileInput(BaseModel):
    path: str = Field(
        description="The path relative to the workspace where the file should be created (including filename)."
    )
    content: str = Field(description="The content to write to the new file.")


def edit_file(sandbox: Sandbox, path: str, old_str: str, new_str: str) -> str:
    """Replace the single occurrence of old_str in a file.

    Zero or several occurrences are an error and leave the file untouched.
    """
    if not path or not old_str:
        raise ValidationError("path and old_str are required for edit_file")

    full_path = sandbox.resolve(path)
    if not full_path.exists():
        raise ToolError(f"file not found at path '{path}' within workspace")
    if full_path.is_dir():
        raise ToolError(f"path '{path}' is a directory, cannot edit")

    try:
        content = full_path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        raise ToolError(f"cannot edit file '{path}' (not text)") from None
    except OSError as e:
        raise ToolError(f"failed to read file '{path}': {e}") from e

    count = content.count(old_str)
    if count == 0:
        raise ValidationError(f"string '{old_str}' not found in file '{path}'")
    if count > 1:
        raise ValidationError(
            f"string '{old_str}' found multiple times ({count}) in file '{path}', expected exactly one"
        )

    try:
        full_path.write_text(content.replace(old_str, new_str, 1), encoding="utf-8")
    except OSError as e:
        logger.error("edit_file failed for %s: %s", path, e)
        raise ToolError(f"failed to write changes to file '{path}': {e}") from e

    return f"Successfully edited file '{path}'"


def create_file(sandbox: Sandbox, path: str, content: str) -> str:
    """Create a new file and any missing parent directories; never overwrites."""
    if not path:
        raise ValidationError("path is required for create_file")

    full_path = sandbox.resolve(path)
    if full_path.exists():
        raise ToolError(f"file already exists at path '{path}'")

    try:
        full_path.parent.mkdir(parents=True, exist_ok=True)
        full_path.write_text(content, encoding="utf-8")
    except OSError as e:
        logger.error("create_file failed for %s: %s", path, e)
        raise ToolError(f"failed to create or write file '{path}': {e}") from e

    return f"Successfully created file '{path}'"


def make_edit_tools(sandbox: Sandbox) -> list[StructuredTool]:
    return [
        StructuredTool.from_function(
            func=lambda path, old_str, new_str: edit_file(sandbox, path, old_str, new_str),
            name="edit_file",
            description=(
                "Search for an exact string ('old_str') in a file within the workspace (specified by "
                "'path' relative to workspace root) and replace its single occurrence with 'new_str'. "
                "Fails if 'old_str' is not found or found multiple times."
            ),
            args_schema=EditFileInput,
        ),
        StructuredTool.from_function(
            func=lambda path, content: create_file(sandbox, path, content),
            name="create_file",
            description=(
                "Create a new file with the specified content at a path relative to the workspace "
                "root. Fails if the file already exists or the path is invalid."
            ),
            args_schema=CreateFileInput,
        ),
    ]
