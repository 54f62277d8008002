"""Heuristic detection of binary file content."""

from pathlib import Path

from ..config import BinaryThresholds

# Extensions that are always treated as text, whatever their bytes look like
KNOWN_TEXT_EXTENSIONS = frozenset({
    ".txt", ".md", ".rst", ".json", ".xml", ".html", ".css", ".js", ".ts",
    ".py", ".pyi", ".go", ".c", ".cpp", ".h", ".java", ".sh", ".bat", ".ps1",
    ".yaml", ".yml", ".toml", ".ini", ".cfg", ".config", ".properties",
    ".env", ".example", ".log", ".gitignore", ".csv", ".tsv",
})

TEXT_MARKERS = (
    "<!doctype", "<html", "<?xml", "{", "[", "//", "/*", "#!", "import ",
    "package ", "using ", "function ", "class ", "def ", "var ", "const ",
    "let ", "from ", "# ", "// ", "/* ", "; ", "' ",
)

_UTF8_BOM = b"\xef\xbb\xbf"
_MARKER_WINDOW = 100


def has_text_marker(data: bytes) -> bool:
    """Check whether the start of data looks like source or markup."""
    head = data[:_MARKER_WINDOW].decode("latin-1").lower()
    return any(marker in head for marker in TEXT_MARKERS)


def is_binary(data: bytes, thresholds: BinaryThresholds | None = None) -> bool:
    """Classify raw file bytes as binary or text.

    Only the first ``thresholds.sample_bytes`` bytes are inspected. Null
    bytes, C0 control bytes other than whitespace and ESC, and the C1 range
    128..159 are counted; content that starts with a recognisable text
    marker is only rejected for a high proportion of nulls.

    Args:
        data: File contents (or at least its leading bytes)
        thresholds: Tunable limits, defaults used when None

    Returns:
        True if the content should be skipped as binary
    """
    t = thresholds or BinaryThresholds()

    if data.startswith(_UTF8_BOM):
        return False

    sample = data[: t.sample_bytes]
    n = len(sample)
    if n < t.min_sample_bytes:
        return False

    nulls = controls = extended = 0
    for b in sample:
        if b == 0:
            nulls += 1
        elif b < 9 or (13 < b < 32 and b != 27):
            controls += 1
        elif 128 <= b <= 159:
            extended += 1

    if has_text_marker(data):
        return nulls > n // t.marker_null_divisor

    return (
        nulls > n // t.null_divisor
        or controls > n // t.control_divisor
        or extended > n // t.extended_divisor
    )


def is_known_text_extension(path: str | Path) -> bool:
    p = Path(path)
    suffix = p.suffix.lower()
    # ".gitignore" has no suffix as far as pathlib is concerned
    if not suffix and p.name.startswith("."):
        suffix = p.name.lower()
    return suffix in KNOWN_TEXT_EXTENSIONS


def is_binary_file(path: str | Path, data: bytes, thresholds: BinaryThresholds | None = None) -> bool:
    """Apply the extension allow-list, then the content heuristic."""
    if is_known_text_extension(path):
        return False
    return is_binary(data, thresholds)
