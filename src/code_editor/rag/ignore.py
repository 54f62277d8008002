"""Ignore rules for the indexing walk: .gitignore and .indexignore patterns."""

import re
from pathlib import Path

from ..logging_config import get_logger

logger = get_logger(__name__)

IGNORE_FILES = (".gitignore", ".indexignore")

IgnorePattern = tuple[re.Pattern, bool, bool]


def _pattern_to_regex(line: str) -> tuple[str | None, bool, bool]:
    """Translate one ignore-file line to a regex.

    Returns:
        (regex, is_directory_pattern, negated), regex None for blanks and comments
    """
    pattern = line.strip()
    if not pattern or pattern.startswith("#"):
        return None, False, False

    negated = pattern.startswith("!")
    if negated:
        pattern = pattern[1:]

    is_dir = pattern.endswith("/")
    if is_dir:
        pattern = pattern[:-1]

    anchored = pattern.startswith("/") or "/" in pattern.rstrip("/")
    pattern = pattern.lstrip("/")

    regex = re.escape(pattern)
    regex = regex.replace(r"\*\*/", "(?:.*/)?")
    regex = regex.replace(r"\*\*", ".*")
    regex = regex.replace(r"\*", r"[^/]*")
    regex = regex.replace(r"\?", r"[^/]")

    regex = ("^" if anchored else "(?:^|/)") + regex
    # A match on a directory covers everything beneath it
    regex += "(?:/.*)?$" if not is_dir else "/"
    return regex, is_dir, negated


def parse_ignore_lines(lines: list[str]) -> list[IgnorePattern]:
    patterns = []
    for line in lines:
        regex, is_dir, negated = _pattern_to_regex(line)
        if regex is None:
            continue
        try:
            patterns.append((re.compile(regex), is_dir, negated))
        except re.error:
            logger.debug("Skipping invalid ignore pattern: %r", line)
    return patterns


def load_ignore_patterns(root: Path) -> list[IgnorePattern]:
    """Load .gitignore then .indexignore from root.

    .indexignore comes second so its negations can re-include paths that
    .gitignore excludes.
    """
    patterns: list[IgnorePattern] = []
    for name in IGNORE_FILES:
        path = root / name
        if not path.is_file():
            continue
        try:
            patterns.extend(parse_ignore_lines(path.read_text(encoding="utf-8").splitlines()))
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read %s: %s", path, e)
    return patterns


def should_ignore(rel_path: str, is_dir: bool, patterns: list[IgnorePattern]) -> bool:
    """Decide whether a root-relative posix path is excluded from indexing.

    Dot-prefixed components are always skipped (VCS metadata, the vector
    index itself, editor state) and cannot be re-included by negation.
    """
    parts = rel_path.split("/")
    if any(p.startswith(".") for p in parts):
        return True

    candidate = rel_path + "/" if is_dir else rel_path
    ignored = False
    for pattern, pattern_is_dir, negated in patterns:
        if pattern_is_dir:
            # "build/" matches the directory itself and anything under it
            matched = bool(pattern.search(candidate if is_dir else rel_path))
        else:
            matched = bool(pattern.search(rel_path))
        if matched:
            ignored = not negated
    return ignored
