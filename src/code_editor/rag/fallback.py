"""Local-file substitute for the vector store.

When embeddings or the vector store are unavailable, vector_upsert writes
the content to a timestamped text file in the workspace and vector_search
scores those files by plain term counting.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Optional

from ..logging_config import get_logger

logger = get_logger(__name__)

FALLBACK_PREFIX = "vector_store_fallback_"
FALLBACK_SUFFIX = ".txt"
METADATA_SEPARATOR = "\n\n--- Metadata ---\n"
MAX_RESULTS = 5

NO_FALLBACK_FILES = "No fallback files found. No search results available."
NO_RELEVANT_RESULTS = "No relevant information found in fallback files."


class FallbackStore:
    """Fallback files under a single directory (the sandbox root)."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def _new_path(self) -> Path:
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        path = self.root / f"{FALLBACK_PREFIX}{stamp}{FALLBACK_SUFFIX}"
        # Two writes inside the same microsecond would collide
        suffix = 1
        while path.exists():
            path = self.root / f"{FALLBACK_PREFIX}{stamp}_{suffix}{FALLBACK_SUFFIX}"
            suffix += 1
        return path

    def write(self, text: str, metadata: Optional[dict[str, str]] = None) -> Path:
        """Persist text (plus a metadata footer) and return the file written."""
        content = text
        if metadata:
            content += METADATA_SEPARATOR
            for key, value in metadata.items():
                content += f"{key}: {value}\n"

        self.root.mkdir(parents=True, exist_ok=True)
        path = self._new_path()
        path.write_text(content, encoding="utf-8")
        logger.info("Stored content in fallback file %s", path.name)
        return path

    def files(self) -> list[Path]:
        if not self.root.is_dir():
            return []
        return sorted(self.root.glob(f"{FALLBACK_PREFIX}*{FALLBACK_SUFFIX}"))

    def search(self, query: str) -> str:
        """Score every fallback file against the query terms.

        Args:
            query: Free text; split on whitespace and lowercased

        Returns:
            JSON list of at most five results ordered by descending relevance
            (filename, content, relevance, matched_line), or a plain message
            when there is nothing to return
        """
        files = self.files()
        if not files:
            return NO_FALLBACK_FILES

        terms = query.lower().split()
        results = []
        for path in files:
            try:
                content = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Could not read fallback file %s: %s", path.name, e)
                continue

            score = 0
            best_line, best_score = "", 0
            for line in content.split("\n"):
                lowered = line.lower()
                line_score = sum(lowered.count(term) for term in terms)
                score += line_score
                if line_score > best_score:
                    best_line, best_score = line, line_score

            if score > 0:
                results.append({
                    "filename": path.name,
                    "content": content,
                    "relevance": score,
                    "matched_line": best_line,
                })

        if not results:
            return NO_RELEVANT_RESULTS

        results.sort(key=lambda r: r["relevance"], reverse=True)
        return json.dumps(results[:MAX_RESULTS], indent=2)
