"""Indexing pipeline: walk a source tree, chunk, embed in batches and upsert."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from ..cancellation import CancellationToken
from ..config import BinaryThresholds, Settings
from ..errors import CodeEditorError, IndexingError
from ..logging_config import get_logger
from .binary import is_binary_file
from .chunker import CodeParser, parser_for
from .embeddings import EmbeddingProvider
from .ignore import load_ignore_patterns, should_ignore
from .snippet import Snippet
from .vectorstore import VectorStore

logger = get_logger(__name__)

TRUNCATION_MARKER = "... [content truncated]"


@dataclass
class IndexStats:
    """Outcome of one index_directory run."""

    files_seen: int = 0
    files_indexed: int = 0
    snippets: int = 0
    batches: int = 0
    skipped: list[tuple[str, str]] = field(default_factory=list)
    failed: list[tuple[str, str]] = field(default_factory=list)
    extensions: dict[str, int] = field(default_factory=dict)


class IndexingPipeline:
    """Turns a directory into embedded snippets in the vector store.

    Files are walked in sorted order. Python and Go sources are split into
    one snippet per top-level function or method; other text files become
    a single whole-file snippet. Embedding and upsert happen per batch, so a
    failure part-way leaves earlier batches committed.
    """

    def __init__(
        self,
        embedder: EmbeddingProvider,
        store: VectorStore,
        batch_size: int = 100,
        max_snippet_chars: int = 10000,
        max_file_bytes: int = 10 * 1024 * 1024,
        binary_thresholds: Optional[BinaryThresholds] = None,
        parser_lookup: Callable[[str], Optional[CodeParser]] = parser_for,
    ) -> None:
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self.embedder = embedder
        self.store = store
        self.batch_size = batch_size
        self.max_snippet_chars = max_snippet_chars
        self.max_file_bytes = max_file_bytes
        self.binary_thresholds = binary_thresholds or BinaryThresholds()
        self.parser_lookup = parser_lookup

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        embedder: EmbeddingProvider,
        store: VectorStore,
    ) -> "IndexingPipeline":
        return cls(
            embedder=embedder,
            store=store,
            batch_size=settings.batch_size,
            max_snippet_chars=settings.max_snippet_chars,
            max_file_bytes=settings.max_file_bytes,
            binary_thresholds=settings.binary,
        )

    def walk(self, root: Path) -> list[Path]:
        """List indexable files under root in sorted order, honouring ignore rules."""
        patterns = load_ignore_patterns(root)
        files = []
        for dirpath, dirnames, filenames in os.walk(root):
            current = Path(dirpath)
            rel_dir = current.relative_to(root).as_posix()
            prefix = "" if rel_dir == "." else f"{rel_dir}/"

            # Prune in place so os.walk does not descend into ignored directories
            dirnames[:] = sorted(
                d for d in dirnames
                if not should_ignore(f"{prefix}{d}", True, patterns)
            )
            for name in sorted(filenames):
                if should_ignore(f"{prefix}{name}", False, patterns):
                    continue
                files.append(current / name)
        return files

    def extract(self, path: Path, rel_path: str, stats: IndexStats) -> list[Snippet]:
        """Produce the snippets for one file, or record why it was skipped."""
        size = path.stat().st_size
        if size > self.max_file_bytes:
            stats.skipped.append((rel_path, f"file too large ({size} bytes)"))
            return []
        if size == 0:
            stats.skipped.append((rel_path, "empty file"))
            return []

        data = path.read_bytes()
        parser = self.parser_lookup(rel_path)
        if parser is not None:
            snippets = parser.parse(rel_path, data)
            if snippets:
                return snippets
            logger.debug("No declarations in %s, indexing whole file", rel_path)
        elif is_binary_file(rel_path, data, self.binary_thresholds):
            stats.skipped.append((rel_path, "binary file"))
            return []

        return [self._whole_file_snippet(rel_path, data)]

    def _whole_file_snippet(self, rel_path: str, data: bytes) -> Snippet:
        content = data.decode("utf-8", errors="replace")
        metadata = {
            "file_type": Path(rel_path).suffix.lower().lstrip("."),
            "file_name": Path(rel_path).name,
        }
        if len(content) > self.max_snippet_chars:
            content = content[: self.max_snippet_chars] + TRUNCATION_MARKER
            metadata["truncated"] = "true"
        return Snippet(
            content=content,
            file_path=rel_path,
            start_line=1,
            end_line=len(content.split("\n")),
            metadata=metadata,
        )

    def index_directory(
        self,
        root: str | Path,
        token: Optional[CancellationToken] = None,
    ) -> IndexStats:
        """Index every eligible file below root.

        Args:
            root: Directory to index; snippet paths are stored relative to it
            token: Checked between files and between batches

        Returns:
            Counts of files, snippets and batches plus skipped/failed files

        Raises:
            IndexingError: A batch could not be embedded or upserted, or the
                provider returned the wrong number of embeddings
            OperationCancelled: The token was cancelled
        """
        root = Path(root).resolve()
        if not root.is_dir():
            raise IndexingError(f"Not a directory: {root}")

        logger.info("Starting indexing for directory: %s", root)
        stats = IndexStats()
        snippets: list[Snippet] = []

        for path in self.walk(root):
            if token is not None:
                token.raise_if_cancelled()
            rel_path = path.relative_to(root).as_posix()
            ext = path.suffix.lower() or "(no extension)"
            stats.extensions[ext] = stats.extensions.get(ext, 0) + 1
            stats.files_seen += 1

            try:
                extracted = self.extract(path, rel_path, stats)
            except (OSError, SyntaxError, ValueError) as e:
                logger.warning("Error processing file %s: %s", rel_path, e)
                stats.failed.append((rel_path, str(e)))
                continue

            if extracted:
                stats.files_indexed += 1
                snippets.extend(extracted)

        for ext, count in sorted(stats.extensions.items()):
            logger.debug("  %s: %d files", ext, count)
        for rel_path, reason in stats.skipped:
            logger.info("Skipped %s: %s", rel_path, reason)
        logger.info(
            "Processed %d files, %d snippets to embed",
            stats.files_seen,
            len(snippets),
        )

        self._embed_and_store(snippets, stats, token)
        logger.info("Successfully indexed %d snippets from %s", stats.snippets, root)
        return stats

    def _embed_and_store(
        self,
        snippets: list[Snippet],
        stats: IndexStats,
        token: Optional[CancellationToken],
    ) -> None:
        texts = [s.embedding_text() for s in snippets]
        total_batches = (len(snippets) + self.batch_size - 1) // self.batch_size

        for start in range(0, len(snippets), self.batch_size):
            if token is not None:
                token.raise_if_cancelled()
            end = min(start + self.batch_size, len(snippets))
            batch_number = start // self.batch_size + 1
            logger.info(
                "Embedding batch %d/%d (snippets %d-%d)",
                batch_number,
                total_batches,
                start + 1,
                end,
            )

            try:
                embeddings = self.embedder.embed(texts[start:end])
            except CodeEditorError as e:
                raise IndexingError(f"failed to embed batch {batch_number}: {e}") from e

            if len(embeddings) != end - start:
                raise IndexingError(
                    f"mismatch between number of batch texts ({end - start}) "
                    f"and embeddings ({len(embeddings)})"
                )

            batch = [
                snippet.with_embedding(embedding)
                for snippet, embedding in zip(snippets[start:end], embeddings)
            ]
            try:
                self.store.upsert(batch)
            except CodeEditorError as e:
                raise IndexingError(f"failed to upsert batch {batch_number}: {e}") from e

            stats.batches += 1
            stats.snippets += len(batch)
