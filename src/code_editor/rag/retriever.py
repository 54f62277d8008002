"""Query-time retrieval of code context for a user message."""

from pathlib import Path
from typing import Optional

from ..cancellation import CancellationToken, call_with_timeout
from ..errors import CodeEditorError, OperationCancelled
from ..logging_config import get_logger
from .embeddings import EmbeddingProvider
from .snippet import Snippet
from .vectorstore import VectorStore

logger = get_logger(__name__)

CONTEXT_INTRO = "Relevant code snippets based on your query:\n\n"
OMISSION_MARKER = "... (omitting further snippets due to length limit)\n"

LANGUAGE_TAGS = {
    ".py": "python",
    ".pyi": "python",
    ".go": "go",
    ".js": "javascript",
    ".ts": "typescript",
    ".java": "java",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".rs": "rust",
    ".sh": "bash",
    ".md": "markdown",
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".toml": "toml",
    ".html": "html",
    ".css": "css",
    ".sql": "sql",
}


def language_tag(file_path: str) -> str:
    """Fence language for a file, derived from its extension."""
    suffix = Path(file_path).suffix.lower()
    return LANGUAGE_TAGS.get(suffix, suffix.lstrip("."))


def format_snippet(snippet: Snippet) -> str:
    header = f"--- File: {snippet.file_path} (Lines: {snippet.start_line}-{snippet.end_line}) ---\n"
    return f"{header}```{language_tag(snippet.file_path)}\n{snippet.content}\n```\n\n"


def format_snippets(snippets: list[Snippet], max_chars: int) -> str:
    """Render ranked snippets as a prompt context block.

    Snippets are added in order until the next one would push the output
    past max_chars; the omission marker is then appended. The intro line
    and the marker count towards the budget.

    Args:
        snippets: Ranked retrieval results
        max_chars: Upper bound on the length of the returned string

    Returns:
        The context block, or "" when there are no snippets
    """
    if not snippets:
        return ""

    parts = [CONTEXT_INTRO]
    used = len(CONTEXT_INTRO)
    for index, snippet in enumerate(snippets):
        block = format_snippet(snippet)
        is_last = index == len(snippets) - 1
        # Leave room for the marker unless nothing can follow this block
        reserve = 0 if is_last else len(OMISSION_MARKER)
        if used + len(block) + reserve > max_chars:
            parts.append(OMISSION_MARKER)
            break
        parts.append(block)
        used += len(block)
    return "".join(parts)


class ContextRetriever:
    """Embeds a query, fetches the top-k snippets and formats them within a budget.

    Retrieval is best-effort: any failure is logged and yields an empty
    context so the conversation continues without it.
    """

    def __init__(
        self,
        embedder: EmbeddingProvider,
        store: VectorStore,
        k: int = 3,
        max_chars: int = 4000,
        embed_timeout: float = 30.0,
        query_timeout: float = 5.0,
    ) -> None:
        minimum = len(CONTEXT_INTRO) + len(OMISSION_MARKER)
        if max_chars < minimum:
            raise ValueError(f"max_chars must be at least {minimum}, got {max_chars}")
        if k <= 0:
            raise ValueError(f"k must be positive, got {k}")
        self.embedder = embedder
        self.store = store
        self.k = k
        self.max_chars = max_chars
        self.embed_timeout = embed_timeout
        self.query_timeout = query_timeout

    def retrieve(self, query: str, token: Optional[CancellationToken] = None) -> str:
        """Return formatted context for query, or "" if nothing usable was found."""
        try:
            embeddings = call_with_timeout(
                lambda: self.embedder.embed([query]),
                self.embed_timeout,
                token,
                what="query embedding",
            )
        except OperationCancelled:
            raise
        except CodeEditorError as e:
            logger.warning("Failed to embed query, continuing without context: %s", e)
            return ""
        except Exception as e:
            logger.warning("Unexpected embedding failure, continuing without context: %s", e)
            return ""

        if not embeddings or not embeddings[0].values:
            logger.warning("Embedding provider returned no vector for the query")
            return ""

        try:
            snippets = call_with_timeout(
                lambda: self.store.query(embeddings[0], self.k),
                self.query_timeout,
                token,
                what="vector store query",
            )
        except OperationCancelled:
            raise
        except CodeEditorError as e:
            logger.warning("Failed to query vector store, continuing without context: %s", e)
            return ""
        except Exception as e:
            logger.warning("Unexpected vector store failure, continuing without context: %s", e)
            return ""

        logger.info("Retrieved %d snippets from vector store", len(snippets))
        return format_snippets(snippets[: self.k], self.max_chars)
