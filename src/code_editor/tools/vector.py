"""vector_search and vector_upsert tools with a file-based fallback.

Both tools degrade instead of failing: when the embedding provider or the
vector store cannot serve a request, search scans the fallback files and
upsert writes one, and the model still gets a useful answer.
"""

import json
from typing import Optional

from langchain_core.tools import StructuredTool
from pydantic import BaseModel, Field

from ..cancellation import CancellationToken, call_with_timeout
from ..errors import CodeEditorError, OperationCancelled, ValidationError
from ..logging_config import get_logger
from ..rag.embeddings import EmbeddingProvider
from ..rag.fallback import FallbackStore
from ..rag.snippet import Embedding, Snippet
from ..rag.vectorstore import VectorStore

logger = get_logger(__name__)

DEFAULT_K = 5


class VectorSearchInput(BaseModel):
    query: str = Field(description="The search query text to be embedded for searching.")
    k: int = Field(default=DEFAULT_K, description="The number of nearest neighbors to return.")


class VectorUpsertInput(BaseModel):
    text_content: str = Field(description="The text content to be embedded and stored.")
    metadata: Optional[dict[str, str]] = Field(
        default=None,
        description="A map of key-value pairs for metadata associated with the content.",
    )


class VectorTools:
    """Shared collaborators and bounded waits for the two vector tools."""

    def __init__(
        self,
        embedder: EmbeddingProvider,
        store: VectorStore,
        fallback: FallbackStore,
        embed_timeout: float = 30.0,
        query_timeout: float = 5.0,
        upsert_timeout: float = 10.0,
        token: Optional[CancellationToken] = None,
    ) -> None:
        self.embedder = embedder
        self.store = store
        self.fallback = fallback
        self.embed_timeout = embed_timeout
        self.query_timeout = query_timeout
        self.upsert_timeout = upsert_timeout
        self.token = token

    def _embed_one(self, text: str) -> Optional[Embedding]:
        """Embed text, or None if the provider failed or returned nothing usable."""
        try:
            embeddings = call_with_timeout(
                lambda: self.embedder.embed([text]),
                self.embed_timeout,
                self.token,
                what="embedding",
            )
        except OperationCancelled:
            raise
        except CodeEditorError as e:
            logger.warning("Error generating embeddings: %s", e)
            return None

        if not embeddings:
            logger.warning("No embeddings generated - empty result from embedding provider")
            return None
        if embeddings[0].dimension == 0:
            logger.warning("Generated embedding has zero dimensions - invalid embedding")
            return None
        return embeddings[0]

    def search(self, query: str, k: int = DEFAULT_K) -> str:
        """Nearest snippets as JSON, or fallback-file matches when the store is unusable."""
        if not query:
            raise ValidationError("query is required for vector_search")
        if k <= 0:
            k = DEFAULT_K

        embedding = self._embed_one(query)
        if embedding is None:
            return self._fallback_search(query)

        try:
            results = call_with_timeout(
                lambda: self.store.query(embedding, k),
                self.query_timeout,
                self.token,
                what="vector store query",
            )
        except OperationCancelled:
            raise
        except CodeEditorError as e:
            logger.warning("Error searching in vector store: %s", e)
            return self._fallback_search(query)

        if not results:
            logger.info("No results found in vector store, falling back to file search")
            return self._fallback_search(query)

        return json.dumps([s.to_dict() for s in results], indent=2)

    def upsert(self, text_content: str, metadata: Optional[dict[str, str]] = None) -> str:
        """Store text in the vector store, or in a fallback file if that is not possible."""
        if not text_content:
            raise ValidationError("text_content is required for vector_upsert")

        embedding = self._embed_one(text_content)
        if embedding is None:
            return self._fallback_write(text_content, metadata)

        snippet = Snippet(
            content=text_content,
            file_path="",
            metadata=dict(metadata or {}),
            embedding=embedding,
        )
        logger.debug(
            "Prepared snippet %s (embedding length %d, content length %d)",
            snippet.id,
            embedding.dimension,
            len(text_content),
        )

        try:
            call_with_timeout(
                lambda: self.store.upsert([snippet]),
                self.upsert_timeout,
                self.token,
                what="vector store upsert",
            )
        except OperationCancelled:
            raise
        except CodeEditorError as e:
            logger.warning("Error upserting to vector store: %s", e)
            return self._fallback_write(text_content, metadata)

        return f"Successfully upserted content with ID: {snippet.id}"

    def _fallback_search(self, query: str) -> str:
        logger.info("Falling back to file search...")
        return self.fallback.search(query)

    def _fallback_write(self, text: str, metadata: Optional[dict[str, str]]) -> str:
        logger.info("Falling back to file storage...")
        path = self.fallback.write(text, metadata)
        return f"Successfully stored content in fallback file '{path.name}'"

    def as_tools(self) -> list[StructuredTool]:
        return [
            StructuredTool.from_function(
                func=lambda query, k=DEFAULT_K: self.search(query, k),
                name="vector_search",
                description=(
                    "Searches for relevant information in the vector store (long-term memory "
                    "or RAG context) using a query string."
                ),
                args_schema=VectorSearchInput,
            ),
            StructuredTool.from_function(
                func=lambda text_content, metadata=None: self.upsert(text_content, metadata),
                name="vector_upsert",
                description=(
                    "Upserts (inserts or updates) information into the vector store "
                    "(long-term memory or RAG context)."
                ),
                args_schema=VectorUpsertInput,
            ),
        ]
