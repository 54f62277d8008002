"""Vector store implementation using ChromaDB."""

from pathlib import Path
from typing import Optional, Protocol

import chromadb
from chromadb.api import ClientAPI
from chromadb.config import Settings as ChromaSettings

from ..errors import TransportError, ValidationError
from ..logging_config import get_logger
from .snippet import Embedding, Snippet

logger = get_logger(__name__)

# Snippet metadata is stored alongside the location fields, prefixed to avoid clashes
_META_PREFIX = "meta_"


class VectorStore(Protocol):
    """Stores embedded snippets and answers nearest-neighbour queries."""

    def upsert(self, snippets: list[Snippet]) -> None:
        ...

    def query(self, embedding: Embedding, k: int) -> list[Snippet]:
        ...


def check_dimension(embedding: Embedding, expected: Optional[int]) -> None:
    """Reject an embedding whose length differs from the collection's."""
    if expected is not None and embedding.dimension != expected:
        raise ValidationError(
            f"embedding has {embedding.dimension} dimensions, collection expects {expected}"
        )


def _to_metadata(snippet: Snippet) -> dict:
    metadata = {
        "path": snippet.file_path,
        "start_line": snippet.start_line,
        "end_line": snippet.end_line,
        "symbols": ",".join(snippet.symbols),
    }
    for key, value in snippet.metadata.items():
        metadata[f"{_META_PREFIX}{key}"] = str(value)
    return metadata


def _from_record(id: str, document: str, metadata: dict | None) -> Snippet:
    metadata = metadata or {}
    symbols = metadata.get("symbols") or ""
    return Snippet(
        id=id,
        content=document or "",
        file_path=metadata.get("path", ""),
        start_line=int(metadata.get("start_line", 0)),
        end_line=int(metadata.get("end_line", 0)),
        symbols=tuple(s for s in symbols.split(",") if s),
        metadata={
            key[len(_META_PREFIX):]: str(value)
            for key, value in metadata.items()
            if key.startswith(_META_PREFIX)
        },
    )


class ChromaVectorStore:
    """Persistent Chroma collection of code snippets, cosine similarity.

    Every embedding written to or queried against the collection must have
    the same length; the first known dimension (from the provider, the
    collection metadata or the first upsert) fixes it.
    """

    def __init__(
        self,
        persist_dir: str | Path,
        collection_name: str = "code_snippets",
        dimension: Optional[int] = None,
        client: Optional[ClientAPI] = None,
    ) -> None:
        if client is None:
            persist_dir = Path(persist_dir)
            persist_dir.mkdir(parents=True, exist_ok=True)
            try:
                client = chromadb.PersistentClient(
                    path=str(persist_dir),
                    settings=ChromaSettings(anonymized_telemetry=False, allow_reset=True),
                )
            except Exception as e:
                raise TransportError(f"Could not open vector store at {persist_dir}: {e}") from e

        collection_metadata = {"hnsw:space": "cosine"}
        if dimension is not None:
            collection_metadata["dimension"] = dimension
        try:
            self._collection = client.get_or_create_collection(
                name=collection_name,
                metadata=collection_metadata,
            )
        except Exception as e:
            raise TransportError(f"Could not open collection {collection_name}: {e}") from e

        stored = (self._collection.metadata or {}).get("dimension")
        if stored is not None and dimension is not None and int(stored) != dimension:
            raise ValidationError(
                f"collection {collection_name} holds {stored}-dimensional embeddings, "
                f"provider produces {dimension}"
            )
        self.dimension: Optional[int] = dimension if dimension is not None else (
            int(stored) if stored is not None else None
        )
        logger.debug("Opened collection %s (dimension=%s)", collection_name, self.dimension)

    def upsert(self, snippets: list[Snippet]) -> None:
        """Insert or replace snippets; every snippet must carry an embedding."""
        if not snippets:
            return

        embeddings = []
        learned = self.dimension is None
        dimension = self.dimension
        for snippet in snippets:
            if snippet.embedding is None:
                raise ValidationError(f"snippet {snippet.id} has no embedding")
            if dimension is None:
                dimension = snippet.embedding.dimension
            check_dimension(snippet.embedding, dimension)
            embeddings.append(snippet.embedding.to_list())

        try:
            self._collection.upsert(
                ids=[s.id for s in snippets],
                documents=[s.content for s in snippets],
                embeddings=embeddings,
                metadatas=[_to_metadata(s) for s in snippets],
            )
        except Exception as e:
            raise TransportError(f"vector store upsert failed: {e}") from e

        if learned:
            self.dimension = dimension
            self._store_dimension()

    def _store_dimension(self) -> None:
        # Chroma refuses to modify hnsw:* settings after creation
        metadata = {
            key: value
            for key, value in (self._collection.metadata or {}).items()
            if not key.startswith("hnsw:")
        }
        metadata["dimension"] = self.dimension
        try:
            self._collection.modify(metadata=metadata)
        except Exception as e:
            raise TransportError(f"could not record collection dimension: {e}") from e
        logger.debug("Recorded dimension %d for collection %s", self.dimension, self._collection.name)

    def query(self, embedding: Embedding, k: int) -> list[Snippet]:
        """Return up to k snippets ranked by similarity to embedding."""
        check_dimension(embedding, self.dimension)
        if k <= 0:
            return []
        try:
            results = self._collection.query(
                query_embeddings=[embedding.to_list()],
                n_results=k,
                include=["documents", "metadatas"],
            )
        except Exception as e:
            raise TransportError(f"vector store query failed: {e}") from e

        ids = (results.get("ids") or [[]])[0]
        documents = (results.get("documents") or [[]])[0]
        metadatas = (results.get("metadatas") or [[]])[0]
        return [
            _from_record(id, documents[i], metadatas[i] if i < len(metadatas) else None)
            for i, id in enumerate(ids)
        ]

    def count(self) -> int:
        return self._collection.count()
