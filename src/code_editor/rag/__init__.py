"""Code retrieval for the agent: indexing pipeline, vector store and context retriever.

Source trees are chunked into snippets, embedded in batches and stored in a
Chroma collection; at query time the retriever turns the nearest snippets
into a bounded prompt context block.
"""

from .snippet import Embedding, Snippet
from .embeddings import (
    EmbeddingProvider,
    OpenAIEmbeddingProvider,
    SentenceTransformerEmbeddingProvider,
    create_embedding_provider,
)
from .vectorstore import ChromaVectorStore, VectorStore
from .indexer import IndexingPipeline, IndexStats
from .retriever import ContextRetriever, format_snippets
from .fallback import FallbackStore

__all__ = [
    "Embedding",
    "Snippet",
    "EmbeddingProvider",
    "OpenAIEmbeddingProvider",
    "SentenceTransformerEmbeddingProvider",
    "create_embedding_provider",
    "ChromaVectorStore",
    "VectorStore",
    "IndexingPipeline",
    "IndexStats",
    "ContextRetriever",
    "format_snippets",
    "FallbackStore",
]
