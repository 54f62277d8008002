"""Embedding providers: remote OpenAI embeddings or a local sentence-transformers model."""

from typing import Optional, Protocol

from langchain_openai import OpenAIEmbeddings
from sentence_transformers import SentenceTransformer

from ..config import EmbeddingSettings
from ..errors import ConfigurationError, TransportError
from ..logging_config import get_logger
from .snippet import Embedding

logger = get_logger(__name__)

# Known output sizes, used to validate vectors before they reach the store
KNOWN_DIMENSIONS = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
    "sentence-transformers/all-MiniLM-L6-v2": 384,
}


class EmbeddingProvider(Protocol):
    """Turns texts into embeddings, preserving order and count."""

    @property
    def dimension(self) -> Optional[int]:
        ...

    def embed(self, texts: list[str]) -> list[Embedding]:
        ...


def _check_count(texts: list[str], vectors: list) -> None:
    if len(vectors) != len(texts):
        raise TransportError(
            f"embedding provider returned {len(vectors)} embeddings for {len(texts)} texts"
        )


class OpenAIEmbeddingProvider:
    """Embeddings from the OpenAI API via langchain-openai."""

    def __init__(
        self,
        model: str = "text-embedding-3-small",
        api_key: Optional[str] = None,
        client: Optional[OpenAIEmbeddings] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.model = model
        self._client = client or OpenAIEmbeddings(model=model, api_key=api_key, timeout=timeout)

    @property
    def dimension(self) -> Optional[int]:
        return KNOWN_DIMENSIONS.get(self.model)

    def embed(self, texts: list[str]) -> list[Embedding]:
        if not texts:
            return []
        try:
            vectors = self._client.embed_documents(texts)
        except Exception as e:
            raise TransportError(f"OpenAI embedding request failed: {e}") from e
        _check_count(texts, vectors)
        return [Embedding.of(v) for v in vectors]


class SentenceTransformerEmbeddingProvider:
    """Local embeddings, no API key required.

    The default all-MiniLM-L6-v2 model is small enough to run on CPU and
    produces 384-dimensional vectors. The model is loaded on first use.
    """

    def __init__(
        self,
        model: str = "sentence-transformers/all-MiniLM-L6-v2",
        encoder: Optional[SentenceTransformer] = None,
    ) -> None:
        self.model = model
        self._encoder = encoder

    def _get_encoder(self) -> SentenceTransformer:
        if self._encoder is None:
            logger.info("Loading embedding model %s (first time only)...", self.model)
            self._encoder = SentenceTransformer(self.model)
        return self._encoder

    @property
    def dimension(self) -> Optional[int]:
        if self._encoder is not None:
            return self._encoder.get_sentence_embedding_dimension()
        return KNOWN_DIMENSIONS.get(self.model)

    def embed(self, texts: list[str]) -> list[Embedding]:
        if not texts:
            return []
        try:
            vectors = self._get_encoder().encode(texts, show_progress_bar=len(texts) > 50)
        except Exception as e:
            raise TransportError(f"local embedding failed: {e}") from e
        vectors = vectors.tolist()
        _check_count(texts, vectors)
        return [Embedding.of(v) for v in vectors]


def create_embedding_provider(
    settings: EmbeddingSettings, timeout: Optional[float] = None
) -> Optional[EmbeddingProvider]:
    """Build the configured provider.

    timeout bounds each HTTP request of the OpenAI client so that a worker
    abandoned by call_with_timeout() does not linger.

    Returns None when the OpenAI provider is selected but no API key is
    available; retrieval and the vector tools are then disabled.

    Raises:
        ConfigurationError: For an unknown provider name
    """
    if settings.provider == "openai":
        if not settings.api_key:
            logger.warning("OPENAI_API_KEY not set; embeddings disabled")
            return None
        return OpenAIEmbeddingProvider(
            model=settings.model, api_key=settings.api_key, timeout=timeout
        )
    if settings.provider in ("local", "sentence-transformers"):
        return SentenceTransformerEmbeddingProvider(model=settings.local_model)
    raise ConfigurationError(f"Unknown embedding provider: {settings.provider!r}")
