"""
Embedding service used for semantic search and backfill.

Providers:
- Vertex AI (default): google-genai `models.embed_content`, text-embedding-005
- Sentence Transformers: local open-source models (optional dependency)

The core never retries embedding calls; failures surface as EmbeddingError.
Vectors are returned as float32 numpy arrays, matching the stored blob format.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import List, Optional

import numpy as np
from google import genai
from google.genai.types import EmbedContentConfig

from .config import Settings
from .exceptions import EmbeddingError
from .models import Paper

logger = logging.getLogger(__name__)


class EmbeddingProvider(Enum):
    """Supported embedding providers"""
    VERTEX_AI = "vertex_ai"
    SENTENCE_TRANSFORMERS = "sentence_transformers"
    NONE = "none"


def build_embedding_text(paper: Paper) -> str:
    """
    Text embedded for a paper: title, plus a blank line and the abstract
    when the abstract is non-empty.
    """
    title = (paper.title or "").strip()
    abstract = (paper.abstract or "").strip()
    if not abstract:
        return title
    return f"{title}\n\n{abstract}"


class EmbeddingService(ABC):
    """
    Abstract embedding service.

    All implementations must be swappable behind this interface.
    """

    @property
    @abstractmethod
    def model_name(self) -> str:
        pass

    @property
    @abstractmethod
    def dim(self) -> int:
        pass

    @abstractmethod
    async def embed_batch(self, texts: List[str]) -> List[np.ndarray]:
        """
        Embed several texts.

        Returns:
            One float32 vector per input text, same order

        Raises:
            EmbeddingError: empty input or service failure
        """
        pass

    async def embed_query(self, text: str) -> np.ndarray:
        """Embed one text"""
        if not text or not text.strip():
            raise EmbeddingError("Query text is empty")
        vectors = await self.embed_batch([text])
        if not vectors:
            raise EmbeddingError("Embedding service returned no vectors")
        return vectors[0]

    def close(self):
        """Optional cleanup"""
        pass

    @staticmethod
    def _check_texts(texts: List[str]) -> List[str]:
        cleaned = [t.strip() for t in texts if t and t.strip()]
        if len(cleaned) != len(texts):
            raise EmbeddingError(f"{len(texts) - len(cleaned)} of {len(texts)} texts are empty")
        return cleaned


class VertexAIEmbedder(EmbeddingService):
    """Vertex AI embeddings through the Google Gen AI SDK"""

    def __init__(
        self,
        genai_client: genai.Client,
        model: str = "text-embedding-005",
        dim: int = 768,
        max_workers: int = 4,
    ):
        self.genai_client = genai_client
        self._model = model
        self._dim = dim
        self._executor = ThreadPoolExecutor(max_workers=max_workers)

    @property
    def model_name(self) -> str:
        return self._model

    @property
    def dim(self) -> int:
        return self._dim

    def _embed_sync(self, texts: List[str]) -> List[np.ndarray]:
        response = self.genai_client.models.embed_content(
            model=self._model,
            contents=texts,
            config=EmbedContentConfig(output_dimensionality=self._dim),
        )
        return [np.asarray(e.values, dtype=np.float32) for e in response.embeddings]

    async def embed_batch(self, texts: List[str]) -> List[np.ndarray]:
        texts = self._check_texts(texts)
        if not texts:
            raise EmbeddingError("No texts to embed")

        loop = asyncio.get_running_loop()
        try:
            vectors = await loop.run_in_executor(self._executor, self._embed_sync, texts)
        except Exception as e:
            logger.error(f"Vertex AI embedding failed ({len(texts)} texts): {e}")
            raise EmbeddingError(f"Vertex AI embedding failed: {e}") from e

        if len(vectors) != len(texts):
            raise EmbeddingError(f"Expected {len(texts)} embeddings, got {len(vectors)}")
        return vectors

    def close(self):
        self._executor.shutdown(wait=False)


class SentenceTransformerEmbedder(EmbeddingService):
    """Local sentence-transformers model (loaded lazily on first use)"""

    def __init__(self, model: str = "all-MiniLM-L6-v2", dim: int = 384):
        self._model_id = model
        self._dim = dim
        self.model = None  # Lazy loading

    @property
    def model_name(self) -> str:
        return self._model_id

    @property
    def dim(self) -> int:
        return self._dim

    def _ensure_loaded(self):
        if self.model is None:
            logger.info(f"Loading sentence-transformers model: {self._model_id}")
            # Lazy import to avoid dependency if not used
            from sentence_transformers import SentenceTransformer
            self.model = SentenceTransformer(self._model_id)

    def _embed_sync(self, texts: List[str]) -> List[np.ndarray]:
        self._ensure_loaded()
        embeddings = self.model.encode(texts)
        return [np.asarray(e, dtype=np.float32) for e in embeddings]

    async def embed_batch(self, texts: List[str]) -> List[np.ndarray]:
        texts = self._check_texts(texts)
        if not texts:
            raise EmbeddingError("No texts to embed")

        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, self._embed_sync, texts)
        except Exception as e:
            logger.error(f"Local embedding failed ({len(texts)} texts): {e}")
            raise EmbeddingError(f"Local embedding failed: {e}") from e

    def close(self):
        self.model = None


def create_embedder(settings: Settings) -> Optional[EmbeddingService]:
    """
    Build the configured embedding service.

    Returns:
        Service instance, or None when semantic search is not configured
        (provider "none", or Vertex AI without a project id)

    Raises:
        ValueError: unknown provider name
    """
    try:
        provider = EmbeddingProvider(settings.embedding_provider)
    except ValueError:
        raise ValueError(
            f"Unknown embedding provider: {settings.embedding_provider}. "
            f"Valid options: {', '.join(p.value for p in EmbeddingProvider)}"
        )

    if provider == EmbeddingProvider.NONE:
        logger.info("Embedding provider disabled, semantic search unavailable")
        return None

    if provider == EmbeddingProvider.VERTEX_AI:
        if not settings.gcp_project_id:
            logger.warning("GCP_PROJECT_ID not set, semantic search unavailable")
            return None
        logger.info(
            f"Initializing Google Gen AI embeddings "
            f"(project={settings.gcp_project_id}, location={settings.gcp_location}, "
            f"model={settings.embedding_model})"
        )
        client = genai.Client(
            vertexai=True,
            project=settings.gcp_project_id,
            location=settings.gcp_location,
        )
        return VertexAIEmbedder(client, model=settings.embedding_model, dim=settings.embedding_dim)

    logger.info(f"Using local sentence-transformers model: {settings.embedding_model}")
    return SentenceTransformerEmbedder(model=settings.embedding_model, dim=settings.embedding_dim)
