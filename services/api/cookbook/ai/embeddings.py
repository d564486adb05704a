import hashlib
import logging
import math
from functools import lru_cache
from typing import Optional

from google import genai
from google.genai import types

from ..errors import UpstreamFailure
from ..infra.redis_cache import get_or_set_json_sync
from ..settings import settings

logger = logging.getLogger("cookbook.ai.embeddings")


def _mock_vector(text: str, dimensions: int) -> list[float]:
    """Deterministic unit vector derived from the text hash."""
    seed = hashlib.sha256(text.encode("utf-8")).digest()
    values: list[float] = []
    counter = 0
    while len(values) < dimensions:
        block = hashlib.sha256(seed + counter.to_bytes(4, "big")).digest()
        values.extend((b - 127.5) / 127.5 for b in block)
        counter += 1
    values = values[:dimensions]
    norm = math.sqrt(sum(v * v for v in values)) or 1.0
    return [v / norm for v in values]


class EmbeddingClient:
    """Turns text into a fixed-length vector.

    ``mode="gemini"`` calls the Gemini embedding model; ``mode="mock"`` hashes
    the text so tests and local runs need no API key. Results are cached in
    Redis by model and text hash.
    """

    def __init__(
        self,
        *,
        mode: str,
        model: str,
        dimensions: int,
        api_key: Optional[str] = None,
        client: Optional[genai.Client] = None,
        cache_ttl_sec: int = 0,
    ):
        self.mode = mode
        self.model = model
        self.dimensions = dimensions
        self.cache_ttl_sec = cache_ttl_sec
        self._client = client
        if self._client is None and mode == "gemini" and api_key:
            self._client = genai.Client(api_key=api_key)

    @classmethod
    def from_settings(cls) -> "EmbeddingClient":
        return cls(
            mode=settings.ai_mode,
            model=settings.gemini_embedding_model,
            dimensions=settings.embedding_dimensions,
            api_key=settings.gemini_api_key,
            cache_ttl_sec=settings.embedding_cache_ttl_sec,
        )

    @property
    def model_id(self) -> str:
        return self.model if self.mode == "gemini" else "mock"

    def embed(self, text: str) -> list[float]:
        if self.cache_ttl_sec <= 0:
            return self._compute(text)
        digest = hashlib.sha256(text.encode("utf-8")).hexdigest()
        key = f"cookbook:emb:{self.model_id}:{self.dimensions}:{digest}"
        values, _hit = get_or_set_json_sync(key, self.cache_ttl_sec, lambda: self._compute(text))
        return values

    def _compute(self, text: str) -> list[float]:
        if self.mode != "gemini":
            return _mock_vector(text, self.dimensions)

        if self._client is None:
            raise UpstreamFailure("Embedding generation", "GEMINI_API_KEY is required when AI_MODE=gemini")

        try:
            response = self._client.models.embed_content(
                model=self.model,
                contents=text,
                config=types.EmbedContentConfig(output_dimensionality=self.dimensions),
            )
        except Exception as e:
            logger.error(f"Embedding generation failed: {e}")
            raise UpstreamFailure("Embedding generation", str(e)) from e

        if not response.embeddings or not response.embeddings[0].values:
            logger.error("Gemini returned no embedding values")
            raise UpstreamFailure("Embedding generation", "Failed to generate embedding")

        values = [float(v) for v in response.embeddings[0].values]
        if len(values) != self.dimensions:
            raise UpstreamFailure(
                "Embedding generation",
                f"expected {self.dimensions} dimensions, got {len(values)}",
            )
        return values


@lru_cache
def get_embedder() -> EmbeddingClient:
    return EmbeddingClient.from_settings()


def recipe_embedding_text(name: str, description: str) -> str:
    return f"{name} {description}"
