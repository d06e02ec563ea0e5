"""HuggingFace Inference embedding client."""
import asyncio
from typing import List, Optional
import httpx
import numpy as np
import structlog

from docmind import config
from docmind.errors import EmbeddingError

logger = structlog.get_logger()


class HuggingFaceEmbedder:
    """Async client for the HuggingFace feature-extraction pipeline.

    Sentence-transformers models return one pooled vector per input. Models
    that return token-level vectors are mean-pooled here so callers always
    get a flat ``list[float]``.
    """

    def __init__(
        self,
        api_key: str = None,
        model: str = None,
        base_url: str = None,
        timeout: float = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key or config.HUGGINGFACE_API_KEY
        self.model = model or config.EMBEDDING_MODEL
        self.base_url = (base_url or config.HF_INFERENCE_URL).rstrip("/")
        self.timeout = timeout or config.REQUEST_TIMEOUT
        self._transport = transport

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/{self.model}/pipeline/feature-extraction"

    @staticmethod
    def _to_vector(payload) -> List[float]:
        """Reduce a feature-extraction payload to one flat vector."""
        try:
            array = np.asarray(payload, dtype=np.float32)
        except (TypeError, ValueError) as e:
            raise EmbeddingError(f"Unexpected embedding payload: {e}") from e

        # [batch, tokens, dim] -> [tokens, dim]
        if array.ndim == 3:
            array = array[0]
        # [tokens, dim] -> [dim]
        if array.ndim == 2:
            array = array.mean(axis=0)
        if array.ndim != 1 or array.size == 0:
            raise EmbeddingError(f"Unexpected embedding shape: {array.shape}")
        return array.tolist()

    async def embed(self, text: str) -> List[float]:
        """Generate an embedding for a single text.

        Raises:
            EmbeddingError: On API errors or malformed responses
        """
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                logger.debug(
                    "hf_embedding_request",
                    model=self.model,
                    text_length=len(text),
                )
                response = await client.post(
                    self.endpoint,
                    json={"inputs": text},
                    headers=headers,
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                "hf_embedding_http_error",
                status_code=e.response.status_code,
                body_preview=e.response.text[:200],
            )
            raise EmbeddingError(
                f"Embedding request failed with HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            logger.error("hf_embedding_error", error=str(e))
            raise EmbeddingError(f"Embedding request failed: {e}") from e

        vector = self._to_vector(data)
        logger.debug("hf_embedding_response", model=self.model, dimension=len(vector))
        return vector

    async def embed_many(self, texts: List[str]) -> List[List[float]]:
        """Embed several texts concurrently, preserving order."""
        if not texts:
            return []
        return list(await asyncio.gather(*(self.embed(text) for text in texts)))
