"""Embedding client for the vector store.

Calls the OpenAI embeddings endpoint over httpx. When no API key is
configured every call raises EmbeddingSkippedError, which callers treat as
"no vector for this record" rather than a failure.
"""

from typing import Optional

import httpx
import structlog

from agentlog.config import settings

log = structlog.get_logger(__name__)

OPENAI_EMBEDDINGS_URL = "https://api.openai.com/v1/embeddings"


class EmbeddingSkippedError(Exception):
    """Raised when embedding is not configured."""


class EmbeddingService:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        dimensions: Optional[int] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = settings.openai_api_key if api_key is None else api_key
        self.model = model or settings.embedding_model
        self.dimensions = dimensions or settings.embedding_dimensions
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(10.0, connect=2.0),
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def embed(self, text: str) -> tuple[list[float], str, Optional[str]]:
        """Embed text.

        Returns:
            (vector, model_id, model_version)

        Raises:
            EmbeddingSkippedError: no API key configured.
            httpx.HTTPError: the request failed.
        """
        if not self.api_key:
            raise EmbeddingSkippedError("OPENAI_API_KEY not configured")

        resp = await self.client.post(
            OPENAI_EMBEDDINGS_URL,
            headers={"Authorization": f"Bearer {self.api_key}"},
            json={"model": self.model, "input": text, "dimensions": self.dimensions},
        )
        resp.raise_for_status()
        body = resp.json()
        vector = body["data"][0]["embedding"]
        log.debug("text_embedded", model=self.model, chars=len(text))
        return vector, body.get("model", self.model), None

    async def close(self) -> None:
        await self.client.aclose()
