"""Client for the remote vectorization endpoint.

One blocking round trip per call: ``POST {base_url}/vectorize/`` with
``{"text", "pooling_strategy"}``, expecting ``{"text", "vector"}`` back.
There is no retry; any transport failure, non-2xx status or malformed body
raises ``VectorizationError``.
"""

import time
from typing import List, Optional

import httpx
from pydantic import BaseModel, Field, ValidationError
import structlog

from ..common.logging import log_performance
from ..common.metrics import MetricsCollector, get_metrics_collector

logger = structlog.get_logger("vectorization_client")

DEFAULT_TIMEOUT = 30.0


class VectorizationError(RuntimeError):
    """Raised when a vectorization call fails."""


class VectorizationRequest(BaseModel):
    """Request body for the vectorize endpoint."""
    text: str = Field(..., description="Input text to vectorize")
    pooling_strategy: str = Field(..., description="How token embeddings are reduced, e.g. mean")


class VectorizationResponse(BaseModel):
    """Response body from the vectorize endpoint."""
    text: str = Field(..., description="Echoed input text")
    vector: List[float] = Field(..., description="Pooled embedding")


class VectorizationClient:
    """Synchronous vectorization client.

    Parameters
    - base_url: Service root, e.g. ``http://localhost:8000``
    - timeout: Request timeout in seconds
    - client: Optional preconfigured ``httpx.Client`` (closed by the caller)
    - metrics: Optional ``MetricsCollector``
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[httpx.Client] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._owns_client = client is None
        self.http_client = client or httpx.Client(timeout=timeout)
        self.metrics = metrics or get_metrics_collector("vector-pipe")

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/vectorize/"

    def close(self) -> None:
        if self._owns_client:
            self.http_client.close()

    def __enter__(self) -> "VectorizationClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def vectorize(self, text: str, pooling_strategy: str) -> VectorizationResponse:
        """Vectorize ``text`` with the given pooling strategy."""
        payload = VectorizationRequest(text=text, pooling_strategy=pooling_strategy)
        start_time = time.perf_counter()
        status = "error"

        try:
            try:
                response = self.http_client.post(self.endpoint, json=payload.model_dump())
            except httpx.HTTPError as e:
                raise VectorizationError(f"Failed to send request to {self.endpoint}: {e}") from e

            status = str(response.status_code)
            try:
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise VectorizationError(
                    f"Vectorization service returned status {response.status_code}"
                ) from e

            try:
                result = VectorizationResponse.model_validate_json(response.content)
            except ValidationError as e:
                status = "malformed"
                raise VectorizationError("Failed to parse vector response") from e

            logger.info(
                "Vectorized text",
                pooling_strategy=pooling_strategy,
                dimension=len(result.vector),
            )
            return result

        except VectorizationError as e:
            logger.error(
                "Vectorization request failed",
                endpoint=self.endpoint,
                status=status,
                error=str(e),
            )
            raise
        finally:
            duration = time.perf_counter() - start_time
            self.metrics.record_vectorization(status, duration)
            log_performance("vectorize", duration * 1000, endpoint=self.endpoint, status=status)


def vectorize(
    text: str,
    pooling_strategy: str,
    endpoint: str,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    client: Optional[httpx.Client] = None,
) -> VectorizationResponse:
    """Single blocking vectorization round trip against ``endpoint``."""
    with VectorizationClient(endpoint, timeout=timeout, client=client) as vectorizer:
        return vectorizer.vectorize(text, pooling_strategy)
