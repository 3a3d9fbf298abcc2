"""Remote Extraction Source Client"""

import asyncio
from typing import Any

import httpx
import orjson
import pybreaker
from pydantic import ValidationError
from returns.result import Failure, Result, Success

from component_catalog.catalog.models import Component, Snapshot
from component_catalog.core.errors import CatalogError, ErrorKind
from component_catalog.core.logging_config import get_logger
from component_catalog.core.retry import retry_async

logger = get_logger(__name__)


class BreakerListener(pybreaker.CircuitBreakerListener):
    """Listener for circuit breaker state changes."""

    def state_change(self, cb, old_state, new_state):
        """Called when circuit breaker state changes."""
        logger.warning(
            "breaker_state_change",
            breaker=cb.name,
            from_state=str(old_state),
            to_state=str(new_state),
        )


class HttpExtractionSource:
    """
    Fetches catalog snapshots from a remote endpoint with circuit breaker
    protection and bounded retries.

    The endpoint returns ``{"components": [...]}`` with camelCase records.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 15.0,
        retries: int = 3,
        retry_delay: float = 1.0,
        max_retry_delay: float = 60.0,
    ) -> None:
        """
        Initialize source with circuit breaker.

        Args:
            url: Snapshot endpoint
            timeout: Request timeout in seconds
            retries: Retries after the first attempt
            retry_delay: First backoff delay in seconds
            max_retry_delay: Backoff ceiling in seconds
        """
        self.url = url
        self.timeout = timeout
        self.retries = retries
        self.retry_delay = retry_delay
        self.max_retry_delay = max_retry_delay
        self._client = httpx.Client(timeout=timeout)

        self._breaker = pybreaker.CircuitBreaker(
            fail_max=5,
            reset_timeout=30,
            name="extraction-http",
            listeners=[BreakerListener()],
        )

        logger.info("client_init", url=self.url)

    @property
    def breaker_state(self) -> str:
        return str(self._breaker.current_state)

    def _get(self) -> httpx.Response:
        response = self._client.get(self.url)
        response.raise_for_status()
        return response

    async def _attempt(self) -> httpx.Response:
        try:
            return await asyncio.to_thread(self._breaker.call, self._get)
        except httpx.HTTPStatusError as e:
            if e.response.status_code >= 500:
                raise CatalogError(
                    ErrorKind.NETWORK_ERROR,
                    f"Snapshot endpoint returned {e.response.status_code}",
                    context={"url": self.url},
                ) from e
            raise

    async def fetch(self) -> bytes:
        """
        Fetch the raw snapshot payload.

        Raises:
            CatalogError: NETWORK_ERROR when the endpoint is unreachable,
                the breaker is open, or retries are exhausted
        """
        try:
            response = await retry_async(
                self._attempt,
                attempts=self.retries + 1,
                base_delay=self.retry_delay,
                max_delay=self.max_retry_delay,
            )
        except pybreaker.CircuitBreakerError as e:
            logger.error("fetch_failed", error="Circuit breaker open - source unavailable")
            raise CatalogError(
                ErrorKind.NETWORK_ERROR,
                "Extraction source circuit open",
                context={"url": self.url},
            ) from e
        except httpx.HTTPError as e:
            logger.warning("http_error", error=str(e))
            raise CatalogError(
                ErrorKind.NETWORK_ERROR,
                f"Extraction source request failed: {e}",
                context={"url": self.url},
            ) from e
        return response.content

    def parse(self, payload: bytes) -> Snapshot:
        """
        Parse a snapshot payload.

        Raises:
            CatalogError: VALIDATION_ERROR for malformed payloads
        """
        try:
            data: Any = orjson.loads(payload)
        except orjson.JSONDecodeError as e:
            raise CatalogError(
                ErrorKind.VALIDATION_ERROR, f"Snapshot is not valid JSON: {e}"
            ) from e

        records = data.get("components") if isinstance(data, dict) else None
        if not isinstance(records, list) or not records:
            raise CatalogError(
                ErrorKind.VALIDATION_ERROR, "Snapshot must contain a non-empty components list"
            )

        try:
            components = [Component.model_validate(record) for record in records]
        except ValidationError as e:
            raise CatalogError(
                ErrorKind.VALIDATION_ERROR,
                "Snapshot contains invalid component records",
                details={"errorCount": e.error_count()},
            ) from e
        return Snapshot.build(components, source=self.url)

    async def refresh(self) -> Result[Snapshot, CatalogError]:
        try:
            snapshot = self.parse(await self.fetch())
        except CatalogError as e:
            return Failure(e)

        logger.info("snapshot_fetched", url=self.url, components=len(snapshot))
        return Success(snapshot)

    async def close(self) -> None:
        """Close HTTP client"""
        self._client.close()


__all__ = ["HttpExtractionSource", "BreakerListener"]
