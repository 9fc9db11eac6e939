"""Partial fetcher over HTTP using httpx."""

from __future__ import annotations

import httpx
import structlog

from swapnav.constants import (
    DEFAULT_BASE_URL,
    DEFAULT_FETCH_RETRIES,
    DEFAULT_FETCH_TIMEOUT_S,
    DEFAULT_PARTIALS_PATH,
)
from swapnav.exceptions import PartialFetchError
from swapnav.surface.base import ContentFetcher
from swapnav.utils.retry import retry

logger = structlog.get_logger(__name__)


class HttpContentFetcher(ContentFetcher):
    """Fetches ``{base_url}/{partials_path}/{name}``.

    Transport errors are retried with backoff; HTTP error statuses are not.
    Pass ``client`` to share a connection pool; the caller then owns it.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        partials_path: str = DEFAULT_PARTIALS_PATH,
        timeout: float = DEFAULT_FETCH_TIMEOUT_S,
        retries: int = DEFAULT_FETCH_RETRIES,
        retry_delay_ms: int = 200,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._partials_path = partials_path.strip("/")
        self._timeout = timeout
        self._retries = retries
        self._retry_delay_ms = retry_delay_ms
        self._client = client

    def partial_url(self, name: str) -> str:
        prefix = f"{self._base_url}/{self._partials_path}" if self._partials_path else self._base_url
        return f"{prefix}/{name.lstrip('/')}"

    async def _get(self, url: str) -> httpx.Response:
        if self._client is not None:
            return await self._client.get(url)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await client.get(url)

    async def fetch_partial(self, name: str) -> str:
        url = self.partial_url(name)
        get = retry(
            max_attempts=self._retries,
            delay_ms=self._retry_delay_ms,
            retry_on=(httpx.TransportError,),
        )(self._get)
        try:
            resp = await get(url)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning("partial_fetch_failed", url=url, status=e.response.status_code)
            raise PartialFetchError(
                f"Partial {name!r} returned HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            logger.warning("partial_fetch_failed", url=url, error=str(e))
            raise PartialFetchError(f"Partial {name!r} could not be fetched: {e}") from e

        logger.debug("partial_fetched", url=url, size=len(resp.text))
        return resp.text


def create_content_fetcher(client: httpx.AsyncClient | None = None) -> HttpContentFetcher:
    """Factory: build an HttpContentFetcher from settings."""
    from swapnav.config.settings import get_settings

    settings = get_settings()
    return HttpContentFetcher(
        base_url=settings.base_url,
        partials_path=settings.partials_path,
        timeout=settings.fetch_timeout,
        retries=settings.fetch_retries,
        client=client,
    )
