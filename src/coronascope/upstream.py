"""Retrieval of source images from the upstream archive."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx

from coronascope.errors import UpstreamFetchError

if TYPE_CHECKING:
    from coronascope.config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchedImage:
    """Raw bytes of a source image and the URL they were finally served from."""

    url: str
    content: bytes


def build_source_url(settings: Settings, date: str | None = None) -> str:
    """Fill the configured URL template with a ``YYYY/MM/DD`` date path."""
    return settings.source_url_template.format(date=date or settings.default_date)


class SourceFetcher:
    """Thin async wrapper around an ``httpx.AsyncClient``.

    One GET per call, redirects followed, no retries and no caching.
    """

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._client = httpx.AsyncClient(
            headers={"User-Agent": settings.user_agent},
            timeout=settings.fetch_timeout,
            follow_redirects=True,
            transport=transport,
        )

    async def fetch(self, url: str) -> FetchedImage:
        """GET ``url``.

        Raises:
            UpstreamFetchError: On transport failure or a non-2xx response.
        """
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as exc:
            logger.warning("Upstream request to %s failed: %s", url, exc)
            raise UpstreamFetchError(url, None, str(exc) or type(exc).__name__) from exc

        if not response.is_success:
            logger.warning("Upstream %s answered %d %s", response.url, response.status_code, response.reason_phrase)
            raise UpstreamFetchError(str(response.url), response.status_code, response.reason_phrase)

        logger.debug("Fetched %d bytes from %s", len(response.content), response.url)
        return FetchedImage(url=str(response.url), content=response.content)

    async def aclose(self) -> None:
        await self._client.aclose()
