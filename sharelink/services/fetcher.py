import logging
from typing import Protocol
from urllib.parse import urljoin

import httpx

from sharelink.errors import ExtractionFailed, ExtractionTimeout, InvalidURL
from sharelink.models.document import RenderedDocument
from sharelink.services.validator import validate_url

logger = logging.getLogger(__name__)

MAX_CONTENT_SIZE = 10 * 1024 * 1024  # 10 MB
MAX_REDIRECTS = 10
USER_AGENT = "Mozilla/5.0 (compatible; sharelink-unfurl/1.0)"


class RenderedDocumentSource(Protocol):
    """Acquires the HTML of a page for metadata extraction."""

    async def fetch(self, url: str) -> RenderedDocument: ...


class HttpDocumentSource:
    """Fetches raw server-side HTML over plain HTTP (no JavaScript execution)."""

    def __init__(self, timeout: float = 60.0, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._timeout = timeout
        self._transport = transport

    async def fetch(self, url: str) -> RenderedDocument:
        """Fetch *url* and return its body.

        Redirects are followed manually so that every redirect destination is
        validated before the next request is made.

        Raises:
            ExtractionTimeout: if the server does not answer in time.
            ExtractionFailed: on network/HTTP errors, bad redirects or oversize bodies.
        """
        try:
            return await self._fetch(url)
        except httpx.TimeoutException as exc:
            raise ExtractionTimeout(f"Timed out fetching {url}") from exc
        except (httpx.HTTPError, httpx.InvalidURL, InvalidURL) as exc:
            raise ExtractionFailed(f"Error fetching {url}: {exc}") from exc

    async def _fetch(self, url: str) -> RenderedDocument:
        current_url = url
        async with httpx.AsyncClient(
            follow_redirects=False,
            timeout=self._timeout,
            headers={"User-Agent": USER_AGENT},
            transport=self._transport,
        ) as client:
            for _ in range(MAX_REDIRECTS + 1):
                async with client.stream("GET", current_url) as response:
                    if response.is_redirect:
                        location = response.headers.get("location", "")
                        current_url = validate_url(urljoin(current_url, location))
                        logger.debug("Following redirect to %s", current_url)
                        continue

                    response.raise_for_status()

                    content_length = response.headers.get("content-length")
                    if content_length and content_length.isdigit() and int(content_length) > MAX_CONTENT_SIZE:
                        raise ExtractionFailed("Response body exceeds the maximum allowed size.")

                    chunks = []
                    total = 0
                    async for chunk in response.aiter_bytes():
                        total += len(chunk)
                        if total > MAX_CONTENT_SIZE:
                            raise ExtractionFailed("Response body exceeds the maximum allowed size.")
                        chunks.append(chunk)

                    body = b"".join(chunks)
                    try:
                        html = body.decode(response.encoding or "utf-8", errors="replace")
                    except LookupError:
                        html = body.decode("utf-8", errors="replace")
                    return RenderedDocument(
                        html=html,
                        url=str(response.url),
                    )

        raise ExtractionFailed("Too many redirects.")
