"""Metadata extraction delegated to a remote rendering API."""

import logging
from typing import Optional

import httpx

from sharelink.errors import ExtractionFailed, ExtractionTimeout
from sharelink.models.metadata import Metadata

logger = logging.getLogger(__name__)


def _as_optional_str(value) -> Optional[str]:
    if value is None:
        return None
    return str(value)


class RenderServiceMetadataExtractor:
    """Asks a rendering API for a page's preview fields.

    The service is called as ``GET <endpoint>?url=<target>`` and must answer
    with a JSON object carrying ``title``, ``description`` and ``image``.
    These are passed through unchanged.
    """

    def __init__(
        self,
        endpoint: str,
        api_key: str = "",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not endpoint:
            raise ValueError("A render service endpoint is required.")
        self._endpoint = endpoint
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    async def extract(self, url: str) -> Metadata:
        headers = {"Accept": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.get(self._endpoint, params={"url": url}, headers=headers)
                response.raise_for_status()
                payload = response.json()
        except httpx.TimeoutException as exc:
            raise ExtractionTimeout(f"Render service timed out for {url}") from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise ExtractionFailed(f"Render service error for {url}: {exc}") from exc
        except ValueError as exc:
            raise ExtractionFailed(f"Render service returned invalid JSON for {url}") from exc

        if not isinstance(payload, dict):
            raise ExtractionFailed(f"Render service returned {type(payload).__name__}, expected an object")

        return Metadata(
            title=_as_optional_str(payload.get("title")),
            description=_as_optional_str(payload.get("description")),
            icon=_as_optional_str(payload.get("image")),
            source_url=url,
        )
