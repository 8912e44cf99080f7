import logging
from typing import Optional, Protocol
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from sharelink.errors import ExtractionFailed
from sharelink.models.metadata import Metadata
from sharelink.services.fetcher import RenderedDocumentSource

logger = logging.getLogger(__name__)


class MetadataExtractor(Protocol):
    """Produces link-preview metadata for a validated URL."""

    async def extract(self, url: str) -> Metadata: ...


def _clean(value) -> Optional[str]:
    if value is None:
        return None
    text = " ".join(str(value).split())
    return text or None


def _meta_content(soup: BeautifulSoup, key: str) -> Optional[str]:
    """Return the content of the first <meta> whose property or name is *key*."""
    for meta in soup.find_all("meta"):
        for attr in ("property", "name"):
            if str(meta.get(attr, "")).strip().lower() == key:
                content = _clean(meta.get("content"))
                if content:
                    return content
    return None


def _extract_title(soup: BeautifulSoup) -> Optional[str]:
    title_tag = soup.find("title")
    if title_tag:
        title = _clean(title_tag.get_text())
        if title:
            return title
    return _meta_content(soup, "og:title")


def _extract_description(soup: BeautifulSoup) -> Optional[str]:
    return _meta_content(soup, "og:description") or _meta_content(soup, "description")


def _extract_icon(soup: BeautifulSoup, base_url: str) -> Optional[str]:
    for link in soup.find_all("link", href=True):
        rel = link.get("rel") or []
        if isinstance(rel, str):
            rel = rel.split()
        if "icon" in (token.lower() for token in rel):
            href = _clean(link["href"])
            if href:
                return urljoin(base_url, href)
    image = _meta_content(soup, "og:image")
    if image:
        return urljoin(base_url, image)
    return None


def parse_metadata(html: str, base_url: str) -> Metadata:
    """Pull title, description and icon out of *html*.

    A ``<title>`` tag wins over ``og:title`` and a favicon ``<link>`` wins
    over ``og:image``. Relative icon URLs are resolved against *base_url*.
    """
    soup = BeautifulSoup(html, "lxml")
    return Metadata(
        title=_extract_title(soup),
        description=_extract_description(soup),
        icon=_extract_icon(soup, base_url),
        source_url=base_url,
    )


class DocumentMetadataExtractor:
    """Fetches the page through a document source and parses its markup."""

    def __init__(self, source: RenderedDocumentSource) -> None:
        self._source = source

    async def extract(self, url: str) -> Metadata:
        try:
            document = await self._source.fetch(url)
        except ExtractionFailed:
            raise
        except Exception as exc:
            raise ExtractionFailed(f"Could not fetch {url}: {exc}") from exc

        try:
            metadata = parse_metadata(document.html, document.url)
        except Exception as exc:
            raise ExtractionFailed(f"Could not parse document from {url}") from exc
        return metadata.model_copy(update={"source_url": url})
