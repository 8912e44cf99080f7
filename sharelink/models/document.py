from typing import NamedTuple


class RenderedDocument(NamedTuple):
    """HTML of one fetched page, owned by a single in-flight extraction."""

    html: str
    url: str  # final URL after redirects / navigation
