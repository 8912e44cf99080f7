"""Syntactic validation of target URLs. Performs no DNS or network I/O."""

import re
from typing import Optional
from urllib.parse import urlparse

from sharelink.errors import InvalidURL

ALLOWED_SCHEMES = {"http", "https"}

# RFC 3986 unreserved, reserved and percent characters.
_URI_CHARS_RE = re.compile(r"[A-Za-z0-9:/?#\[\]@!$&'()*+,;=.\-_~%]*")
_BAD_PERCENT_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def validate_url(url: Optional[str]) -> str:
    """Return *url* unchanged if it is an absolute http(s) URL with a host.

    Raises:
        InvalidURL: for missing, empty, relative, malformed or non-web URLs.
    """
    if not url:
        raise InvalidURL("URL is missing.")
    if not _URI_CHARS_RE.fullmatch(url):
        raise InvalidURL("URL contains characters not allowed in a URI.")
    if _BAD_PERCENT_RE.search(url):
        raise InvalidURL("URL contains a malformed percent-escape.")

    try:
        parsed = urlparse(url)
        # Accessing .port validates it; a non-numeric or out-of-range port raises.
        parsed.port
    except ValueError as exc:
        raise InvalidURL(f"Malformed URL: {exc}") from exc

    if parsed.scheme.lower() not in ALLOWED_SCHEMES:
        raise InvalidURL(f"Scheme '{parsed.scheme}' is not allowed. Use http or https.")
    if not parsed.hostname:
        raise InvalidURL("URL must have a valid hostname.")

    return url
