"""Exceptions raised by the scrape pipeline and their HTTP mapping."""


class SharelinkError(Exception):
    """Base class for errors that map onto a fixed HTTP response."""

    status_code = 500
    public_message = "Internal Server Error"


class InvalidURL(SharelinkError):
    status_code = 400
    public_message = "Invalid URL"


class ExtractionFailed(SharelinkError):
    """The target page could not be fetched, rendered or parsed."""

    status_code = 500
    public_message = "Scraping failed"


class ExtractionTimeout(ExtractionFailed):
    """Navigation did not settle within the configured deadline."""


class SessionRejected(SharelinkError):
    status_code = 401
    public_message = "Unauthorized"
