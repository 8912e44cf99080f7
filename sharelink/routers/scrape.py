import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from sharelink.auth.session import require_session
from sharelink.errors import ExtractionFailed, InvalidURL
from sharelink.models.response import ErrorResponse, ScrapeResponse
from sharelink.services.extractor import MetadataExtractor
from sharelink.services.validator import validate_url

logger = logging.getLogger(__name__)

router = APIRouter()


def get_extractor(request: Request) -> MetadataExtractor:
    """Return the extractor selected for this process at startup."""
    return request.app.state.extractor


@router.get(
    "/scrape",
    response_model=ScrapeResponse,
    summary="Unfurl a URL into link-preview metadata",
    responses={
        400: {"model": ErrorResponse},
        405: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
    dependencies=[Depends(require_session)],
)
async def scrape(
    url: Optional[str] = Query(default=None, description="Absolute http(s) URL to unfurl."),
    extractor: MetadataExtractor = Depends(get_extractor),
) -> ScrapeResponse:
    """Fetch *url* and return its title, description and icon.

    Fields the page does not provide are returned as ``null``. Each call is
    an independent extraction; nothing is cached.
    """
    try:
        url = validate_url(url)
    except InvalidURL as exc:
        logger.warning("Rejected scrape request for %r: %s", url, exc)
        raise HTTPException(status_code=400, detail=InvalidURL.public_message)

    logger.info("Scrape request received for %s", url)

    try:
        metadata = await extractor.extract(url)
    except ExtractionFailed:
        logger.error("Scraping failed for %s", url, exc_info=True)
        raise HTTPException(status_code=500, detail=ExtractionFailed.public_message)

    return ScrapeResponse(
        title=metadata.title,
        description=metadata.description,
        icon=metadata.icon,
        url=url,
    )
