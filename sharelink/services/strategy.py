"""Startup-time selection of the metadata extraction strategy."""

import logging

from sharelink.config import Settings
from sharelink.services.browser_fetcher import (
    BrowserDocumentSource,
    local_profile,
    serverless_profile,
)
from sharelink.services.extractor import DocumentMetadataExtractor, MetadataExtractor
from sharelink.services.fetcher import HttpDocumentSource, RenderedDocumentSource
from sharelink.services.render_service import RenderServiceMetadataExtractor

logger = logging.getLogger(__name__)


def build_document_source(settings: Settings) -> RenderedDocumentSource:
    if settings.document_source == "http":
        return HttpDocumentSource(timeout=settings.navigation_timeout_ms / 1000)

    if settings.browser_profile == "serverless":
        profile = serverless_profile(settings.browser_executable_path)
    else:
        profile = local_profile(settings.browser_executable_path)
    return BrowserDocumentSource(profile, navigation_timeout_ms=settings.navigation_timeout_ms)


def build_extractor(settings: Settings) -> MetadataExtractor:
    """Return the single extractor this process will use for every request."""
    if settings.metadata_strategy == "render_service":
        logger.info("Using render service at %s", settings.render_service_url)
        return RenderServiceMetadataExtractor(
            settings.render_service_url,
            api_key=settings.render_service_api_key,
            timeout=settings.render_service_timeout,
        )

    logger.info(
        "Using document extraction (source=%s, browser_profile=%s)",
        settings.document_source,
        settings.browser_profile,
    )
    return DocumentMetadataExtractor(build_document_source(settings))
