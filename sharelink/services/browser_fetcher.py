"""Playwright-based document source for JavaScript-rendered pages."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Route
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from sharelink.errors import ExtractionFailed, ExtractionTimeout
from sharelink.models.document import RenderedDocument

logger = logging.getLogger(__name__)

NAVIGATION_TIMEOUT_MS = 60_000
# Extra time allowed on top of the navigation timeout for launching the browser.
LAUNCH_GRACE_S = 10.0
BLOCKED_RESOURCE_TYPES = frozenset({"image", "stylesheet", "font", "media", "script"})

_BASE_ARGS = [
    # --no-sandbox is required when running as root inside a container
    # (Docker drops the user namespace needed by Chromium's sandbox).
    "--no-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
]


@dataclass(frozen=True)
class LaunchProfile:
    """How to start Chromium in a given deployment."""

    name: str
    args: List[str] = field(default_factory=list)
    executable_path: Optional[str] = None

    def launch_options(self) -> dict:
        options: dict = {"headless": True, "args": list(self.args)}
        if self.executable_path:
            options["executable_path"] = self.executable_path
        return options


def local_profile(executable_path: Optional[str] = None) -> LaunchProfile:
    """Chromium installed by ``playwright install`` on a regular host."""
    return LaunchProfile(name="local", args=list(_BASE_ARGS), executable_path=executable_path)


def serverless_profile(executable_path: Optional[str] = None) -> LaunchProfile:
    """A packaged Chromium binary on a read-only, single-core function runtime."""
    return LaunchProfile(
        name="serverless",
        args=_BASE_ARGS + ["--single-process", "--no-zygote", "--disable-extensions"],
        executable_path=executable_path,
    )


async def _block_non_essential(route: Route) -> None:
    if route.request.resource_type in BLOCKED_RESOURCE_TYPES:
        await route.abort()
    else:
        await route.continue_()


class BrowserDocumentSource:
    """Renders a page in a fresh headless Chromium and returns its HTML.

    Every call launches its own browser; nothing is pooled or reused between
    requests. The browser is closed on every exit path.
    """

    def __init__(
        self,
        profile: Optional[LaunchProfile] = None,
        navigation_timeout_ms: int = NAVIGATION_TIMEOUT_MS,
    ) -> None:
        self._profile = profile or local_profile()
        self._navigation_timeout_ms = navigation_timeout_ms

    async def fetch(self, url: str) -> RenderedDocument:
        """Navigate to *url* until the network is idle and capture the DOM.

        Raises:
            ExtractionTimeout: if navigation or launch exceeds the deadline.
            ExtractionFailed: on any other browser or network error.
        """
        deadline = self._navigation_timeout_ms / 1000 + LAUNCH_GRACE_S
        try:
            return await asyncio.wait_for(self._render(url), timeout=deadline)
        except asyncio.TimeoutError as exc:
            raise ExtractionTimeout(f"Browser did not finish {url} within {deadline:.0f}s") from exc
        except PlaywrightTimeoutError as exc:
            raise ExtractionTimeout(f"Navigation to {url} timed out") from exc
        except PlaywrightError as exc:
            raise ExtractionFailed(f"Browser error for {url}: {exc}") from exc

    async def _render(self, url: str) -> RenderedDocument:
        async with async_playwright() as pw:
            browser = await pw.chromium.launch(**self._profile.launch_options())
            context = None
            try:
                context = await browser.new_context()
                page = await context.new_page()
                await page.route("**/*", _block_non_essential)
                await page.goto(
                    url, wait_until="networkidle", timeout=self._navigation_timeout_ms
                )
                html = await page.content()
                final_url = page.url
            finally:
                try:
                    if context is not None:
                        await context.close()
                finally:
                    await browser.close()
                    logger.debug("Browser closed for %s", url)

        return RenderedDocument(html=html, url=final_url or url)
