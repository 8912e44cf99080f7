"""Tests for the Playwright document source.

The Playwright driver is replaced by mocks so no browser is launched; the
tests check the lifecycle calls the source makes on every exit path.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from sharelink.errors import ExtractionFailed, ExtractionTimeout
from sharelink.services import browser_fetcher
from sharelink.services.browser_fetcher import (
    BrowserDocumentSource,
    _block_non_essential,
    local_profile,
    serverless_profile,
)

_HTML = "<html><head><title>Rendered</title></head><body></body></html>"


def _fake_playwright(goto=None):
    """Build a fake ``async_playwright()`` factory and return (factory, handles)."""
    page = MagicMock()
    page.route = AsyncMock()
    page.goto = goto or AsyncMock()
    page.content = AsyncMock(return_value=_HTML)
    page.url = "https://example.com/landing"

    context = MagicMock()
    context.new_page = AsyncMock(return_value=page)
    context.close = AsyncMock()

    browser = MagicMock()
    browser.new_context = AsyncMock(return_value=context)
    browser.close = AsyncMock()

    pw = MagicMock()
    pw.chromium.launch = AsyncMock(return_value=browser)

    manager = MagicMock()
    manager.__aenter__.return_value = pw
    manager.__aexit__.return_value = False

    handles = {"page": page, "context": context, "browser": browser, "pw": pw, "manager": manager}
    return MagicMock(return_value=manager), handles


def _assert_released(handles):
    handles["context"].close.assert_awaited_once()
    handles["browser"].close.assert_awaited_once()
    handles["manager"].__aexit__.assert_awaited_once()


class TestBrowserDocumentSource:
    async def test_success_returns_html_and_releases_browser(self):
        factory, handles = _fake_playwright()
        with patch.object(browser_fetcher, "async_playwright", factory):
            document = await BrowserDocumentSource(navigation_timeout_ms=5_000).fetch(
                "https://example.com"
            )

        assert document.html == _HTML
        assert document.url == "https://example.com/landing"
        handles["page"].goto.assert_awaited_once_with(
            "https://example.com", wait_until="networkidle", timeout=5_000
        )
        handles["page"].route.assert_awaited_once_with("**/*", _block_non_essential)
        _assert_released(handles)

    async def test_navigation_timeout_raises_and_releases_browser(self):
        goto = AsyncMock(side_effect=PlaywrightTimeoutError("Timeout 60000ms exceeded."))
        factory, handles = _fake_playwright(goto=goto)
        with patch.object(browser_fetcher, "async_playwright", factory):
            with pytest.raises(ExtractionTimeout):
                await BrowserDocumentSource().fetch("https://example.com/slow")

        _assert_released(handles)

    async def test_navigation_error_raises_and_releases_browser(self):
        goto = AsyncMock(side_effect=PlaywrightError("net::ERR_NAME_NOT_RESOLVED"))
        factory, handles = _fake_playwright(goto=goto)
        with patch.object(browser_fetcher, "async_playwright", factory):
            with pytest.raises(ExtractionFailed) as exc_info:
                await BrowserDocumentSource().fetch("https://nope.invalid")

        assert not isinstance(exc_info.value, ExtractionTimeout)
        _assert_released(handles)

    async def test_hard_deadline_cancels_hanging_navigation(self):
        async def hang(*args, **kwargs):
            await asyncio.sleep(3600)

        factory, handles = _fake_playwright(goto=AsyncMock(side_effect=hang))
        with (
            patch.object(browser_fetcher, "async_playwright", factory),
            patch.object(browser_fetcher, "LAUNCH_GRACE_S", 0.0),
        ):
            with pytest.raises(ExtractionTimeout):
                await BrowserDocumentSource(navigation_timeout_ms=20).fetch("https://example.com")

        _assert_released(handles)

    async def test_launch_failure_raises_extraction_failed(self):
        factory, handles = _fake_playwright()
        handles["pw"].chromium.launch.side_effect = PlaywrightError("Executable doesn't exist")
        with patch.object(browser_fetcher, "async_playwright", factory):
            with pytest.raises(ExtractionFailed):
                await BrowserDocumentSource().fetch("https://example.com")

        handles["manager"].__aexit__.assert_awaited_once()

    async def test_each_fetch_launches_its_own_browser(self):
        factory, handles = _fake_playwright()
        source = BrowserDocumentSource()
        with patch.object(browser_fetcher, "async_playwright", factory):
            await source.fetch("https://example.com")
            await source.fetch("https://example.com")

        assert handles["pw"].chromium.launch.await_count == 2
        assert handles["browser"].close.await_count == 2

    async def test_launch_uses_profile_options(self):
        factory, handles = _fake_playwright()
        profile = serverless_profile("/opt/chromium/chrome")
        with patch.object(browser_fetcher, "async_playwright", factory):
            await BrowserDocumentSource(profile).fetch("https://example.com")

        kwargs = handles["pw"].chromium.launch.await_args.kwargs
        assert kwargs["executable_path"] == "/opt/chromium/chrome"
        assert "--single-process" in kwargs["args"]
        assert kwargs["headless"] is True


class TestLaunchProfiles:
    def test_local_profile_has_no_executable_by_default(self):
        options = local_profile().launch_options()
        assert "executable_path" not in options
        assert "--no-sandbox" in options["args"]

    def test_serverless_profile_adds_single_process_flags(self):
        profile = serverless_profile()
        assert profile.name == "serverless"
        assert "--no-zygote" in profile.args


class TestResourceBlocking:
    @pytest.mark.parametrize("resource_type", ["image", "stylesheet", "font", "media", "script"])
    async def test_non_essential_resources_are_aborted(self, resource_type):
        route = MagicMock()
        route.request.resource_type = resource_type
        route.abort = AsyncMock()
        route.continue_ = AsyncMock()

        await _block_non_essential(route)

        route.abort.assert_awaited_once()
        route.continue_.assert_not_awaited()

    @pytest.mark.parametrize("resource_type", ["document", "xhr", "fetch"])
    async def test_other_resources_continue(self, resource_type):
        route = MagicMock()
        route.request.resource_type = resource_type
        route.abort = AsyncMock()
        route.continue_ = AsyncMock()

        await _block_non_essential(route)

        route.continue_.assert_awaited_once()
        route.abort.assert_not_awaited()
