"""Tests for the Playwright telemetry collector without launching a browser."""

from __future__ import annotations

import asyncio

import pytest
from playwright.async_api import Error as PlaywrightError

from site_carbon.collaborators import TelemetryCollector
from site_carbon.collaborators.telemetry import PlaywrightTelemetryCollector
from site_carbon.errors import CollaboratorFatal


class _StubbedCollector(PlaywrightTelemetryCollector):
    def __init__(self, entries=None, error=None, delay=0.0, **kwargs) -> None:
        super().__init__(**kwargs)
        self.entries = entries or []
        self.error = error
        self.delay = delay

    async def _load(self, url: str) -> list[dict[str, object]]:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.entries)


async def test_entries_become_resource_records() -> None:
    collector = _StubbedCollector(
        entries=[
            {
                "name": "https://example.com/app.js",
                "transferSize": 1200,
                "encodedBodySize": 1000,
                "decodedBodySize": 4000,
                "initiatorType": "script",
            },
            "garbage",
        ]
    )

    records = await collector.collect("https://example.com/")

    assert len(records) == 1
    assert records[0].url == "https://example.com/app.js"
    assert records[0].decoded_size_bytes == 4000.0
    assert records[0].initiator_type == "script"


async def test_navigation_error_is_fatal() -> None:
    collector = _StubbedCollector(error=PlaywrightError("net::ERR_NAME_NOT_RESOLVED"))

    with pytest.raises(CollaboratorFatal, match="ERR_NAME_NOT_RESOLVED"):
        await collector.collect("https://missing.invalid/")


async def test_collection_timeout_is_fatal() -> None:
    collector = _StubbedCollector(delay=1.0, timeout_seconds=0.01)

    with pytest.raises(CollaboratorFatal, match="exceeded"):
        await collector.collect("https://slow.example/")


def test_collector_satisfies_protocol() -> None:
    assert isinstance(PlaywrightTelemetryCollector(), TelemetryCollector)


class _FakePage:
    def __init__(self, entries, goto_error=None, goto_delay=0.0) -> None:
        self.entries = entries
        self.goto_error = goto_error
        self.goto_delay = goto_delay
        self.visited: list[str] = []

    async def goto(self, url, wait_until=None, timeout=None):
        self.visited.append(url)
        if self.goto_delay:
            await asyncio.sleep(self.goto_delay)
        if self.goto_error is not None:
            raise self.goto_error

    async def evaluate(self, script):
        return self.entries


class _FakeContext:
    def __init__(self, page: _FakePage) -> None:
        self.page = page

    async def new_page(self) -> _FakePage:
        return self.page


class _FakeBrowser:
    def __init__(self, page: _FakePage) -> None:
        self.page = page
        self.closed = False

    async def new_context(self, user_agent=None) -> _FakeContext:
        return _FakeContext(self.page)

    async def close(self) -> None:
        self.closed = True


class _FakeChromium:
    def __init__(self, browser: _FakeBrowser) -> None:
        self.browser = browser
        self.launch_args: list[str] = []

    async def launch(self, headless=True, args=None) -> _FakeBrowser:
        self.launch_args = list(args or [])
        return self.browser


class _FakePlaywright:
    """Stand-in for the object ``async_playwright()`` yields."""

    def __init__(self, browser: _FakeBrowser) -> None:
        self.chromium = _FakeChromium(browser)
        self.stopped = False

    async def __aenter__(self) -> _FakePlaywright:
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.stopped = True


def _install_browser(
    monkeypatch: pytest.MonkeyPatch, page: _FakePage
) -> tuple[_FakeBrowser, _FakePlaywright]:
    browser = _FakeBrowser(page)
    playwright = _FakePlaywright(browser)
    monkeypatch.setattr(
        "site_carbon.collaborators.telemetry.async_playwright", lambda: playwright
    )
    return browser, playwright


async def test_browser_closed_after_successful_load(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    page = _FakePage([{"name": "https://example.com/", "transferSize": 512}])
    browser, playwright = _install_browser(monkeypatch, page)

    records = await PlaywrightTelemetryCollector().collect("https://example.com/")

    assert [record.url for record in records] == ["https://example.com/"]
    assert page.visited == ["https://example.com/"]
    assert "--no-sandbox" in playwright.chromium.launch_args
    assert browser.closed
    assert playwright.stopped


async def test_browser_closed_when_navigation_fails(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    page = _FakePage([], goto_error=PlaywrightError("net::ERR_CONNECTION_REFUSED"))
    browser, playwright = _install_browser(monkeypatch, page)

    with pytest.raises(CollaboratorFatal, match="ERR_CONNECTION_REFUSED"):
        await PlaywrightTelemetryCollector().collect("https://down.example/")

    assert browser.closed
    assert playwright.stopped


async def test_browser_closed_when_load_times_out(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    page = _FakePage([], goto_delay=1.0)
    browser, playwright = _install_browser(monkeypatch, page)

    with pytest.raises(CollaboratorFatal, match="exceeded"):
        await PlaywrightTelemetryCollector(timeout_seconds=0.01).collect(
            "https://slow.example/"
        )

    assert browser.closed
    assert playwright.stopped
