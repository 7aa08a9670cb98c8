"""Headless Chromium page loads that report resource timing entries.

Uses the Playwright async API. The browser is launched per collection and
closed on every exit path, including timeouts and navigation errors.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from playwright.async_api import Browser, Error as PlaywrightError, async_playwright

from site_carbon.errors import CollaboratorFatal
from site_carbon.models import ResourceRecord

LOGGER = logging.getLogger(__name__)

_RESOURCE_TIMING_SCRIPT = """
() => performance.getEntriesByType("resource").map(r => ({
    name: r.name,
    transferSize: r.transferSize,
    encodedBodySize: r.encodedBodySize,
    decodedBodySize: r.decodedBodySize,
    initiatorType: r.initiatorType
}))
"""

_BROWSER_ARGS = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
)


class PlaywrightTelemetryCollector:
    """Collect ``PerformanceResourceTiming`` entries for a full page load.

    Args:
        timeout_seconds: Time limit for the whole collection, launch included.
        wait_until: Playwright navigation readiness event.
        user_agent: Optional user agent override for the browser context.
    """

    def __init__(
        self,
        *,
        timeout_seconds: float = 60.0,
        wait_until: str = "networkidle",
        user_agent: str | None = None,
    ) -> None:
        self._timeout = timeout_seconds
        self._wait_until = wait_until
        self._user_agent = user_agent

    @asynccontextmanager
    async def _browser(self) -> AsyncIterator[Browser]:
        async with async_playwright() as playwright:
            browser = await playwright.chromium.launch(
                headless=True, args=list(_BROWSER_ARGS)
            )
            try:
                yield browser
            finally:
                await browser.close()
                LOGGER.debug("Browser closed")

    async def _load(self, url: str) -> list[dict[str, object]]:
        async with self._browser() as browser:
            context = await browser.new_context(user_agent=self._user_agent)
            page = await context.new_page()
            LOGGER.info("Navigating", extra={"url": url})
            await page.goto(
                url,
                wait_until=self._wait_until,  # type: ignore[arg-type]
                timeout=self._timeout * 1000,
            )
            entries = await page.evaluate(_RESOURCE_TIMING_SCRIPT)
            return list(entries or [])

    async def collect(self, url: str) -> list[ResourceRecord]:
        """Load ``url`` and return every resource the browser fetched.

        Raises:
            CollaboratorFatal: If the browser cannot start, the page cannot be
                loaded, or the collection exceeds the timeout.
        """

        try:
            entries = await asyncio.wait_for(self._load(url), timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            raise CollaboratorFatal(
                f"page load exceeded {self._timeout:.0f} seconds"
            ) from exc
        except PlaywrightError as exc:
            raise CollaboratorFatal(f"page load failed: {exc.message}") from exc

        records = [
            ResourceRecord.from_timing_entry(entry)
            for entry in entries
            if isinstance(entry, dict)
        ]
        LOGGER.info(
            "Resources collected", extra={"url": url, "resource_count": len(records)}
        )
        return records
