"""
Playwright browser driver implementation.
"""

import asyncio
from typing import Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from acetester.core.interfaces import BrowserDriver
from acetester.core.types import SessionConfig
from acetester.monitoring.logger import get_logger, log_performance_metric


class PlaywrightDriver(BrowserDriver):
    """Playwright-based page driver for one browser session."""

    def __init__(self, config: Optional[SessionConfig] = None) -> None:
        """
        Initialize the Playwright driver.

        Args:
            config: Session parameters (headless, viewport, timeouts)
        """
        self.config = config or SessionConfig()
        self.logger = get_logger("browser.driver")
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    async def start(self) -> None:
        """Start the browser and create a page."""
        if self._playwright is None:
            self._playwright = await async_playwright().start()

        if self._browser is None:
            self.logger.info(
                "Starting browser",
                extra={
                    "headless": self.config.headless,
                    "viewport": f"{self.config.viewport_width}x{self.config.viewport_height}",
                    "launch_timeout_ms": self.config.launch_timeout_ms,
                },
            )
            self._browser = await self._playwright.chromium.launch(
                headless=self.config.headless,
                timeout=self.config.launch_timeout_ms,
                args=[
                    "--disable-dev-shm-usage",
                    "--disable-extensions",
                ],
            )

        if self._context is None:
            self._context = await self._browser.new_context(
                viewport={
                    "width": self.config.viewport_width,
                    "height": self.config.viewport_height,
                },
            )

        if self._page is None:
            self._page = await self._context.new_page()

    async def stop(self) -> None:
        """
        Stop the browser and cleanup resources.

        Every handle is closed and cleared even when an earlier close fails;
        the first failure is raised once teardown has finished.
        """
        first_error: Optional[BaseException] = None
        for attr in ("_page", "_context", "_browser", "_playwright"):
            handle = getattr(self, attr)
            if handle is None:
                continue
            setattr(self, attr, None)
            try:
                if attr == "_playwright":
                    await handle.stop()
                else:
                    await handle.close()
            except Exception as exc:
                self.logger.warning(
                    "Browser resource failed to close",
                    extra={"resource": attr.lstrip("_"), "error": str(exc)},
                )
                if first_error is None:
                    first_error = exc

        if first_error is not None:
            raise first_error

        self.logger.info("Browser stopped")

    async def navigate(self, url: str, timeout_ms: int) -> None:
        """Navigate to a URL and wait for the initial document load."""
        page = self._require_page()

        self.logger.info("Navigating to URL", extra={"url": url})
        start_time = asyncio.get_running_loop().time()

        # "load" rather than "networkidle": long-polling pages never go idle
        await page.goto(url, wait_until="load", timeout=timeout_ms)

        elapsed_ms = (asyncio.get_running_loop().time() - start_time) * 1000
        log_performance_metric("page_navigation", elapsed_ms, context={"url": url})

    async def click(self, selector: str, timeout_ms: int) -> None:
        """Wait for an element to be visible, then click it."""
        page = self._require_page()

        self.logger.debug("Clicking element", extra={"selector": selector})
        locator = page.locator(selector).first
        await locator.wait_for(state="visible", timeout=timeout_ms)
        await locator.click(timeout=timeout_ms)

    async def fill(self, selector: str, value: str, timeout_ms: int) -> None:
        """Wait for a field to be visible, then set its value."""
        page = self._require_page()

        self.logger.debug(
            "Filling field", extra={"selector": selector, "length": len(value)}
        )
        locator = page.locator(selector).first
        await locator.wait_for(state="visible", timeout=timeout_ms)
        await locator.fill(value, timeout=timeout_ms)

    async def wait_for_load_state(self, timeout_ms: int) -> None:
        """Wait for the page's load event."""
        page = self._require_page()

        await page.wait_for_load_state("load", timeout=timeout_ms)

    def _require_page(self) -> Page:
        if not self._page:
            raise RuntimeError("Browser not started. Call start() first.")
        return self._page
