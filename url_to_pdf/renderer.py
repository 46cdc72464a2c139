"""
Headless Chromium rendering of web pages to PDF using Playwright.

One ``PlaywrightSession`` owns the browser for the whole run. Every task gets
its own ``PageContext`` (a fresh browser context with a single page), which
navigates, scrolls the page until lazy content has loaded and prints it.

MIT License - Copyright (c) 2025 URL to PDF Converter
"""

import asyncio
from pathlib import Path
from typing import Optional, Union

from playwright.async_api import async_playwright

from .config import RenderSettings
from .console import Console

BROWSER_ARGS = [
    '--no-sandbox',              # Required in some environments
    '--disable-dev-shm-usage',   # Use /tmp instead of /dev/shm (prevents OOM crashes)
    '--disable-gpu',             # No GPU in headless mode
]

_SCROLL_HEIGHT_JS = "() => document.body ? document.body.scrollHeight : 0"
_SCROLL_BY_JS = "(distance) => window.scrollBy(0, distance)"


class RenderTimeoutError(Exception):
    """A rendering step did not finish within the per-task timeout."""

    def __init__(self, step: str, timeout: float):
        super().__init__(f"Timed out after {timeout:g}s while {step}")
        self.step = step
        self.timeout = timeout


class PageContext:
    """An isolated browser context holding the page for one task."""

    def __init__(self, context, page, settings: RenderSettings, console: Console):
        self._context = context
        self.page = page
        self.settings = settings
        self.console = console

    async def settle(self) -> int:
        """Scroll down step by step until the travelled distance reaches the page height.

        The height is re-measured on every step so pages that grow while being
        scrolled keep being scrolled. Returns the number of steps taken.
        """
        step = self.settings.scroll_step
        travelled = 0
        steps = 0
        while True:
            await asyncio.sleep(self.settings.scroll_interval)
            height = await self.page.evaluate(_SCROLL_HEIGHT_JS)
            await self.page.evaluate(_SCROLL_BY_JS, step)
            travelled += step
            steps += 1
            if travelled >= height:
                return steps
            if self.settings.max_scroll_steps and steps >= self.settings.max_scroll_steps:
                self.console.debug(f"Stopped scrolling after {steps} steps ({travelled}/{height}px)")
                return steps

    async def render(self, url: str, destination: Union[str, Path], timeout: float) -> None:
        """Navigate to ``url``, settle lazy content and write the PDF to ``destination``.

        Raises on any failure; navigation errors come straight from Playwright.
        """
        await self.page.goto(url, wait_until=self.settings.wait_until, timeout=timeout * 1000)

        try:
            await asyncio.wait_for(self.settle(), timeout)
        except asyncio.TimeoutError as e:
            raise RenderTimeoutError("scrolling the page", timeout) from e

        try:
            await asyncio.wait_for(
                self.page.pdf(
                    path=str(destination),
                    format=self.settings.page_format,
                    print_background=True,
                    margin=self.settings.margin_dict(),
                ),
                timeout,
            )
        except asyncio.TimeoutError as e:
            raise RenderTimeoutError("generating the PDF", timeout) from e

    async def close(self) -> None:
        await self._context.close()


class PlaywrightSession:
    """Shared Chromium browser; use as ``async with PlaywrightSession(...) as session``."""

    def __init__(self, settings: Optional[RenderSettings] = None, console: Optional[Console] = None):
        self.settings = settings or RenderSettings()
        self.console = console or Console()
        self._playwright = None
        self._browser = None

    async def start(self) -> None:
        """Launch the browser. Anything started before a failure is cleaned up again."""
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self.settings.headless,
                args=BROWSER_ARGS,
            )
        except Exception:
            await self.close()
            raise
        self.console.debug("Browser instance launched")

    async def open_context(self) -> PageContext:
        if self._browser is None:
            raise RuntimeError("Session has not been started")
        context = await self._browser.new_context()
        try:
            page = await context.new_page()
        except Exception:
            await context.close()
            raise
        return PageContext(context, page, self.settings, self.console)

    async def close(self) -> None:
        """Close browser and cleanup resources."""
        # Grab references and null them out first to prevent double-close
        browser, pw = self._browser, self._playwright
        self._browser = None
        self._playwright = None
        try:
            if browser is not None:
                await browser.close()
        except Exception as e:
            self.console.warning(f"Failed to close browser: {e}")
        try:
            if pw is not None:
                await pw.stop()
        except Exception as e:
            self.console.warning(f"Failed to stop Playwright: {e}")
        self.console.debug("Browser instance closed and cleaned up")

    async def __aenter__(self) -> "PlaywrightSession":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
