"""Playwright browser lifecycle: one Chromium page owned by a session."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional, Sequence

from playwright.async_api import Browser, Page, Playwright, async_playwright

from voicebook.core.errors import NotInitializedError
from voicebook.core.settings import BrowserSettings
from voicebook.utils.logging import get_logger


logger = get_logger("Browser")


class BrowserSession:
    """Explicit handle around a Chromium browser and its single page.

    Use ``async with BrowserSession(settings) as page`` or call
    :meth:`start` / :meth:`close` around the application lifetime.
    """

    DEFAULT_LAUNCH_ARGS = [
        "--no-sandbox",
        "--disable-setuid-sandbox",
    ]

    def __init__(
        self,
        settings: BrowserSettings,
        *,
        extra_launch_args: Sequence[str] | None = None,
    ) -> None:
        self.settings = settings
        self._lock = asyncio.Lock()
        self._pw: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._page: Optional[Page] = None
        self._launch_args = list(self.DEFAULT_LAUNCH_ARGS)
        for arg in extra_launch_args or ():
            if arg not in self._launch_args:
                self._launch_args.append(arg)

    @property
    def started(self) -> bool:
        return self._page is not None and not self._page.is_closed()

    @property
    def page(self) -> Page:
        if not self.started:
            raise NotInitializedError("Browser not initialized. Call initialize() first.")
        assert self._page is not None
        return self._page

    async def start(self) -> Page:
        async with self._lock:
            if self.started:
                assert self._page is not None
                return self._page
            logger.info("Launching browser (headless=%s)...", self.settings.headless)
            try:
                self._pw = await async_playwright().start()
                self._browser = await self._pw.chromium.launch(
                    headless=self.settings.headless,
                    args=self._launch_args,
                )
                self._page = await self._browser.new_page(
                    viewport={
                        "width": self.settings.viewport_width,
                        "height": self.settings.viewport_height,
                    }
                )
            except Exception:
                await self._shutdown()
                raise
            logger.info("Browser initialized successfully")
            return self._page

    async def close(self) -> None:
        async with self._lock:
            await self._shutdown()
        logger.info("Browser closed")

    async def _shutdown(self) -> None:
        if self._page is not None and not self._page.is_closed():
            await self._page.close()
        self._page = None
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._pw is not None:
            await self._pw.stop()
            self._pw = None

    async def __aenter__(self) -> Page:
        return await self.start()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


@asynccontextmanager
async def open_page(settings: BrowserSettings) -> AsyncIterator[Page]:
    """Scoped page for one-off scripts and tests."""
    session = BrowserSession(settings)
    page = await session.start()
    try:
        yield page
    finally:
        await session.close()
