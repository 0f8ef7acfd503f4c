# site_compare/crawler/renderer.py
"""
Renderer module: drives a headless browser to navigate, screenshot and list anchors of a page.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncContextManager, AsyncIterator, List, Optional, Protocol

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright
from playwright.async_api import Error as PWError

from site_compare.config import CompareConfig
from site_compare.crawler.link_extractor import extract_hrefs

__all__ = ("RenderError", "PageSession", "Renderer", "PlaywrightRenderer", "RenderedPage")

_LAUNCH_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]


class RenderError(RuntimeError):
    """A single page could not be navigated, captured or inspected."""


class PageSession(Protocol):
    async def navigate(self, url: str, timeout: float) -> str: ...

    async def capture(self) -> bytes: ...

    async def links(self) -> List[str]: ...


class Renderer(Protocol):
    """Anything that can open a page session; one renderer serves one crawl."""

    async def __aenter__(self) -> "Renderer": ...

    async def __aexit__(self, exc_type, exc, tb) -> None: ...

    def page(self) -> AsyncContextManager[PageSession]: ...


def overlay_css(selectors: List[str]) -> str:
    return "\n".join(f"{sel} {{ display: none !important; }}" for sel in selectors)


class RenderedPage:
    """One browser tab bound to the settings of a comparison run."""

    def __init__(self, page: Page, config: CompareConfig) -> None:
        self._page = page
        self.config = config

    async def navigate(self, url: str, timeout: float) -> str:
        """Load *url* and return the URL the browser ended up on."""
        try:
            await self._page.goto(url, wait_until="load", timeout=timeout * 1000)
        except PWError as exc:
            raise RenderError(f"navigation to {url} failed: {exc}") from exc
        return self._page.url

    async def capture(self) -> bytes:
        """Full-page JPEG after the settle delay, with overlay chrome hidden."""
        try:
            await self._page.wait_for_timeout(self.config.settle_delay * 1000)
            if self.config.hide_selectors:
                await self._page.add_style_tag(content=overlay_css(self.config.hide_selectors))
            return await self._page.screenshot(
                type="jpeg",
                quality=self.config.jpeg_quality,
                full_page=True,
            )
        except PWError as exc:
            raise RenderError(f"capture of {self._page.url} failed: {exc}") from exc

    async def links(self) -> List[str]:
        """Absolute targets of the page's anchors, resolved against the document base."""
        try:
            html = await self._page.content()
        except PWError as exc:
            raise RenderError(f"reading {self._page.url} failed: {exc}") from exc
        return extract_hrefs(html, self._page.url)


class PlaywrightRenderer:
    """Headless Chromium with one browser context per crawl."""

    def __init__(self, config: CompareConfig) -> None:
        self.config = config
        self.logger = logging.getLogger("SiteCompare")
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None

    async def __aenter__(self) -> PlaywrightRenderer:
        self._playwright = await async_playwright().start()
        try:
            self._browser = await self._playwright.chromium.launch(headless=True, args=_LAUNCH_ARGS)
            self._context = await self._browser.new_context(
                viewport=self.config.viewport_size,
                user_agent=self.config.user_agent,
            )
        except BaseException:
            await self.__aexit__(None, None, None)
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._context is not None:
            await self._context.close()
            self._context = None
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    @asynccontextmanager
    async def page(self) -> AsyncIterator[RenderedPage]:
        if self._context is None:
            raise RuntimeError("Browser not initialized")
        try:
            tab = await self._context.new_page()
        except PWError as exc:
            raise RenderError(f"cannot open a page: {exc}") from exc
        try:
            yield RenderedPage(tab, self.config)
        finally:
            try:
                await tab.close()
            except PWError as exc:
                self.logger.debug("Closing page failed: %s", exc)
