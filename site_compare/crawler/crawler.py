# === FILE: site_compare/crawler/crawler.py ===
from __future__ import annotations

import asyncio
import logging
import time
from enum import Enum
from typing import Callable

from site_compare.config import CompareConfig
from site_compare.crawler.link_extractor import same_site_links
from site_compare.crawler.models import CrawlResult, CrawlState, PageRecord
from site_compare.crawler.renderer import PageSession, PlaywrightRenderer, RenderError, Renderer
from site_compare.utils import crawl_key, normalize_full_url

__all__ = ("CrawlStatus", "SiteCrawler", "RendererFactory")

RendererFactory = Callable[[CompareConfig], Renderer]


class CrawlStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    DONE = "done"


class SiteCrawler:
    """Bounded breadth-first crawler that screenshots every page of one site.

    Pages are visited one at a time. A page that fails to load or capture is
    logged and skipped; the crawl goes on with the rest of the frontier.
    """

    def __init__(
        self,
        start_url: str,
        config: CompareConfig,
        renderer_factory: RendererFactory = PlaywrightRenderer,
    ) -> None:
        self.start_url = start_url
        self.config = config
        self.renderer_factory = renderer_factory
        self.state = CrawlState()
        self.result: CrawlResult = {}
        self.failed_pages: list[str] = []
        self.status = CrawlStatus.IDLE
        self.logger = logging.getLogger("SiteCompare")

    async def run(self) -> CrawlResult:
        if self.status is not CrawlStatus.IDLE:
            raise RuntimeError("a crawler can only run once")
        self.status = CrawlStatus.RUNNING
        self.logger.info("Crawl started: %s", self.start_url)
        start = time.monotonic()
        try:
            self.state.enqueue(normalize_full_url(self.start_url))
            async with self.renderer_factory(self.config) as renderer:
                while self.state and self.state.visited_count < self.config.max_pages:
                    url = self.state.pop()
                    if self.state.is_visited(url):
                        continue
                    self.state.mark_visited(url)
                    await self._visit(renderer, url)
        finally:
            self.status = CrawlStatus.DONE
            duration = time.monotonic() - start
            self.logger.info(
                "Crawl of %s finished: %d pages in %.2f s (%d failed)",
                self.start_url, len(self.result), duration, len(self.failed_pages),
            )
        return self.result

    async def _visit(self, renderer: Renderer, url: str) -> None:
        try:
            async with renderer.page() as page:
                final_url = await page.navigate(url, self.config.navigation_timeout)
                key = crawl_key(url)
                if normalize_full_url(final_url) != url:
                    # redirect: the landing page counts as processed too
                    self.state.mark_visited(final_url)
                    key = crawl_key(final_url)
                    self.logger.debug("Redirect %s -> %s", url, final_url)
                image = await page.capture()
                self.result[key] = PageRecord(key=key, url=url, image=image)
                self.logger.debug("Captured %s as %s (%d bytes)", url, key, len(image))

                if self.state.visited_count < self.config.max_pages:
                    await self._follow_links(page, url, final_url)
        except (RenderError, asyncio.TimeoutError) as exc:
            self.failed_pages.append(url)
            self.logger.warning("Failed to capture %s: %s", url, exc)

    async def _follow_links(self, page: PageSession, url: str, final_url: str) -> None:
        # the page is already captured; losing its links is not a page failure
        try:
            hrefs = await page.links()
        except (RenderError, asyncio.TimeoutError) as exc:
            self.logger.warning("Failed to read links of %s: %s", url, exc)
            return
        for link in same_site_links(hrefs, final_url, self.start_url):
            self.state.enqueue(link)
