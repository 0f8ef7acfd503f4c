"""site_compare.crawler: rendering collaborator and the same-site screenshot crawler."""

from site_compare.crawler.crawler import CrawlStatus, SiteCrawler
from site_compare.crawler.models import CrawlResult, CrawlState, PageRecord
from site_compare.crawler.renderer import PlaywrightRenderer, RenderError

__all__ = [
    "CrawlResult",
    "CrawlState",
    "CrawlStatus",
    "PageRecord",
    "PlaywrightRenderer",
    "RenderError",
    "SiteCrawler",
]
