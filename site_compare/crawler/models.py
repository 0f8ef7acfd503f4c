# site_compare/crawler/models.py
"""
Data models for the SiteCompare crawler.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Set

from site_compare.utils import crawl_key


@dataclass(frozen=True, slots=True)
class PageRecord:
    """A captured page: its crawl key, the URL it was rendered from and the encoded image."""

    key: str
    url: str
    image: bytes


# crawl key -> page, in capture order
CrawlResult = Dict[str, PageRecord]


@dataclass(slots=True)
class CrawlState:
    """Frontier and visited set of a single crawl.

    The frontier holds normalized full URLs in discovery order, the visited
    set holds crawl keys. Owned by exactly one crawler.
    """

    frontier: Dict[str, None] = field(default_factory=dict)
    visited: Set[str] = field(default_factory=set)

    def __bool__(self) -> bool:
        return bool(self.frontier)

    @property
    def visited_count(self) -> int:
        return len(self.visited)

    def pop(self) -> str:
        url = next(iter(self.frontier))
        del self.frontier[url]
        return url

    def is_visited(self, url: str) -> bool:
        return crawl_key(url) in self.visited

    def mark_visited(self, url: str) -> None:
        self.visited.add(crawl_key(url))

    def enqueue(self, url: str) -> bool:
        """Queue *url* unless it was already processed or queued."""
        if url in self.frontier or self.is_visited(url):
            return False
        self.frontier[url] = None
        return True
