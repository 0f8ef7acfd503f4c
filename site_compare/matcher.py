# File: site_compare/matcher.py
"""site_compare.matcher: pairing of the pages captured on two sites."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from site_compare.config import MatchStrategy
from site_compare.crawler.models import CrawlResult, PageRecord
from site_compare.logger import logger
from site_compare.utils import match_key, sort_paths

__all__ = ["MatchRow", "match_pages", "key_function"]


@dataclass(frozen=True, slots=True)
class MatchRow:
    """One comparison unit; at least one of the two pages is present."""

    match_key: str
    page1: Optional[PageRecord] = None
    page2: Optional[PageRecord] = None

    def __post_init__(self) -> None:
        if self.page1 is None and self.page2 is None:
            raise ValueError(f"match row {self.match_key!r} has no page on either side")

    @property
    def is_pair(self) -> bool:
        return self.page1 is not None and self.page2 is not None

    @property
    def only_on(self) -> Optional[int]:
        """1 or 2 when the page exists on a single site, None for a pair."""
        if self.is_pair:
            return None
        return 1 if self.page1 is not None else 2


def key_function(strategy: MatchStrategy) -> Callable[[str], str]:
    if strategy is MatchStrategy.EXACT:
        return lambda key: key
    return match_key


def _group(result: CrawlResult, to_key: Callable[[str], str]) -> Dict[str, PageRecord]:
    grouped: Dict[str, PageRecord] = {}
    for key, page in result.items():
        mk = to_key(key)
        if mk in grouped:
            # first-seen wins
            logger.debug("Match key %r: keeping %s, ignoring %s", mk, grouped[mk].key, key)
            continue
        grouped[mk] = page
    return grouped


def match_pages(
    result1: CrawlResult,
    result2: CrawlResult,
    strategy: MatchStrategy = MatchStrategy.NORMALIZED,
) -> List[MatchRow]:
    """Build match rows for both crawl results, root row first then by key."""
    to_key = key_function(strategy)
    side1 = _group(result1, to_key)
    side2 = _group(result2, to_key)
    rows = [
        MatchRow(mk, side1.get(mk), side2.get(mk))
        for mk in sort_paths(side1.keys() | side2.keys())
    ]
    counts: Tuple[int, int, int] = (
        sum(r.is_pair for r in rows),
        sum(r.only_on == 1 for r in rows),
        sum(r.only_on == 2 for r in rows),
    )
    logger.info("Matched (%s): %d pairs, %d only on site 1, %d only on site 2", strategy.value, *counts)
    return rows
