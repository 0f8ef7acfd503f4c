# File: site_compare/engine.py
"""site_compare.engine: orchestration of two crawls, page matching and visual diffs."""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Sequence, Tuple

from site_compare.aggregator import ComparisonReport, aggregate_results
from site_compare.config import CompareConfig
from site_compare.crawler.crawler import RendererFactory, SiteCrawler
from site_compare.crawler.models import CrawlResult
from site_compare.crawler.renderer import PlaywrightRenderer
from site_compare.diff import PairDiff, compare_images
from site_compare.logger import logger
from site_compare.matcher import MatchRow, match_pages
from site_compare.utils import is_valid_url

__all__ = ["InvalidInputError", "validate_urls", "crawl_site", "crawl_both", "diff_rows", "compare_sites"]


class InvalidInputError(ValueError):
    """The caller supplied a missing or malformed URL."""


def validate_urls(url1: Optional[str], url2: Optional[str]) -> Tuple[str, str]:
    """Strip both URLs and make sure they are absolute http(s) URLs."""
    url1 = (url1 or "").strip()
    url2 = (url2 or "").strip()
    if not url1 or not url2:
        raise InvalidInputError("Both url1 and url2 are required")
    for url in (url1, url2):
        if not is_valid_url(url):
            raise InvalidInputError(f"Invalid URL format: {url}")
    return url1, url2


async def crawl_site(
    url: str,
    config: CompareConfig,
    renderer_factory: RendererFactory = PlaywrightRenderer,
) -> CrawlResult:
    """Crawl one site; an unexpected failure yields whatever was captured so far.

    The error is re-raised only when nothing was captured at all.
    """
    crawler = SiteCrawler(url, config, renderer_factory)
    try:
        return await crawler.run()
    except Exception as exc:
        if not crawler.result:
            raise
        logger.error("Crawl of %s aborted after %d pages: %s", url, len(crawler.result), exc)
        return dict(crawler.result)


async def crawl_both(
    url1: str, url2: str, config: CompareConfig, renderer_factory: RendererFactory
) -> Tuple[CrawlResult, CrawlResult]:
    """Crawl both sites concurrently.

    A site whose crawl failed outright contributes an empty result; only when
    both fail is the first error raised.
    """
    outcomes = await asyncio.gather(
        crawl_site(url1, config, renderer_factory),
        crawl_site(url2, config, renderer_factory),
        return_exceptions=True,
    )
    for outcome in outcomes:
        if isinstance(outcome, BaseException) and not isinstance(outcome, Exception):
            raise outcome
    errors = [o for o in outcomes if isinstance(o, Exception)]
    if len(errors) == len(outcomes):
        raise errors[0]
    results: List[CrawlResult] = []
    for url, outcome in zip((url1, url2), outcomes):
        if isinstance(outcome, Exception):
            logger.error("Crawl of %s failed: %s", url, outcome)
            results.append({})
        else:
            results.append(outcome)
    return results[0], results[1]


async def diff_rows(rows: Sequence[MatchRow], config: CompareConfig) -> Dict[str, PairDiff]:
    """Diff every paired row in worker threads; rows are independent of each other."""
    pairs = [r for r in rows if r.is_pair]
    results = await asyncio.gather(
        *(
            asyncio.to_thread(
                compare_images,
                r.page1.image,  # type: ignore[union-attr]
                r.page2.image,  # type: ignore[union-attr]
                max_dimension=config.diff_max_dimension,
                threshold=config.diff_threshold,
                min_box_size=config.diff_min_box_size,
            )
            for r in pairs
        )
    )
    return {row.match_key: diff for row, diff in zip(pairs, results)}


async def _compare(
    url1: str, url2: str, config: CompareConfig, renderer_factory: RendererFactory
) -> ComparisonReport:
    result1, result2 = await crawl_both(url1, url2, config, renderer_factory)
    rows = match_pages(result1, result2, config.match_strategy)
    diffs = await diff_rows(rows, config)
    return aggregate_results(url1, url2, result1, result2, rows, diffs)


async def compare_sites(
    url1: Optional[str],
    url2: Optional[str],
    config: Optional[CompareConfig] = None,
    renderer_factory: RendererFactory = PlaywrightRenderer,
) -> ComparisonReport:
    """Crawl both sites concurrently, pair their pages and diff every pair.

    Raises InvalidInputError before anything is crawled when an URL is bad,
    and asyncio.TimeoutError when ``config.compare_timeout`` elapses.
    """
    url1, url2 = validate_urls(url1, url2)
    config = config or CompareConfig()
    logger.info("Comparing %s with %s", url1, url2)
    runner = _compare(url1, url2, config, renderer_factory)
    if config.compare_timeout is None:
        return await runner
    try:
        return await asyncio.wait_for(runner, timeout=config.compare_timeout)
    except asyncio.TimeoutError:
        logger.error("Comparison did not finish within %s seconds", config.compare_timeout)
        raise
