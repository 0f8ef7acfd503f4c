# File: site_compare/aggregator.py
"""site_compare.aggregator: assembly of the comparison report returned to callers."""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, TypedDict

from site_compare.crawler.models import CrawlResult, PageRecord
from site_compare.diff import PairDiff
from site_compare.matcher import MatchRow
from site_compare.utils import sort_paths


class PageInfo(TypedDict):
    """A page of a single-site listing."""

    path: str
    screenshot: str


class BoxInfo(TypedDict):
    left: float
    top: float
    width: float
    height: float


class SizeInfo(TypedDict):
    width: int
    height: int


class RowInfo(TypedDict):
    """A match row: the page from each site (None when absent) and the diff boxes.

    Paired rows also carry both image sizes and the canvas the boxes refer to.
    """

    path: str
    page1: Optional[str]
    page2: Optional[str]
    screenshot1: Optional[str]
    screenshot2: Optional[str]
    boxes: List[BoxInfo]
    canvas: Optional[SizeInfo]
    size1: Optional[SizeInfo]
    size2: Optional[SizeInfo]


def encode_image(image: bytes) -> str:
    return base64.b64encode(image).decode("ascii")


def _listing(result: CrawlResult) -> List[PageInfo]:
    return [
        {"path": key, "screenshot": encode_image(result[key].image)}
        for key in sort_paths(result.keys())
    ]


def _side(page: Optional[PageRecord]) -> tuple[Optional[str], Optional[str]]:
    if page is None:
        return None, None
    return page.key, encode_image(page.image)


def _size(size: Tuple[int, int]) -> SizeInfo:
    return {"width": size[0], "height": size[1]}


def _row(row: MatchRow, diff: Optional[PairDiff]) -> RowInfo:
    key1, shot1 = _side(row.page1)
    key2, shot2 = _side(row.page2)
    return {
        "path": row.match_key,
        "page1": key1,
        "page2": key2,
        "screenshot1": shot1,
        "screenshot2": shot2,
        "boxes": [b.as_dict() for b in diff.boxes] if diff else [],
        "canvas": _size(diff.canvas) if diff else None,
        "size1": _size(diff.size1) if diff else None,
        "size2": _size(diff.size2) if diff else None,
    }


@dataclass(slots=True)
class ComparisonReport:
    """Everything a comparison run produced for two sites."""

    url1: str
    url2: str
    pages1: List[PageInfo] = field(default_factory=list)
    pages2: List[PageInfo] = field(default_factory=list)
    rows: List[RowInfo] = field(default_factory=list)

    @property
    def pairs(self) -> List[RowInfo]:
        return [r for r in self.rows if r["page1"] is not None and r["page2"] is not None]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url1": self.url1,
            "url2": self.url2,
            "pairs": self.pairs,
            "rows": self.rows,
            "pages1": self.pages1,
            "pages2": self.pages2,
        }

    def json(self, *, pretty: bool = False) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2 if pretty else None)


def aggregate_results(
    url1: str,
    url2: str,
    result1: CrawlResult,
    result2: CrawlResult,
    rows: Sequence[MatchRow],
    diffs: Dict[str, PairDiff],
) -> ComparisonReport:
    """Collect the crawl listings, match rows and per-pair diffs into one report."""
    return ComparisonReport(
        url1=url1,
        url2=url2,
        pages1=_listing(result1),
        pages2=_listing(result2),
        rows=[_row(r, diffs.get(r.match_key)) for r in rows],
    )
