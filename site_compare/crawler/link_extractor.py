# site_compare/crawler/link_extractor.py
"""
Anchor extraction and same-site link filtering for SiteCompare.
"""
from __future__ import annotations

from typing import Iterable, List, Optional
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup
from bs4.element import Tag

from site_compare.utils import is_same_site, normalize_full_url

IGNORED_SCHEMES = ("javascript:", "mailto:", "tel:")


def document_base(soup: BeautifulSoup, page_url: str) -> str:
    """URL relative links resolve against: the first ``<base href>``, else *page_url*."""
    base = soup.find("base", href=True)
    if isinstance(base, Tag):
        href_val = base.get("href")
        if isinstance(href_val, str) and href_val.strip():
            try:
                return urljoin(page_url, href_val.strip())
            except ValueError:
                return page_url
    return page_url


def extract_hrefs(html: str, page_url: Optional[str] = None) -> List[str]:
    """Return the ``href`` values of all anchors in *html*, in document order.

    With *page_url* the values come back absolute, resolved the way a browser
    resolves ``a.href`` (honouring ``<base href>``); otherwise they are raw.
    """
    soup = BeautifulSoup(html, "html.parser")
    base = document_base(soup, page_url) if page_url is not None else None
    hrefs: List[str] = []
    for tag in soup.find_all("a", href=True):
        if not isinstance(tag, Tag):
            continue
        href_val = tag.get("href")
        if not isinstance(href_val, str) or not href_val.strip():
            continue
        href = href_val.strip()
        if base is not None:
            try:
                href = urljoin(base, href)
            except ValueError:
                continue
        hrefs.append(href)
    return hrefs


def same_site_links(hrefs: Iterable[str], page_url: str, start_url: str) -> List[str]:
    """
    Resolve *hrefs* against *page_url* and keep normalized URLs on the start site.

    Ignores javascript:, mailto:, tel:, non-HTTP schemes, other hosts or
    ports, and anything that fails to parse.
    """
    links: List[str] = []
    for raw in hrefs:
        if raw.lower().startswith(IGNORED_SCHEMES):
            continue
        try:
            absolute = urljoin(page_url, raw)
            if urlsplit(absolute).scheme.lower() not in ("http", "https"):
                continue
            if not is_same_site(start_url, absolute):
                continue
            links.append(normalize_full_url(absolute))
        except ValueError:
            continue
    return links
