# File: site_compare/utils.py
"""site_compare.utils: URL keys used to deduplicate pages within a site and to pair pages across sites."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence
from urllib.parse import SplitResult, urlsplit

from site_compare.logger import logger

__all__: Sequence[str] = (
    "ROOT",
    "MATCH_SUFFIXES",
    "crawl_key",
    "normalize_full_url",
    "match_key",
    "is_same_site",
    "is_valid_url",
    "sort_paths",
)

ROOT = "/"

# Checked in order; at most one is stripped.
MATCH_SUFFIXES: Sequence[str] = ("-cc.htm", ".html", ".htm")

_DEFAULT_PORTS = {"http": 80, "https": 443}


def _key_from_parts(parts: SplitResult) -> str:
    path = parts.path
    if path.endswith("/"):
        path = path[:-1]
    path = path or ROOT
    return f"{path}?{parts.query}" if parts.query else path


def crawl_key(url: str) -> str:
    """Path with one trailing slash stripped (root stays ``/``) plus the query string."""
    return _key_from_parts(urlsplit(url))


def _origin(parts: SplitResult) -> str:
    host = parts.hostname or ""
    if ":" in host:
        host = f"[{host}]"
    port = _effective_port(parts)
    if port is not None:
        host = f"{host}:{port}"
    return f"{parts.scheme.lower()}://{host}"


def normalize_full_url(url: str) -> str:
    """Origin (lowercased, default port dropped) followed by the crawl key.

    Fragments and credentials are dropped. Raises ValueError for an invalid port.
    """
    parts = urlsplit(url)
    normalized = f"{_origin(parts)}{_key_from_parts(parts)}"
    logger.debug("Normalized URL: %s -> %s", url, normalized)
    return normalized


def match_key(key: str) -> str:
    """Cross-site key: the last path segment of *key* without its page suffix.

    ``/a/b/page.html`` and ``/x/page.html`` both become ``page``;
    ``report-cc.htm`` becomes ``report``.
    """
    path = key.split("?", 1)[0]
    segments = [s for s in path.split("/") if s]
    if not segments:
        return ROOT
    last = segments[-1]
    for suffix in MATCH_SUFFIXES:
        if last.endswith(suffix):
            last = last[: -len(suffix)]
            break
    return last or ROOT


def _effective_port(parts: SplitResult) -> Optional[int]:
    port = parts.port
    if port is not None and port == _DEFAULT_PORTS.get(parts.scheme.lower()):
        return None
    return port


def is_same_site(base: str, candidate: str) -> bool:
    """True when both URLs share hostname and port; the scheme is not compared.

    Raises ValueError when either URL carries an invalid port.
    """
    b, c = urlsplit(base), urlsplit(candidate)
    return b.hostname == c.hostname and _effective_port(b) == _effective_port(c)


def is_valid_url(url: str) -> bool:
    """Check that *url* is an absolute http(s) URL with a host and a sane port."""
    try:
        parts = urlsplit(url)
        _effective_port(parts)
    except ValueError:
        return False
    return parts.scheme.lower() in ("http", "https") and bool(parts.hostname)


def sort_paths(paths: Iterable[str]) -> List[str]:
    """Lexicographic order with the root key always first."""
    return sorted(paths, key=lambda p: (p != ROOT, p))
