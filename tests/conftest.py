# File: tests/conftest.py
from __future__ import annotations

import io
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Callable, Dict, List, Optional, Tuple

import pytest
from PIL import Image, ImageDraw

from site_compare.config import CompareConfig
from site_compare.crawler.renderer import RenderError

ImageFactory = Callable[..., bytes]


def encode_image(
    size: Tuple[int, int] = (40, 30),
    color: str = "white",
    square: Optional[Tuple[int, int, int]] = None,
    square_color: str = "red",
    fmt: str = "PNG",
) -> bytes:
    """Solid image, optionally with a filled square ``(x, y, side)``."""
    img = Image.new("RGB", size, color)
    if square is not None:
        x, y, side = square
        ImageDraw.Draw(img).rectangle((x, y, x + side - 1, y + side - 1), fill=square_color)
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture()
def make_image() -> ImageFactory:
    return encode_image


@pytest.fixture()
def config() -> CompareConfig:
    return CompareConfig(settle_delay=0)


@dataclass
class FakeWeb:
    """In-memory web: normalized URL -> raw hrefs found on that page."""

    pages: Dict[str, List[str]]
    image: bytes = field(default_factory=encode_image)
    images: Dict[str, bytes] = field(default_factory=dict)
    redirects: Dict[str, str] = field(default_factory=dict)
    errors: Dict[str, BaseException] = field(default_factory=dict)
    link_errors: Dict[str, BaseException] = field(default_factory=dict)
    navigations: List[str] = field(default_factory=list)
    configs: List[CompareConfig] = field(default_factory=list)

    def renderer(self, config: CompareConfig) -> "FakeRenderer":
        self.configs.append(config)
        return FakeRenderer(self)


class FakePage:
    def __init__(self, web: FakeWeb) -> None:
        self.web = web
        self.current: Optional[str] = None

    async def navigate(self, url: str, timeout: float) -> str:
        self.web.navigations.append(url)
        if url in self.web.errors:
            raise self.web.errors[url]
        final = self.web.redirects.get(url, url)
        if final not in self.web.pages:
            raise RenderError(f"net::ERR_NAME_NOT_RESOLVED at {final}")
        self.current = final
        return final

    async def capture(self) -> bytes:
        return self.web.images.get(self.current, self.web.image)

    async def links(self) -> List[str]:
        if self.current in self.web.link_errors:
            raise self.web.link_errors[self.current]
        return list(self.web.pages[self.current])


class FakeRenderer:
    def __init__(self, web: FakeWeb) -> None:
        self.web = web

    async def __aenter__(self) -> FakeRenderer:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None

    @asynccontextmanager
    async def page(self) -> AsyncIterator[FakePage]:
        yield FakePage(self.web)


@pytest.fixture()
def fake_web() -> Callable[..., FakeWeb]:
    return FakeWeb


@pytest.fixture()
def two_sites(make_image) -> FakeWeb:
    """Site A: /, /about.html. Site B: /, /about-cc.htm, /contact."""
    return FakeWeb(
        pages={
            "http://a.test/": ["/about.html"],
            "http://a.test/about.html": ["/"],
            "http://b.test/": ["about-cc.htm", "/contact"],
            "http://b.test/about-cc.htm": ["/"],
            "http://b.test/contact": [],
        },
        images={
            "http://b.test/about-cc.htm": make_image(size=(40, 30), square=(10, 10, 8)),
        },
    )
