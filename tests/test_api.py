# File: tests/test_api.py
from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from aiohttp import ClientSession, web

import site_compare.api as api_module
from site_compare.api import create_app


async def _serve_app(app: web.Application, port: int) -> AsyncIterator[str]:
    """Start *app* on *port*, yield base URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "localhost", port)
    await site.start()
    try:
        yield f"http://localhost:{port}"
    finally:
        await runner.cleanup()


@pytest_asyncio.fixture
async def api_url(unused_tcp_port: int, two_sites, config) -> AsyncIterator[str]:
    async for url in _serve_app(create_app(config, two_sites.renderer), unused_tcp_port):
        yield url


async def post(url: str, **kwargs):
    async with ClientSession() as session:
        async with session.post(f"{url}/api/compare", **kwargs) as resp:
            return resp.status, await resp.json()


@pytest.mark.asyncio()
async def test_compare_ok(api_url: str):
    status, data = await post(api_url, json={"url1": "http://a.test/", "url2": " http://b.test "})

    assert status == 200
    assert data["url2"] == "http://b.test"
    assert [r["path"] for r in data["rows"]] == ["/", "about", "contact"]
    assert [r["path"] for r in data["pairs"]] == ["/", "about"]
    assert len(data["pairs"][1]["boxes"]) == 1
    assert [p["path"] for p in data["pages2"]] == ["/", "/about-cc.htm", "/contact"]


@pytest.mark.asyncio()
@pytest.mark.parametrize(
    "body,message",
    [
        ({"url1": "http://a.test"}, "Both url1 and url2 are required"),
        ({"url1": "http://a.test", "url2": "b.test"}, "Invalid URL format"),
        (["http://a.test", "http://b.test"], "JSON object"),
    ],
)
async def test_compare_bad_input(api_url: str, body, message):
    status, data = await post(api_url, json=body)
    assert status == 400
    assert message in data["error"]


@pytest.mark.asyncio()
async def test_compare_non_json_body(api_url: str):
    status, data = await post(api_url, data="url1=http://a.test")
    assert status == 400
    assert "JSON" in data["error"]


@pytest.mark.asyncio()
async def test_compare_internal_error(api_url: str, monkeypatch):
    async def broken(*args, **kwargs):
        raise RuntimeError("browser executable not found")

    monkeypatch.setattr(api_module, "compare_sites", broken)
    status, data = await post(api_url, json={"url1": "http://a.test", "url2": "http://b.test"})
    assert status == 500
    assert data == {"error": "browser executable not found"}


@pytest.mark.asyncio()
async def test_compare_body_not_utf8(api_url: str):
    status, data = await post(
        api_url, data=b'{"url1": "\xff\xfe"}', headers={"Content-Type": "application/json"}
    )
    assert status == 400
    assert "JSON" in data["error"]


@pytest.mark.asyncio()
async def test_compare_mobile_viewport(api_url: str, two_sites):
    body = {"url1": "http://a.test", "url2": "http://b.test", "viewport": "mobile"}
    status, _ = await post(api_url, json=body)
    assert status == 200
    assert len(two_sites.configs) == 2
    assert all(c.viewport_size == {"width": 375, "height": 812} for c in two_sites.configs)


@pytest.mark.asyncio()
async def test_compare_default_viewport(api_url: str, two_sites):
    status, _ = await post(api_url, json={"url1": "http://a.test", "url2": "http://b.test"})
    assert status == 200
    assert all(c.viewport_size == {"width": 1280, "height": 800} for c in two_sites.configs)


@pytest.mark.asyncio()
async def test_compare_unknown_viewport(api_url: str, two_sites):
    body = {"url1": "http://a.test", "url2": "http://b.test", "viewport": "tablet"}
    status, data = await post(api_url, json=body)
    assert status == 400
    assert data == {"error": "Unknown viewport: tablet"}
    assert two_sites.navigations == []
