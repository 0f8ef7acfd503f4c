# File: site_compare/api.py
"""site_compare.api: aiohttp application exposing ``POST /api/compare``.

Request body: ``{"url1": "...", "url2": "...", "viewport": "desktop" or "mobile"}``
(``viewport`` is optional).
Responses: 200 with the comparison report, 400 ``{"error": ...}`` for bad
input, 500 ``{"error": ...}`` when the comparison itself fails.
"""

from __future__ import annotations

import json

from aiohttp import web

from site_compare.config import CompareConfig
from site_compare.crawler.crawler import RendererFactory
from site_compare.crawler.renderer import PlaywrightRenderer
from site_compare.engine import InvalidInputError, compare_sites
from site_compare.logger import logger

__all__ = ["create_app", "CONFIG_KEY", "RENDERER_KEY"]

CONFIG_KEY = web.AppKey("config", CompareConfig)
RENDERER_KEY = web.AppKey("renderer_factory", object)


def _error(message: str, status: int) -> web.Response:
    return web.json_response({"error": message}, status=status)


async def handle_compare(request: web.Request) -> web.Response:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return _error("Request body must be JSON", 400)
    if not isinstance(body, dict):
        return _error("Request body must be a JSON object", 400)

    config = request.app[CONFIG_KEY]
    renderer_factory = request.app[RENDERER_KEY]
    viewport = body.get("viewport")
    if viewport is not None:
        try:
            config = config.with_viewport(viewport)
        except ValueError:
            return _error(f"Unknown viewport: {viewport}", 400)
    try:
        report = await compare_sites(body.get("url1"), body.get("url2"), config, renderer_factory)
    except InvalidInputError as exc:
        return _error(str(exc), 400)
    except Exception as exc:
        logger.exception("Compare API error")
        return _error(str(exc) or "Comparison failed", 500)
    return web.json_response(report.to_dict())


def create_app(
    config: CompareConfig | None = None,
    renderer_factory: RendererFactory = PlaywrightRenderer,
) -> web.Application:
    app = web.Application()
    app[CONFIG_KEY] = config or CompareConfig()
    app[RENDERER_KEY] = renderer_factory
    app.router.add_post("/api/compare", handle_compare)
    return app
