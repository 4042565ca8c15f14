# indexnower/server.py
"""
HTTP proxy for browser clients that cannot reach third-party hosts directly.

Routes
------
``GET  /api/sitemap?url=``        sitemap entries as ``{"urls": [...]}``
``POST /api/submit``              forwards ``{host, key, keyLocation?, urlList}`` to IndexNow
``GET  /api/fetch-content?url=``  raw body of an arbitrary page, ``""`` on failure
"""
from __future__ import annotations

import asyncio
from typing import AsyncIterator, Awaitable, Callable

from aiohttp import ClientError, ClientSession, ClientTimeout, web

from indexnower.config import AppConfig
from indexnower.exceptions import SitemapError
from indexnower.fetcher import ContentFetcher
from indexnower.indexnow import IndexNowClient
from indexnower.logger import get_logger
from indexnower.sitemap import SitemapService

logger = get_logger("server")

CONFIG_KEY = web.AppKey("config", AppConfig)
SESSION_KEY = web.AppKey("session", ClientSession)

_Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


def _cors_middleware(origins: list[str]):
    allowed = set(origins)

    @web.middleware
    async def cors(request: web.Request, handler: _Handler) -> web.StreamResponse:
        origin = request.headers.get("Origin")
        if origin and allowed and origin not in allowed:
            return web.json_response({"error": "CORS origin not allowed"}, status=403)
        if request.method == "OPTIONS":
            response: web.StreamResponse = web.Response(status=204)
            response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
            response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        else:
            response = await handler(request)
        if origin:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
        return response

    return cors


async def handle_sitemap(request: web.Request) -> web.Response:
    url = request.query.get("url")
    if not url:
        return web.json_response({"error": "URL parameter is required"}, status=400)
    config = request.app[CONFIG_KEY]
    service = SitemapService(request.app[SESSION_KEY], user_agent=config.user_agent)
    try:
        urls = await service.fetch(url)
    except SitemapError as exc:
        return web.json_response({"error": exc.message}, status=exc.status)
    except Exception as exc:
        logger.exception("Unexpected sitemap failure for %s", url)
        return web.json_response({"error": f"Failed to fetch sitemap: {exc}"}, status=500)
    return web.json_response({"urls": [u.to_json_dict() for u in urls]})


async def handle_submit(request: web.Request) -> web.Response:
    try:
        body = await request.json()
    except ValueError:
        body = None
    if not isinstance(body, dict):
        body = {}
    host, key, url_list = body.get("host"), body.get("key"), body.get("urlList")
    if not host or not key or not isinstance(url_list, list):
        return web.json_response({"error": "Missing required fields: host, key, urlList"}, status=400)

    config = request.app[CONFIG_KEY]
    client = IndexNowClient(request.app[SESSION_KEY], endpoint=config.indexnow_endpoint)
    payload = {
        "host": host,
        "key": key,
        "keyLocation": body.get("keyLocation") or f"https://{host}/{key}.txt",
        "urlList": url_list,
    }
    try:
        status, text = await client.post(payload)
    except (ClientError, asyncio.TimeoutError) as exc:
        logger.warning("IndexNow unreachable: %s", exc)
        return web.json_response({"error": f"Failed to submit to IndexNow: {exc}"}, status=500)

    if 200 <= status < 300:
        return web.json_response({"success": True, "message": "URLs submitted successfully"})
    return web.json_response({"error": text}, status=status)


async def handle_fetch_content(request: web.Request) -> web.Response:
    url = request.query.get("url")
    if not url:
        return web.json_response({"error": "URL parameter is required"}, status=400)
    config = request.app[CONFIG_KEY]
    fetcher = ContentFetcher(request.app[SESSION_KEY], user_agent=config.user_agent)
    try:
        status, body = await fetcher.fetch_response(url)
    except (ClientError, asyncio.TimeoutError, ValueError) as exc:
        logger.warning("fetch-content failed for %s: %s", url, exc)
        return web.Response(status=500, text="")
    if not 200 <= status < 300:
        return web.Response(status=status, text="")
    return web.Response(text=body)


def create_app(config: AppConfig) -> web.Application:
    app = web.Application(middlewares=[_cors_middleware(config.cors_origins)], client_max_size=10 * 1024**2)
    app[CONFIG_KEY] = config

    async def _session_ctx(app: web.Application) -> AsyncIterator[None]:
        app[SESSION_KEY] = ClientSession(timeout=ClientTimeout(total=config.timeout))
        yield
        await app[SESSION_KEY].close()

    app.cleanup_ctx.append(_session_ctx)
    app.router.add_get("/api/sitemap", handle_sitemap)
    app.router.add_post("/api/submit", handle_submit)
    app.router.add_get("/api/fetch-content", handle_fetch_content)
    return app


def run_server(config: AppConfig) -> None:
    logger.info("IndexNower API server running on http://%s:%s", config.server_host, config.server_port)
    web.run_app(create_app(config), host=config.server_host, port=config.server_port, print=None)


__all__ = ["create_app", "run_server"]
