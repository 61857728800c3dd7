"""Health and readiness handlers."""

from __future__ import annotations

from aiohttp import web

from betlink.repositories.sessions import SessionStore


async def healthz(_: web.Request) -> web.Response:
    return web.json_response({"status": "ok"})


async def readyz(request: web.Request) -> web.Response:
    session_store: SessionStore = request.app["session_store"]

    if not await session_store.is_ready():
        return web.json_response({"status": "error"}, status=503)

    return web.json_response({"status": "ready"})
