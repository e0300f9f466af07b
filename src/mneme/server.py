"""HTTP front end for the knowledge store.

Endpoints:
    POST /run       {"method": name, "params": {...}} -> {"ok": true, "result": ...}
    GET  /health    {"status": "ok", "stats": {...}}
    GET  /methods   {"methods": [...]}

Usage: python -m mneme serve
"""

from __future__ import annotations

import asyncio
import logging
import signal

from aiohttp import web

from mneme.config import MnemeConfig
from mneme.memory.errors import InvalidArgument, NotFound
from mneme.memory.samples import load_samples
from mneme.memory.store import KnowledgeStore
from mneme.tools.memory_tools import get_memory_tools

logger = logging.getLogger(__name__)


def _error(message: str, status: int) -> web.Response:
    return web.json_response({"ok": False, "error": message}, status=status)


class MemoryServer:
    """aiohttp server exposing store operations by name."""

    def __init__(self, config: MnemeConfig, store: KnowledgeStore) -> None:
        self._config = config
        self.store = store
        self.tools = get_memory_tools(store, config.store.default_search_limit)
        self._runner: web.AppRunner | None = None
        self._site: web.TCPSite | None = None

    def build_app(self) -> web.Application:
        app = web.Application(client_max_size=self._config.server.max_body_bytes)
        app.router.add_post("/run", self._handle_run)
        app.router.add_get("/health", self._handle_health)
        app.router.add_get("/methods", self._handle_methods)
        return app

    async def start(self) -> None:
        self._runner = web.AppRunner(self.build_app())
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, self._config.server.host, self._config.server.port)
        await self._site.start()
        logger.info(
            "Memory server listening on http://%s:%d/run",
            self._config.server.host,
            self._config.server.port,
        )
        logger.info("Available methods: %s", ", ".join(self.tools))

    async def stop(self) -> None:
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            self._site = None
            logger.info("Memory server stopped")

    # ── Handlers ─────────────────────────────────────────────

    async def _handle_run(self, request: web.Request) -> web.Response:
        try:
            body = await request.json()
        except ValueError:
            # JSONDecodeError and UnicodeDecodeError
            return _error("Request body is not valid UTF-8 JSON", 400)
        if not isinstance(body, dict):
            return _error("Request body must be a JSON object", 400)

        method = body.get("method")
        params = body.get("params")
        if params is None:
            params = {}
        tool = self.tools.get(method) if isinstance(method, str) else None
        if tool is None:
            return _error(
                f"Unknown method: {method}. Available: {', '.join(self.tools)}", 400
            )
        if not isinstance(params, dict):
            return _error("'params' must be a JSON object", 400)

        try:
            result = await asyncio.to_thread(tool, params)
        except NotFound as e:
            logger.info("%s: %s", method, e)
            return _error(str(e), 404)
        except InvalidArgument as e:
            logger.info("%s rejected: %s", method, e)
            return _error(str(e), 400)
        except Exception as e:
            logger.exception("Error running %s", method)
            return _error(str(e), 500)

        return web.json_response({"ok": True, "result": result})

    async def _handle_health(self, request: web.Request) -> web.Response:
        return web.json_response({"status": "ok", "stats": self.store.get_stats().to_dict()})

    async def _handle_methods(self, request: web.Request) -> web.Response:
        return web.json_response({"methods": list(self.tools)})


def build_store(config: MnemeConfig) -> KnowledgeStore:
    store = KnowledgeStore()
    if config.store.seed_samples:
        load_samples(store)
        logger.info("Pre-loaded sample entities, facts and notes")
    return store


async def run_server(config: MnemeConfig) -> None:
    """Serve until SIGTERM/SIGINT."""
    server = MemoryServer(config, build_store(config))
    shutdown = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, shutdown.set)

    await server.start()
    try:
        await shutdown.wait()
        logger.info("Shutting down...")
    finally:
        await server.stop()
