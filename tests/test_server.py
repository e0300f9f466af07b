"""Tests for the HTTP front end."""

from __future__ import annotations

import threading

import pytest
from aiohttp.test_utils import TestClient, TestServer

from mneme.config import MnemeConfig, StoreConfig
from mneme.server import MemoryServer, build_store


def _server(seed: bool = True) -> MemoryServer:
    config = MnemeConfig(store=StoreConfig(seed_samples=seed))
    return MemoryServer(config, build_store(config))


async def _run(client: TestClient, method, params=None):
    resp = await client.post("/run", json={"method": method, "params": params or {}})
    return resp.status, await resp.json()


class TestRunEndpoint:
    @pytest.mark.asyncio
    async def test_create_and_find(self):
        async with TestClient(TestServer(_server(seed=False).build_app())) as client:
            status, body = await _run(client, "create_entity", {"name": "OpenAI", "type": "company"})
            assert status == 200
            assert body["ok"] is True
            assert body["result"]["id"].startswith("entity_")

            status, body = await _run(client, "find_entities", {"type": "company"})
            assert [e["name"] for e in body["result"]["entities"]] == ["OpenAI"]

    @pytest.mark.asyncio
    async def test_search_seeded(self):
        async with TestClient(TestServer(_server().build_app())) as client:
            status, body = await _run(client, "search", {"query": "mcp", "limit": 5})
            assert status == 200
            assert body["result"]["results"][0]["type"] == "note"

    @pytest.mark.asyncio
    async def test_get_missing_entity_is_null(self):
        async with TestClient(TestServer(_server().build_app())) as client:
            status, body = await _run(client, "get_entity", {"id": "entity_missing"})
            assert status == 200
            assert body == {"ok": True, "result": None}

    @pytest.mark.asyncio
    async def test_not_found(self):
        async with TestClient(TestServer(_server().build_app())) as client:
            status, body = await _run(client, "delete_entity", {"id": "entity_missing"})
            assert status == 404
            assert body["ok"] is False
            assert "entity_missing" in body["error"]

    @pytest.mark.asyncio
    async def test_invalid_argument(self):
        async with TestClient(TestServer(_server().build_app())) as client:
            status, body = await _run(client, "find_entities", {"property": {}})
            assert status == 400
            assert body["ok"] is False

    @pytest.mark.asyncio
    async def test_unknown_method(self):
        async with TestClient(TestServer(_server().build_app())) as client:
            status, body = await _run(client, "drop_tables")
            assert status == 400
            assert body["error"].startswith("Unknown method: drop_tables.")
            assert "search" in body["error"]

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        async with TestClient(TestServer(_server().build_app())) as client:
            resp = await client.post("/run", data=b"{not json", headers={"Content-Type": "application/json"})
            assert resp.status == 400

    @pytest.mark.asyncio
    async def test_invalid_utf8_body(self):
        async with TestClient(TestServer(_server().build_app())) as client:
            resp = await client.post(
                "/run",
                data=b'{"method": "\xff"}',
                headers={"Content-Type": "application/json; charset=utf-8"},
            )
            assert resp.status == 400
            body = await resp.json()
            assert body["ok"] is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("params", [[], "", 0, False])
    async def test_non_object_params_rejected(self, params):
        async with TestClient(TestServer(_server().build_app())) as client:
            resp = await client.post("/run", json={"method": "get_stats", "params": params})
            assert resp.status == 400
            assert (await resp.json())["error"] == "'params' must be a JSON object"

    @pytest.mark.asyncio
    async def test_missing_params_default_to_empty(self):
        async with TestClient(TestServer(_server().build_app())) as client:
            resp = await client.post("/run", json={"method": "get_stats"})
            assert resp.status == 200
            assert (await resp.json())["result"]["entityCount"] == 2

    @pytest.mark.asyncio
    async def test_tools_run_off_the_event_loop_thread(self):
        server = _server()
        seen: list[threading.Thread] = []
        export = server.tools["export_memory"]

        def recording_export(params):
            seen.append(threading.current_thread())
            return export(params)

        server.tools["export_memory"] = recording_export
        async with TestClient(TestServer(server.build_app())) as client:
            status, body = await _run(client, "export_memory")
            assert status == 200
            assert len(body["result"]["entities"]) == 2
        assert seen and seen[0] is not threading.current_thread()

    @pytest.mark.asyncio
    async def test_unexpected_error_is_500(self):
        server = _server()

        def boom(params):
            raise RuntimeError("boom")

        server.tools["get_stats"] = boom
        async with TestClient(TestServer(server.build_app())) as client:
            status, body = await _run(client, "get_stats")
            assert status == 500
            assert body == {"ok": False, "error": "boom"}


class TestInfoEndpoints:
    @pytest.mark.asyncio
    async def test_health(self):
        async with TestClient(TestServer(_server().build_app())) as client:
            resp = await client.get("/health")
            body = await resp.json()
            assert body["status"] == "ok"
            assert body["stats"]["entityCount"] == 2

    @pytest.mark.asyncio
    async def test_methods(self):
        async with TestClient(TestServer(_server().build_app())) as client:
            resp = await client.get("/methods")
            body = await resp.json()
            assert "import_memory" in body["methods"]
            assert len(body["methods"]) == 16
