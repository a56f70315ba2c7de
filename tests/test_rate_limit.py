"""Tests for rate-limit keys: ip before authentication, app id only after it."""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient
from starlette.requests import Request

import controller.controller_dependencies as deps
from config.settings import settings
from main import app as api
from repository.app_repository import AppRepository
from repository.mapping_repository import MappingRepository
from service.app_service import AppService

from conftest import SYSTEM_SECRET


def _request(app_id: str, ip: str = "1.2.3.4", path: str = "/api/v1/info") -> Request:
    return Request(
        {
            "type": "http",
            "method": "GET",
            "path": path,
            "headers": [(b"x-app-id", app_id.encode())],
            "client": (ip, 5555),
        }
    )


class TestClientIdentity:
    async def test_claimed_app_id_is_ignored(self):
        keys = {await deps.client_identity(_request(f"fake{i}")) for i in range(3)}
        assert keys == {"ip:1.2.3.4:/api/v1/info"}

    async def test_distinct_clients_get_distinct_keys(self):
        a = await deps.client_identity(_request("x", ip="1.1.1.1"))
        b = await deps.client_identity(_request("x", ip="2.2.2.2"))
        assert a != b

    async def test_forwarded_for_only_when_proxy_trusted(self, monkeypatch):
        req = Request(
            {
                "type": "http",
                "method": "GET",
                "path": "/p",
                "headers": [(b"x-forwarded-for", b"9.9.9.9, 10.0.0.1")],
                "client": ("10.0.0.1", 1),
            }
        )
        assert await deps.client_identity(req) == "ip:10.0.0.1:/p"
        monkeypatch.setattr(settings, "TRUST_PROXY", True)
        assert await deps.client_identity(req) == "ip:9.9.9.9:/p"


class TestPerAppLimit:
    @pytest.fixture
    async def client(self, redis, monkeypatch):
        await AppService(AppRepository(), MappingRepository()).bootstrap_system_app()
        keys = []

        async def record(request, response):
            keys.append(await deps.app_identity(request))

        monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", True)
        monkeypatch.setattr(deps, "_app_limiter", record)
        async with AsyncClient(transport=ASGITransport(app=api), base_url="http://test") as ac:
            yield ac, keys

    async def test_applied_after_authentication(self, client):
        ac, keys = client
        resp = await ac.get(
            "/api/v1/info", headers={"X-App-Id": "system", "X-Access-Token": SYSTEM_SECRET}
        )
        assert resp.status_code == 200
        assert keys == ["app:system:/api/v1/info"]

    async def test_not_charged_to_a_claimed_app(self, client):
        ac, keys = client
        resp = await ac.get(
            "/api/v1/info", headers={"X-App-Id": "system", "X-Access-Token": "guess"}
        )
        assert resp.status_code == 401
        assert keys == []
