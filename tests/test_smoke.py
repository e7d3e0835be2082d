"""
tests.test_smoke

Minimal smoke tests to validate the service can boot and serve core endpoints.

Responsibilities:
- Ensure the FastAPI app starts and the readiness check works in test mode.
- Exercise the dev token flow end to end against the memberships endpoint.
"""

from __future__ import annotations

import httpx
import pytest

from spac_os.api.app import create_app


@pytest.mark.asyncio
async def test_health_endpoints(client: httpx.AsyncClient) -> None:
    r = await client.get("/healthz")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"

    r = await client.get("/readyz")
    assert r.status_code == 200
    assert r.json() == {"status": "ready", "analysisCache": True}
    assert r.headers["x-request-id"]


@pytest.mark.asyncio
async def test_readyz_reports_disabled_analysis_cache(app_factory) -> None:
    app = await app_factory(analysis_cache_enabled=False)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        r = await client.get("/readyz")
    assert r.status_code == 200
    assert r.json()["analysisCache"] is False


@pytest.mark.asyncio
async def test_dev_token_lists_memberships(client: httpx.AsyncClient, tenants) -> None:
    r = await client.post("/v1/dev/token", json={"subject": "alice"})
    assert r.status_code == 200
    token = r.json()["access_token"]
    assert r.json()["token_type"] == "bearer"
    assert r.json()["expires_in"] == 3600

    r = await client.get("/v1/organizations", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    assert r.json() == {
        "organizations": [{"id": str(tenants.acme), "name": "Acme Capital", "role": "OWNER"}]
    }


@pytest.mark.asyncio
async def test_dev_token_disabled_in_prod(settings) -> None:
    app = create_app(settings=settings.model_copy(update={"env": "prod"}))
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            r = await client.post("/v1/dev/token", json={"subject": "alice"})
    assert r.status_code == 404
    assert r.json() == {"error": "Not found"}


@pytest.mark.asyncio
async def test_missing_or_bad_token_is_401(client: httpx.AsyncClient) -> None:
    r = await client.get("/v1/organizations")
    assert r.status_code == 401
    assert r.json() == {"error": "Unauthorized", "code": "UNAUTHORIZED"}

    r = await client.get("/v1/organizations", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_dev_token_rejects_blank_subject(client: httpx.AsyncClient) -> None:
    r = await client.post("/v1/dev/token", json={"subject": "   "})
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid request body"


# --- Module Notes -----------------------------------------------------------
# Endpoint-specific behavior lives in the per-router test modules.
