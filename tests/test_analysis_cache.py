"""
tests.test_analysis_cache

Persisted document-analysis cache: freshness, upsert, invalidation and the
degraded (unavailable) mode.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta

import httpx
import pytest

from spac_os.db.models import Document
from spac_os.enums import DocumentCategory, RiskLevel
from spac_os.services.analysis_cache import DocumentAnalysisCache, risk_level_for

ANALYSIS = {
    "summary": "Merger agreement between Alpha and Fusion.",
    "keyTerms": [{"term": "Outside Date", "definition": "Termination deadline"}],
    "riskFlags": [
        {"severity": "low", "title": "Minor typo"},
        {"severity": "high", "title": "Redemption risk", "page": 12},
    ],
    "actionItems": [{"task": "Confirm trust balance", "priority": "high"}],
    "insights": [{"type": "timeline", "content": "Close expected in Q3"}],
}


async def _document(client, headers, org) -> str:
    r = await client.post(
        "/v1/documents",
        json={"organizationId": str(org), "name": "Merger Agreement"},
        headers=headers,
    )
    assert r.status_code == 201
    return r.json()["document"]["id"]


@pytest.mark.parametrize(
    ("flags", "level"),
    [
        (None, RiskLevel.none),
        ([], RiskLevel.none),
        ([{"severity": "low"}], RiskLevel.low),
        ([{"severity": "low"}, {"severity": "MEDIUM"}], RiskLevel.medium),
        ([{"severity": "medium"}, {"severity": "high"}], RiskLevel.high),
    ],
)
def test_risk_level_is_highest_severity(flags, level) -> None:
    assert risk_level_for(flags) is level


@pytest.mark.asyncio
async def test_store_read_and_invalidate(client, auth, tenants) -> None:
    alice = auth("alice")
    doc_id = await _document(client, alice, tenants.acme)
    params = {"documentId": doc_id}

    r = await client.get("/v1/ai/analysis-cache", params=params, headers=alice)
    assert r.json() == {
        "success": True,
        "data": None,
        "isFresh": False,
        "message": "No cached analysis found",
    }

    r = await client.post(
        "/v1/ai/analysis-cache", json={"documentId": doc_id, "analysis": ANALYSIS}, headers=alice
    )
    assert r.status_code == 200
    body = r.json()
    assert body["cached"] is True
    assert body["message"] == "Analysis cached successfully"
    assert body["data"]["riskLevel"] == "high"

    r = await client.get("/v1/ai/analysis-cache", params=params, headers=auth("bob"))
    body = r.json()
    assert body["isFresh"] is True
    assert body["message"] == "Fresh cached analysis retrieved"
    assert body["data"]["riskFlags"][1] == {
        "severity": "high",
        "title": "Redemption risk",
        "description": "",
        "page": 12,
    }
    assert body["data"]["actionItems"][0]["dueDate"] is None

    r = await client.delete("/v1/ai/analysis-cache", params=params, headers=alice)
    assert r.json() == {"success": True, "message": "Cache invalidated successfully"}

    r = await client.get("/v1/ai/analysis-cache", params=params, headers=alice)
    assert r.json()["data"] is None


@pytest.mark.asyncio
async def test_second_store_overwrites(client, auth, tenants) -> None:
    alice = auth("alice")
    doc_id = await _document(client, alice, tenants.acme)
    url = "/v1/ai/analysis-cache"

    first = await client.post(url, json={"documentId": doc_id, "analysis": ANALYSIS}, headers=alice)
    second = await client.post(
        url, json={"documentId": doc_id, "analysis": {"summary": "Revised"}}, headers=alice
    )

    assert second.json()["data"]["id"] == first.json()["data"]["id"]
    assert second.json()["data"]["riskLevel"] == "none"
    assert second.json()["data"]["summary"] == "Revised"


@pytest.mark.asyncio
async def test_document_update_invalidates_analysis(client, auth, tenants) -> None:
    alice = auth("alice")
    doc_id = await _document(client, alice, tenants.acme)
    await client.post(
        "/v1/ai/analysis-cache", json={"documentId": doc_id, "analysis": ANALYSIS}, headers=alice
    )

    r = await client.patch(f"/v1/documents/{doc_id}", json={"name": "Amended"}, headers=alice)
    assert r.status_code == 200

    r = await client.get("/v1/ai/analysis-cache", params={"documentId": doc_id}, headers=alice)
    assert r.json()["message"] == "No cached analysis found"


@pytest.mark.asyncio
async def test_access_follows_the_document(client, auth, tenants) -> None:
    doc_id = await _document(client, auth("alice"), tenants.acme)

    r = await client.get(
        "/v1/ai/analysis-cache", params={"documentId": doc_id}, headers=auth("carol")
    )
    assert r.status_code == 403

    r = await client.get(
        "/v1/ai/analysis-cache", params={"documentId": str(uuid.uuid4())}, headers=auth("alice")
    )
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_unavailable_cache_degrades(app_factory, auth, tenants) -> None:
    app = await app_factory(analysis_cache_enabled=False)
    alice = auth("alice")
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        doc_id = await _document(client, alice, tenants.acme)

        r = await client.post(
            "/v1/ai/analysis-cache",
            json={"documentId": doc_id, "analysis": ANALYSIS},
            headers=alice,
        )
        assert r.status_code == 200
        assert r.json()["cached"] is False
        assert r.json()["message"] == "Analysis not cached - cache unavailable"

        r = await client.get("/v1/ai/analysis-cache", params={"documentId": doc_id}, headers=alice)
        assert r.json()["data"] is None

        # Document writes still succeed without the cache.
        r = await client.patch(f"/v1/documents/{doc_id}", json={"name": "X"}, headers=alice)
        assert r.status_code == 200


@pytest.mark.asyncio
async def test_entries_go_stale_after_ttl(app, tenants) -> None:
    now = datetime(2026, 1, 1, 12, 0, 0)

    async with app.state.sessionmaker() as session:
        doc = Document(
            organization_id=tenants.acme,
            name="Doc",
            category=DocumentCategory.legal,
            created_by="alice",
        )
        session.add(doc)
        await session.flush()

        cache = DocumentAnalysisCache(session, available=True, ttl_hours=24, clock=lambda: now)
        stored = await cache.store(doc.id, {"summary": "s"})
        assert stored is not None
        assert stored.expires_at == now + timedelta(hours=24)
        assert cache.is_fresh(stored)

        later = DocumentAnalysisCache(
            session, available=True, clock=lambda: now + timedelta(hours=24, seconds=1)
        )
        assert await later.get(doc.id) is stored
        assert await later.get_fresh(doc.id) is None

        # Rows without an explicit expiry fall back to their age.
        stored.expires_at = None
        assert later.is_fresh(stored) is False
        assert cache.is_fresh(stored) is True
