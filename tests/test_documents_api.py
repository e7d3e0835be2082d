"""
tests.test_documents_api

Document metadata endpoints.
"""

from __future__ import annotations

import pytest


@pytest.mark.asyncio
async def test_create_list_by_category(client, auth, tenants) -> None:
    alice = auth("alice")
    for name, category in (("Charter", "CORPORATE"), ("Merger Agreement", "LEGAL"), ("Memo", None)):
        body = {"organizationId": str(tenants.acme), "name": name}
        if category:
            body["category"] = category
        r = await client.post("/v1/documents", json=body, headers=alice)
        assert r.status_code == 201

    params = {"organizationId": str(tenants.acme)}
    r = await client.get("/v1/documents", params={**params, "status": "LEGAL"}, headers=alice)
    assert [d["name"] for d in r.json()["items"]] == ["Merger Agreement"]

    r = await client.get(
        "/v1/documents", params={**params, "sortBy": "name", "sortOrder": "asc"}, headers=alice
    )
    items = r.json()["items"]
    assert [d["name"] for d in items] == ["Charter", "Memo", "Merger Agreement"]
    assert items[1]["category"] == "OTHER"


@pytest.mark.asyncio
async def test_document_spac_must_share_tenant(client, auth, tenants) -> None:
    r = await client.post(
        "/v1/spacs",
        json={"organizationId": str(tenants.globex), "name": "Globex SPAC"},
        headers=auth("carol"),
    )
    foreign_spac = r.json()["spac"]["id"]

    r = await client.post(
        "/v1/documents",
        json={"organizationId": str(tenants.acme), "name": "Doc", "spacId": foreign_spac},
        headers=auth("alice"),
    )
    assert r.status_code == 404
    assert r.json()["error"] == "SPAC not found"


@pytest.mark.asyncio
async def test_get_update_delete(client, auth, tenants) -> None:
    r = await client.post(
        "/v1/documents",
        json={"organizationId": str(tenants.acme), "name": "Doc"},
        headers=auth("bob"),
    )
    doc_id = r.json()["document"]["id"]

    r = await client.get(f"/v1/documents/{doc_id}", headers=auth("carol"))
    assert r.status_code == 403

    r = await client.put(
        f"/v1/documents/{doc_id}", json={"description": "Signed copy"}, headers=auth("bob")
    )
    assert r.json()["document"]["description"] == "Signed copy"

    r = await client.put(f"/v1/documents/{doc_id}", json={"category": None}, headers=auth("bob"))
    assert r.status_code == 400

    assert (await client.delete(f"/v1/documents/{doc_id}", headers=auth("bob"))).status_code == 403
    r = await client.delete(f"/v1/documents/{doc_id}", headers=auth("alice"))
    assert r.status_code == 200

    r = await client.get(f"/v1/documents/{doc_id}", headers=auth("alice"))
    assert r.status_code == 404
    assert r.json()["error"] == "Document not found"
