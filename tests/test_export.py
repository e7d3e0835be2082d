"""
tests.test_export

Bulk export: CSV rendering and the `/v1/export` endpoint.
"""

from __future__ import annotations

import pytest

from spac_os.services.export import flatten_record, select_fields, to_csv


def test_csv_flattens_nested_records() -> None:
    records = [
        {"name": "Alpha", "spac": {"name": "Parent", "ticker": None}, "tags": ["x"]},
        {"name": "Beta, Inc.", "extra": 1},
    ]

    assert to_csv(records) == (
        "name,spac.name,spac.ticker,tags,extra\r\n"
        'Alpha,Parent,,"[""x""]",\r\n'
        '"Beta, Inc.",,,,1\r\n'
    )
    assert to_csv([]) == ""


def test_flatten_record_nests_dotted_keys() -> None:
    assert flatten_record({"a": {"b": {"c": 1}}, "d": None}) == {"a.b.c": 1, "d": ""}


def test_select_fields_keeps_requested_keys_only() -> None:
    records = [{"id": 1, "name": "A", "ticker": "AA"}]
    assert select_fields(records, ["name", "missing"]) == [{"name": "A"}]
    assert select_fields(records, None) == records


async def _seed(client, headers, org) -> dict:
    r = await client.post(
        "/v1/spacs",
        json={"organizationId": str(org), "name": "Alpha", "ticker": "ALPH", "status": "SEARCHING"},
        headers=headers,
    )
    spac = r.json()["spac"]
    await client.post(
        "/v1/targets", json={"spacId": spac["id"], "name": "Fusion"}, headers=headers
    )
    return spac


@pytest.mark.asyncio
async def test_json_export_with_field_selection(client, auth, tenants) -> None:
    alice = auth("alice")
    await _seed(client, alice, tenants.acme)

    r = await client.post(
        "/v1/export",
        json={
            "organizationId": str(tenants.acme),
            "entityType": "spacs",
            "fields": ["name", "ticker"],
        },
        headers=auth("bob"),
    )
    assert r.status_code == 200
    body = r.json()
    assert body["entityType"] == "spacs"
    assert body["recordCount"] == 1
    assert body["data"] == [{"name": "Alpha", "ticker": "ALPH"}]
    assert body["exportedAt"]


@pytest.mark.asyncio
async def test_csv_export_of_targets(client, auth, tenants) -> None:
    alice = auth("alice")
    await _seed(client, alice, tenants.acme)

    r = await client.post(
        "/v1/export",
        json={"organizationId": str(tenants.acme), "entityType": "targets", "format": "csv"},
        headers=alice,
    )
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    assert r.headers["content-disposition"].startswith('attachment; filename="targets_export_')

    header, row = r.text.strip().split("\r\n")
    columns = header.split(",")
    assert "spac.name" in columns and "spac.ticker" in columns
    values = dict(zip(columns, row.split(","), strict=True))
    assert values["name"] == "Fusion"
    assert values["spac.ticker"] == "ALPH"


@pytest.mark.asyncio
async def test_export_filters(client, auth, tenants) -> None:
    alice = auth("alice")
    await _seed(client, alice, tenants.acme)
    url = "/v1/export"
    base = {"organizationId": str(tenants.acme), "entityType": "spacs"}

    r = await client.post(url, json={**base, "filters": {"status": "PRE_IPO"}}, headers=alice)
    assert r.json()["recordCount"] == 0

    r = await client.post(url, json={**base, "filters": {"status": "BOGUS"}}, headers=alice)
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid request body"
    assert r.json()["details"][0]["loc"] == ["filters", "status"]


@pytest.mark.asyncio
async def test_audit_log_export_is_admin_only(client, auth, tenants) -> None:
    await _seed(client, auth("alice"), tenants.acme)
    body = {"organizationId": str(tenants.acme), "entityType": "audit_logs"}

    r = await client.post("/v1/export", json=body, headers=auth("bob"))
    assert r.status_code == 403
    assert r.json() == {
        "error": "Admin access required for audit log export",
        "code": "FORBIDDEN_ELEVATED",
    }

    r = await client.post("/v1/export", json=body, headers=auth("alice"))
    assert r.status_code == 200
    rows = r.json()["data"]
    assert {row["action"] for row in rows} == {"CREATE"}
    assert {row["entityType"] for row in rows} == {"Spac", "Target"}

    # The previous export left its own audit entry.
    r = await client.post("/v1/export", json=body, headers=auth("alice"))
    exports = [row for row in r.json()["data"] if row["action"] == "EXPORT"]
    assert len(exports) == 1
    assert exports[0]["entityType"] == "audit_logs"
    assert exports[0]["metadata"]["recordCount"] == 2


@pytest.mark.asyncio
async def test_export_requires_membership(client, auth, tenants) -> None:
    r = await client.post(
        "/v1/export",
        json={"organizationId": str(tenants.acme), "entityType": "documents"},
        headers=auth("mallory"),
    )
    assert r.status_code == 403
