"""
tests.test_batch

Bulk mutations: per-operation outcomes, tenant scoping and the audit trail.
"""

from __future__ import annotations

import uuid

import pytest
from sqlalchemy import select

from spac_os.db.models import AuditLog, Document, Target
from spac_os.enums import AuditAction, TargetStatus


async def _post(client, headers, path: str, body: dict, key: str) -> dict:
    r = await client.post(path, json=body, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()[key]


async def _audits(app, action: AuditAction) -> list[AuditLog]:
    async with app.state.sessionmaker() as session:
        stmt = select(AuditLog).where(AuditLog.action == action)
        return list((await session.execute(stmt)).scalars().all())


@pytest.mark.asyncio
async def test_operations_succeed_and_fail_independently(app, client, auth, tenants) -> None:
    alice = auth("alice")
    spac = await _post(
        client, alice, "/v1/spacs", {"organizationId": str(tenants.acme), "name": "Acme I"}, "spac"
    )
    target = await _post(
        client, alice, "/v1/targets", {"spacId": spac["id"], "name": "Fusion"}, "target"
    )
    document = await _post(
        client,
        alice,
        "/v1/documents",
        {"organizationId": str(tenants.acme), "name": "Old Deck"},
        "document",
    )
    carol = auth("carol")
    foreign_spac = await _post(
        client,
        carol,
        "/v1/spacs",
        {"organizationId": str(tenants.globex), "name": "Globex I"},
        "spac",
    )
    foreign_target = await _post(
        client, carol, "/v1/targets", {"spacId": foreign_spac["id"], "name": "Theirs"}, "target"
    )

    operations = [
        {"action": "create", "entityType": "target", "data": {"spacId": spac["id"], "name": "New"}},
        {
            "id": "advance",
            "action": "update",
            "entityType": "target",
            "entityId": target["id"],
            "data": {"status": "LOI"},
        },
        {"action": "delete", "entityType": "document", "entityId": document["id"]},
        {
            "action": "create",
            "entityType": "document",
            "data": {"name": "Investor Deck", "category": "FINANCIAL"},
        },
        {"action": "update", "entityType": "target", "data": {"name": "No id"}},
        {
            "action": "update",
            "entityType": "target",
            "entityId": foreign_target["id"],
            "data": {"name": "Hijacked"},
        },
        {
            "action": "create",
            "entityType": "target",
            "data": {"spacId": foreign_spac["id"], "name": "Planted"},
        },
        {
            "action": "create",
            "entityType": "target",
            "data": {"spacId": spac["id"], "name": "Bad", "evaluationScore": 150},
        },
        {"action": "delete", "entityType": "target", "entityId": str(uuid.uuid4())},
    ]
    r = await client.post(
        "/v1/batch",
        json={"organizationId": str(tenants.acme), "operations": operations},
        headers=alice,
    )

    assert r.status_code == 200, r.text
    body = r.json()
    assert (body["total"], body["successful"], body["failed"]) == (9, 4, 5)
    results = body["results"]
    assert [res["id"] for res in results] == [
        "op_0", "advance", "op_2", "op_3", "op_4", "op_5", "op_6", "op_7", "op_8"
    ]
    assert [res["success"] for res in results] == [True] * 4 + [False] * 5
    assert results[1]["entityId"] == target["id"]
    assert results[4] == {
        "id": "op_4",
        "success": False,
        "entityType": "target",
        "error": "entityId required for update",
    }
    assert results[5]["error"] == "Target not found"
    assert results[6]["error"] == "SPAC not found"
    assert results[7]["error"].startswith("Invalid data (")
    assert results[8]["error"] == "Target not found"

    async with app.state.sessionmaker() as session:
        created = await session.get(Target, uuid.UUID(results[0]["entityId"]))
        advanced = await session.get(Target, uuid.UUID(target["id"]))
        untouched = await session.get(Target, uuid.UUID(foreign_target["id"]))
        deleted = await session.get(Document, uuid.UUID(document["id"]))
        deck = await session.get(Document, uuid.UUID(results[3]["entityId"]))
        planted = (
            await session.execute(select(Target).where(Target.name.in_(["Planted", "Bad"])))
        ).all()
    assert created is not None and created.organization_id == tenants.acme
    assert advanced is not None and advanced.status is TargetStatus.loi
    assert untouched is not None and untouched.name == "Theirs"
    assert deleted is not None and deleted.deleted_by == "alice"
    assert deck is not None and deck.organization_id == tenants.acme
    assert planted == []

    # Every applied operation left its own audit row.
    updates = await _audits(app, AuditAction.update)
    assert [a.entity_id for a in updates] == [target["id"]]
    deletes = await _audits(app, AuditAction.delete)
    assert [(a.entity_type, a.entity_id) for a in deletes] == [("Document", document["id"])]

    (batch,) = await _audits(app, AuditAction.batch)
    assert batch.entity_type == "Batch"
    assert batch.user_id == "alice"
    assert batch.organization_id == tenants.acme
    assert batch.metadata_ == {"totalOperations": 9, "successful": 4, "failed": 5}


@pytest.mark.asyncio
async def test_member_deletes_fail_without_undoing_earlier_operations(
    app, client, auth, tenants
) -> None:
    bob = auth("bob")
    spac = await _post(
        client, bob, "/v1/spacs", {"organizationId": str(tenants.acme), "name": "Acme II"}, "spac"
    )
    target = await _post(
        client, bob, "/v1/targets", {"spacId": spac["id"], "name": "Keep"}, "target"
    )

    r = await client.post(
        "/v1/batch",
        json={
            "organizationId": str(tenants.acme),
            "operations": [
                {
                    "id": "rename",
                    "action": "update",
                    "entityType": "target",
                    "entityId": target["id"],
                    "data": {"name": "Renamed"},
                },
                {
                    "id": "drop",
                    "action": "delete",
                    "entityType": "target",
                    "entityId": target["id"],
                },
            ],
        },
        headers=bob,
    )

    assert r.status_code == 200
    rename, drop = r.json()["results"]
    assert rename["success"] is True
    assert drop == {
        "id": "drop",
        "success": False,
        "entityType": "target",
        "entityId": target["id"],
        "error": "Access denied - admin required",
    }

    async with app.state.sessionmaker() as session:
        row = await session.get(Target, uuid.UUID(target["id"]))
    assert row is not None and row.name == "Renamed" and row.deleted_at is None


@pytest.mark.asyncio
async def test_batch_requires_membership(app, client, auth, tenants) -> None:
    body = {
        "organizationId": str(tenants.acme),
        "operations": [{"action": "delete", "entityType": "target", "entityId": str(uuid.uuid4())}],
    }

    r = await client.post("/v1/batch", json=body, headers=auth("carol"))
    assert r.status_code == 403
    assert r.json() == {"error": "Access denied", "code": "FORBIDDEN"}

    r = await client.post("/v1/batch", json=body)
    assert r.status_code == 401

    assert await _audits(app, AuditAction.batch) == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "operations",
    [
        [],
        [{"action": "delete", "entityType": "target", "entityId": str(uuid.uuid4())}] * 101,
        [{"action": "create", "entityType": "task", "data": {"name": "Call banker"}}],
        [{"action": "archive", "entityType": "target", "entityId": str(uuid.uuid4())}],
    ],
    ids=["empty", "too_many", "unknown_entity", "unknown_action"],
)
async def test_malformed_batches_are_rejected_whole(app, client, auth, tenants, operations) -> None:
    r = await client.post(
        "/v1/batch",
        json={"organizationId": str(tenants.acme), "operations": operations},
        headers=auth("alice"),
    )

    assert r.status_code == 400
    assert r.json()["error"] == "Invalid request body"
    assert await _audits(app, AuditAction.batch) == []
