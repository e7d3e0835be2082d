"""
tests.conftest

Shared fixtures for API and service tests.

Responsibilities:
- Build apps bound to a throwaway SQLite file and drive their lifespan explicitly.
- Seed two tenants with memberships of every role.
- Mint bearer tokens for seeded (and unknown) principals.
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import AsyncExitStack
from dataclasses import dataclass
from typing import Any

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from spac_os.api.app import create_app
from spac_os.auth.jwt import JwtConfig, issue_token
from spac_os.db.models import Organization, OrganizationMember
from spac_os.enums import MemberRole
from spac_os.settings import Settings


@dataclass(frozen=True)
class Tenants:
    # alice: OWNER of acme, bob: MEMBER of acme, carol: ADMIN of globex, mallory: nobody.
    acme: uuid.UUID
    globex: uuid.UUID


TENANTS = Tenants(
    acme=uuid.UUID("00000000-0000-4000-8000-00000000a001"),
    globex=uuid.UUID("00000000-0000-4000-8000-00000000b002"),
)


async def _seed(app: FastAPI) -> None:
    async with app.state.sessionmaker() as session:
        session.add_all(
            [
                Organization(id=TENANTS.acme, name="Acme Capital"),
                Organization(id=TENANTS.globex, name="Globex Partners"),
            ]
        )
        await session.flush()
        session.add_all(
            [
                OrganizationMember(
                    organization_id=TENANTS.acme, user_id="alice", role=MemberRole.owner
                ),
                OrganizationMember(
                    organization_id=TENANTS.acme, user_id="bob", role=MemberRole.member
                ),
                OrganizationMember(
                    organization_id=TENANTS.globex, user_id="carol", role=MemberRole.admin
                ),
            ]
        )
        await session.commit()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        env="test",
        log_level="WARNING",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'spac_os_test.db'}",
        edgar_min_interval_seconds=0.0,
        edgar_backoff_seconds=0.0,
    )


@pytest_asyncio.fixture
async def app_factory(settings: Settings) -> AsyncIterator[Callable[..., Awaitable[FastAPI]]]:
    """
    Returns `make(**overrides)`: a started, seeded app. Use at most once per test
    (all apps in a test share one database file).
    """

    async with AsyncExitStack() as stack:

        async def make(**overrides: Any) -> FastAPI:
            app = create_app(settings=settings.model_copy(update=overrides))
            # httpx's ASGITransport does not run lifespan events; drive them explicitly.
            await stack.enter_async_context(app.router.lifespan_context(app))
            await _seed(app)
            return app

        yield make


@pytest_asyncio.fixture
async def app(app_factory: Callable[..., Awaitable[FastAPI]]) -> FastAPI:
    return await app_factory()


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def tenants() -> Tenants:
    return TENANTS


@pytest.fixture
def auth(settings: Settings) -> Callable[[str], dict[str, str]]:
    cfg = JwtConfig.from_settings(settings)

    def headers(subject: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {issue_token(cfg=cfg, subject=subject)}"}

    return headers
