"""Pytest configuration and fixtures for unit tests."""

from collections.abc import Iterator
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from src.domain.principal import Principal, PrincipalRole
from src.domain.share import Permission, ScopeType, Share, ShareDraft, ShareState
from src.interface.dependencies import SharingServices, get_services
from src.main import app
from tests.unit.mocks import (
    FIXED_NOW,
    FrozenClock,
    InMemoryDatabase,
    InMemoryPrincipalDirectory,
    InMemoryShareRepository,
    InMemoryTaskRepository,
)


@pytest.fixture
def in_memory_db() -> InMemoryDatabase:
    """Provides a fresh InMemoryDatabase for each test."""
    return InMemoryDatabase()


@pytest.fixture
def share_repo() -> InMemoryShareRepository:
    return InMemoryShareRepository()


@pytest.fixture
def task_repo() -> InMemoryTaskRepository:
    return InMemoryTaskRepository()


@pytest.fixture
def principal_directory() -> InMemoryPrincipalDirectory:
    """Directory seeded with an owner, two other members and an admin."""
    directory = InMemoryPrincipalDirectory()
    directory.add(id="u-alice", username="alice", email="alice@example.com")
    directory.add(id="u-bob", username="bob", email="Bob@Example.com")
    directory.add(id="u-carol", username="carol", email="carol@example.com")
    directory.add(id="u-admin", username="admin", email="admin@example.com", role=PrincipalRole.ADMIN)
    return directory


@pytest.fixture
def alice(principal_directory: InMemoryPrincipalDirectory) -> Principal:
    return principal_directory._principals["u-alice"]


@pytest.fixture
def bob(principal_directory: InMemoryPrincipalDirectory) -> Principal:
    return principal_directory._principals["u-bob"]


@pytest.fixture
def carol(principal_directory: InMemoryPrincipalDirectory) -> Principal:
    return principal_directory._principals["u-carol"]


@pytest.fixture
def services(
    share_repo: InMemoryShareRepository,
    task_repo: InMemoryTaskRepository,
    principal_directory: InMemoryPrincipalDirectory,
    in_memory_db: InMemoryDatabase,
    clock: FrozenClock,
) -> SharingServices:
    """All sharing services wired to the in-memory fakes."""
    return SharingServices.build(
        shares=share_repo,
        tasks=task_repo,
        principals=principal_directory,
        database=in_memory_db,
        clock=clock,
    )


@pytest.fixture
def make_share(share_repo: InMemoryShareRepository):
    """Factory for shares stored directly, bypassing the registry.

    Usage:
        share = await make_share("u-alice", "u-bob", permission=Permission.EDIT, state=ShareState.ACCEPTED)
    """

    async def _make_share(
        owner_id: str,
        recipient_id: str,
        *,
        permission: Permission = Permission.VIEW,
        scope_type: ScopeType = ScopeType.FULL,
        selected_task_ids: list[str] | None = None,
        state: ShareState = ShareState.ACCEPTED,
        created_at: datetime = FIXED_NOW,
    ) -> Share:
        return await share_repo.insert(
            ShareDraft(
                owner_id=owner_id,
                recipient_id=recipient_id,
                recipient_username=recipient_id,
                permission=permission,
                scope_type=scope_type,
                selected_task_ids=selected_task_ids or [],
                state=state,
                created_at=created_at,
                updated_at=created_at,
            )
        )

    return _make_share


@pytest.fixture
def api_client(services: SharingServices) -> Iterator[TestClient]:
    """TestClient whose routes run against the in-memory services.

    The lifespan is not entered, so no SQLite file or Logfire setup happens.
    """
    app.dependency_overrides[get_services] = lambda: services
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.clear()
