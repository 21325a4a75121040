"""Unit tests for SharedMutationGateway."""

import logging
from datetime import timedelta

import pytest

from src.core.errors import ForbiddenError, InvalidPatchError, NotFoundError
from src.domain.share import Permission, ScopeType, ShareState
from tests.unit.mocks import FIXED_NOW


@pytest.fixture
def alice_tasks(task_repo):
    task_repo.add_task(
        id="t-1",
        owner_id="u-alice",
        title="Standup",
        notes="private notes",
        scheduled_date=FIXED_NOW,
    )
    task_repo.add_task(id="t-2", owner_id="u-alice", title="Dentist", scheduled_date=FIXED_NOW)
    return task_repo


@pytest.mark.unit
class TestUpdateSharedTask:
    """Tests for update_shared_task."""

    async def test_edit_permission_updates_allowed_fields(self, services, alice_tasks, make_share):
        await make_share("u-alice", "u-bob", permission=Permission.EDIT)
        new_date = FIXED_NOW + timedelta(days=1)

        updated = await services.gateway.update_shared_task(
            caller_id="u-bob",
            task_id="t-1",
            patch={"title": "Standup (moved)", "scheduled_date": new_date},
        )

        assert updated.title == "Standup (moved)"
        assert updated.scheduled_date == new_date
        assert updated.owner_id == "u-alice"

    async def test_disallowed_fields_are_dropped(self, services, alice_tasks, make_share):
        await make_share("u-alice", "u-bob", permission=Permission.EDIT)

        updated = await services.gateway.update_shared_task(
            caller_id="u-bob",
            task_id="t-1",
            patch={"title": "X", "owner_id": "u-bob", "completed": True, "id": "t-9"},
        )

        assert updated.title == "X"
        assert updated.owner_id == "u-alice"
        assert updated.completed is False
        assert alice_tasks.update_calls == [("t-1", {"title": "X"})]

    async def test_patch_with_nothing_editable_is_rejected(self, services, alice_tasks, make_share):
        await make_share("u-alice", "u-bob", permission=Permission.EDIT)

        with pytest.raises(InvalidPatchError):
            await services.gateway.update_shared_task(caller_id="u-bob", task_id="t-1", patch={"owner_id": "u-bob"})

        assert alice_tasks.update_calls == []

    async def test_clearing_required_field_is_rejected(self, services, alice_tasks, make_share):
        await make_share("u-alice", "u-bob", permission=Permission.EDIT)

        with pytest.raises(InvalidPatchError):
            await services.gateway.update_shared_task(caller_id="u-bob", task_id="t-1", patch={"title": None})

        assert alice_tasks.update_calls == []
        assert (await alice_tasks.get_task("t-1")).title == "Standup"

    async def test_view_permission_is_forbidden(self, services, alice_tasks, make_share):
        await make_share("u-alice", "u-bob", permission=Permission.VIEW)

        with pytest.raises(ForbiddenError):
            await services.gateway.update_shared_task(caller_id="u-bob", task_id="t-1", patch={"title": "X"})

        assert alice_tasks.update_calls == []

    async def test_view_permission_with_empty_patch_is_forbidden(self, services, alice_tasks, make_share):
        await make_share("u-alice", "u-bob", permission=Permission.VIEW)

        with pytest.raises(ForbiddenError):
            await services.gateway.update_shared_task(caller_id="u-bob", task_id="t-1", patch={})

    async def test_pending_share_is_forbidden(self, services, alice_tasks, make_share):
        await make_share("u-alice", "u-bob", permission=Permission.FULL, state=ShareState.PENDING)

        with pytest.raises(ForbiddenError):
            await services.gateway.update_shared_task(caller_id="u-bob", task_id="t-1", patch={"title": "X"})

    async def test_out_of_scope_task_is_not_found(self, services, alice_tasks, make_share):
        await make_share(
            "u-alice",
            "u-bob",
            permission=Permission.FULL,
            scope_type=ScopeType.SELECTIVE,
            selected_task_ids=["t-2"],
        )

        with pytest.raises(NotFoundError):
            await services.gateway.update_shared_task(caller_id="u-bob", task_id="t-1", patch={"title": "X"})

    async def test_stranger_gets_not_found(self, services, alice_tasks):
        with pytest.raises(NotFoundError):
            await services.gateway.update_shared_task(caller_id="u-carol", task_id="t-1", patch={"title": "X"})

    async def test_missing_task_is_not_found(self, services, make_share):
        await make_share("u-alice", "u-bob", permission=Permission.FULL)

        with pytest.raises(NotFoundError):
            await services.gateway.update_shared_task(caller_id="u-bob", task_id="nope", patch={"title": "X"})

    async def test_revoked_share_no_longer_authorizes(self, services, alice_tasks, make_share):
        share = await make_share("u-alice", "u-bob", permission=Permission.EDIT)
        await services.gateway.update_shared_task(caller_id="u-bob", task_id="t-1", patch={"title": "First"})

        await services.registry.revoke(share_id=share.id, caller_id="u-alice")

        with pytest.raises(NotFoundError):
            await services.gateway.update_shared_task(caller_id="u-bob", task_id="t-1", patch={"title": "Second"})
        assert (await alice_tasks.get_task("t-1")).title == "First"

    async def test_logs_field_names_not_content(self, services, alice_tasks, make_share, caplog):
        await make_share("u-alice", "u-bob", permission=Permission.EDIT)

        with caplog.at_level(logging.INFO):
            await services.gateway.update_shared_task(
                caller_id="u-bob", task_id="t-1", patch={"notes": "very secret content"}
            )

        assert "very secret content" not in caplog.text
        updated_records = [r for r in caplog.records if r.message == "Shared task updated"]
        assert updated_records
        assert updated_records[0].fields == ["notes"]


@pytest.mark.unit
class TestDeleteSharedTask:
    """Tests for delete_shared_task."""

    async def test_full_permission_deletes(self, services, alice_tasks, make_share):
        await make_share("u-alice", "u-bob", permission=Permission.FULL)

        await services.gateway.delete_shared_task(caller_id="u-bob", task_id="t-1")

        assert alice_tasks.delete_calls == ["t-1"]
        assert await alice_tasks.get_task("t-1") is None

    async def test_edit_permission_cannot_delete(self, services, alice_tasks, make_share):
        await make_share("u-alice", "u-bob", permission=Permission.EDIT)

        with pytest.raises(ForbiddenError):
            await services.gateway.delete_shared_task(caller_id="u-bob", task_id="t-1")

        assert alice_tasks.delete_calls == []

    async def test_stranger_cannot_delete(self, services, alice_tasks):
        with pytest.raises(NotFoundError):
            await services.gateway.delete_shared_task(caller_id="u-carol", task_id="t-1")

    async def test_owner_may_delete_through_gateway(self, services, alice_tasks):
        await services.gateway.delete_shared_task(caller_id="u-alice", task_id="t-2")

        assert alice_tasks.delete_calls == ["t-2"]
