"""Unit tests for AccessControlEvaluator."""

import pytest

from src.domain.share import Permission, ScopeType, ShareState
from tests.unit.mocks import FIXED_NOW


@pytest.fixture
def alice_tasks(task_repo):
    task_repo.add_task(id="t-1", owner_id="u-alice", title="Standup", scheduled_date=FIXED_NOW)
    task_repo.add_task(id="t-2", owner_id="u-alice", title="Dentist", scheduled_date=FIXED_NOW)
    return task_repo


@pytest.mark.unit
class TestEffectivePermission:
    """Tests for effective_permission."""

    async def test_owner_has_full(self, services, alice_tasks):
        assert await services.evaluator.effective_permission("u-alice", "t-1") == Permission.FULL

    async def test_stranger_has_none(self, services, alice_tasks):
        assert await services.evaluator.effective_permission("u-carol", "t-1") is None

    async def test_missing_task_has_none(self, services):
        assert await services.evaluator.effective_permission("u-alice", "missing") is None

    async def test_accepted_full_scope_grants_permission(self, services, alice_tasks, make_share):
        await make_share("u-alice", "u-bob", permission=Permission.EDIT)

        assert await services.evaluator.effective_permission("u-bob", "t-1") == Permission.EDIT
        assert await services.evaluator.effective_permission("u-bob", "t-2") == Permission.EDIT

    async def test_pending_share_grants_nothing(self, services, alice_tasks, make_share):
        await make_share("u-alice", "u-bob", permission=Permission.FULL, state=ShareState.PENDING)

        assert await services.evaluator.effective_permission("u-bob", "t-1") is None

    @pytest.mark.parametrize(
        "state",
        [ShareState.DECLINED_BY_RECIPIENT, ShareState.REVOKED_BY_OWNER, ShareState.REVOKED_BY_RECIPIENT],
    )
    async def test_ended_share_grants_nothing(self, services, alice_tasks, make_share, state):
        await make_share("u-alice", "u-bob", permission=Permission.FULL, state=state)

        assert await services.evaluator.effective_permission("u-bob", "t-1") is None

    async def test_selective_scope_limits_permission(self, services, alice_tasks, make_share):
        await make_share(
            "u-alice",
            "u-bob",
            permission=Permission.FULL,
            scope_type=ScopeType.SELECTIVE,
            selected_task_ids=["t-1"],
        )

        assert await services.evaluator.effective_permission("u-bob", "t-1") == Permission.FULL
        assert await services.evaluator.effective_permission("u-bob", "t-2") is None

    async def test_share_from_other_owner_does_not_apply(self, services, alice_tasks, make_share):
        await make_share("u-carol", "u-bob", permission=Permission.FULL)

        assert await services.evaluator.effective_permission("u-bob", "t-1") is None

    async def test_revocation_takes_effect_immediately(self, services, alice_tasks, make_share):
        share = await make_share("u-alice", "u-bob", permission=Permission.EDIT)
        assert await services.evaluator.effective_permission("u-bob", "t-1") == Permission.EDIT

        await services.registry.revoke(share_id=share.id, caller_id="u-alice")

        assert await services.evaluator.effective_permission("u-bob", "t-1") is None


@pytest.mark.unit
class TestEvaluate:
    """Tests for the richer AccessDecision."""

    async def test_pending_share_is_related_without_permission(self, services, alice_tasks, make_share):
        await make_share("u-alice", "u-bob", state=ShareState.PENDING)
        task = await alice_tasks.get_task("t-1")

        decision = await services.evaluator.evaluate("u-bob", task)

        assert decision.related is True
        assert decision.permission is None

    async def test_out_of_scope_task_is_unrelated(self, services, alice_tasks, make_share):
        await make_share("u-alice", "u-bob", scope_type=ScopeType.SELECTIVE, selected_task_ids=["t-1"])
        task = await alice_tasks.get_task("t-2")

        decision = await services.evaluator.evaluate("u-bob", task)

        assert decision.related is False

    async def test_owner_decision(self, services, alice_tasks):
        task = await alice_tasks.get_task("t-1")

        decision = await services.evaluator.evaluate("u-alice", task)

        assert decision.is_owner is True
        assert decision.share is None
        assert decision.permission == Permission.FULL
