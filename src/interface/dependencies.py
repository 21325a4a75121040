"""Request-scoped dependencies for the sharing API."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from fastapi import Header, HTTPException, Request, status

from src.core.config import constants
from src.core.db_client import Database
from src.core.ports import PrincipalDirectory, ShareRepository, TaskRepository, Transactional
from src.repositories import SqlitePrincipalDirectory, SqliteShareRepository, SqliteTaskRepository
from src.services import (
    AccessControlEvaluator,
    AggregatedViewBuilder,
    ShareAnalytics,
    ShareLifecycleManager,
    ShareRegistry,
    SharedMutationGateway,
)


logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class SharingServices:
    """Every sharing service, wired to the same storage ports."""

    registry: ShareRegistry
    lifecycle: ShareLifecycleManager
    evaluator: AccessControlEvaluator
    gateway: SharedMutationGateway
    agenda: AggregatedViewBuilder
    analytics: ShareAnalytics
    clock: Callable[[], datetime]

    @classmethod
    def build(
        cls,
        *,
        shares: ShareRepository,
        tasks: TaskRepository,
        principals: PrincipalDirectory,
        database: Transactional,
        clock: Callable[[], datetime] = _utcnow,
    ) -> "SharingServices":
        evaluator = AccessControlEvaluator(shares=shares, tasks=tasks)
        return cls(
            registry=ShareRegistry(
                shares=shares, tasks=tasks, principals=principals, database=database, clock=clock
            ),
            lifecycle=ShareLifecycleManager(shares=shares, database=database, clock=clock),
            evaluator=evaluator,
            gateway=SharedMutationGateway(tasks=tasks, evaluator=evaluator, database=database),
            agenda=AggregatedViewBuilder(shares=shares, tasks=tasks, principals=principals),
            analytics=ShareAnalytics(shares=shares, principals=principals),
            clock=clock,
        )

    @classmethod
    def for_database(cls, database: Database, clock: Callable[[], datetime] = _utcnow) -> "SharingServices":
        """Wire the services to the SQLite adapters."""
        return cls.build(
            shares=SqliteShareRepository(database),
            tasks=SqliteTaskRepository(database),
            principals=SqlitePrincipalDirectory(database),
            database=database,
            clock=clock,
        )


def get_services(request: Request) -> SharingServices:
    """Return the services created at startup."""
    return request.app.state.services


async def require_principal(
    request: Request,
    x_principal_id: str | None = Header(default=None, alias=constants.PRINCIPAL_HEADER),
) -> str:
    """Resolve the caller from the identity header set by the session layer."""
    principal_id = (x_principal_id or "").strip()
    if not principal_id:
        logger.warning("principal_header_missing", extra={"path": request.url.path})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")

    request.state.principal_id = principal_id
    return principal_id
