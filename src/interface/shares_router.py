"""HTTP surface for schedule sharing."""

from datetime import timedelta

from fastapi import APIRouter, Depends, Query, status

from src.core.config import settings
from src.domain.agenda import AgendaItem
from src.domain.share import Permission, ReceivedShare, Share, ShareCreate, ShareUpdate
from src.domain.task import SharedTaskPatch, Task
from src.interface.dependencies import SharingServices, get_services, require_principal
from src.models.service_models import (
    RecipientMatch,
    SharedSchedule,
    ShareListPage,
    ShareSummary,
    TimelineEntry,
)


router = APIRouter(prefix="/api/schedule-shares", tags=["schedule-shares"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_share(
    payload: ShareCreate,
    principal_id: str = Depends(require_principal),
    services: SharingServices = Depends(get_services),
) -> Share:
    """Offer the caller's schedule to another principal."""
    return await services.registry.create(
        owner_id=principal_id,
        recipient_identifier=payload.recipient_identifier,
        permission=payload.permission,
        scope_type=payload.scope_type,
        selected_task_ids=payload.selected_task_ids,
        message=payload.message,
    )


@router.get("/mine")
async def list_my_shares(
    principal_id: str = Depends(require_principal),
    services: SharingServices = Depends(get_services),
) -> list[Share]:
    return await services.registry.list_owner_shares(principal_id)


@router.get("/shared-with-me")
async def list_shares_with_me(
    principal_id: str = Depends(require_principal),
    services: SharingServices = Depends(get_services),
) -> list[ReceivedShare]:
    return await services.registry.list_recipient_shares(principal_id)


@router.get("/shared-events")
async def list_shared_events(
    principal_id: str = Depends(require_principal),
    services: SharingServices = Depends(get_services),
) -> list[AgendaItem]:
    """Today's tasks from every accepted share addressed to the caller."""
    return await services.agenda.list_shared_events(principal_id, services.clock())


@router.get("/upcoming")
async def get_upcoming(
    days: int | None = Query(default=None, ge=1, le=366),
    principal_id: str = Depends(require_principal),
    services: SharingServices = Depends(get_services),
) -> list[AgendaItem]:
    """The caller's own tasks for the next few days merged with today's shared tasks."""
    now = services.clock()
    horizon = now + timedelta(days=days or settings.default_agenda_days)
    return await services.agenda.build_upcoming(principal_id, now, horizon)


@router.get("/search-users")
async def search_users(
    query: str = Query(default=""),
    principal_id: str = Depends(require_principal),
    services: SharingServices = Depends(get_services),
) -> list[RecipientMatch]:
    return await services.registry.search_recipients(caller_id=principal_id, query=query)


@router.get("/admin/summary")
async def get_admin_summary(
    principal_id: str = Depends(require_principal),
    services: SharingServices = Depends(get_services),
) -> ShareSummary:
    return await services.analytics.summary(principal_id, services.clock())


@router.get("/admin/list")
async def get_admin_list(
    share_status: str | None = Query(default=None, alias="status"),
    permission: Permission | None = Query(default=None),
    limit: int | None = Query(default=None, ge=1),
    offset: int = Query(default=0, ge=0),
    principal_id: str = Depends(require_principal),
    services: SharingServices = Depends(get_services),
) -> ShareListPage:
    return await services.analytics.list_shares(
        principal_id,
        status=share_status,
        permission=permission,
        limit=limit,
        offset=offset,
    )


@router.get("/admin/timeline")
async def get_admin_timeline(
    days: int | None = Query(default=None, ge=1, le=366),
    principal_id: str = Depends(require_principal),
    services: SharingServices = Depends(get_services),
) -> list[TimelineEntry]:
    return await services.analytics.timeline(principal_id, services.clock(), days)


@router.patch("/shared-tasks/{task_id}")
async def update_shared_task(
    task_id: str,
    patch: SharedTaskPatch,
    principal_id: str = Depends(require_principal),
    services: SharingServices = Depends(get_services),
) -> Task:
    """Change allow-listed fields of a task shared with the caller."""
    return await services.gateway.update_shared_task(
        caller_id=principal_id,
        task_id=task_id,
        patch=patch.model_dump(exclude_unset=True),
    )


@router.delete("/shared-tasks/{task_id}")
async def delete_shared_task(
    task_id: str,
    principal_id: str = Depends(require_principal),
    services: SharingServices = Depends(get_services),
) -> dict[str, str]:
    """Delete a task shared with the caller under full access."""
    await services.gateway.delete_shared_task(caller_id=principal_id, task_id=task_id)
    return {"status": "deleted", "task_id": task_id}


@router.get("/{share_id}/schedule")
async def get_shared_schedule(
    share_id: str,
    principal_id: str = Depends(require_principal),
    services: SharingServices = Depends(get_services),
) -> SharedSchedule:
    return await services.registry.get_shared_schedule(share_id=share_id, recipient_id=principal_id)


@router.post("/{share_id}/accept")
async def accept_share(
    share_id: str,
    principal_id: str = Depends(require_principal),
    services: SharingServices = Depends(get_services),
) -> Share:
    return await services.lifecycle.accept(share_id=share_id, recipient_id=principal_id)


@router.post("/{share_id}/decline")
async def decline_share(
    share_id: str,
    principal_id: str = Depends(require_principal),
    services: SharingServices = Depends(get_services),
) -> Share:
    return await services.lifecycle.decline(share_id=share_id, recipient_id=principal_id)


@router.patch("/{share_id}")
async def update_share(
    share_id: str,
    patch: ShareUpdate,
    principal_id: str = Depends(require_principal),
    services: SharingServices = Depends(get_services),
) -> Share:
    return await services.registry.update(share_id=share_id, owner_id=principal_id, patch=patch)


@router.delete("/{share_id}")
async def revoke_share(
    share_id: str,
    principal_id: str = Depends(require_principal),
    services: SharingServices = Depends(get_services),
) -> Share:
    """End a share. Works for both its owner and its recipient."""
    return await services.registry.revoke(share_id=share_id, caller_id=principal_id)
