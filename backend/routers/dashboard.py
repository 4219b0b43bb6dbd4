# routers/dashboard.py — Dashboard aggregates, recomputed per request
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query

from auth import get_current_user, CurrentUser
from models import ActivityLog
from routers.tasks import _task_out
from services import get_storage
from storage import Storage

router = APIRouter(prefix="/api/v1/dashboard", tags=["Dashboard"])


def start_of_local_day() -> datetime:
    """Midnight of the server's current local day, as UTC."""
    local_now = datetime.now().astimezone()
    midnight = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight.astimezone(timezone.utc)


def _activity_out(a: ActivityLog) -> dict:
    return {
        "id": a.id,
        "action": a.action,
        "description": a.description,
        "entity_type": a.entity_type,
        "entity_id": a.entity_id,
        "metadata": a.extra_data,
        "created_at": a.created_at.isoformat() if a.created_at else None,
    }


@router.get("/stats")
async def dashboard_stats(
    storage: Storage = Depends(get_storage),
    user: CurrentUser = Depends(get_current_user),
):
    return await storage.dashboard_stats(user.id, start_of_local_day())


@router.get("/urgent")
async def urgent_tasks(
    storage: Storage = Depends(get_storage),
    user: CurrentUser = Depends(get_current_user),
):
    return [_task_out(t) for t in await storage.urgent_tasks(user.id)]


@router.get("/activity")
async def recent_activity(
    limit: int = Query(default=20, ge=1, le=100),
    storage: Storage = Depends(get_storage),
    user: CurrentUser = Depends(get_current_user),
):
    return [_activity_out(a) for a in await storage.recent_activity(user.id, limit)]
