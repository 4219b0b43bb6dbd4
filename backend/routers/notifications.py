# routers/notifications.py — In-app notifications
from fastapi import APIRouter, Depends

from auth import get_current_user, CurrentUser
from models import Notification
from services import get_storage
from storage import Storage

router = APIRouter(prefix="/api/v1/notifications", tags=["Notifications"])


def _notif_out(n: Notification) -> dict:
    return {
        "id": n.id,
        "type": n.type.value if hasattr(n.type, "value") else n.type,
        "title": n.title,
        "message": n.message,
        "related_task_id": n.related_task_id,
        "related_project_id": n.related_project_id,
        "is_read": n.is_read,
        "email_sent": n.email_sent,
        "created_at": n.created_at.isoformat() if n.created_at else None,
    }


# ============================================================
# LIST
# ============================================================

@router.get("")
async def list_notifications(
    storage: Storage = Depends(get_storage),
    user: CurrentUser = Depends(get_current_user),
):
    return [_notif_out(n) for n in await storage.list_notifications(user.id)]


# ============================================================
# MARK READ
# ============================================================

@router.patch("/{notification_id}/read")
async def mark_read(
    notification_id: str,
    storage: Storage = Depends(get_storage),
    user: CurrentUser = Depends(get_current_user),
):
    return _notif_out(await storage.mark_notification_read(user.id, notification_id))


@router.post("/mark-all-read")
async def mark_all_read(
    storage: Storage = Depends(get_storage),
    user: CurrentUser = Depends(get_current_user),
):
    return {"updated": await storage.mark_all_notifications_read(user.id)}
