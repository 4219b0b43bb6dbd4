# routers/social_posts.py — Generated social posts: list and edit
from datetime import datetime
from typing import Optional, Literal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from auth import get_current_user, CurrentUser
from models import SocialPost, PostStatus, utcnow
from services import get_storage
from storage import Storage

router = APIRouter(prefix="/api/v1/social-posts", tags=["Social Posts"])

PlatformValue = Literal["x", "facebook", "linkedin", "instagram", "tiktok_script", "youtube_script"]
PostStatusValue = Literal["draft", "ready", "published"]


class SocialPostUpdate(BaseModel):
    content: Optional[str] = Field(None, min_length=1, max_length=50000)
    status: Optional[PostStatusValue] = None
    scheduled_at: Optional[datetime] = None


def _post_out(p: SocialPost) -> dict:
    return {
        "id": p.id,
        "master_document_id": p.master_document_id,
        "platform": p.platform.value if hasattr(p.platform, "value") else p.platform,
        "content": p.content,
        "status": p.status.value if hasattr(p.status, "value") else p.status,
        "scheduled_at": p.scheduled_at.isoformat() if p.scheduled_at else None,
        "published_at": p.published_at.isoformat() if p.published_at else None,
        "created_at": p.created_at.isoformat() if p.created_at else None,
        "updated_at": p.updated_at.isoformat() if p.updated_at else None,
    }


@router.get("")
async def list_social_posts(
    master_document_id: Optional[str] = Query(None),
    platform: Optional[PlatformValue] = Query(None),
    status: Optional[PostStatusValue] = Query(None),
    storage: Storage = Depends(get_storage),
    user: CurrentUser = Depends(get_current_user),
):
    posts = await storage.list_social_posts(
        user.id, master_document_id=master_document_id, platform=platform, status=status,
    )
    return [_post_out(p) for p in posts]


@router.put("/{post_id}")
async def update_social_post(
    post_id: str,
    data: SocialPostUpdate,
    storage: Storage = Depends(get_storage),
    user: CurrentUser = Depends(get_current_user),
):
    post = await storage.get_social_post(user.id, post_id)
    changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None or k == "scheduled_at"}
    if "status" in changes:
        changes["status"] = PostStatus(changes["status"])
        if changes["status"] == PostStatus.PUBLISHED and post.published_at is None:
            changes["published_at"] = utcnow()
    return _post_out(await storage.update_social_post(post, changes))
