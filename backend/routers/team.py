# routers/team.py — Team invitations
from typing import Optional, Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from auth import get_current_user, CurrentUser
from models import TeamMember, TeamRole
from services import get_storage
from storage import Storage

router = APIRouter(prefix="/api/v1/team", tags=["Team"])


class TeamInvite(BaseModel):
    email: str = Field(..., min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    member_id: Optional[str] = Field(None, max_length=200)
    role: Literal["member", "admin"] = "member"


def _member_out(m: TeamMember) -> dict:
    return {
        "id": m.id,
        "member_id": m.member_id,
        "email": m.email,
        "role": m.role.value if hasattr(m.role, "value") else m.role,
        "status": m.status.value if hasattr(m.status, "value") else m.status,
        "invited_at": m.invited_at.isoformat() if m.invited_at else None,
        "accepted_at": m.accepted_at.isoformat() if m.accepted_at else None,
    }


@router.get("")
async def list_team(
    storage: Storage = Depends(get_storage),
    user: CurrentUser = Depends(get_current_user),
):
    return [_member_out(m) for m in await storage.list_team_members(user.id)]


@router.post("/invite", status_code=201)
async def invite_member(
    data: TeamInvite,
    storage: Storage = Depends(get_storage),
    user: CurrentUser = Depends(get_current_user),
):
    email = data.email.strip().lower()
    member = await storage.create_team_member(
        user.id,
        email=email,
        # Identity is resolved when the invitee accepts
        member_id=data.member_id or email,
        role=TeamRole(data.role),
    )
    return _member_out(member)


@router.delete("/{member_id}", status_code=204)
async def remove_member(
    member_id: str,
    storage: Storage = Depends(get_storage),
    user: CurrentUser = Depends(get_current_user),
):
    await storage.delete_team_member(user.id, member_id)
