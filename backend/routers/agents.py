# routers/agents.py — Agent library CRUD
from typing import Optional, Dict, Any, Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from auth import get_current_user, CurrentUser
from models import Agent
from services import get_storage
from storage import Storage

router = APIRouter(prefix="/api/v1/agents", tags=["Agents"])

AgentTypeValue = Literal["prompt", "script", "automation"]


class AgentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    type: AgentTypeValue = "prompt"
    created_by: Literal["user", "digital_coo"] = "user"
    prompt: Optional[str] = Field(None, max_length=50000)
    script: Optional[str] = Field(None, max_length=200000)
    readme: Optional[str] = Field(None, max_length=50000)
    configuration: Optional[Dict[str, Any]] = None
    google_drive_file_id: Optional[str] = None
    is_active: bool = True


class AgentUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    type: Optional[AgentTypeValue] = None
    prompt: Optional[str] = Field(None, max_length=50000)
    script: Optional[str] = Field(None, max_length=200000)
    readme: Optional[str] = Field(None, max_length=50000)
    configuration: Optional[Dict[str, Any]] = None
    google_drive_file_id: Optional[str] = None
    is_active: Optional[bool] = None


def _agent_out(a: Agent) -> dict:
    return {
        "id": a.id,
        "name": a.name,
        "description": a.description,
        "type": a.type.value if hasattr(a.type, "value") else a.type,
        "created_by": a.created_by.value if hasattr(a.created_by, "value") else a.created_by,
        "prompt": a.prompt,
        "script": a.script,
        "readme": a.readme,
        "configuration": a.configuration,
        "usage_count": a.usage_count or 0,
        "google_drive_file_id": a.google_drive_file_id,
        "is_active": a.is_active,
        "created_at": a.created_at.isoformat() if a.created_at else None,
        "updated_at": a.updated_at.isoformat() if a.updated_at else None,
    }


@router.get("")
async def list_agents(
    storage: Storage = Depends(get_storage),
    user: CurrentUser = Depends(get_current_user),
):
    return [_agent_out(a) for a in await storage.list_agents(user.id)]


@router.post("", status_code=201)
async def create_agent(
    data: AgentCreate,
    storage: Storage = Depends(get_storage),
    user: CurrentUser = Depends(get_current_user),
):
    agent = await storage.create_agent(user.id, **data.model_dump())
    await storage.log_activity(
        user.id, "agent_created", f"Created agent: {agent.name}", "agent", agent.id,
    )
    return _agent_out(agent)


@router.get("/{agent_id}")
async def get_agent(
    agent_id: str,
    storage: Storage = Depends(get_storage),
    user: CurrentUser = Depends(get_current_user),
):
    return _agent_out(await storage.get_agent(user.id, agent_id))


@router.put("/{agent_id}")
async def update_agent(
    agent_id: str,
    data: AgentUpdate,
    storage: Storage = Depends(get_storage),
    user: CurrentUser = Depends(get_current_user),
):
    agent = await storage.get_agent(user.id, agent_id)
    changes = {
        k: v for k, v in data.model_dump(exclude_unset=True).items()
        if v is not None or k not in ("name", "type", "is_active")
    }
    return _agent_out(await storage.update_agent(agent, changes))


@router.delete("/{agent_id}", status_code=204)
async def delete_agent(
    agent_id: str,
    storage: Storage = Depends(get_storage),
    user: CurrentUser = Depends(get_current_user),
):
    await storage.delete_agent(user.id, agent_id)
