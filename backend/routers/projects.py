# routers/projects.py — Project CRUD
from typing import Optional, Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from auth import get_current_user, CurrentUser
from models import Project
from services import get_storage
from storage import Storage

router = APIRouter(prefix="/api/v1/projects", tags=["Projects"])

ProjectStatusValue = Literal["active", "completed", "archived"]


class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    status: ProjectStatusValue = "active"
    google_drive_folder_id: Optional[str] = None
    google_sheet_id: Optional[str] = None


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    status: Optional[ProjectStatusValue] = None
    google_drive_folder_id: Optional[str] = None
    google_sheet_id: Optional[str] = None


def _project_out(p: Project) -> dict:
    return {
        "id": p.id,
        "name": p.name,
        "description": p.description,
        "status": p.status.value if hasattr(p.status, "value") else p.status,
        "google_drive_folder_id": p.google_drive_folder_id,
        "google_sheet_id": p.google_sheet_id,
        "created_at": p.created_at.isoformat() if p.created_at else None,
        "updated_at": p.updated_at.isoformat() if p.updated_at else None,
    }


@router.get("")
async def list_projects(
    storage: Storage = Depends(get_storage),
    user: CurrentUser = Depends(get_current_user),
):
    return [_project_out(p) for p in await storage.list_projects(user.id)]


@router.post("", status_code=201)
async def create_project(
    data: ProjectCreate,
    storage: Storage = Depends(get_storage),
    user: CurrentUser = Depends(get_current_user),
):
    project = await storage.create_project(user.id, **data.model_dump())
    await storage.log_activity(
        user.id, "project_created", f"Created project: {project.name}", "project", project.id,
    )
    return _project_out(project)


@router.get("/{project_id}")
async def get_project(
    project_id: str,
    storage: Storage = Depends(get_storage),
    user: CurrentUser = Depends(get_current_user),
):
    return _project_out(await storage.get_project(user.id, project_id))


@router.put("/{project_id}")
async def update_project(
    project_id: str,
    data: ProjectUpdate,
    storage: Storage = Depends(get_storage),
    user: CurrentUser = Depends(get_current_user),
):
    project = await storage.get_project(user.id, project_id)
    changes = {
        k: v for k, v in data.model_dump(exclude_unset=True).items()
        if v is not None or k not in ("name", "status")
    }
    return _project_out(await storage.update_project(project, changes))


@router.delete("/{project_id}", status_code=204)
async def delete_project(
    project_id: str,
    storage: Storage = Depends(get_storage),
    user: CurrentUser = Depends(get_current_user),
):
    await storage.delete_project(user.id, project_id)
