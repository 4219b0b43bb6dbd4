# routers/tasks.py — Task CRUD, triage and execution
from datetime import datetime
from typing import Optional, Dict, Any, Literal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from auth import get_current_user, CurrentUser
from errors import ValidationError
from models import Task
from pipeline import TaskPipeline
from services import get_pipeline, get_storage
from storage import Storage

router = APIRouter(prefix="/api/v1/tasks", tags=["Tasks"])

CategoryValue = Literal["pending", "auto_execute", "delegate_agent", "human_required"]
StatusValue = Literal["pending", "in_progress", "completed", "failed", "cancelled"]
PriorityValue = Literal["low", "medium", "high", "urgent"]


# --- Schemas ---

class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = Field(None, max_length=20000)
    project_id: Optional[str] = None
    category: CategoryValue = "pending"
    priority: PriorityValue = "medium"
    assigned_agent_id: Optional[str] = None
    due_date: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = Field(None, max_length=20000)
    project_id: Optional[str] = None
    category: Optional[CategoryValue] = None
    status: Optional[StatusValue] = None
    priority: Optional[PriorityValue] = None
    assigned_agent_id: Optional[str] = None
    result: Optional[str] = None
    error_message: Optional[str] = None
    due_date: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


# --- Helpers ---

def _val(v):
    return v.value if hasattr(v, "value") else v


def _iso(dt):
    return dt.isoformat() if dt else None


def _task_out(t: Task) -> dict:
    return {
        "id": t.id,
        "project_id": t.project_id,
        "title": t.title,
        "description": t.description,
        "category": _val(t.category),
        "status": _val(t.status),
        "priority": _val(t.priority),
        "source_file": t.source_file,
        "assigned_agent_id": t.assigned_agent_id,
        "result": t.result,
        "error_message": t.error_message,
        "metadata": t.extra_data,
        "due_date": _iso(t.due_date),
        "completed_at": _iso(t.completed_at),
        "version": t.version,
        "created_at": _iso(t.created_at),
        "updated_at": _iso(t.updated_at),
    }


def _parse_due_date(value: Optional[str]):
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError("due_date must be an ISO 8601 timestamp", field="due_date")


def _task_fields(data: BaseModel, exclude_unset: bool) -> Dict[str, Any]:
    fields = data.model_dump(exclude_unset=exclude_unset)
    if "metadata" in fields:
        fields["extra_data"] = fields.pop("metadata")
    if "due_date" in fields:
        fields["due_date"] = _parse_due_date(fields["due_date"])
    return fields


# ============================================================
# CRUD
# ============================================================

@router.get("")
async def list_tasks(
    project_id: Optional[str] = Query(None),
    category: Optional[CategoryValue] = Query(None),
    status: Optional[StatusValue] = Query(None),
    storage: Storage = Depends(get_storage),
    user: CurrentUser = Depends(get_current_user),
):
    tasks = await storage.list_tasks(user.id, project_id=project_id, category=category, status=status)
    return [_task_out(t) for t in tasks]


@router.post("", status_code=201)
async def create_task(
    data: TaskCreate,
    pipeline: TaskPipeline = Depends(get_pipeline),
    user: CurrentUser = Depends(get_current_user),
):
    task = await pipeline.create_task(user.id, **_task_fields(data, exclude_unset=False))
    return _task_out(task)


@router.get("/{task_id}")
async def get_task(
    task_id: str,
    storage: Storage = Depends(get_storage),
    user: CurrentUser = Depends(get_current_user),
):
    return _task_out(await storage.get_task(user.id, task_id))


@router.put("/{task_id}")
async def update_task(
    task_id: str,
    data: TaskUpdate,
    pipeline: TaskPipeline = Depends(get_pipeline),
    user: CurrentUser = Depends(get_current_user),
):
    task = await pipeline.update_task(user.id, task_id, _task_fields(data, exclude_unset=True))
    return _task_out(task)


@router.delete("/{task_id}", status_code=204)
async def delete_task(
    task_id: str,
    storage: Storage = Depends(get_storage),
    user: CurrentUser = Depends(get_current_user),
):
    await storage.delete_task(user.id, task_id)


# ============================================================
# TRIAGE & EXECUTE
# ============================================================

@router.post("/{task_id}/triage")
async def triage_task(
    task_id: str,
    pipeline: TaskPipeline = Depends(get_pipeline),
    user: CurrentUser = Depends(get_current_user),
):
    result = await pipeline.triage(user.id, task_id)
    return result.model_dump()


@router.post("/{task_id}/execute")
async def execute_task(
    task_id: str,
    pipeline: TaskPipeline = Depends(get_pipeline),
    user: CurrentUser = Depends(get_current_user),
):
    outcome = await pipeline.execute(user.id, task_id)
    if outcome.success:
        return {"success": True, "result": outcome.result}
    return {"success": False, "error": outcome.error}
