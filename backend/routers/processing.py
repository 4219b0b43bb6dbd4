# routers/processing.py — Parse-only preview and bulk triage
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from auth import get_current_user, CurrentUser
from pipeline import TaskPipeline
from services import get_pipeline

router = APIRouter(prefix="/api/v1/processing", tags=["Processing"])


class ParseRequest(BaseModel):
    content: str = Field(..., max_length=500000)


@router.post("/parse-tasks")
async def parse_tasks(
    data: ParseRequest,
    pipeline: TaskPipeline = Depends(get_pipeline),
    user: CurrentUser = Depends(get_current_user),
):
    entries = await pipeline.parse_task_file(data.content)
    return {"tasks": [e.model_dump() for e in entries]}


@router.post("/triage-all")
async def triage_all(
    pipeline: TaskPipeline = Depends(get_pipeline),
    user: CurrentUser = Depends(get_current_user),
):
    return await pipeline.triage_all(user.id)
