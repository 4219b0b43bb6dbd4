# routers/drive.py — Google Drive browsing and task import
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from auth import get_current_user, CurrentUser
from pipeline import TaskPipeline
from routers.files import _file_out
from routers.tasks import _task_out
from services import get_pipeline

router = APIRouter(prefix="/api/v1/drive", tags=["Google Drive"])


class ImportRequest(BaseModel):
    folder_name: str = Field(..., max_length=500)
    file_name: str = Field(..., max_length=500)


@router.get("/folders/{folder_name}")
async def list_folder(
    folder_name: str,
    pipeline: TaskPipeline = Depends(get_pipeline),
    user: CurrentUser = Depends(get_current_user),
):
    return await pipeline.list_folder(folder_name)


@router.post("/import-tasks")
async def import_tasks(
    data: ImportRequest,
    pipeline: TaskPipeline = Depends(get_pipeline),
    user: CurrentUser = Depends(get_current_user),
):
    result = await pipeline.import_tasks(user.id, data.folder_name, data.file_name)
    return {
        "file": _file_out(result.file),
        "tasks": [_task_out(t) for t in result.tasks],
        "summary": result.summary,
    }
