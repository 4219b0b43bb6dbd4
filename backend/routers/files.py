# routers/files.py — Documents: upload, master flag, social post generation
import logging
from typing import Optional, Literal

from fastapi import APIRouter, Depends, Query, UploadFile, Form, File as FastAPIFile, Response
from pydantic import BaseModel

from auth import get_current_user, CurrentUser
from errors import ValidationError
from models import File, FileKind, FileSource
from pipeline import TaskPipeline
from routers.social_posts import _post_out
from services import get_pipeline, get_storage
from storage import Storage

logger = logging.getLogger("digital-coo.files")

router = APIRouter(prefix="/api/v1/files", tags=["Files"])

MAX_UPLOAD_BYTES = 10 * 1024 * 1024
FileKindValue = Literal["input", "output", "master_document"]


class MasterFlag(BaseModel):
    is_master_document: bool


def _file_out(f: File, include_content: bool = False) -> dict:
    out = {
        "id": f.id,
        "project_id": f.project_id,
        "name": f.name,
        "mime_type": f.mime_type,
        "size": f.size,
        "type": f.type.value if hasattr(f.type, "value") else f.type,
        "source": f.source.value if hasattr(f.source, "value") else f.source,
        "google_drive_id": f.google_drive_id,
        "google_drive_url": f.google_drive_url,
        "is_master_document": f.is_master_document,
        "processed_at": f.processed_at.isoformat() if f.processed_at else None,
        "created_at": f.created_at.isoformat() if f.created_at else None,
        "updated_at": f.updated_at.isoformat() if f.updated_at else None,
    }
    if include_content:
        out["content"] = f.content
    return out


# ============================================================
# LIST / GET
# ============================================================

@router.get("")
async def list_files(
    project_id: Optional[str] = Query(None),
    type: Optional[FileKindValue] = Query(None),
    is_master_document: Optional[bool] = Query(None),
    storage: Storage = Depends(get_storage),
    user: CurrentUser = Depends(get_current_user),
):
    files = await storage.list_files(
        user.id, project_id=project_id, file_type=type, is_master_document=is_master_document,
    )
    return [_file_out(f) for f in files]


@router.get("/{file_id}")
async def get_file(
    file_id: str,
    storage: Storage = Depends(get_storage),
    user: CurrentUser = Depends(get_current_user),
):
    return _file_out(await storage.get_file(user.id, file_id), include_content=True)


# ============================================================
# UPLOAD
# ============================================================

@router.post("/upload", status_code=201)
async def upload_file(
    file: UploadFile = FastAPIFile(...),
    project_id: Optional[str] = Form(None),
    type: FileKindValue = Form("input"),
    storage: Storage = Depends(get_storage),
    user: CurrentUser = Depends(get_current_user),
):
    data = await file.read()
    if len(data) > MAX_UPLOAD_BYTES:
        raise ValidationError(f"File exceeds {MAX_UPLOAD_BYTES // (1024 * 1024)}MB limit", field="file")

    kind = FileKind(type)
    record = await storage.create_file(
        user.id,
        project_id=project_id or None,
        name=file.filename or "upload",
        mime_type=file.content_type,
        size=len(data),
        type=kind,
        source=FileSource.UPLOAD,
        content=data.decode("utf-8", errors="replace"),
        is_master_document=kind == FileKind.MASTER_DOCUMENT,
    )
    logger.info(f"Stored upload {record.name} ({record.size} bytes) for user {user.id}")
    return _file_out(record)


# ============================================================
# MASTER FLAG / DELETE
# ============================================================

@router.patch("/{file_id}/master")
async def set_master_document(
    file_id: str,
    data: MasterFlag,
    storage: Storage = Depends(get_storage),
    user: CurrentUser = Depends(get_current_user),
):
    record = await storage.get_file(user.id, file_id)
    record = await storage.update_file(record, {"is_master_document": data.is_master_document})
    return _file_out(record)


@router.delete("/{file_id}", status_code=204)
async def delete_file(
    file_id: str,
    storage: Storage = Depends(get_storage),
    user: CurrentUser = Depends(get_current_user),
):
    await storage.delete_file(user.id, file_id)


# ============================================================
# GENERATE SOCIAL POSTS
# ============================================================

@router.post("/{file_id}/generate-posts")
async def generate_posts(
    file_id: str,
    response: Response,
    pipeline: TaskPipeline = Depends(get_pipeline),
    user: CurrentUser = Depends(get_current_user),
):
    outcome = await pipeline.generate_posts(user.id, file_id)
    if outcome.failures:
        response.headers["X-Failed-Platforms"] = ",".join(outcome.failures)
    return [_post_out(p) for p in outcome.posts]
