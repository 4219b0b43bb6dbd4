# drive.py — Google Drive v3 file source
# Read-only lookups over the Drive REST API with a bearer access token.
# The token is read on every call; refreshing it is the deployment's job.

import os
import logging
from dataclasses import dataclass
from typing import Optional, List, Callable, Dict, Any

import httpx

from errors import DriveError

logger = logging.getLogger("digital-coo.drive")

DRIVE_API = "https://www.googleapis.com/drive/v3"
FOLDER_MIME = "application/vnd.google-apps.folder"
GOOGLE_DOC_MIME = "application/vnd.google-apps.document"
FILE_FIELDS = "files(id, name, mimeType, size, modifiedTime)"


@dataclass
class FileMeta:
    id: str
    name: str
    mime_type: Optional[str] = None
    size: Optional[int] = None
    modified_time: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "FileMeta":
        size = data.get("size")
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            mime_type=data.get("mimeType"),
            size=int(size) if size is not None else None,
            modified_time=data.get("modifiedTime"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "mime_type": self.mime_type,
            "size": self.size,
            "modified_time": self.modified_time,
        }


def _quote(value: str) -> str:
    """Escape a literal for the Drive query language."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


def _env_token() -> str:
    return os.getenv("GOOGLE_DRIVE_ACCESS_TOKEN", "")


class GoogleDriveSource:

    def __init__(
        self,
        token_provider: Callable[[], str] = _env_token,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.token_provider = token_provider
        self.http = http_client or httpx.AsyncClient(timeout=30)

    async def aclose(self):
        await self.http.aclose()

    def _headers(self) -> Dict[str, str]:
        token = self.token_provider()
        if not token:
            raise DriveError("Google Drive not connected")
        return {"Authorization": f"Bearer {token}"}

    async def _get(self, path: str, params: Dict[str, str]) -> httpx.Response:
        try:
            resp = await self.http.get(f"{DRIVE_API}{path}", params=params, headers=self._headers())
            resp.raise_for_status()
            return resp
        except httpx.HTTPStatusError as e:
            logger.warning(f"Drive request {path} failed: HTTP {e.response.status_code}")
            raise DriveError(f"Google Drive returned HTTP {e.response.status_code}")
        except httpx.HTTPError as e:
            logger.warning(f"Drive request {path} failed: {e}")
            raise DriveError(f"Google Drive request failed: {e}")

    async def _list(self, query: str, order_by: Optional[str] = None) -> List[FileMeta]:
        params = {"q": query, "fields": FILE_FIELDS}
        if order_by:
            params["orderBy"] = order_by
        resp = await self._get("/files", params)
        return [FileMeta.from_api(f) for f in resp.json().get("files", [])]

    async def find_folder(self, name: str) -> Optional[FileMeta]:
        folders = await self._list(
            f"name='{_quote(name)}' and mimeType='{FOLDER_MIME}' and trashed=false"
        )
        return folders[0] if folders else None

    async def list_files(self, folder: FileMeta) -> List[FileMeta]:
        return await self._list(
            f"'{_quote(folder.id)}' in parents and trashed=false",
            order_by="modifiedTime desc",
        )

    async def find_file(self, folder: FileMeta, name: str) -> Optional[FileMeta]:
        files = await self._list(
            f"'{_quote(folder.id)}' in parents and name='{_quote(name)}' and trashed=false"
        )
        return files[0] if files else None

    async def get_content(self, file: FileMeta) -> str:
        if file.mime_type == GOOGLE_DOC_MIME:
            resp = await self._get(f"/files/{file.id}/export", {"mimeType": "text/plain"})
        else:
            resp = await self._get(f"/files/{file.id}", {"alt": "media"})
        return resp.text
