"""
Google Drive client.

Only uploads are needed: files are created inside one folder and only the
returned file id is kept. Replaced or orphaned files are never removed.
"""
from __future__ import annotations

import json
import logging
import uuid

from app.core.exceptions import RemoteUnavailable
from app.services.google_api import GoogleApiClient

logger = logging.getLogger(__name__)

UPLOAD_URL = "https://www.googleapis.com/upload/drive/v3/files"


def _multipart_related(metadata: dict, content: bytes, mime_type: str) -> tuple[bytes, str]:
    """Encode a Drive multipart upload body (metadata part + media part)."""
    boundary = f"catalog-{uuid.uuid4().hex}"
    head = (
        f"--{boundary}\r\n"
        "Content-Type: application/json; charset=UTF-8\r\n\r\n"
        f"{json.dumps(metadata)}\r\n"
        f"--{boundary}\r\n"
        f"Content-Type: {mime_type}\r\n\r\n"
    ).encode("utf-8")
    tail = f"\r\n--{boundary}--\r\n".encode("utf-8")
    return head + content + tail, f"multipart/related; boundary={boundary}"


class DriveClient(GoogleApiClient):
    """Drive v3 uploads."""

    async def upload(
        self,
        content: bytes,
        mime_type: str,
        display_name: str,
        folder_id: str,
    ) -> str:
        """Create a file in the folder and return its Drive file id."""
        mime_type = mime_type or "application/octet-stream"
        body, content_type = _multipart_related(
            {"name": display_name, "parents": [folder_id]},
            content,
            mime_type,
        )
        logger.info(f"Uploading {display_name} ({len(content)} bytes) to Drive folder {folder_id}")

        data = await self._request(
            "POST",
            UPLOAD_URL,
            operation="drive.upload",
            params={"uploadType": "multipart", "fields": "id"},
            headers={"Content-Type": content_type},
            content=body,
        )

        file_id = data.get("id")
        if not file_id:
            raise RemoteUnavailable(
                f"Drive upload of {display_name} returned no file id: {data}",
                operation="drive.upload",
            )
        logger.info(f"Uploaded {display_name} to Drive with id {file_id}")
        return file_id
