"""
Shared fixtures: an in-memory stand-in for the Google Sheets, Drive and
OAuth endpoints, served through httpx.MockTransport.
"""
from __future__ import annotations

import json
import re
from typing import Dict, List, Optional

import httpx
import pytest

from app.core.google_auth import GoogleClientConfig
from app.services.drive import DriveClient
from app.services.release_store import ReleaseStore
from app.services.sheets import SheetsClient

SPREADSHEET_ID = "sheet-1"
SHEET_NAME = "Releases"
SHEET_GID = 123456
FOLDER_ID = "folder-1"
ACCESS_TOKEN = "test-access-token"

HEADER = [
    "ID", "Timestamp", "Title", "Artist", "Cover", "Audio",
    "UPC", "ISRC", "Release Date", "Status",
]


def google_error(status_code: int, message: str) -> httpx.Response:
    return httpx.Response(
        status_code,
        json={"error": {"code": status_code, "message": message, "status": "ERROR"}},
    )


class FakeGoogle:
    """Minimal Sheets/Drive/OAuth backend keeping rows in memory."""

    def __init__(self, rows: Optional[List[List[str]]] = None):
        self.header = list(HEADER)
        self.rows: List[List[str]] = [list(r) for r in (rows or [])]
        self.uploads: List[Dict] = []
        self.requests: List[httpx.Request] = []
        # operation name -> status code (or "transport") to fail with
        self.failures: Dict[str, object] = {}
        self.refresh_tokens = {"good-refresh": "refreshed-access-token"}

    # --- helpers for tests ---

    def operations(self) -> List[str]:
        return [self._operation(r) for r in self.requests]

    def writes(self) -> List[str]:
        return [
            op for op in self.operations()
            if op in ("append", "write", "batch_update", "upload")
        ]

    # --- routing ---

    @staticmethod
    def _operation(request: httpx.Request) -> str:
        host = request.url.host
        path = request.url.path
        if host == "oauth2.googleapis.com":
            return "token"
        if host == "www.googleapis.com" and path.startswith("/upload/drive/v3/files"):
            return "upload"
        if request.method == "POST" and path.endswith(":append"):
            return "append"
        if request.method == "POST" and path.endswith(":batchUpdate"):
            return "batch_update"
        if "/values/" in path and request.method == "PUT":
            return "write"
        if "/values/" in path and request.method == "GET":
            return "read"
        if request.method == "GET":
            return "metadata"
        return "unknown"

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        operation = self._operation(request)

        failure = self.failures.get(operation)
        if failure == "transport":
            raise httpx.ConnectError("connection refused", request=request)
        if failure is not None:
            return google_error(int(failure), f"simulated {operation} failure")

        if operation == "token":
            return self._token(request)

        if request.headers.get("Authorization") != f"Bearer {ACCESS_TOKEN}":
            return google_error(401, "Request is missing required authentication credential.")

        if operation == "upload":
            return self._upload(request)

        if f"/v4/spreadsheets/{SPREADSHEET_ID}" not in request.url.path:
            return google_error(404, "Requested entity was not found.")

        if operation in ("read", "append", "write"):
            range_spec = self._values_range(request)
            tab = range_spec.rpartition("!")[0].strip("'").replace("''", "'")
            if tab != SHEET_NAME:
                return google_error(400, f"Unable to parse range: {range_spec}")

        if operation == "read":
            return httpx.Response(200, json={"range": f"{SHEET_NAME}!A2:J", "values": [list(r) for r in self.rows]})
        if operation == "append":
            body = json.loads(request.content)
            self.rows.append(list(body["values"][0]))
            return httpx.Response(200, json={"updates": {"updatedRows": 1}})
        if operation == "write":
            body = json.loads(request.content)
            row_number = int(re.search(r"!A(\d+):J\d+$", body["range"]).group(1))
            self.rows[row_number - 2] = list(body["values"][0])
            return httpx.Response(200, json={"updatedRows": 1})
        if operation == "metadata":
            return httpx.Response(
                200,
                json={"sheets": [
                    {"properties": {"sheetId": 0, "title": "Summary"}},
                    {"properties": {"sheetId": SHEET_GID, "title": SHEET_NAME}},
                ]},
            )
        if operation == "batch_update":
            body = json.loads(request.content)
            dimension = body["requests"][0]["deleteDimension"]["range"]
            assert dimension["sheetId"] == SHEET_GID
            # Structural indices count the header as row 0
            sheet = [self.header] + self.rows
            del sheet[dimension["startIndex"]:dimension["endIndex"]]
            self.header, self.rows = sheet[0], sheet[1:]
            return httpx.Response(200, json={"replies": [{}]})

        return google_error(400, f"unexpected request {request.method} {request.url}")

    @staticmethod
    def _values_range(request: httpx.Request) -> str:
        range_spec = request.url.path.split("/values/", 1)[1]
        return range_spec[: -len(":append")] if range_spec.endswith(":append") else range_spec

    def _upload(self, request: httpx.Request) -> httpx.Response:
        content_type = request.headers["Content-Type"]
        boundary = content_type.split("boundary=")[1]
        parts = request.content.split(f"--{boundary}".encode())
        metadata = json.loads(parts[1].split(b"\r\n\r\n", 1)[1].strip())
        media_head, media_body = parts[2].split(b"\r\n\r\n", 1)
        file_id = f"drive-file-{len(self.uploads) + 1:02d}-xxxxxxxxxxxxxxxxxx"
        self.uploads.append({
            "id": file_id,
            "metadata": metadata,
            "mime_type": media_head.decode().split("Content-Type: ")[1].strip(),
            "content": media_body[:-2],  # strip trailing CRLF before the boundary
        })
        return httpx.Response(200, json={"id": file_id})

    def _token(self, request: httpx.Request) -> httpx.Response:
        form = dict(pair.split("=", 1) for pair in request.content.decode().split("&"))
        access_token = self.refresh_tokens.get(form.get("refresh_token", ""))
        if not access_token:
            return httpx.Response(400, json={"error": "invalid_grant"})
        return httpx.Response(200, json={"access_token": access_token, "expires_in": 3599})


def make_row(
    release_id: str,
    title: str,
    artist: str = "Artist",
    release_date: str = "2025-01-10",
    status: str = "Pending",
    cover: str = "",
    audio: str = "",
    created_at: str = "2025-01-01T09:30:00.000Z",
    upc: str = "",
    isrc: str = "",
) -> List[str]:
    return [release_id, created_at, title, artist, cover, audio, upc, isrc, release_date, status]


@pytest.fixture
def google() -> FakeGoogle:
    return FakeGoogle()


@pytest.fixture
def client_config(google: FakeGoogle) -> GoogleClientConfig:
    return GoogleClientConfig(
        access_token=ACCESS_TOKEN,
        transport=httpx.MockTransport(google.handler),
    )


@pytest.fixture
def store(client_config: GoogleClientConfig) -> ReleaseStore:
    return ReleaseStore(
        sheets=SheetsClient(client_config),
        drive=DriveClient(client_config),
        spreadsheet_id=SPREADSHEET_ID,
        sheet_name=SHEET_NAME,
        folder_id=FOLDER_ID,
    )
