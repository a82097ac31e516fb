from __future__ import annotations

import re
from urllib import parse as urlparse

from .base import FileStore, StoredFile
from .google_api import api_request_json, require_access_token


class DriveFileStore(FileStore):
    DRIVE_FILES_URL = "https://www.googleapis.com/drive/v3/files"

    def __init__(self, timeout_seconds: int = 8) -> None:
        self._timeout_seconds = max(1, timeout_seconds)

    def search(
        self,
        access_token: str,
        name: str,
        *,
        exact: bool,
        limit: int,
    ) -> list[StoredFile]:
        token = require_access_token(access_token)
        params = {
            "pageSize": str(max(1, limit)),
            "fields": "files(id,name,mimeType,modifiedTime)",
            "orderBy": "modifiedTime desc",
            "supportsAllDrives": "true",
            "includeItemsFromAllDrives": "true",
            "q": build_name_query(name, exact=exact),
        }
        payload = api_request_json(
            url=f"{self.DRIVE_FILES_URL}?{urlparse.urlencode(params)}",
            method="GET",
            access_token=token,
            timeout=self._timeout_seconds,
            service_name="Google Drive",
        )
        rows = payload.get("files", [])
        if not isinstance(rows, list):
            return []

        out: list[StoredFile] = []
        for row in rows:
            if not isinstance(row, dict):
                continue
            file_id = str(row.get("id") or "").strip()
            if not file_id:
                continue
            out.append(
                StoredFile(
                    file_id=file_id,
                    name=str(row.get("name") or "Untitled").strip(),
                    mime_type=str(row.get("mimeType") or "").strip(),
                )
            )
        return out[:limit]


def build_name_query(name: str, *, exact: bool) -> str:
    cleaned = (name or "").strip()
    safe = _escape(cleaned)
    if exact:
        return f"name = '{safe}' and trashed = false"
    terms = [_escape(term) for term in re.split(r"\s+", cleaned) if term]
    clauses = [f"name contains '{safe}'"]
    clauses.extend(f"name contains '{term}'" for term in terms if term != safe)
    return f"({' or '.join(clauses)}) and trashed = false"


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")
