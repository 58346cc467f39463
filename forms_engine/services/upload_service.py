"""File upload status service.

Uploads are initiated for a page and completed out of band by the uploader;
the engine only polls for status.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Optional, Protocol

import httpx

from forms_engine.errors import ExternalServiceError
from forms_engine.models.submission import FileState, UploadStatus

logger = logging.getLogger(__name__)

READY = "ready"
PENDING = "pending"
INITIATED = "initiated"


class UploadService(Protocol):
    async def initiate_upload(self, form_path: str, retrieval_key: Optional[str] = None) -> dict[str, Any]: ...

    async def get_upload_status(self, upload_id: str) -> Optional[UploadStatus]: ...


class InMemoryUploadService:
    def __init__(self, base_url: str = "/upload") -> None:
        self.base_url = base_url
        self.statuses: dict[str, UploadStatus] = {}

    async def initiate_upload(self, form_path: str, retrieval_key: Optional[str] = None) -> dict[str, Any]:
        upload_id = str(uuid.uuid4())
        self.statuses[upload_id] = UploadStatus(uploadStatus=INITIATED)
        logger.info("upload_initiated upload_id=%s path=%s", upload_id, form_path)
        return {
            "uploadId": upload_id,
            "uploadUrl": f"{self.base_url}/{upload_id}",
            "statusUrl": f"/upload-status/{upload_id}",
        }

    def complete(
        self,
        upload_id: str,
        file_id: str,
        filename: str,
        content_length: int = 0,
        file_status: FileState = FileState.COMPLETE,
    ) -> UploadStatus:
        """Record the uploader's callback for ``upload_id``."""
        status = UploadStatus(
            uploadStatus=READY,
            form={
                "file": {
                    "fileId": file_id,
                    "filename": filename,
                    "contentLength": content_length,
                    "fileStatus": file_status.value,
                }
            },
            numberOfRejectedFiles=1 if file_status is FileState.REJECTED else 0,
        )
        self.statuses[upload_id] = status
        return status

    async def get_upload_status(self, upload_id: str) -> Optional[UploadStatus]:
        return self.statuses.get(upload_id)


class HttpUploadService:
    def __init__(self, base_url: str, client: Optional[httpx.AsyncClient] = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.AsyncClient(timeout=10.0)

    async def initiate_upload(self, form_path: str, retrieval_key: Optional[str] = None) -> dict[str, Any]:
        try:
            response = await self.client.post(
                f"{self.base_url}/initiate",
                json={"redirect": form_path, "metadata": {"retrievalKey": retrieval_key}},
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("upload_initiate_failed path=%s", form_path, exc_info=True)
            raise ExternalServiceError("Upload service unavailable") from exc
        return response.json()

    async def get_upload_status(self, upload_id: str) -> Optional[UploadStatus]:
        try:
            response = await self.client.get(f"{self.base_url}/status/{upload_id}")
            if response.status_code == 404:
                return None
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("upload_status_failed upload_id=%s", upload_id, exc_info=True)
            raise ExternalServiceError("Upload service unavailable") from exc
        return UploadStatus.model_validate(response.json())


__all__ = ["HttpUploadService", "INITIATED", "InMemoryUploadService", "PENDING", "READY", "UploadService"]
