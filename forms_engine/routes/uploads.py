"""Upload status polling used by file upload pages."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request

from forms_engine.errors import NotFound

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/upload-status/{upload_id}")
async def upload_status(request: Request, upload_id: str) -> dict:
    upload_service = request.app.state.services.upload_service
    status = await upload_service.get_upload_status(upload_id)
    if status is None:
        raise NotFound(f"No upload found for {upload_id}")
    logger.info("upload_status_polled upload_id=%s status=%s", upload_id, status.upload_status)
    return status.model_dump(mode="json", by_alias=True)


__all__ = ["router"]
