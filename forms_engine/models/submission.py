"""Transport models shared between the engine and its collaborators."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class FormSubmissionError(BaseModel):
    """A single field-level validation failure rendered inline on a page."""

    path: list[str]
    href: str
    name: str
    text: str
    context: dict[str, Any] = Field(default_factory=dict)


class FileState(str, Enum):
    PENDING = "pending"
    COMPLETE = "complete"
    REJECTED = "rejected"


class UploadedFile(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    file_id: str = Field(alias="fileId")
    filename: str
    content_length: int = Field(default=0, alias="contentLength")
    file_status: FileState = Field(default=FileState.COMPLETE, alias="fileStatus")
    error_message: Optional[str] = Field(default=None, alias="errorMessage")


class UploadStatus(BaseModel):
    """Status of an upload as reported by the upload service."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    upload_status: str = Field(alias="uploadStatus")
    form: dict[str, Any] = Field(default_factory=dict)
    number_of_rejected_files: int = Field(default=0, alias="numberOfRejectedFiles")


class SubmitResponsePayload(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    message: str = "Submit completed"
    result: dict[str, Any] = Field(default_factory=lambda: {"files": {"main": "", "repeaters": {}}})


__all__ = [
    "FileState",
    "FormSubmissionError",
    "SubmitResponsePayload",
    "UploadStatus",
    "UploadedFile",
]
