"""Form metadata as returned by a forms manager.

Only the fields the engine reads are modelled; everything else is preserved.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class FormState(str, Enum):
    DRAFT = "draft"
    LIVE = "live"


class FormVersionMetadata(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")


class FormMetadata(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str
    slug: str
    title: str = ""
    organisation: Optional[str] = None
    team_name: Optional[str] = Field(default=None, alias="teamName")
    team_email: Optional[str] = Field(default=None, alias="teamEmail")
    notification_email: Optional[str] = Field(default=None, alias="notificationEmail")
    submission_guidance: Optional[str] = Field(default=None, alias="submissionGuidance")
    draft: Optional[FormVersionMetadata] = None
    live: Optional[FormVersionMetadata] = None

    def version_for(self, state: FormState) -> Optional[FormVersionMetadata]:
        return self.live if state == FormState.LIVE else self.draft

    def updated_at_for(self, state: FormState) -> Optional[datetime]:
        version = self.version_for(state)
        return version.updated_at if version else None


__all__ = ["FormMetadata", "FormState", "FormVersionMetadata"]
