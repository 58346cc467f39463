"""External collaborators of the engine.

Controllers reach them through ``FormModel.services``; every member can be
swapped for another implementation with the same methods.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional

if TYPE_CHECKING:
    from forms_engine.config import AppConfig
    from forms_engine.services.cache_service import CacheService
    from forms_engine.services.forms_service import FormsService
    from forms_engine.services.output_service import OutputService
    from forms_engine.services.submission_service import FormSubmissionService
    from forms_engine.services.upload_service import UploadService

SessionPersister = Callable[[dict, Any], Optional[Awaitable[None]]]


@dataclass
class EngineServices:
    config: AppConfig
    cache_service: CacheService
    forms_service: FormsService
    output_service: OutputService
    submission_service: FormSubmissionService
    upload_service: UploadService
    session_persister: Optional[SessionPersister] = None


__all__ = ["EngineServices", "SessionPersister"]
