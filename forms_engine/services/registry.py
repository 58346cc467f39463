"""Form model registry.

Models are built on first request and cached per ``(slug, form state,
preview)``. A cached model is rebuilt when the metadata ``updatedAt`` for its
state changes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

from forms_engine.errors import NotFound
from forms_engine.logic.form_model import FormModel
from forms_engine.logic.helpers import PREVIEW_PATH_PREFIX, check_email_address_for_live_form_submission
from forms_engine.models.metadata import FormMetadata, FormState

logger = logging.getLogger(__name__)


@dataclass
class RegistryEntry:
    model: FormModel
    updated_at: Optional[datetime]


class FormModelRegistry:
    def __init__(self, services: Any, controllers: Optional[Mapping[str, type]] = None, prefix: str = "") -> None:
        self.services = services
        self.controllers = controllers
        self.prefix = prefix.rstrip("/")
        self._entries: dict[tuple[str, FormState, bool], RegistryEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def base_path(self, slug: str, form_state: FormState, is_preview: bool) -> str:
        if is_preview:
            return f"{self.prefix}/{PREVIEW_PATH_PREFIX}/{form_state.value}/{slug}".lstrip("/")
        return f"{self.prefix}/{slug}".lstrip("/")

    async def get_model(self, slug: str, form_state: FormState, is_preview: bool) -> tuple[FormModel, FormMetadata]:
        forms_service = self.services.forms_service
        metadata = await forms_service.get_form_metadata(slug)
        version = metadata.version_for(form_state)
        if version is None:
            raise NotFound(f"No '{form_state.value}' state for form metadata {metadata.id}")

        key = (slug, form_state, is_preview)
        entry = self._entries.get(key)
        if entry is not None and entry.updated_at == version.updated_at:
            entry.model.metadata = metadata
            return entry.model, metadata

        logger.info("form_model_loading id=%s slug=%s state=%s", metadata.id, slug, form_state.value)
        definition = await forms_service.get_form_definition(metadata.id, form_state)
        if not definition:
            raise NotFound(f"No definition found for form metadata {metadata.id} ({slug}) {form_state.value}")

        output_email = definition.get("outputEmail") if isinstance(definition, Mapping) else None
        check_email_address_for_live_form_submission(metadata.notification_email or output_email, is_preview)

        model = FormModel(
            definition,
            base_path=self.base_path(slug, form_state, is_preview),
            services=self.services,
            controllers=self.controllers,
            metadata=metadata,
            form_state=form_state,
            is_preview=is_preview,
            designer_url=self.services.config.designer_url,
        )
        self._entries[key] = RegistryEntry(model, version.updated_at)
        if entry is not None:
            logger.info("form_model_evicted slug=%s state=%s", slug, form_state.value)
        return model, metadata

    def clear(self) -> None:
        self._entries.clear()


__all__ = ["FormModelRegistry", "RegistryEntry"]
