"""Form metadata and definition sources.

``LocalFormsService`` serves definitions from JSON or YAML files on disk and
uses each file's modification time as its ``updatedAt`` so edited files are
picked up without a restart. ``HttpFormsService`` talks to a forms manager
API over httpx.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Protocol

import httpx
import yaml

from forms_engine.errors import DefinitionError, ExternalServiceError, NotFound
from forms_engine.models.metadata import FormMetadata, FormState, FormVersionMetadata

logger = logging.getLogger(__name__)

DEFINITION_SUFFIXES = (".json", ".yaml", ".yml")


class FormsService(Protocol):
    async def get_form_metadata(self, slug: str) -> FormMetadata: ...

    async def get_form_definition(self, form_id: str, state: FormState) -> dict[str, Any]: ...


def read_definition_file(path: Path) -> dict[str, Any]:
    suffix = path.suffix.lower()
    try:
        text = path.read_text(encoding="utf-8")
        if suffix == ".json":
            definition = json.loads(text)
        elif suffix in (".yaml", ".yml"):
            definition = yaml.safe_load(text)
        else:
            raise DefinitionError(f"Invalid file extension '{suffix}'")
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise DefinitionError(f"Could not parse form definition {path.name}: {exc}") from exc
    if not isinstance(definition, dict):
        raise DefinitionError(f"Form definition {path.name} must be an object")
    return definition


class LocalFormsService:
    def __init__(self, forms_dir: str | Path, notification_email: Optional[str] = None) -> None:
        self.forms_dir = Path(forms_dir)
        self.notification_email = notification_email
        self._files: dict[str, Path] = {}
        self._metadata: dict[str, dict[str, Any]] = {}

    def add_form(self, path: str | Path, metadata: Optional[dict[str, Any]] = None) -> FormMetadata:
        """Register a definition file, optionally with explicit metadata."""
        path = Path(path)
        meta = dict(metadata or {})
        slug = meta.setdefault("slug", path.stem)
        meta.setdefault("id", slug)
        self._files[meta["id"]] = path
        self._metadata[slug] = meta
        logger.info("local_form_added slug=%s path=%s", slug, path)
        return self._build_metadata(slug)

    def _discover(self, slug: str) -> None:
        if slug in self._metadata or not self.forms_dir.is_dir():
            return
        for suffix in DEFINITION_SUFFIXES:
            candidate = self.forms_dir / f"{slug}{suffix}"
            if candidate.is_file():
                self.add_form(candidate)
                return

    def _build_metadata(self, slug: str) -> FormMetadata:
        meta = self._metadata[slug]
        path = self._files[meta["id"]]
        updated_at = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
        version = FormVersionMetadata(createdAt=updated_at, updatedAt=updated_at)
        values = {
            "title": meta.get("title") or slug.replace("-", " ").capitalize(),
            "notificationEmail": self.notification_email,
            "draft": version,
            "live": version,
            **meta,
        }
        return FormMetadata.model_validate(values)

    async def get_form_metadata(self, slug: str) -> FormMetadata:
        self._discover(slug)
        if slug not in self._metadata:
            raise NotFound(f"Form metadata '{slug}' not found")
        return self._build_metadata(slug)

    async def get_form_definition(self, form_id: str, state: FormState) -> dict[str, Any]:
        path = self._files.get(form_id)
        if path is None or not path.is_file():
            raise NotFound(f"Form definition '{form_id}' not found")
        return read_definition_file(path)


class HttpFormsService:
    def __init__(self, base_url: str, client: Optional[httpx.AsyncClient] = None, timeout: float = 10.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def _get_json(self, url: str) -> Any:
        try:
            response = await self.client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == 404:
                raise NotFound(f"Not found: {url}") from exc
            logger.error("forms_api_error url=%s status=%s", url, exc.response.status_code, exc_info=True)
            raise ExternalServiceError(f"Forms API returned {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            logger.error("forms_api_unreachable url=%s", url, exc_info=True)
            raise ExternalServiceError("Forms API unreachable") from exc
        return response.json()

    async def get_form_metadata(self, slug: str) -> FormMetadata:
        payload = await self._get_json(f"{self.base_url}/forms/slug/{slug}")
        return FormMetadata.model_validate(payload)

    async def get_form_definition(self, form_id: str, state: FormState) -> dict[str, Any]:
        suffix = "/draft" if state is FormState.DRAFT else ""
        return await self._get_json(f"{self.base_url}/forms/{form_id}/definition{suffix}")


__all__ = ["FormsService", "HttpFormsService", "LocalFormsService", "read_definition_file"]
