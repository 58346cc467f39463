"""File upload pages.

Files are uploaded straight to the upload service. The page keeps the pending
upload under ``state["upload"][path]`` and, on every GET, polls its status and
moves a finished file into the FileUploadField's list before initiating the
next upload.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Mapping, Optional

from forms_engine.errors import DefinitionError, PageNotFound
from forms_engine.logic.components.file_upload import FileUploadField, file_details
from forms_engine.logic.helpers import FormAction, UPLOAD_KEY
from forms_engine.logic.pages.base import PageResult, QuestionPageController, Redirect, View
from forms_engine.services.upload_service import READY

if TYPE_CHECKING:
    from forms_engine.logic.form_context import FormContext, FormRequest
    from forms_engine.logic.form_model import FormModel
    from forms_engine.models.definition import PageDef

logger = logging.getLogger(__name__)


class FileUploadPageController(QuestionPageController):
    view_name = "file-upload"
    delete_view_name = "item-delete"

    def __init__(self, model: FormModel, page_def: PageDef) -> None:
        super().__init__(model, page_def)
        uploads = [c for c in self.collection.fields if isinstance(c, FileUploadField)]
        if len(uploads) != 1:
            raise DefinitionError(f"File upload page {self.path} needs exactly one FileUploadField")
        self.file_upload: FileUploadField = uploads[0]

    @property
    def accepts_page_payload(self) -> bool:
        return False

    def files(self, state: Mapping[str, Any]) -> list[dict[str, Any]]:
        return list(state.get(self.file_upload.name) or [])

    def pending_upload(self, state: Mapping[str, Any]) -> Optional[dict[str, Any]]:
        return (state.get(UPLOAD_KEY) or {}).get(self.path)

    async def refresh_upload(self, request: FormRequest, state: Mapping[str, Any]) -> dict[str, Any]:
        """Collect a finished upload and make sure a fresh one is pending."""
        upload_service = self.services.upload_service
        files = self.files(state)
        upload = self.pending_upload(state)
        if upload is not None:
            status = await upload_service.get_upload_status(upload["uploadId"])
            if status is None or status.upload_status != READY:
                return dict(state)
            entry = {"uploadId": upload["uploadId"], "status": status.model_dump(mode="json", by_alias=True)}
            if file_details(entry):
                files.insert(0, entry)
                logger.info("upload_collected path=%s upload_id=%s", self.path, upload["uploadId"])
        upload = await upload_service.initiate_upload(self.href, request.session_id)
        uploads = {**(state.get(UPLOAD_KEY) or {}), self.path: upload}
        return await self.merge_state(request, state, {self.file_upload.name: files, UPLOAD_KEY: uploads})

    def get_view_model(self, request, context, payload=None, errors=None) -> dict[str, Any]:
        view_model = super().get_view_model(request, context, payload, errors)
        upload = self.pending_upload(context.state) or {}
        view_model["formAction"] = upload.get("uploadUrl")
        view_model["uploadId"] = upload.get("uploadId")
        return view_model

    async def handle_get(self, request: FormRequest, context: FormContext) -> PageResult:
        if request.params.get("subpage") == "confirm-delete":
            entry = self.find_file(context.state, request.item_id)
            view_model = self.get_view_model(request, context, payload={}, errors=[])
            view_model["components"] = []
            view_model["pageTitle"] = f"Are you sure you want to remove {file_details(entry).get('filename')}?"
            return View(self.delete_view_name, view_model)
        state = await self.refresh_upload(request, context.state)
        context.state = state
        payload = {self.file_upload.name: self.files(state)}
        return View(self.view_name, self.get_view_model(request, context, payload=payload))

    def find_file(self, state: Mapping[str, Any], upload_id: Optional[str]) -> dict[str, Any]:
        entry = next((f for f in self.files(state) if f.get("uploadId") == upload_id), None)
        if entry is None:
            raise PageNotFound(f"No uploaded file {upload_id}")
        return entry

    async def handle_post(self, request: FormRequest, context: FormContext) -> PageResult:
        if request.params.get("subpage") == "confirm-delete":
            self.find_file(context.state, request.item_id)
            if str(request.payload.get("confirm", "")).lower() == "true":
                files = [f for f in self.files(context.state) if f.get("uploadId") != request.item_id]
                await self.merge_state(request, context.state, {self.file_upload.name: files})
                logger.info("upload_removed path=%s upload_id=%s", self.path, request.item_id)
            return Redirect(self.href)
        if request.payload.get("action") == FormAction.SAVE_AND_EXIT.value:
            return await self.save_and_exit(request, context)

        files = self.files(context.state)
        payload = {self.file_upload.name: files}
        _, errors = self.collection.validate(payload, context.relevant_state)
        if errors:
            return View(self.view_name, self.get_view_model(request, context, payload=payload, errors=errors), 400)
        await self.merge_state(request, context.state, payload)
        relevant_state = {**context.relevant_state, **payload}
        next_page = self.model.next_page(self, relevant_state)
        return self.proceed(request, next_page.path if next_page else self.get_next_path(context))


__all__ = ["FileUploadPageController"]
