"""Page controllers and the controller dispatch table."""

from __future__ import annotations

from typing import TYPE_CHECKING, Mapping, Optional

from forms_engine.errors import DefinitionError
from forms_engine.logic.components.kinds import ComponentKind
from forms_engine.logic.pages.base import PageController, PageResult, QuestionPageController, Redirect, View
from forms_engine.logic.pages.file_upload import FileUploadPageController
from forms_engine.logic.pages.question import StartPageController, StatusPageController, TerminalPageController
from forms_engine.logic.pages.repeat import RepeatPageController
from forms_engine.logic.pages.summary import SummaryPageController, SummaryPageWithConfirmationEmailController
from forms_engine.models.definition import ControllerType, PageDef

if TYPE_CHECKING:
    from forms_engine.logic.form_model import FormModel

PAGE_CONTROLLERS: dict[str, type[PageController]] = {
    ControllerType.START.value: StartPageController,
    ControllerType.QUESTION.value: QuestionPageController,
    ControllerType.SUMMARY.value: SummaryPageController,
    ControllerType.SUMMARY_WITH_CONFIRMATION_EMAIL.value: SummaryPageWithConfirmationEmailController,
    ControllerType.STATUS.value: StatusPageController,
    ControllerType.TERMINAL.value: TerminalPageController,
    ControllerType.REPEAT.value: RepeatPageController,
    ControllerType.FILE_UPLOAD.value: FileUploadPageController,
}


def controller_name(page_def: PageDef) -> str:
    """The controller a page uses, inferred when the definition omits it."""
    if page_def.controller is not None:
        return page_def.controller.value
    if page_def.repeat is not None:
        return ControllerType.REPEAT.value
    if page_def.path == "/summary":
        return ControllerType.SUMMARY.value
    if page_def.path == "/status":
        return ControllerType.STATUS.value
    if any(c.type == ComponentKind.FILE_UPLOAD_FIELD.value for c in page_def.components):
        return ControllerType.FILE_UPLOAD.value
    return ControllerType.QUESTION.value


def create_page_controller(
    model: FormModel,
    page_def: PageDef,
    controllers: Optional[Mapping[str, type[PageController]]] = None,
) -> PageController:
    name = controller_name(page_def)
    controller = (controllers or {}).get(name) or PAGE_CONTROLLERS.get(name)
    if controller is None:
        raise DefinitionError(f"Page controller {name} does not exist")
    return controller(model, page_def)


__all__ = [
    "FileUploadPageController",
    "PAGE_CONTROLLERS",
    "PageController",
    "PageResult",
    "QuestionPageController",
    "Redirect",
    "RepeatPageController",
    "StartPageController",
    "StatusPageController",
    "SummaryPageController",
    "SummaryPageWithConfirmationEmailController",
    "TerminalPageController",
    "View",
    "controller_name",
    "create_page_controller",
]
