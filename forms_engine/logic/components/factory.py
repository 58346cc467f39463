"""Dispatch from definition ``type`` to component class."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from forms_engine.errors import DefinitionError
from forms_engine.logic.components.address import UkAddressField
from forms_engine.logic.components.base import ComponentBase
from forms_engine.logic.components.content import Details, Html, InsetText, List, Markdown
from forms_engine.logic.components.dates import DatePartsField, MonthYearField
from forms_engine.logic.components.file_upload import FileUploadField
from forms_engine.logic.components.inputs import (
    DeclarationField,
    EmailAddressField,
    MultilineTextField,
    NumberField,
    TelephoneNumberField,
    TextField,
)
from forms_engine.logic.components.kinds import ComponentKind
from forms_engine.logic.components.lists import (
    AutocompleteField,
    CheckboxesField,
    RadiosField,
    SelectField,
    YesNoField,
)
from forms_engine.logic.components.location import (
    EastingNorthingField,
    LatLongField,
    NationalGridFieldNumberField,
    OsGridRefField,
)
from forms_engine.models.definition import ComponentDef

if TYPE_CHECKING:
    from forms_engine.logic.form_model import FormModel

COMPONENT_TYPES: dict[ComponentKind, type[ComponentBase]] = {
    cls.kind: cls
    for cls in (
        TextField,
        MultilineTextField,
        EmailAddressField,
        TelephoneNumberField,
        NumberField,
        DatePartsField,
        MonthYearField,
        DeclarationField,
        UkAddressField,
        FileUploadField,
        RadiosField,
        CheckboxesField,
        SelectField,
        AutocompleteField,
        YesNoField,
        EastingNorthingField,
        LatLongField,
        OsGridRefField,
        NationalGridFieldNumberField,
        Html,
        Markdown,
        InsetText,
        Details,
        List,
    )
}


def component_class(type_name: str) -> type[ComponentBase]:
    try:
        return COMPONENT_TYPES[ComponentKind(type_name)]
    except ValueError:
        raise DefinitionError(f"Component type {type_name} does not exist") from None


def create_component(
    definition: ComponentDef,
    model: Optional[FormModel] = None,
    page: Any = None,
    parent: Optional[ComponentBase] = None,
) -> ComponentBase:
    cls = component_class(definition.type)
    return cls(definition, model=model, page=page, parent=parent)


__all__ = ["COMPONENT_TYPES", "component_class", "create_component"]
