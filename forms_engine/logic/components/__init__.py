"""Form components, collections and the component dispatch table."""

from forms_engine.logic.components.address import UkAddressField
from forms_engine.logic.components.base import ComponentBase, FormComponent
from forms_engine.logic.components.collection import ComponentCollection
from forms_engine.logic.components.composable import MAX_COMPOSITION_DEPTH, ComposableComponentCollection
from forms_engine.logic.components.content import Details, Html, InsetText, List, Markdown
from forms_engine.logic.components.dates import DatePartsField, MonthYearField
from forms_engine.logic.components.factory import COMPONENT_TYPES, component_class, create_component
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
    ListFormComponent,
    RadiosField,
    SelectField,
    YesNoField,
)
from forms_engine.logic.components.location import (
    EastingNorthingField,
    LatLongField,
    LocationFieldBase,
    NationalGridFieldNumberField,
    OsGridRefField,
)

__all__ = [
    "AutocompleteField",
    "COMPONENT_TYPES",
    "CheckboxesField",
    "ComponentBase",
    "ComponentCollection",
    "ComponentKind",
    "ComposableComponentCollection",
    "DatePartsField",
    "DeclarationField",
    "Details",
    "EastingNorthingField",
    "EmailAddressField",
    "FileUploadField",
    "FormComponent",
    "Html",
    "InsetText",
    "LatLongField",
    "List",
    "ListFormComponent",
    "LocationFieldBase",
    "MAX_COMPOSITION_DEPTH",
    "Markdown",
    "MonthYearField",
    "MultilineTextField",
    "NationalGridFieldNumberField",
    "NumberField",
    "OsGridRefField",
    "RadiosField",
    "SelectField",
    "TelephoneNumberField",
    "TextField",
    "UkAddressField",
    "YesNoField",
    "component_class",
    "create_component",
]
