"""Component kinds known to the engine."""

from __future__ import annotations

from enum import Enum


class ComponentKind(str, Enum):
    TEXT_FIELD = "TextField"
    MULTILINE_TEXT_FIELD = "MultilineTextField"
    EMAIL_ADDRESS_FIELD = "EmailAddressField"
    TELEPHONE_NUMBER_FIELD = "TelephoneNumberField"
    NUMBER_FIELD = "NumberField"
    DATE_PARTS_FIELD = "DatePartsField"
    MONTH_YEAR_FIELD = "MonthYearField"
    DECLARATION_FIELD = "DeclarationField"
    UK_ADDRESS_FIELD = "UkAddressField"
    FILE_UPLOAD_FIELD = "FileUploadField"
    RADIOS_FIELD = "RadiosField"
    CHECKBOXES_FIELD = "CheckboxesField"
    SELECT_FIELD = "SelectField"
    AUTOCOMPLETE_FIELD = "AutocompleteField"
    YES_NO_FIELD = "YesNoField"
    EASTING_NORTHING_FIELD = "EastingNorthingField"
    LAT_LONG_FIELD = "LatLongField"
    OS_GRID_REF_FIELD = "OsGridRefField"
    NATIONAL_GRID_FIELD_NUMBER_FIELD = "NationalGridFieldNumberField"
    HTML = "Html"
    MARKDOWN = "Markdown"
    INSET_TEXT = "InsetText"
    DETAILS = "Details"
    LIST = "List"


__all__ = ["ComponentKind"]
