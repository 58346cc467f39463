"""Pydantic models for declarative form definitions.

A definition is parsed once per form version and treated as immutable by the
engine. Unknown keys are kept (``extra="allow"``) so designer-only metadata
survives a round trip through the models.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Engine(str, Enum):
    V1 = "V1"
    V2 = "V2"


class ControllerType(str, Enum):
    START = "StartPageController"
    QUESTION = "QuestionPageController"
    SUMMARY = "SummaryPageController"
    SUMMARY_WITH_CONFIRMATION_EMAIL = "SummaryPageWithConfirmationEmailController"
    STATUS = "StatusPageController"
    TERMINAL = "TerminalPageController"
    REPEAT = "RepeatPageController"
    FILE_UPLOAD = "FileUploadPageController"


class _DefinitionModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)


class ComponentDef(_DefinitionModel):
    id: Optional[str] = None
    type: str
    name: str = ""
    title: str = ""
    hint: Optional[str] = None
    short_description: Optional[str] = Field(default=None, alias="shortDescription")
    content: Optional[str] = None
    list_: Optional[str] = Field(default=None, alias="list")
    options: dict[str, Any] = Field(default_factory=dict)
    schema_: dict[str, Any] = Field(default_factory=dict, alias="schema")
    before: Optional[Union[ComponentDef, list[ComponentDef]]] = None
    after: Optional[Union[ComponentDef, list[ComponentDef]]] = None


class NextLink(_DefinitionModel):
    path: str
    condition: Optional[str] = None
    redirect: Optional[str] = None


class RepeatOptions(_DefinitionModel):
    name: str
    title: str


class RepeatSchema(_DefinitionModel):
    min: int = 0
    max: int = 25


class RepeatDef(_DefinitionModel):
    options: RepeatOptions
    schema_: RepeatSchema = Field(default_factory=RepeatSchema, alias="schema")


class PageDef(_DefinitionModel):
    id: Optional[str] = None
    title: str = ""
    path: str
    controller: Optional[ControllerType] = None
    condition: Optional[str] = None
    section: Optional[str] = None
    components: list[ComponentDef] = Field(default_factory=list)
    next: list[NextLink] = Field(default_factory=list)
    repeat: Optional[RepeatDef] = None
    events: Optional[dict[str, Any]] = None

    @field_validator("path")
    @classmethod
    def path_must_be_absolute(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError("page path must start with '/'")
        return v


class ListItemDef(_DefinitionModel):
    id: Optional[str] = None
    text: str
    value: Union[bool, int, float, str]
    hint: Optional[str] = None
    description: Optional[str] = None
    condition: Optional[str] = None


class ListDef(_DefinitionModel):
    id: Optional[str] = None
    name: str
    title: str = ""
    type: str = "string"
    items: list[ListItemDef] = Field(default_factory=list)

    @field_validator("type")
    @classmethod
    def type_must_be_known(cls, v: str) -> str:
        if v not in {"string", "number", "boolean"}:
            raise ValueError("list type must be one of string, number, boolean")
        return v


class SectionDef(_DefinitionModel):
    id: Optional[str] = None
    name: str
    title: str
    hide_title: bool = Field(default=False, alias="hideTitle")


class ConditionValueDef(_DefinitionModel):
    """Legacy (V1) value wrapper ``{type, value, display}``."""

    type: Optional[str] = None
    value: Any = None
    display: Optional[str] = None


class ConditionItemDef(_DefinitionModel):
    id: Optional[str] = None
    component_id: Optional[str] = Field(default=None, alias="componentId")
    operator: Optional[str] = None
    type: Optional[str] = None
    value: Any = None
    condition_id: Optional[str] = Field(default=None, alias="conditionId")

    @property
    def is_reference(self) -> bool:
        return self.condition_id is not None


class ConditionDef(_DefinitionModel):
    id: str
    display_name: str = Field(default="", alias="displayName")
    coordinator: Optional[str] = None
    items: list[ConditionItemDef] = Field(default_factory=list)

    @field_validator("coordinator")
    @classmethod
    def coordinator_must_be_known(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in {"and", "or"}:
            raise ValueError("coordinator must be 'and' or 'or'")
        return v


class PhaseBanner(_DefinitionModel):
    phase: Optional[str] = None


class OutputEmail(_DefinitionModel):
    email_address: Optional[str] = Field(default=None, alias="emailAddress")
    audience: str = "human"
    version: str = "1"


class FormDefinition(_DefinitionModel):
    name: str = ""
    engine: Engine = Engine.V2
    schema_: int = Field(default=1, alias="schema")
    start_page: Optional[str] = Field(default=None, alias="startPage")
    pages: list[PageDef] = Field(default_factory=list)
    conditions: list[ConditionDef] = Field(default_factory=list)
    lists: list[ListDef] = Field(default_factory=list)
    sections: list[SectionDef] = Field(default_factory=list)
    phase_banner: Optional[PhaseBanner] = Field(default=None, alias="phaseBanner")
    output_email: Optional[str] = Field(default=None, alias="outputEmail")
    output: Optional[OutputEmail] = None
    declaration: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    version_metadata: Optional[dict[str, Any]] = Field(default=None, alias="versionMetadata")

    @field_validator("pages")
    @classmethod
    def page_paths_must_be_unique(cls, v: list[PageDef]) -> list[PageDef]:
        seen: set[str] = set()
        for page in v:
            if page.path in seen:
                raise ValueError(f"duplicate page path {page.path}")
            seen.add(page.path)
        return v


ComponentDef.model_rebuild()


__all__ = [
    "ComponentDef",
    "ConditionDef",
    "ConditionItemDef",
    "ConditionValueDef",
    "ControllerType",
    "Engine",
    "FormDefinition",
    "ListDef",
    "ListItemDef",
    "NextLink",
    "OutputEmail",
    "PageDef",
    "PhaseBanner",
    "RepeatDef",
    "SectionDef",
]
