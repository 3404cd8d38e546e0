"""
Node kind schemas - the external contract the validator consumes.

A NodeKindSchema describes one node kind: its category, its configuration
fields, and the handle ids edges may attach to. Schemas are owned by
whoever builds the editor's node palette; the validator only reads them.

Example:
    NodeKindSchema(
        kind="http_request",
        display_name="HTTP Request",
        category=KindCategory.TRANSFORM,
        fields=[
            FieldSpec(id="url", label="URL", value_kind=ValueKind.URL, required=True),
            FieldSpec(id="body", label="Body", value_kind=ValueKind.JSON),
        ],
        inputs=("input-0",),
        outputs=("output-0",),
    )
"""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class KindCategory(StrEnum):
    """Broad family a node kind belongs to."""

    TRIGGER = "trigger"
    CONTROL_FLOW = "control_flow"
    LLM = "llm"
    INTEGRATION = "integration"
    TRANSFORM = "transform"
    SUBWORKFLOW = "subworkflow"
    GENERIC = "generic"


class ValueKind(StrEnum):
    """Shape a configuration value is expected to have."""

    TEXT = "text"
    TEXTAREA = "textarea"
    NUMBER = "number"
    BOOLEAN = "boolean"
    CHECKBOX = "checkbox"
    SELECT = "select"
    JSON = "json"
    CODE = "code"
    URL = "url"
    CRON = "cron"
    CREDENTIAL = "credential"
    PASSWORD = "password"


class FieldSpec(BaseModel):
    """One configuration field of a node kind."""

    id: str
    label: str = ""
    value_kind: ValueKind = Field(default=ValueKind.TEXT, alias="type")
    required: bool = False
    is_credential: bool = False
    minimum: float | None = None
    maximum: float | None = None
    description: str = ""

    model_config = {"extra": "allow", "populate_by_name": True}

    @property
    def display_label(self) -> str:
        return self.label or self.id

    @property
    def holds_credential(self) -> bool:
        if self.is_credential or self.value_kind == ValueKind.CREDENTIAL:
            return True
        # Older palettes model the credential picker as a plain select
        return self.value_kind == ValueKind.SELECT and self.id == "credential"


class NodeKindSchema(BaseModel):
    """Field definitions and declared handles for one node kind."""

    kind: str = Field(alias="nodeType")
    display_name: str = Field(default="", alias="displayName")
    category: KindCategory = KindCategory.GENERIC
    description: str = ""
    fields: list[FieldSpec] = Field(default_factory=list)

    # None means the kind does not declare handles; () means it has none
    inputs: tuple[str, ...] | None = None
    outputs: tuple[str, ...] | None = None

    model_config = {"extra": "allow", "populate_by_name": True}

    @field_validator("inputs", "outputs", mode="before")
    @classmethod
    def _handle_ids(cls, value: Any) -> Any:
        """Editor palettes declare handles as {"id": ..., "label": ...} objects."""
        if value is None:
            return None
        return tuple(h["id"] if isinstance(h, dict) else h for h in value)

    def get_field(self, field_id: str) -> FieldSpec | None:
        for spec in self.fields:
            if spec.id == field_id:
                return spec
        return None

    def credential_fields(self) -> list[FieldSpec]:
        return [spec for spec in self.fields if spec.holds_credential]

    def required_fields(self) -> list[FieldSpec]:
        return [spec for spec in self.fields if spec.required]
