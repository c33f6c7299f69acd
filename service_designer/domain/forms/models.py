"""Typed models for form configuration.

A Form owns Sections (optionally nested) and Fields. Each field belongs to
at most one section (None = top level) and may carry a visibility rule that
references another field of the same form by id.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from service_designer.core.errors import ConfigurationLoadError


class FieldType(str, Enum):
    """Supported form field types."""
    TEXT = "TEXT"
    TEXTAREA = "TEXTAREA"
    NUMBER = "NUMBER"
    EMAIL = "EMAIL"
    PHONE = "PHONE"
    DATE = "DATE"
    SELECT = "SELECT"
    RADIO = "RADIO"
    CHECKBOX = "CHECKBOX"
    FILE = "FILE"

    @classmethod
    def parse(cls, raw: str) -> Optional["FieldType"]:
        """Parse a field type name, case-insensitively.

        Returns None for names outside the supported set; callers treat
        those as plain strings.
        """
        name = raw.strip().upper()
        if name == "TEL":
            return cls.PHONE
        try:
            return cls(name)
        except ValueError:
            return None


class VisibilityOperator(str, Enum):
    """Comparison operators available to visibility rules."""
    EQUALS = "equals"
    NOT_EQUALS = "notEquals"
    CONTAINS = "contains"
    GREATER_THAN = "greaterThan"
    LESS_THAN = "lessThan"
    GREATER_THAN_OR_EQUALS = "greaterThanOrEquals"
    LESS_THAN_OR_EQUALS = "lessThanOrEquals"
    IS_EMPTY = "isEmpty"
    IS_NOT_EMPTY = "isNotEmpty"

    @classmethod
    def parse(cls, raw: str) -> Optional["VisibilityOperator"]:
        try:
            return cls(raw)
        except ValueError:
            return None


@dataclass
class VisibilityRule:
    """Show the owner only when the source field's value matches."""
    source_field_id: str
    operator: Optional[VisibilityOperator]
    value: Any = None
    raw_operator: str = ""

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> Optional["VisibilityRule"]:
        """Create from a stored rule; None or non-dict input yields None."""
        if not raw or not isinstance(raw, dict):
            return None
        source = raw.get("sourceFieldId", raw.get("source_field_id"))
        if not source:
            return None
        operator = str(raw.get("operator", ""))
        return cls(
            source_field_id=source,
            operator=VisibilityOperator.parse(operator),
            value=raw.get("value"),
            raw_operator=operator,
        )


def _parse_datetime(raw: Any) -> datetime:
    if isinstance(raw, datetime):
        return raw
    if isinstance(raw, str):
        # fromisoformat does not accept a trailing Z on older interpreters
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
    raise ConfigurationLoadError(f"Invalid timestamp: {raw!r}")


@dataclass
class FormField:
    """A single data-collection field."""
    field_id: str
    name: str
    label: str
    type_name: str
    required: bool = False
    section_id: Optional[str] = None
    sort_order: int = 0
    properties: Dict[str, Any] = field(default_factory=dict)
    visibility_rule: Optional[VisibilityRule] = None
    is_active: bool = True

    @property
    def field_type(self) -> Optional[FieldType]:
        return FieldType.parse(self.type_name)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "FormField":
        """Create from raw dict."""
        try:
            field_id = raw["id"] if "id" in raw else raw["field_id"]
            name = raw["name"]
            type_name = raw["type"]
        except KeyError as e:
            raise ConfigurationLoadError(f"Field missing required field: {e.args[0]}") from e
        return cls(
            field_id=field_id,
            name=name,
            label=raw.get("label", name),
            type_name=str(type_name),
            required=bool(raw.get("required", False)),
            section_id=raw.get("sectionId", raw.get("section_id")),
            sort_order=int(raw.get("sortOrder", raw.get("sort_order", 0))),
            properties=dict(raw.get("properties") or {}),
            visibility_rule=VisibilityRule.from_dict(
                raw.get("visibilityRule", raw.get("visibility_rule"))
            ),
            is_active=bool(raw.get("isActive", raw.get("is_active", True))),
        )


@dataclass
class FormSection:
    """A named group of fields."""
    section_id: str
    name: str
    parent_section_id: Optional[str] = None
    sort_order: int = 0
    visibility_rule: Optional[VisibilityRule] = None
    is_active: bool = True

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "FormSection":
        """Create from raw dict."""
        try:
            section_id = raw["id"] if "id" in raw else raw["section_id"]
            name = raw["name"]
        except KeyError as e:
            raise ConfigurationLoadError(f"Section missing required field: {e.args[0]}") from e
        return cls(
            section_id=section_id,
            name=name,
            parent_section_id=raw.get("parentSectionId", raw.get("parent_section_id")),
            sort_order=int(raw.get("sortOrder", raw.get("sort_order", 0))),
            visibility_rule=VisibilityRule.from_dict(
                raw.get("visibilityRule", raw.get("visibility_rule"))
            ),
            is_active=bool(raw.get("isActive", raw.get("is_active", True))),
        )


@dataclass
class Form:
    """A data-collection form with its fields and sections."""
    form_id: str
    name: str
    updated_at: datetime
    fields: List[FormField] = field(default_factory=list)
    sections: List[FormSection] = field(default_factory=list)

    def active_fields(self) -> List[FormField]:
        """Active fields by sort order (stable for ties)."""
        return sorted((f for f in self.fields if f.is_active), key=lambda f: f.sort_order)

    def active_sections(self) -> List[FormSection]:
        """Active sections by sort order (stable for ties)."""
        return sorted((s for s in self.sections if s.is_active), key=lambda s: s.sort_order)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Form":
        """Create from raw dict."""
        try:
            form_id = raw["id"] if "id" in raw else raw["form_id"]
            name = raw["name"]
            updated_at = raw["updatedAt"] if "updatedAt" in raw else raw["updated_at"]
        except KeyError as e:
            raise ConfigurationLoadError(f"Form missing required field: {e.args[0]}") from e
        try:
            timestamp = _parse_datetime(updated_at)
        except ValueError as e:
            raise ConfigurationLoadError(f"Invalid timestamp: {updated_at!r}") from e
        return cls(
            form_id=form_id,
            name=name,
            updated_at=timestamp,
            fields=[FormField.from_dict(f) for f in raw.get("fields", [])],
            sections=[FormSection.from_dict(s) for s in raw.get("sections", [])],
        )
