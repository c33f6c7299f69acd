"""Schema compiler for form configuration.

Compiles one Form into three co-located artifacts:
- a Draft-07 JSON Schema (data shape and constraints)
- a JSON Forms UI Schema (rendering layout)
- a visibility rule export (json-rules-engine conditions/event shape)

Compilation is deterministic: the same form always yields identical
artifacts, and ``version`` (the form's last-modified timestamp) acts as a
change-detection token for caches.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from jsonschema import Draft7Validator

from service_designer.domain.forms.models import FieldType, Form, FormField
from service_designer.domain.forms.visibility import export_visibility_rules

logger = logging.getLogger(__name__)

JSON_SCHEMA_DRAFT_07 = "http://json-schema.org/draft-07/schema#"

EMAIL_PATTERN = r"^[\w.-]+@[\w.-]+\.[a-zA-Z]{2,}$"
PHONE_PATTERN = r"^\+?[0-9\s\-()]{7,20}$"


def _string_bounds(props: Dict[str, Any], prop: Dict[str, Any]) -> None:
    if props.get("minLength") is not None:
        prop["minLength"] = props["minLength"]
    if props.get("maxLength") is not None:
        prop["maxLength"] = props["maxLength"]
    if props.get("pattern"):
        prop["pattern"] = props["pattern"]


def _number_bounds(props: Dict[str, Any], prop: Dict[str, Any]) -> None:
    if props.get("min") is not None:
        prop["minimum"] = props["min"]
    if props.get("max") is not None:
        prop["maximum"] = props["max"]


def _email(props: Dict[str, Any], prop: Dict[str, Any]) -> None:
    prop["format"] = "email"
    prop["pattern"] = EMAIL_PATTERN


def _phone(props: Dict[str, Any], prop: Dict[str, Any]) -> None:
    prop["pattern"] = PHONE_PATTERN


def _date(props: Dict[str, Any], prop: Dict[str, Any]) -> None:
    prop["format"] = "date"


def _options(props: Dict[str, Any], prop: Dict[str, Any]) -> None:
    options = props.get("options")
    if isinstance(options, list):
        prop["enum"] = [opt["value"] for opt in options]
        prop["enumNames"] = [opt.get("label", opt["value"]) for opt in options]


def _file(props: Dict[str, Any], prop: Dict[str, Any]) -> None:
    prop["format"] = "data-url"


def _no_constraints(props: Dict[str, Any], prop: Dict[str, Any]) -> None:
    pass


# Field type -> (JSON type, constraint builder). Must cover every member.
TYPE_MAPPING: Dict[FieldType, tuple] = {
    FieldType.TEXT: ("string", _string_bounds),
    FieldType.TEXTAREA: ("string", _string_bounds),
    FieldType.NUMBER: ("number", _number_bounds),
    FieldType.EMAIL: ("string", _email),
    FieldType.PHONE: ("string", _phone),
    FieldType.DATE: ("string", _date),
    FieldType.SELECT: ("string", _options),
    FieldType.RADIO: ("string", _options),
    FieldType.CHECKBOX: ("boolean", _no_constraints),
    FieldType.FILE: ("string", _file),
}

# Unrecognised field types render as unconstrained strings
_FALLBACK: tuple = ("string", _no_constraints)


def format_version(updated_at: datetime) -> str:
    """Render a timestamp as ISO-8601 UTC with millisecond precision.

    Naive datetimes are taken to be UTC already.
    """
    if updated_at.tzinfo is not None:
        updated_at = updated_at.astimezone(timezone.utc)
    return updated_at.strftime("%Y-%m-%dT%H:%M:%S.") + f"{updated_at.microsecond // 1000:03d}Z"


@dataclass
class FormSchema:
    """Compiled artifacts for one form."""
    form_id: str
    form_name: str
    version: str
    json_schema: Dict[str, Any]
    ui_schema: Dict[str, Any]
    rules: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)
    # Field name -> section id, for fields placed in a section
    field_sections: Dict[str, str] = field(default_factory=dict)

    def check(self) -> None:
        """Raise jsonschema.SchemaError if json_schema is not valid Draft-07."""
        Draft7Validator.check_schema(self.json_schema)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "formId": self.form_id,
            "formName": self.form_name,
            "version": self.version,
            "jsonSchema": self.json_schema,
            "uiSchema": self.ui_schema,
            "rules": self.rules,
        }


class SchemaCompiler:
    """Compiles form configuration into schema artifacts."""

    def compile(self, form: Form) -> FormSchema:
        """Compile a form.

        Args:
            form: Form with fields and sections; inactive ones are ignored

        Returns:
            FormSchema with JSON Schema, UI Schema, and visibility rules
        """
        fields = form.active_fields()
        logger.debug(f"Compiling schema for form {form.form_id} ({len(fields)} fields)")

        return FormSchema(
            form_id=form.form_id,
            form_name=form.name,
            version=format_version(form.updated_at),
            json_schema=self.build_json_schema(form, fields),
            ui_schema=self.build_ui_schema(form, fields),
            rules=export_visibility_rules(form, fields),
            field_sections={f.name: f.section_id for f in fields if f.section_id},
        )

    # -------------------------------------------------------------------------
    # JSON Schema
    # -------------------------------------------------------------------------

    def build_json_schema(
        self,
        form: Form,
        fields: Optional[List[FormField]] = None,
    ) -> Dict[str, Any]:
        """Build the Draft-07 JSON Schema for a form."""
        fields = fields if fields is not None else form.active_fields()
        properties: Dict[str, Any] = {}
        required: List[str] = []

        for form_field in fields:
            properties[form_field.name] = self.field_to_json_schema(form_field)
            if form_field.required:
                required.append(form_field.name)

        return {
            "$schema": JSON_SCHEMA_DRAFT_07,
            "type": "object",
            "title": form.name,
            "properties": properties,
            "required": required,
        }

    def field_to_json_schema(self, form_field: FormField) -> Dict[str, Any]:
        """Convert a form field to a JSON Schema property."""
        props = form_field.properties or {}
        field_type = form_field.field_type
        json_type, add_constraints = (
            TYPE_MAPPING[field_type] if field_type is not None else _FALLBACK
        )

        prop: Dict[str, Any] = {"type": json_type, "title": form_field.label}
        if props.get("helpText"):
            prop["description"] = props["helpText"]

        add_constraints(props, prop)

        if "defaultValue" in props and props["defaultValue"] is not None:
            prop["default"] = props["defaultValue"]

        return prop

    # -------------------------------------------------------------------------
    # UI Schema
    # -------------------------------------------------------------------------

    def build_ui_schema(
        self,
        form: Form,
        fields: Optional[List[FormField]] = None,
    ) -> Dict[str, Any]:
        """Build the JSON Forms layout: top-level fields, then section groups."""
        fields = fields if fields is not None else form.active_fields()
        by_section: Dict[Optional[str], List[FormField]] = {}
        for form_field in fields:
            by_section.setdefault(form_field.section_id or None, []).append(form_field)

        elements: List[Dict[str, Any]] = [
            self.field_to_control(f) for f in by_section.get(None, [])
        ]

        for section in form.active_sections():
            section_fields = by_section.get(section.section_id, [])
            if not section_fields:
                continue
            elements.append({
                "type": "Group",
                "label": section.name,
                "elements": [self.field_to_control(f) for f in section_fields],
            })

        return {"type": "VerticalLayout", "elements": elements}

    def field_to_control(self, form_field: FormField) -> Dict[str, Any]:
        """Convert a field to a UI Schema control element."""
        control: Dict[str, Any] = {
            "type": "Control",
            "scope": f"#/properties/{form_field.name}",
        }
        if form_field.field_type is FieldType.TEXTAREA:
            control["options"] = {"multi": True}
        return control


def compile_form(form: Form) -> FormSchema:
    """Compile a form with a default SchemaCompiler."""
    return SchemaCompiler().compile(form)
