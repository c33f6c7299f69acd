"""Validation of submitted form data against compiled schemas.

Submissions are checked with jsonschema against the form's compiled
Draft-07 schema. Fields hidden by the form's visibility rules, directly
or through a hidden section, are dropped from both the data and the
required list first, so a hidden required field never blocks a
submission.
"""

import copy
import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from jsonschema import Draft7Validator, FormatChecker

from service_designer.domain.forms.models import FieldType, FormField
from service_designer.domain.forms.schema_compiler import (
    EMAIL_PATTERN,
    PHONE_PATTERN,
    FormSchema,
)
from service_designer.domain.forms.visibility import hidden_target_ids, hidden_targets

logger = logging.getLogger(__name__)

REQUIRED_MESSAGE = "This field is required"


@dataclass
class SubmissionError:
    """A single problem with a submitted value."""
    field: str
    message: str


@dataclass
class SubmissionValidationResult:
    """Result of validating one submission."""
    valid: bool
    errors: List[SubmissionError] = field(default_factory=list)
    hidden_fields: List[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.valid

    def errors_by_field(self) -> Dict[str, List[str]]:
        grouped: Dict[str, List[str]] = {}
        for error in self.errors:
            grouped.setdefault(error.field, []).append(error.message)
        return grouped


def _effective_schema(form_schema: FormSchema, hidden: List[str]) -> Dict[str, Any]:
    schema = copy.deepcopy(form_schema.json_schema)
    for name in hidden:
        schema["properties"].pop(name, None)
    schema["required"] = [n for n in schema.get("required", []) if n not in hidden]
    return schema


def validate_submission(
    form_schema: FormSchema,
    data: Mapping[str, Any],
) -> SubmissionValidationResult:
    """Validate submitted values against a compiled form schema.

    Args:
        form_schema: Output of SchemaCompiler.compile
        data: Submitted values keyed by field name

    Returns:
        SubmissionValidationResult; errors are ordered by field then message
    """
    hidden_fields = hidden_targets(form_schema.rules, data, target_type="field")
    hidden_sections = hidden_target_ids(form_schema.rules, data, target_type="section")
    hidden_fields.update(
        name for name, section_id in form_schema.field_sections.items()
        if section_id in hidden_sections
    )
    hidden = sorted(hidden_fields)
    schema = _effective_schema(form_schema, hidden)
    visible_data = {k: v for k, v in data.items() if k not in hidden}

    validator = Draft7Validator(schema, format_checker=FormatChecker())
    errors: List[SubmissionError] = []

    for error in validator.iter_errors(visible_data):
        if error.validator == "required":
            missing = [n for n in error.validator_value if n not in error.instance]
            # jsonschema reports one error per missing name, in required order
            for name in missing:
                if f"{name!r}" in error.message:
                    errors.append(SubmissionError(field=name, message=REQUIRED_MESSAGE))
                    break
            continue
        name = str(error.path[0]) if error.path else ""
        errors.append(SubmissionError(field=name, message=error.message))

    errors.sort(key=lambda e: (e.field, e.message))
    if errors:
        logger.debug(f"Submission for form {form_schema.form_id} has {len(errors)} errors")

    return SubmissionValidationResult(valid=not errors, errors=errors, hidden_fields=hidden)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def _date_bound(form_field: FormField, key: str) -> Optional[date]:
    raw = (form_field.properties or {}).get(key)
    if not raw:
        return None
    try:
        return date.fromisoformat(str(raw))
    except ValueError:
        logger.warning(f"Ignoring invalid {key} {raw!r} on field {form_field.name}")
        return None


def validate_field_value(form_field: FormField, value: Any) -> Optional[str]:
    """Check one value against its field configuration.

    Used for inline feedback while a form is being filled in.

    Returns:
        An error message, or None when the value is acceptable
    """
    props = form_field.properties or {}

    if _is_blank(value):
        return REQUIRED_MESSAGE if form_field.required else None

    field_type = form_field.field_type

    if field_type in (FieldType.TEXT, FieldType.TEXTAREA):
        if not isinstance(value, str):
            return "Invalid text value"
        min_length = props.get("minLength")
        max_length = props.get("maxLength")
        if min_length and len(value) < min_length:
            return f"Minimum {min_length} characters required"
        if max_length and len(value) > max_length:
            return f"Maximum {max_length} characters allowed"

    elif field_type is FieldType.EMAIL:
        if not isinstance(value, str) or not re.match(EMAIL_PATTERN, value):
            return "Please enter a valid email address"

    elif field_type is FieldType.PHONE:
        if not isinstance(value, str) or not re.match(PHONE_PATTERN, value):
            return "Please enter a valid phone number"

    elif field_type is FieldType.NUMBER:
        try:
            number = float(value)
        except (TypeError, ValueError):
            return "Please enter a valid number"
        if props.get("min") is not None and number < props["min"]:
            return f"Minimum value is {props['min']}"
        if props.get("max") is not None and number > props["max"]:
            return f"Maximum value is {props['max']}"

    elif field_type is FieldType.DATE:
        try:
            parsed = date.fromisoformat(str(value))
        except ValueError:
            return "Please enter a valid date"
        min_date = _date_bound(form_field, "minDate")
        max_date = _date_bound(form_field, "maxDate")
        if min_date and parsed < min_date:
            return f"Date must be on or after {props['minDate']}"
        if max_date and parsed > max_date:
            return f"Date must be on or before {props['maxDate']}"

    elif field_type in (FieldType.SELECT, FieldType.RADIO):
        options = props.get("options") or []
        if options and value not in [o["value"] for o in options]:
            return "Please select a valid option"

    return None
