"""Tests for submission validation."""

import logging

import pytest

from service_designer.domain.forms.models import Form, FormField
from service_designer.domain.forms.schema_compiler import compile_form
from service_designer.domain.forms.submission import (
    REQUIRED_MESSAGE,
    validate_field_value,
    validate_submission,
)


@pytest.fixture
def form_schema():
    """Compiled schema for a small application form."""
    form = Form.from_dict({
        "id": "form-1",
        "name": "Application",
        "updatedAt": "2024-01-15T10:30:00Z",
        "fields": [
            {"id": "f-name", "name": "full_name", "type": "TEXT", "required": True,
             "properties": {"minLength": 2}, "sortOrder": 1},
            {"id": "f-email", "name": "email", "type": "EMAIL", "required": True, "sortOrder": 2},
            {"id": "f-pet", "name": "has_pet", "type": "CHECKBOX", "sortOrder": 3},
            {"id": "f-pet-name", "name": "pet_name", "type": "TEXT", "required": True,
             "sortOrder": 4,
             "visibilityRule": {"sourceFieldId": "f-pet", "operator": "equals", "value": True}},
        ],
    })
    return compile_form(form)


class TestValidateSubmission:
    """Tests for validate_submission."""

    def test_valid_submission(self, form_schema):
        """A complete submission passes."""
        result = validate_submission(form_schema, {
            "full_name": "Ada Lovelace",
            "email": "ada@example.org",
            "has_pet": True,
            "pet_name": "Rex",
        })

        assert result.valid is True
        assert result.errors == []
        assert result.hidden_fields == []

    def test_hidden_required_field_not_enforced(self, form_schema):
        """A required field hidden by its rule does not block submission."""
        result = validate_submission(form_schema, {
            "full_name": "Ada Lovelace",
            "email": "ada@example.org",
            "has_pet": False,
        })

        assert result.valid is True
        assert result.hidden_fields == ["pet_name"]

    def test_missing_required(self, form_schema):
        """Missing required fields are reported per field."""
        result = validate_submission(form_schema, {"has_pet": True})

        assert result.valid is False
        assert result.errors_by_field() == {
            "email": [REQUIRED_MESSAGE],
            "full_name": [REQUIRED_MESSAGE],
            "pet_name": [REQUIRED_MESSAGE],
        }

    def test_constraint_violation(self, form_schema):
        """Constraint errors are attributed to their field."""
        result = validate_submission(form_schema, {
            "full_name": "A",
            "email": "not-an-email",
            "has_pet": False,
        })

        assert sorted(result.errors_by_field()) == ["email", "full_name"]

    def test_hidden_section_fields_not_enforced(self):
        """Required fields inside a hidden section do not block submission."""
        schema = compile_form(Form.from_dict({
            "id": "form-2",
            "name": "Registration",
            "updatedAt": "2024-01-15T10:30:00Z",
            "sections": [{
                "id": "s1",
                "name": "Business",
                "visibilityRule": {"sourceFieldId": "f-has", "operator": "equals", "value": True},
            }],
            "fields": [
                {"id": "f-has", "name": "hasBiz", "type": "CHECKBOX", "sortOrder": 1},
                {"id": "f-biz", "name": "bizName", "type": "TEXT", "required": True,
                 "sectionId": "s1", "sortOrder": 2},
            ],
        }))

        hidden = validate_submission(schema, {"hasBiz": False})
        shown = validate_submission(schema, {"hasBiz": True})

        assert hidden.valid is True
        assert hidden.hidden_fields == ["bizName"]
        assert shown.valid is False
        assert shown.errors_by_field() == {"bizName": [REQUIRED_MESSAGE]}

    def test_empty_rule_with_missing_source_enforces_target(self):
        """A field shown while its source is empty stays required when the source is absent."""
        schema = compile_form(Form.from_dict({
            "id": "form-3",
            "name": "Profile",
            "updatedAt": "2024-01-15T10:30:00Z",
            "fields": [
                {"id": "f-nick", "name": "nickname", "type": "TEXT", "sortOrder": 1},
                {"id": "f-why", "name": "why", "type": "TEXT", "required": True, "sortOrder": 2,
                 "visibilityRule": {"sourceFieldId": "f-nick", "operator": "isEmpty"}},
            ],
        }))

        result = validate_submission(schema, {})

        assert result.valid is False
        assert result.hidden_fields == []
        assert result.errors_by_field() == {"why": [REQUIRED_MESSAGE]}

    def test_errors_sorted(self, form_schema):
        """Errors are ordered by field name."""
        result = validate_submission(form_schema, {})

        fields = [e.field for e in result.errors]
        assert fields == sorted(fields)


class TestValidateFieldValue:
    """Tests for validate_field_value."""

    def _field(self, field_type, required=False, **properties):
        return FormField(
            field_id="f", name="f", label="F", type_name=field_type,
            required=required, properties=properties,
        )

    def test_required_blank(self):
        """Blank values fail only when required."""
        assert validate_field_value(self._field("TEXT", required=True), "  ") == REQUIRED_MESSAGE
        assert validate_field_value(self._field("TEXT"), None) is None

    def test_text_length(self):
        """Text length bounds are enforced."""
        form_field = self._field("TEXT", minLength=3, maxLength=5)

        assert validate_field_value(form_field, "ab") == "Minimum 3 characters required"
        assert validate_field_value(form_field, "abcdef") == "Maximum 5 characters allowed"
        assert validate_field_value(form_field, "abcd") is None

    def test_email(self):
        """Email values must look like addresses."""
        form_field = self._field("EMAIL")

        assert validate_field_value(form_field, "ada@example.org") is None
        assert validate_field_value(form_field, "ada") == "Please enter a valid email address"

    def test_phone(self):
        """Phone values must match the phone pattern."""
        form_field = self._field("tel")

        assert validate_field_value(form_field, "+1 (555) 123-4567") is None
        assert validate_field_value(form_field, "call me") == "Please enter a valid phone number"

    def test_number_range(self):
        """Numbers are parsed and range checked."""
        form_field = self._field("NUMBER", min=0, max=10)

        assert validate_field_value(form_field, "5") is None
        assert validate_field_value(form_field, "x") == "Please enter a valid number"
        assert validate_field_value(form_field, -1) == "Minimum value is 0"
        assert validate_field_value(form_field, 11) == "Maximum value is 10"

    def test_date_bounds(self):
        """Dates are parsed and bounded."""
        form_field = self._field("DATE", minDate="2024-01-01", maxDate="2024-12-31")

        assert validate_field_value(form_field, "2024-06-01") is None
        assert validate_field_value(form_field, "June") == "Please enter a valid date"
        assert validate_field_value(form_field, "2023-12-31") == "Date must be on or after 2024-01-01"
        assert validate_field_value(form_field, "2025-01-01") == "Date must be on or before 2024-12-31"

    def test_invalid_date_bound_ignored(self, caplog):
        """A malformed bound is skipped with a warning instead of raising."""
        form_field = self._field("DATE", minDate="not-a-date", maxDate="2024-12-31")

        with caplog.at_level(logging.WARNING, logger="service_designer.domain.forms.submission"):
            assert validate_field_value(form_field, "2020-01-01") is None
            assert validate_field_value(form_field, "2025-01-01") == "Date must be on or before 2024-12-31"

        assert "Ignoring invalid minDate" in caplog.text

    def test_select_options(self):
        """Select values must be one of the options."""
        form_field = self._field("SELECT", options=[{"value": "us", "label": "United States"}])

        assert validate_field_value(form_field, "us") is None
        assert validate_field_value(form_field, "fr") == "Please select a valid option"
