"""Tests for gap rules and YAML rule loading."""

from dataclasses import replace

import pytest

from service_designer.core.errors import RuleConfigError
from service_designer.domain.forms.models import FieldType
from service_designer.domain.gaps.rules import (
    BUSINESS_REGISTRATION_RULES,
    DEFAULT_FIELD_RULES,
    DEFAULT_VALIDATION_RULES,
    detect_dead_ends,
    detect_missing_start,
    detect_missing_terminal,
    detect_orphan_steps,
    get_all_fields,
    get_rules_for_service_type,
    load_rules_file,
    merge_rules,
    parse_rules_config,
)
from service_designer.domain.gaps.types import (
    FieldConfig,
    GapFixAction,
    GapSeverity,
    ServiceConfig,
    WorkflowConfig,
)


def _service(*fields, sections=()):
    return ServiceConfig.from_dict({
        "id": "svc-1",
        "name": "Permit",
        "forms": [{
            "id": "form-1",
            "name": "Application",
            "fields": list(fields),
            "sections": list(sections),
        }],
    })


def _rule(rules, name):
    return next(r for r in rules if r.name == name)


class TestFieldRules:
    """Tests for field-presence rules."""

    def test_name_pattern_matches_case_insensitively(self):
        """Name patterns match anywhere in the field name."""
        config = _service({"id": "f1", "name": "Applicant Full Name", "type": "text"})

        assert _rule(DEFAULT_FIELD_RULES, "applicant_name").check(config) is True

    def test_type_satisfies_rule(self):
        """A field of the right type satisfies the rule whatever its name."""
        config = _service({"id": "f1", "name": "contact", "type": "email"})

        assert _rule(DEFAULT_FIELD_RULES, "contact_email").check(config) is True

    def test_section_fields_are_searched(self):
        """Fields inside sections count."""
        config = _service(sections=[{
            "id": "s1", "name": "Contact",
            "fields": [{"id": "f1", "name": "Mobile", "type": "text"}],
        }])

        assert _rule(DEFAULT_FIELD_RULES, "contact_phone").check(config) is True
        assert [f.name for f in get_all_fields(config)] == ["Mobile"]

    def test_unsatisfied(self):
        """A form without matching fields fails the rule."""
        config = _service({"id": "f1", "name": "Notes", "type": "textarea"})

        assert _rule(DEFAULT_FIELD_RULES, "applicant_name").check(config) is False

    def test_business_rules_by_service_type(self):
        """Business service types add the business rule set."""
        general = get_rules_for_service_type("general")
        business = get_rules_for_service_type("Business_Registration")

        assert [r.name for r in general] == [r.name for r in DEFAULT_FIELD_RULES]
        assert len(business) == len(DEFAULT_FIELD_RULES) + len(BUSINESS_REGISTRATION_RULES)
        assert get_rules_for_service_type(None) == general

    def test_merge_keeps_first_by_name(self):
        """merge_rules keeps the first rule of each name."""
        custom = [_rule(BUSINESS_REGISTRATION_RULES, "business_name")]
        duplicate = _rule(BUSINESS_REGISTRATION_RULES, "business_address")
        duplicate_named = replace(duplicate, name="applicant_name")

        merged = merge_rules(DEFAULT_FIELD_RULES, custom, [duplicate_named])

        assert [r.name for r in merged] == [
            "applicant_name", "contact_email", "contact_phone", "business_name",
        ]
        assert merged[0] is DEFAULT_FIELD_RULES[0]


class TestValidationRules:
    """Tests for validation-coverage rules."""

    def test_applies_by_type(self):
        """Rules apply to their field types, tel included."""
        phone_rule = _rule(DEFAULT_VALIDATION_RULES, "phone_format")

        assert phone_rule.applies_to(FieldConfig("f", "Phone", "tel")) is True
        assert phone_rule.applies_to(FieldConfig("f", "Email", "email")) is False

    def test_any_of_keys_satisfy(self):
        """Any one listed key satisfies a rule; blank values do not."""
        text_rule = _rule(DEFAULT_VALIDATION_RULES, "text_length")

        assert text_rule.is_satisfied(FieldConfig("f", "Name", "text", validation={"maxLength": 50}))
        assert not text_rule.is_satisfied(FieldConfig("f", "Name", "text", validation={"pattern": "x"}))
        assert not text_rule.is_satisfied(FieldConfig("f", "Name", "text", validation={"minLength": None}))

    def test_zero_bound_counts(self):
        """A bound of zero is a constraint."""
        number_rule = _rule(DEFAULT_VALIDATION_RULES, "number_range")

        assert number_rule.is_satisfied(FieldConfig("f", "Count", "number", validation={"min": 0}))


class TestWorkflowDetectors:
    """Tests for workflow-topology detectors."""

    def _workflow(self, steps, transitions=(), start_step_id=None):
        return WorkflowConfig.from_dict({
            "id": "wf-1",
            "name": "Main",
            "steps": steps,
            "transitions": list(transitions),
            "startStepId": start_step_id,
        })

    def test_missing_start(self):
        """No start step proposes the first step as start."""
        workflow = self._workflow([{"id": "s1", "name": "Intake"}])

        findings = detect_missing_start(workflow)

        assert len(findings) == 1
        assert findings[0].fix.action is GapFixAction.ADD_START_STATE
        assert findings[0].fix.params == {"stepId": "s1"}

    def test_start_via_flag_or_id(self):
        """Either isStart or startStepId designates the start."""
        assert detect_missing_start(self._workflow([{"id": "s1", "name": "A", "isStart": True}])) == []
        assert detect_missing_start(self._workflow([{"id": "s1", "name": "A"}], start_step_id="s1")) == []

    def test_empty_workflow_has_no_findings(self):
        """A workflow without steps reports nothing."""
        workflow = self._workflow([])

        assert detect_missing_start(workflow) == []
        assert detect_missing_terminal(workflow) == []

    def test_missing_terminal(self):
        """No terminal step is reported once."""
        workflow = self._workflow([{"id": "s1", "name": "A", "isStart": True}])

        assert len(detect_missing_terminal(workflow)) == 1

    def test_orphans_and_dead_ends(self):
        """A disconnected non-terminal step is both an orphan and a dead end."""
        workflow = self._workflow(
            [
                {"id": "s1", "name": "Intake", "isStart": True},
                {"id": "s2", "name": "Review"},
                {"id": "s3", "name": "Archive"},
            ],
            transitions=[{"id": "t1", "fromStepId": "s1", "toStepId": "s2"}],
        )

        orphans = detect_orphan_steps(workflow)
        dead_ends = detect_dead_ends(workflow)

        assert [f.location.entity_id for f in orphans] == ["s3"]
        assert orphans[0].fix.action is GapFixAction.REMOVE_STEP
        assert [f.location.entity_id for f in dead_ends] == ["s2", "s3"]
        assert dead_ends[0].fix.action is GapFixAction.SET_TERMINAL
        assert dead_ends[0].location.parent_name == "Main"


RULES_YAML = """
rules:
  missing_fields:
    - name: permit_number
      description: Permit services should ask for the permit number
      severity: warning
      patterns: [permit]
      fix:
        fieldName: Permit Number
        fieldType: text
        validation:
          required: true
  validation_gaps:
    - name: date_bounds
      description: Date fields should be bounded
      severity: suggestion
      fieldTypes: [date]
      requiredValidation: [minDate, maxDate]
      message: 'Date field "{name}" is unbounded'
"""


class TestYamlRules:
    """Tests for YAML rule configuration."""

    def test_parse(self):
        """Field and validation rules are built from YAML."""
        rule_set = parse_rules_config(RULES_YAML)

        field_rule = rule_set.field_rules[0]
        assert field_rule.name == "permit_number"
        assert field_rule.severity is GapSeverity.WARNING
        assert field_rule.fix.params["fieldName"] == "Permit Number"
        assert field_rule.check(_service({"id": "f", "name": "Permit No", "type": "text"}))

        validation_rule = rule_set.validation_rules[0]
        assert validation_rule.field_types == frozenset({FieldType.DATE})
        assert validation_rule.any_of == ("minDate", "maxDate")
        assert validation_rule.message_template == 'Date field "{name}" is unbounded'

    def test_load_file(self, tmp_path):
        """Rules load from a file path."""
        path = tmp_path / "rules.yaml"
        path.write_text(RULES_YAML, encoding="utf-8")

        rule_set = load_rules_file(path)

        assert [r.name for r in rule_set.field_rules] == ["permit_number"]

    def test_missing_file(self, tmp_path):
        """A missing file raises RuleConfigError."""
        with pytest.raises(RuleConfigError):
            load_rules_file(tmp_path / "absent.yaml")

    @pytest.mark.parametrize("content", [
        "rules: [unclosed",
        "",
        "rules:\n  missing_fields:\n    - name: x\n      severity: fatal\n      description: d\n",
        "rules:\n  missing_fields:\n    - name: x\n      severity: warning\n      description: d\n",
        "rules:\n  validation_gaps:\n    - name: x\n      severity: warning\n"
        "      description: d\n      fieldTypes: [hologram]\n      requiredValidation: [a]\n",
    ])
    def test_invalid_config(self, content):
        """Malformed documents raise RuleConfigError."""
        with pytest.raises(RuleConfigError):
            parse_rules_config(content)
