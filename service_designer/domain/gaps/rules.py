"""Gap detection rules.

Rules are plain data descriptors kept in ordinary lists: a name, a
severity, a pure predicate (or detector) and an optional fix template.
Three independent families exist:

- field-presence rules: does the service collect some kind of field at all
- validation-coverage rules: do fields of given types carry validation
- workflow-topology rules: is the step/transition graph complete

Extra rule sets can be supplied programmatically or loaded from YAML.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Sequence, Set, Union

import yaml
from pydantic import BaseModel, Field, ValidationError

from service_designer.core.errors import RuleConfigError
from service_designer.domain.forms.models import FieldType
from service_designer.domain.gaps.types import (
    FieldConfig,
    GapEntityType,
    GapFix,
    GapFixAction,
    GapLocation,
    GapSeverity,
    GapType,
    ServiceConfig,
    StepConfig,
    WorkflowConfig,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Rule descriptors
# =============================================================================

@dataclass
class Finding:
    """What a workflow detector reports; the analyzer turns it into a Gap."""
    message: str
    suggestion: str
    location: GapLocation
    fix: Optional[GapFix] = None


@dataclass
class FieldGapRule:
    """A field-presence rule. ``check`` returns True when satisfied."""
    name: str
    description: str
    severity: GapSeverity
    check: Callable[[ServiceConfig], bool]
    fix: Optional[GapFix] = None
    message: str = ""
    suggestion: str = ""


@dataclass
class ValidationGapRule:
    """A validation-coverage rule for fields of the given types.

    A field is covered when its validation sets any of ``any_of`` keys.
    """
    name: str
    description: str
    severity: GapSeverity
    field_types: FrozenSet[FieldType]
    any_of: Sequence[str]
    fix_validation: Optional[Dict[str, Any]] = None
    message_template: str = 'Field "{name}" lacks validation'
    suggestion: str = ""

    def applies_to(self, config_field: FieldConfig) -> bool:
        return FieldType.parse(config_field.type) in self.field_types

    def is_satisfied(self, config_field: FieldConfig) -> bool:
        validation = config_field.validation or {}
        return any(validation.get(key) not in (None, "") for key in self.any_of)


@dataclass
class WorkflowGapRule:
    """A workflow-topology rule. ``detect`` returns one finding per problem."""
    name: str
    description: str
    severity: GapSeverity
    gap_type: GapType
    detect: Callable[[WorkflowConfig], List[Finding]]


# =============================================================================
# Helpers
# =============================================================================

def get_all_fields(config: ServiceConfig) -> List[FieldConfig]:
    """Flatten top-level and section fields across all forms."""
    fields: List[FieldConfig] = []
    for form in config.forms:
        fields.extend(form.fields)
        for section in form.sections:
            fields.extend(section.fields)
    return fields


def _has_field(
    config: ServiceConfig,
    patterns: Iterable[str],
    types: Iterable[FieldType] = (),
) -> bool:
    patterns = [p.lower() for p in patterns]
    types = set(types)
    for config_field in get_all_fields(config):
        name = config_field.name.lower()
        if any(p in name for p in patterns):
            return True
        if types and FieldType.parse(config_field.type) in types:
            return True
    return False


def _add_field_fix(field_name: str, field_type: str, validation: Dict[str, Any]) -> GapFix:
    return GapFix(
        action=GapFixAction.ADD_FIELD,
        params={"fieldName": field_name, "fieldType": field_type, "validation": validation},
        description=f'Add "{field_name}" field',
    )


def presence_rule(
    name: str,
    description: str,
    severity: GapSeverity,
    patterns: Sequence[str],
    types: Sequence[FieldType] = (),
    fix: Optional[GapFix] = None,
    message: str = "",
    suggestion: str = "",
) -> FieldGapRule:
    """Build a rule satisfied by any field whose name or type matches."""
    patterns = tuple(patterns)
    types = tuple(types)
    return FieldGapRule(
        name=name,
        description=description,
        severity=severity,
        check=lambda config: _has_field(config, patterns, types),
        fix=fix,
        message=message or description,
        suggestion=suggestion,
    )


# =============================================================================
# Field-presence rules
# =============================================================================

DEFAULT_FIELD_RULES: List[FieldGapRule] = [
    presence_rule(
        "applicant_name",
        "All services should collect applicant name",
        GapSeverity.CRITICAL,
        patterns=["name", "applicant"],
        fix=_add_field_fix("Applicant Full Name", "text", {"required": True, "minLength": 2}),
        message="No applicant name field found",
        suggestion="Add a field to collect applicant name",
    ),
    presence_rule(
        "contact_email",
        "Services should have contact email for notifications",
        GapSeverity.WARNING,
        patterns=["email", "e-mail"],
        types=[FieldType.EMAIL],
        fix=_add_field_fix("Email Address", "email", {"required": True}),
        message="No contact email field found",
        suggestion="Add an email field for notifications",
    ),
    presence_rule(
        "contact_phone",
        "Services should have a phone number for contact",
        GapSeverity.SUGGESTION,
        patterns=["phone", "mobile", "telephone"],
        types=[FieldType.PHONE],
        fix=_add_field_fix("Phone Number", "tel", {"required": False}),
        message="No contact phone field found",
        suggestion="Add a phone field for contact",
    ),
]

BUSINESS_REGISTRATION_RULES: List[FieldGapRule] = [
    presence_rule(
        "business_name",
        "Business registration requires company/business name",
        GapSeverity.CRITICAL,
        patterns=["business", "company", "organization", "entity"],
        fix=_add_field_fix("Business Name", "text", {"required": True, "minLength": 2}),
        message="No business/company name field found",
        suggestion="Add a field to collect business name",
    ),
    presence_rule(
        "registration_number",
        "Business registration should collect registration/tax number",
        GapSeverity.WARNING,
        patterns=["registration", "tax", "tin", "ein"],
        fix=_add_field_fix("Tax Identification Number", "text", {"required": True}),
        message="No registration or tax number field found",
        suggestion="Add a field to collect the tax identification number",
    ),
    presence_rule(
        "business_address",
        "Business registration should collect business address",
        GapSeverity.WARNING,
        patterns=["address", "location"],
        fix=_add_field_fix("Business Address", "textarea", {"required": True}),
        message="No business address field found",
        suggestion="Add a field to collect the business address",
    ),
]

BUSINESS_SERVICE_TYPES = {"business_registration", "business", "company"}


def get_rules_for_service_type(service_type: Optional[str]) -> List[FieldGapRule]:
    """Base field rules plus any extension set for the service type."""
    rules = list(DEFAULT_FIELD_RULES)
    if service_type and service_type.lower() in BUSINESS_SERVICE_TYPES:
        rules.extend(BUSINESS_REGISTRATION_RULES)
    return rules


def merge_rules(*rule_sets: Iterable[Any]) -> List[Any]:
    """Concatenate rule sets, keeping the first rule of each name."""
    merged: List[Any] = []
    seen: Set[str] = set()
    for rules in rule_sets:
        for rule in rules:
            if rule.name not in seen:
                seen.add(rule.name)
                merged.append(rule)
    return merged


# =============================================================================
# Validation-coverage rules
# =============================================================================

DEFAULT_VALIDATION_RULES: List[ValidationGapRule] = [
    ValidationGapRule(
        name="email_format",
        description="Email fields should have email format validation",
        severity=GapSeverity.WARNING,
        field_types=frozenset({FieldType.EMAIL}),
        any_of=("pattern",),
        fix_validation={"pattern": r"^[^@]+@[^@]+\.[^@]+$"},
        message_template='Email field "{name}" lacks email format validation',
        suggestion="Add email pattern validation",
    ),
    ValidationGapRule(
        name="phone_format",
        description="Phone fields should have pattern validation",
        severity=GapSeverity.SUGGESTION,
        field_types=frozenset({FieldType.PHONE}),
        any_of=("pattern",),
        fix_validation={"pattern": r"^[+]?[0-9\s\-()]+$"},
        message_template='Phone field "{name}" lacks format validation',
        suggestion="Add phone pattern validation",
    ),
    ValidationGapRule(
        name="text_length",
        description="Text fields should have length constraints",
        severity=GapSeverity.SUGGESTION,
        field_types=frozenset({FieldType.TEXT, FieldType.TEXTAREA}),
        any_of=("minLength", "maxLength"),
        fix_validation={"minLength": 1, "maxLength": 255},
        message_template='Text field "{name}" has no length constraints',
        suggestion="Consider adding min/max length validation",
    ),
    ValidationGapRule(
        name="number_range",
        description="Number fields should have range constraints",
        severity=GapSeverity.SUGGESTION,
        field_types=frozenset({FieldType.NUMBER}),
        any_of=("min", "max"),
        fix_validation={"min": 0},
        message_template='Number field "{name}" has no range constraints',
        suggestion="Consider adding min/max validation",
    ),
]


# =============================================================================
# Workflow-topology rules
# =============================================================================

def _workflow_location(workflow: WorkflowConfig) -> GapLocation:
    return GapLocation(
        entity_type=GapEntityType.WORKFLOW,
        entity_id=workflow.id,
        entity_name=workflow.name,
    )


def _step_location(workflow: WorkflowConfig, step: StepConfig) -> GapLocation:
    return GapLocation(
        entity_type=GapEntityType.STEP,
        entity_id=step.id,
        entity_name=step.name,
        parent_id=workflow.id,
        parent_name=workflow.name or None,
    )


def _is_start(workflow: WorkflowConfig, step: StepConfig) -> bool:
    return step.is_start or step.id == workflow.start_step_id


def _orphan_steps(workflow: WorkflowConfig) -> List[StepConfig]:
    sources = {t.from_step_id for t in workflow.transitions}
    targets = {t.to_step_id for t in workflow.transitions}
    return [
        s for s in workflow.steps
        if not _is_start(workflow, s) and s.id not in sources and s.id not in targets
    ]


def detect_missing_start(workflow: WorkflowConfig) -> List[Finding]:
    if not workflow.steps or workflow.start_step_id:
        return []
    if any(s.is_start for s in workflow.steps):
        return []
    first = workflow.steps[0]
    return [Finding(
        message="Workflow has no designated start step",
        suggestion="Set one step as the start step",
        location=_workflow_location(workflow),
        fix=GapFix(
            action=GapFixAction.ADD_START_STATE,
            params={"stepId": first.id},
            description=f'Set "{first.name}" as start step',
        ),
    )]


def detect_missing_terminal(workflow: WorkflowConfig) -> List[Finding]:
    if not workflow.steps or any(s.is_terminal for s in workflow.steps):
        return []
    return [Finding(
        message="Workflow has no terminal (end) step",
        suggestion="Mark at least one step as terminal",
        location=_workflow_location(workflow),
    )]


def detect_orphan_steps(workflow: WorkflowConfig) -> List[Finding]:
    return [
        Finding(
            message=f'Step "{step.name}" is not connected to any other step',
            suggestion="Add a transition to this step or remove it",
            location=_step_location(workflow, step),
            fix=GapFix(
                action=GapFixAction.REMOVE_STEP,
                params={"stepId": step.id},
                description=f'Remove orphan step "{step.name}"',
            ),
        )
        for step in _orphan_steps(workflow)
    ]


def detect_dead_ends(workflow: WorkflowConfig) -> List[Finding]:
    sources = {t.from_step_id for t in workflow.transitions}
    return [
        Finding(
            message=f'Step "{step.name}" has no outgoing transitions',
            suggestion="Add transitions or mark as terminal step",
            location=_step_location(workflow, step),
            fix=GapFix(
                action=GapFixAction.SET_TERMINAL,
                params={"stepId": step.id},
                description=f'Mark "{step.name}" as terminal step',
            ),
        )
        for step in workflow.steps
        if not step.is_terminal and step.id not in sources
    ]


DEFAULT_WORKFLOW_RULES: List[WorkflowGapRule] = [
    WorkflowGapRule(
        name="start_step",
        description="Workflows need a designated start step",
        severity=GapSeverity.CRITICAL,
        gap_type=GapType.MISSING_START_STATE,
        detect=detect_missing_start,
    ),
    WorkflowGapRule(
        name="terminal_step",
        description="Workflows need at least one terminal step",
        severity=GapSeverity.CRITICAL,
        gap_type=GapType.MISSING_END_STATE,
        detect=detect_missing_terminal,
    ),
    WorkflowGapRule(
        name="orphan_steps",
        description="Every step should be connected to the workflow",
        severity=GapSeverity.CRITICAL,
        gap_type=GapType.ORPHAN_STEP,
        detect=detect_orphan_steps,
    ),
    WorkflowGapRule(
        name="dead_ends",
        description="Non-terminal steps need outgoing transitions",
        severity=GapSeverity.CRITICAL,
        gap_type=GapType.MISSING_TRANSITION,
        detect=detect_dead_ends,
    ),
]


# =============================================================================
# YAML rule configuration
# =============================================================================

class YamlFix(BaseModel):
    """Fix template of a YAML field rule."""

    action: GapFixAction = GapFixAction.ADD_FIELD
    field_name: Optional[str] = Field(default=None, alias="fieldName")
    field_type: Optional[str] = Field(default=None, alias="fieldType")
    validation: Optional[Dict[str, Any]] = None


class YamlRule(BaseModel):
    """One rule entry of a YAML rules document."""

    name: str
    description: str
    severity: GapSeverity
    patterns: List[str] = Field(default_factory=list)
    field_types: List[str] = Field(default_factory=list, alias="fieldTypes")
    required_validation: List[str] = Field(default_factory=list, alias="requiredValidation")
    fix: Optional[YamlFix] = None
    message: Optional[str] = None
    suggestion: Optional[str] = None


class YamlRuleGroups(BaseModel):
    missing_fields: List[YamlRule] = Field(default_factory=list)
    validation_gaps: List[YamlRule] = Field(default_factory=list)


class YamlRulesConfig(BaseModel):
    """Top-level YAML rules document."""

    rules: YamlRuleGroups


@dataclass
class RuleSet:
    """Rules loaded from configuration."""
    field_rules: List[FieldGapRule] = field(default_factory=list)
    validation_rules: List[ValidationGapRule] = field(default_factory=list)


def _parse_field_types(rule: YamlRule) -> FrozenSet[FieldType]:
    types: Set[FieldType] = set()
    for raw in rule.field_types:
        field_type = FieldType.parse(raw)
        if field_type is None:
            raise RuleConfigError(f"Rule '{rule.name}' has unknown field type: {raw}")
        types.add(field_type)
    return frozenset(types)


def _to_field_rule(rule: YamlRule) -> FieldGapRule:
    if not rule.patterns and not rule.field_types:
        raise RuleConfigError(f"Rule '{rule.name}' needs patterns or fieldTypes")
    fix = None
    if rule.fix is not None:
        field_name = rule.fix.field_name or "field"
        fix = GapFix(
            action=rule.fix.action,
            params={
                "fieldName": rule.fix.field_name,
                "fieldType": rule.fix.field_type,
                "validation": rule.fix.validation or {},
            },
            description=f'Add "{field_name}" field',
        )
    return presence_rule(
        rule.name,
        rule.description,
        rule.severity,
        patterns=rule.patterns,
        types=sorted(_parse_field_types(rule)),
        fix=fix,
        message=rule.message or rule.description,
        suggestion=rule.suggestion or "",
    )


def _to_validation_rule(rule: YamlRule) -> ValidationGapRule:
    if not rule.field_types or not rule.required_validation:
        raise RuleConfigError(
            f"Rule '{rule.name}' needs fieldTypes and requiredValidation"
        )
    return ValidationGapRule(
        name=rule.name,
        description=rule.description,
        severity=rule.severity,
        field_types=_parse_field_types(rule),
        any_of=tuple(rule.required_validation),
        fix_validation=rule.fix.validation if rule.fix and rule.fix.validation else None,
        message_template=rule.message or ('Field "{name}" - ' + rule.description),
        suggestion=rule.suggestion or "",
    )


def parse_rules_config(content: str) -> RuleSet:
    """Parse a YAML rules document into rule descriptors.

    Raises:
        RuleConfigError: If the YAML or its structure is invalid
    """
    try:
        raw = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise RuleConfigError(f"Invalid YAML in rules config: {e}") from e

    try:
        config = YamlRulesConfig.model_validate(raw)
    except ValidationError as e:
        raise RuleConfigError(f"Invalid rules config: {e}") from e

    rule_set = RuleSet(
        field_rules=[_to_field_rule(r) for r in config.rules.missing_fields],
        validation_rules=[_to_validation_rule(r) for r in config.rules.validation_gaps],
    )
    logger.info(
        f"Loaded {len(rule_set.field_rules)} field rules and "
        f"{len(rule_set.validation_rules)} validation rules"
    )
    return rule_set


def load_rules_file(path: Union[str, Path]) -> RuleSet:
    """Load a YAML rules document from disk."""
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise RuleConfigError(f"Cannot read rules config {path}: {e}") from e
    return parse_rules_config(content)
