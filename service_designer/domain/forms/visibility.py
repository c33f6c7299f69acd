"""Visibility rule export and evaluation.

Stored rules reference their source field by id and use the designer's
operator vocabulary. The export resolves ids to field names (facts are
addressed by name) and maps operators onto the json-rules-engine
vocabulary, producing one rule per target:

    {"conditions": {"all": [{"fact", "operator", "value"}]},
     "event": {"type": "visible"}}

Only single-condition rules are produced; composing several conditions
per target is not supported by the stored rule shape.
"""

import logging
import operator as operator_module
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set

from service_designer.domain.forms.models import (
    Form,
    FormField,
    VisibilityOperator,
    VisibilityRule,
)

logger = logging.getLogger(__name__)

VISIBLE_EVENT = "visible"

# Designer operator -> rules-engine operator. Must cover every member.
OPERATOR_MAP: Dict[VisibilityOperator, str] = {
    VisibilityOperator.EQUALS: "equal",
    VisibilityOperator.NOT_EQUALS: "notEqual",
    VisibilityOperator.CONTAINS: "contains",
    VisibilityOperator.GREATER_THAN: "greaterThan",
    VisibilityOperator.LESS_THAN: "lessThan",
    VisibilityOperator.GREATER_THAN_OR_EQUALS: "greaterThanInclusive",
    VisibilityOperator.LESS_THAN_OR_EQUALS: "lessThanInclusive",
    VisibilityOperator.IS_EMPTY: "equal",
    VisibilityOperator.IS_NOT_EMPTY: "notEqual",
}

# Emptiness checks degrade to a comparison against the empty string
_EMPTINESS_OPERATORS = {VisibilityOperator.IS_EMPTY, VisibilityOperator.IS_NOT_EMPTY}


def convert_visibility_rule(
    rule: VisibilityRule,
    fields_by_id: Mapping[str, FormField],
) -> Optional[Dict[str, Any]]:
    """Convert a stored rule into rules-engine format.

    Returns None when the source field cannot be resolved or the operator
    is unknown; such rules are authoring inconsistencies, not failures.
    """
    source = fields_by_id.get(rule.source_field_id)
    if source is None:
        logger.debug(f"Dropping visibility rule: unknown source field {rule.source_field_id}")
        return None

    if rule.operator is None:
        logger.debug(f"Dropping visibility rule: unknown operator {rule.raw_operator!r}")
        return None

    value = "" if rule.operator in _EMPTINESS_OPERATORS else rule.value

    return {
        "conditions": {
            "all": [
                {
                    "fact": source.name,
                    "operator": OPERATOR_MAP[rule.operator],
                    "value": value,
                },
            ],
        },
        "event": {"type": VISIBLE_EVENT},
    }


def export_visibility_rules(
    form: Form,
    fields: Optional[List[FormField]] = None,
) -> Dict[str, List[Dict[str, Any]]]:
    """Export visibility rules for the form's active fields and sections."""
    fields = fields if fields is not None else form.active_fields()
    fields_by_id = {f.field_id: f for f in fields}

    field_rules: List[Dict[str, Any]] = []
    for form_field in fields:
        if form_field.visibility_rule is None:
            continue
        rule = convert_visibility_rule(form_field.visibility_rule, fields_by_id)
        if rule:
            field_rules.append({
                "targetId": form_field.field_id,
                "targetName": form_field.name,
                "targetType": "field",
                "rule": rule,
            })

    section_rules: List[Dict[str, Any]] = []
    for section in form.active_sections():
        if section.visibility_rule is None:
            continue
        rule = convert_visibility_rule(section.visibility_rule, fields_by_id)
        if rule:
            section_rules.append({
                "targetId": section.section_id,
                "targetName": section.name,
                "targetType": "section",
                "rule": rule,
            })

    return {"fields": field_rules, "sections": section_rules}


def find_unresolved_visibility_rules(form: Form) -> List[Dict[str, str]]:
    """List rule owners whose source field is missing from the active fields."""
    fields_by_id = {f.field_id: f for f in form.active_fields()}
    unresolved: List[Dict[str, str]] = []

    owners = [
        ("field", f.field_id, f.name, f.visibility_rule) for f in form.active_fields()
    ] + [
        ("section", s.section_id, s.name, s.visibility_rule) for s in form.active_sections()
    ]
    for target_type, target_id, target_name, rule in owners:
        if rule is not None and rule.source_field_id not in fields_by_id:
            unresolved.append({
                "targetId": target_id,
                "targetName": target_name,
                "targetType": target_type,
                "sourceFieldId": rule.source_field_id,
            })

    return unresolved


# -----------------------------------------------------------------------------
# Evaluation
# -----------------------------------------------------------------------------

def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


_NUMERIC_OPERATORS = {
    "greaterThan": operator_module.gt,
    "greaterThanInclusive": operator_module.ge,
    "lessThan": operator_module.lt,
    "lessThanInclusive": operator_module.le,
}


def _contains(actual: Any, expected: Any) -> bool:
    if isinstance(actual, (list, tuple)):
        return expected in actual
    if isinstance(actual, str) and isinstance(expected, str):
        return expected.lower() in actual.lower()
    return False


def evaluate_condition(condition: Mapping[str, Any], values: Mapping[str, Any]) -> bool:
    """Evaluate one rules-engine condition against fact values.

    Missing facts are None. Against the empty string, a missing, null or
    blank fact counts as empty. Ordering comparisons between non-numbers
    are False rather than errors.
    """
    actual = values.get(condition["fact"])
    operator = condition["operator"]
    expected = condition.get("value")

    if operator in ("equal", "notEqual") and expected == "" and _is_blank(actual):
        actual = ""

    if operator == "equal":
        return actual == expected
    if operator == "notEqual":
        return actual != expected
    if operator == "in":
        return isinstance(expected, (list, tuple)) and actual in expected
    if operator == "notIn":
        return isinstance(expected, (list, tuple)) and actual not in expected
    if operator == "contains":
        return _contains(actual, expected)
    if operator == "doesNotContain":
        return not _contains(actual, expected)

    compare = _NUMERIC_OPERATORS.get(operator)
    if compare is not None:
        return _is_number(actual) and _is_number(expected) and compare(actual, expected)

    logger.warning(f"Unknown rule operator: {operator}")
    return False


def evaluate_rule(rule: Mapping[str, Any], values: Mapping[str, Any]) -> bool:
    """Evaluate an exported rule; True when its event fires."""
    conditions = rule.get("conditions", {})
    if "all" in conditions:
        return all(evaluate_condition(c, values) for c in conditions["all"])
    if "any" in conditions:
        return any(evaluate_condition(c, values) for c in conditions["any"])
    return True


def _hidden_mappings(
    rules_export: Mapping[str, Iterable[Mapping[str, Any]]],
    values: Mapping[str, Any],
    target_type: str,
) -> List[Mapping[str, Any]]:
    key = "fields" if target_type == "field" else "sections"
    return [
        mapping
        for mapping in rules_export.get(key, [])
        if not evaluate_rule(mapping["rule"], values)
    ]


def hidden_targets(
    rules_export: Mapping[str, Iterable[Mapping[str, Any]]],
    values: Mapping[str, Any],
    target_type: str = "field",
) -> Set[str]:
    """Names of ruled targets of target_type that are currently hidden.

    A target without a rule is always visible, so only ruled targets can
    appear in the result.
    """
    return {m["targetName"] for m in _hidden_mappings(rules_export, values, target_type)}


def hidden_target_ids(
    rules_export: Mapping[str, Iterable[Mapping[str, Any]]],
    values: Mapping[str, Any],
    target_type: str = "section",
) -> Set[str]:
    """Ids of ruled targets of target_type that are currently hidden."""
    return {m["targetId"] for m in _hidden_mappings(rules_export, values, target_type)}
