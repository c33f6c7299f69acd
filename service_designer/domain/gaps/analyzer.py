"""Gap analyzer.

Core engine for detecting gaps in service configurations. Runs the three
rule families (field presence, validation coverage, workflow topology)
independently over the same configuration snapshot, merges the results
and partitions them by severity.

Gap ids are numbered in detection order, so identical input always yields
identical gaps.
"""

import copy
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from service_designer.core.config import get_settings
from service_designer.domain.gaps.rules import (
    DEFAULT_VALIDATION_RULES,
    DEFAULT_WORKFLOW_RULES,
    FieldGapRule,
    ValidationGapRule,
    WorkflowGapRule,
    get_rules_for_service_type,
    load_rules_file,
    merge_rules,
)
from service_designer.domain.gaps.types import (
    FieldConfig,
    FormConfig,
    Gap,
    GapEntityType,
    GapFix,
    GapFixAction,
    GapLocation,
    GapReport,
    GapSeverity,
    GapType,
    ServiceConfig,
)

logger = logging.getLogger(__name__)


@dataclass
class GapAnalysisOptions:
    """Which rule families run, and with which extra rules."""
    check_fields: bool = True
    check_validation: bool = True
    check_workflow: bool = True
    custom_rules: List[FieldGapRule] = field(default_factory=list)
    custom_validation_rules: List[ValidationGapRule] = field(default_factory=list)
    service_type: Optional[str] = None

    @classmethod
    def from_settings(cls) -> "GapAnalysisOptions":
        """Options from environment settings, loading custom rules if configured."""
        settings = get_settings()
        options = cls(service_type=settings.GAP_DEFAULT_SERVICE_TYPE)
        if settings.GAP_CUSTOM_RULES_PATH is not None:
            rule_set = load_rules_file(settings.GAP_CUSTOM_RULES_PATH)
            options.custom_rules = rule_set.field_rules
            options.custom_validation_rules = rule_set.validation_rules
        return options


def _pluralize(count: int, singular: str, plural: str) -> str:
    return f"{count} {singular if count == 1 else plural}"


def summarize(critical: int, warnings: int, suggestions: int) -> str:
    """One-sentence summary of gap counts."""
    if critical + warnings + suggestions == 0:
        return "No gaps detected. Configuration appears complete."
    parts: List[str] = []
    if critical:
        parts.append(_pluralize(critical, "critical issue", "critical issues"))
    if warnings:
        parts.append(_pluralize(warnings, "warning", "warnings"))
    if suggestions:
        parts.append(_pluralize(suggestions, "suggestion", "suggestions"))
    return f"Found {', '.join(parts)}."


class GapAnalyzer:
    """Detects configuration gaps in forms, validations and workflows."""

    def __init__(self, options: Optional[GapAnalysisOptions] = None):
        self.options = options or GapAnalysisOptions()

    @property
    def field_rules(self) -> List[FieldGapRule]:
        """Built-in rules for the service type, then custom rules by name."""
        return merge_rules(
            get_rules_for_service_type(self.options.service_type),
            self.options.custom_rules,
        )

    @property
    def validation_rules(self) -> List[ValidationGapRule]:
        return merge_rules(DEFAULT_VALIDATION_RULES, self.options.custom_validation_rules)

    @property
    def workflow_rules(self) -> List[WorkflowGapRule]:
        return list(DEFAULT_WORKFLOW_RULES)

    def analyze(self, config: Union[ServiceConfig, Dict[str, Any]]) -> GapReport:
        """Analyze a service configuration for all enabled gap families.

        Args:
            config: ServiceConfig or its dict form

        Returns:
            GapReport with gaps partitioned by severity
        """
        if isinstance(config, dict):
            config = ServiceConfig.from_dict(config)

        gaps: List[Gap] = []

        if self.options.check_fields:
            gaps.extend(self.analyze_missing_fields(config))

        if self.options.check_validation:
            gaps.extend(self.analyze_validation_gaps(config))

        if self.options.check_workflow and config.workflow is not None:
            gaps.extend(self.analyze_workflow_gaps(config))

        gaps = [replace(gap, id=f"gap-{index}") for index, gap in enumerate(gaps, start=1)]

        report = self.generate_report(gaps)
        logger.info(
            f"Gap analysis for service {config.id or config.name}: {report.summary}",
            extra={"gap_count": report.total_gaps},
        )
        return report

    # -------------------------------------------------------------------------
    # Rule families
    # -------------------------------------------------------------------------

    def analyze_missing_fields(self, config: ServiceConfig) -> List[Gap]:
        """Evaluate field-presence rules. Services without forms are skipped."""
        if not config.forms:
            return []

        first_form = config.forms[0]
        gaps: List[Gap] = []
        for rule in self.field_rules:
            if rule.check(config):
                continue
            gaps.append(Gap(
                id="",
                type=GapType.MISSING_FIELD,
                severity=rule.severity,
                message=rule.message or rule.description,
                suggestion=rule.suggestion or f"Add the required {rule.name}",
                location=GapLocation(
                    entity_type=GapEntityType.FORM,
                    entity_id=first_form.id,
                    entity_name=first_form.name,
                ),
                fix=self._copy_fix(rule.fix),
            ))
        return gaps

    def analyze_validation_gaps(self, config: ServiceConfig) -> List[Gap]:
        """Evaluate validation-coverage rules over every field."""
        gaps: List[Gap] = []
        rules = self.validation_rules
        for form in config.forms:
            for config_field, parent in self._fields_with_parent(form):
                for rule in rules:
                    if rule.applies_to(config_field) and not rule.is_satisfied(config_field):
                        gaps.append(self._validation_gap(rule, config_field, parent))
        return gaps

    def analyze_workflow_gaps(self, config: ServiceConfig) -> List[Gap]:
        """Evaluate workflow-topology rules over the step graph."""
        workflow = config.workflow
        if workflow is None:
            return []
        gaps: List[Gap] = []
        for rule in self.workflow_rules:
            for finding in rule.detect(workflow):
                gaps.append(Gap(
                    id="",
                    type=rule.gap_type,
                    severity=rule.severity,
                    message=finding.message,
                    suggestion=finding.suggestion,
                    location=finding.location,
                    fix=finding.fix,
                ))
        return gaps

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _copy_fix(self, fix: Optional[GapFix]) -> Optional[GapFix]:
        # Rule fixes are shared module state; each gap gets its own params
        if fix is None:
            return None
        return replace(fix, params=copy.deepcopy(fix.params))

    def _fields_with_parent(self, form: FormConfig):
        for config_field in form.fields:
            yield config_field, (form.id, form.name)
        for section in form.sections:
            for config_field in section.fields:
                yield config_field, (section.id, section.name)

    def _validation_gap(
        self,
        rule: ValidationGapRule,
        config_field: FieldConfig,
        parent: tuple,
    ) -> Gap:
        fix = None
        if rule.fix_validation is not None:
            fix = GapFix(
                action=GapFixAction.ADD_VALIDATION,
                params={"fieldId": config_field.id, "validation": dict(rule.fix_validation)},
                description=f'Add {rule.name.replace("_", " ")} validation to "{config_field.name}"',
            )
        return Gap(
            id="",
            type=GapType.MISSING_VALIDATION,
            severity=rule.severity,
            message=rule.message_template.replace("{name}", config_field.name),
            suggestion=rule.suggestion or rule.description,
            location=GapLocation(
                entity_type=GapEntityType.FIELD,
                entity_id=config_field.id,
                entity_name=config_field.name,
                parent_id=parent[0],
                parent_name=parent[1],
            ),
            fix=fix,
        )

    def generate_report(self, gaps: List[Gap]) -> GapReport:
        """Partition gaps by severity and summarize."""
        critical = [g for g in gaps if g.severity is GapSeverity.CRITICAL]
        warnings = [g for g in gaps if g.severity is GapSeverity.WARNING]
        suggestions = [g for g in gaps if g.severity is GapSeverity.SUGGESTION]

        return GapReport(
            timestamp=datetime.now(timezone.utc),
            total_gaps=len(gaps),
            critical_gaps=critical,
            warning_gaps=warnings,
            suggestion_gaps=suggestions,
            summary=summarize(len(critical), len(warnings), len(suggestions)),
        )


def analyze_service(
    config: Union[ServiceConfig, Dict[str, Any]],
    options: Optional[GapAnalysisOptions] = None,
) -> GapReport:
    """Analyze a service with a one-off GapAnalyzer."""
    return GapAnalyzer(options).analyze(config)
