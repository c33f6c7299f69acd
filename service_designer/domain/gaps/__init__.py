"""Gaps domain module.

Detects missing fields, validations and workflow steps in a service
configuration, and formats the resulting reports.
"""

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
    SectionConfig,
    ServiceConfig,
    StepConfig,
    TransitionConfig,
    WorkflowConfig,
)
from service_designer.domain.gaps.rules import (
    DEFAULT_FIELD_RULES,
    DEFAULT_VALIDATION_RULES,
    DEFAULT_WORKFLOW_RULES,
    FieldGapRule,
    RuleSet,
    ValidationGapRule,
    WorkflowGapRule,
    load_rules_file,
    parse_rules_config,
)
from service_designer.domain.gaps.analyzer import (
    GapAnalysisOptions,
    GapAnalyzer,
    analyze_service,
)
from service_designer.domain.gaps.report import (
    FixEntry,
    FormatOptions,
    UiGapReport,
    format_report_for_chat,
    format_report_for_ui,
    generate_fix_prompt,
    get_fixes_from_report,
)

__all__ = [
    "FieldConfig",
    "FormConfig",
    "Gap",
    "GapEntityType",
    "GapFix",
    "GapFixAction",
    "GapLocation",
    "GapReport",
    "GapSeverity",
    "GapType",
    "SectionConfig",
    "ServiceConfig",
    "StepConfig",
    "TransitionConfig",
    "WorkflowConfig",
    "DEFAULT_FIELD_RULES",
    "DEFAULT_VALIDATION_RULES",
    "DEFAULT_WORKFLOW_RULES",
    "FieldGapRule",
    "RuleSet",
    "ValidationGapRule",
    "WorkflowGapRule",
    "load_rules_file",
    "parse_rules_config",
    "GapAnalysisOptions",
    "GapAnalyzer",
    "analyze_service",
    "FixEntry",
    "FormatOptions",
    "UiGapReport",
    "format_report_for_chat",
    "format_report_for_ui",
    "generate_fix_prompt",
    "get_fixes_from_report",
]
