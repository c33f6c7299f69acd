"""Forms domain module.

Provides form configuration models, schema compilation, visibility rule
export and evaluation, and submission validation.
"""

from service_designer.domain.forms.models import (
    FieldType,
    Form,
    FormField,
    FormSection,
    VisibilityOperator,
    VisibilityRule,
)
from service_designer.domain.forms.schema_compiler import (
    FormSchema,
    SchemaCompiler,
    compile_form,
)
from service_designer.domain.forms.visibility import (
    OPERATOR_MAP,
    evaluate_rule,
    export_visibility_rules,
    find_unresolved_visibility_rules,
    hidden_targets,
)
from service_designer.domain.forms.submission import (
    SubmissionError,
    SubmissionValidationResult,
    validate_field_value,
    validate_submission,
)

__all__ = [
    "FieldType",
    "Form",
    "FormField",
    "FormSection",
    "VisibilityOperator",
    "VisibilityRule",
    "FormSchema",
    "SchemaCompiler",
    "compile_form",
    "OPERATOR_MAP",
    "evaluate_rule",
    "export_visibility_rules",
    "find_unresolved_visibility_rules",
    "hidden_targets",
    "SubmissionError",
    "SubmissionValidationResult",
    "validate_field_value",
    "validate_submission",
]
