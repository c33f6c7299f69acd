"""Workflow domain module.

Provides the role graph model and design-time workflow validation.
"""

from service_designer.domain.workflow.models import (
    Registration,
    Role,
    RoleType,
    Status,
    StatusCode,
    Transition,
    Workflow,
)
from service_designer.domain.workflow.graph import AdjacencyView, build_adjacency
from service_designer.domain.workflow.types import (
    ValidationIssue,
    ValidationIssueCode,
    ValidationSeverity,
    WorkflowValidationResult,
)
from service_designer.domain.workflow.validator import WorkflowValidator

__all__ = [
    "Registration",
    "Role",
    "RoleType",
    "Status",
    "StatusCode",
    "Transition",
    "Workflow",
    "AdjacencyView",
    "build_adjacency",
    "ValidationIssue",
    "ValidationIssueCode",
    "ValidationSeverity",
    "WorkflowValidationResult",
    "WorkflowValidator",
]
