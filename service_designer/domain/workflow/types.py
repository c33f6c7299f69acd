"""Validation result types for workflow validation."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ValidationIssueCode(str, Enum):
    """Issue codes for workflow validation."""

    # Structure
    NO_ROLES = "NO_ROLES"
    NO_START_ROLE = "NO_START_ROLE"
    MULTIPLE_START_ROLES = "MULTIPLE_START_ROLES"
    NO_TRANSITIONS = "NO_TRANSITIONS"
    NO_END_ROLE = "NO_END_ROLE"

    # Connectivity
    UNREACHABLE_ROLE = "UNREACHABLE_ROLE"
    ORPHAN_ROLE = "ORPHAN_ROLE"

    # Bindings
    UNBOUND_REGISTRATION = "UNBOUND_REGISTRATION"
    UNASSIGNED_INSTITUTION = "UNASSIGNED_INSTITUTION"


class ValidationSeverity(str, Enum):
    """Severity level for validation issues."""
    ERROR = "ERROR"      # Blocks publishing
    WARNING = "WARNING"  # Allowed but flagged


@dataclass
class ValidationIssue:
    """A single workflow validation issue."""

    code: ValidationIssueCode
    severity: ValidationSeverity
    message: str
    role_id: Optional[str] = None
    role_name: Optional[str] = None
    registration_id: Optional[str] = None
    registration_name: Optional[str] = None

    def __str__(self) -> str:
        return f"[{self.severity.value}:{self.code.value}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "code": self.code.value,
            "severity": self.severity.value,
            "message": self.message,
        }
        if self.role_id is not None:
            data["roleId"] = self.role_id
            data["roleName"] = self.role_name
        if self.registration_id is not None:
            data["registrationId"] = self.registration_id
            data["registrationName"] = self.registration_name
        return data


@dataclass
class WorkflowValidationResult:
    """Result of workflow validation. Valid means no ERROR issues."""

    issues: List[ValidationIssue] = field(default_factory=list)

    @property
    def errors(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity is ValidationSeverity.ERROR]

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity is ValidationSeverity.WARNING]

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def warning_count(self) -> int:
        return len(self.warnings)

    def codes(self) -> List[ValidationIssueCode]:
        """Issue codes in report order."""
        return [i.code for i in self.issues]

    def __bool__(self) -> bool:
        return self.valid

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isValid": self.valid,
            "errorCount": self.error_count,
            "warningCount": self.warning_count,
            "issues": [i.to_dict() for i in self.issues],
        }
