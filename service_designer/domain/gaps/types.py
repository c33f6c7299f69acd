"""Gap detection types.

Gaps, fixes and reports are computed values: they are produced fresh on
each analysis and never persisted. The configuration shapes here are a
lightweight view of a service (forms plus a step/transition workflow)
so analysis can run before a workflow has been promoted to roles.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from service_designer.core.errors import ConfigurationLoadError


class GapSeverity(str, Enum):
    """Gap severity levels."""
    CRITICAL = "critical"
    WARNING = "warning"
    SUGGESTION = "suggestion"


class GapType(str, Enum):
    """Kinds of configuration gap."""
    MISSING_FIELD = "MISSING_FIELD"
    ORPHAN_STEP = "ORPHAN_STEP"
    MISSING_TRANSITION = "MISSING_TRANSITION"
    MISSING_VALIDATION = "MISSING_VALIDATION"
    INVALID_SEQUENCE = "INVALID_SEQUENCE"
    MISSING_END_STATE = "MISSING_END_STATE"
    MISSING_START_STATE = "MISSING_START_STATE"


class GapEntityType(str, Enum):
    """Entity types that can have gaps."""
    FORM = "form"
    FIELD = "field"
    WORKFLOW = "workflow"
    STEP = "step"
    SECTION = "section"


class GapFixAction(str, Enum):
    """Machine-applicable fix actions."""
    ADD_FIELD = "add_field"
    ADD_VALIDATION = "add_validation"
    ADD_TRANSITION = "add_transition"
    REMOVE_STEP = "remove_step"
    SET_TERMINAL = "set_terminal"
    ADD_START_STATE = "add_start_state"


@dataclass
class GapLocation:
    """Where a gap was detected."""
    entity_type: GapEntityType
    entity_id: Optional[str] = None
    entity_name: Optional[str] = None
    parent_id: Optional[str] = None
    parent_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"entityType": self.entity_type.value}
        for key, value in (
            ("entityId", self.entity_id),
            ("entityName", self.entity_name),
            ("parentId", self.parent_id),
            ("parentName", self.parent_name),
        ):
            if value is not None:
                data[key] = value
        return data


@dataclass
class GapFix:
    """A proposed fix for a gap."""
    action: GapFixAction
    params: Dict[str, Any] = field(default_factory=dict)
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action.value,
            "params": dict(self.params),
            "description": self.description,
        }


@dataclass
class Gap:
    """A detected gap in the configuration."""
    id: str
    type: GapType
    severity: GapSeverity
    message: str
    suggestion: str
    location: GapLocation
    fix: Optional[GapFix] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "severity": self.severity.value,
            "message": self.message,
            "suggestion": self.suggestion,
            "location": self.location.to_dict(),
        }
        if self.fix is not None:
            data["fix"] = self.fix.to_dict()
        return data


@dataclass
class GapReport:
    """Gaps partitioned by severity, with a one-sentence summary."""
    timestamp: datetime
    total_gaps: int
    critical_gaps: List[Gap] = field(default_factory=list)
    warning_gaps: List[Gap] = field(default_factory=list)
    suggestion_gaps: List[Gap] = field(default_factory=list)
    summary: str = ""

    def all_gaps(self) -> List[Gap]:
        """Gaps in report order: critical, warning, suggestion."""
        return [*self.critical_gaps, *self.warning_gaps, *self.suggestion_gaps]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "totalGaps": self.total_gaps,
            "criticalGaps": [g.to_dict() for g in self.critical_gaps],
            "warningGaps": [g.to_dict() for g in self.warning_gaps],
            "suggestionGaps": [g.to_dict() for g in self.suggestion_gaps],
            "summary": self.summary,
        }


# =============================================================================
# Configuration shapes for gap analysis
# =============================================================================

def _required(raw: Dict[str, Any], what: str, key: str) -> Any:
    if key not in raw:
        raise ConfigurationLoadError(f"{what} missing required field: {key}")
    return raw[key]


@dataclass
class FieldConfig:
    """A field as seen by gap analysis."""
    id: str
    name: str
    type: str
    required: bool = False
    validation: Dict[str, Any] = field(default_factory=dict)
    section_id: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "FieldConfig":
        """Create from raw dict."""
        return cls(
            id=_required(raw, "Field", "id"),
            name=_required(raw, "Field", "name"),
            type=_required(raw, "Field", "type"),
            required=bool(raw.get("required", False)),
            validation=dict(raw.get("validation") or {}),
            section_id=raw.get("sectionId", raw.get("section_id")),
        )


@dataclass
class SectionConfig:
    id: str
    name: str
    fields: List[FieldConfig] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "SectionConfig":
        """Create from raw dict."""
        return cls(
            id=_required(raw, "Section", "id"),
            name=_required(raw, "Section", "name"),
            fields=[FieldConfig.from_dict(f) for f in raw.get("fields", [])],
        )


@dataclass
class FormConfig:
    id: str
    name: str
    type: Optional[str] = None
    fields: List[FieldConfig] = field(default_factory=list)
    sections: List[SectionConfig] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "FormConfig":
        """Create from raw dict."""
        return cls(
            id=_required(raw, "Form", "id"),
            name=_required(raw, "Form", "name"),
            type=raw.get("type"),
            fields=[FieldConfig.from_dict(f) for f in raw.get("fields", [])],
            sections=[SectionConfig.from_dict(s) for s in raw.get("sections", [])],
        )


@dataclass
class StepConfig:
    """A workflow step, before promotion to a role."""
    id: str
    name: str
    type: Optional[str] = None  # "manual" | "automatic"
    is_start: bool = False
    is_terminal: bool = False
    role_id: Optional[str] = None
    form_id: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "StepConfig":
        """Create from raw dict."""
        return cls(
            id=_required(raw, "Step", "id"),
            name=_required(raw, "Step", "name"),
            type=raw.get("type"),
            is_start=bool(raw.get("isStart", raw.get("is_start", False))),
            is_terminal=bool(raw.get("isTerminal", raw.get("is_terminal", False))),
            role_id=raw.get("roleId", raw.get("role_id")),
            form_id=raw.get("formId", raw.get("form_id")),
        )


@dataclass
class TransitionConfig:
    id: str
    from_step_id: str
    to_step_id: str
    condition: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "TransitionConfig":
        """Create from raw dict."""
        return cls(
            id=raw.get("id", ""),
            from_step_id=raw.get("fromStepId", raw.get("from_step_id")),
            to_step_id=raw.get("toStepId", raw.get("to_step_id")),
            condition=raw.get("condition"),
        )


@dataclass
class WorkflowConfig:
    id: str
    name: str
    steps: List[StepConfig] = field(default_factory=list)
    transitions: List[TransitionConfig] = field(default_factory=list)
    start_step_id: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "WorkflowConfig":
        """Create from raw dict."""
        return cls(
            id=_required(raw, "Workflow", "id"),
            name=raw.get("name", ""),
            steps=[StepConfig.from_dict(s) for s in raw.get("steps", [])],
            transitions=[TransitionConfig.from_dict(t) for t in raw.get("transitions", [])],
            start_step_id=raw.get("startStepId", raw.get("start_step_id")),
        )


@dataclass
class ServiceConfig:
    """Everything gap analysis looks at for one service."""
    id: str
    name: str
    type: Optional[str] = None
    forms: List[FormConfig] = field(default_factory=list)
    workflow: Optional[WorkflowConfig] = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "ServiceConfig":
        """Create from raw dict."""
        workflow = raw.get("workflow")
        return cls(
            id=raw.get("id", ""),
            name=raw.get("name", ""),
            type=raw.get("type"),
            forms=[FormConfig.from_dict(f) for f in raw.get("forms", [])],
            workflow=WorkflowConfig.from_dict(workflow) if workflow else None,
        )
