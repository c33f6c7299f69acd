"""Typed models for workflow configuration.

These dataclasses represent the design-time workflow of a service: roles,
their per-role outcome statuses, status-triggered transitions, and the
registration / institution bindings used for completeness checks.

Instances are built by callers from rows already loaded from storage
(only active records). ``from_dict`` accepts the camelCase shapes
produced by the API layer as well as snake_case keys.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

from service_designer.core.errors import ConfigurationLoadError


class RoleType(str, Enum):
    """Kind of workflow participant."""
    USER = "USER"  # human
    BOT = "BOT"    # automated

    @classmethod
    def parse(cls, raw: str) -> "RoleType":
        """Parse a role type, accepting human/automated aliases."""
        aliases = {"human": cls.USER, "automated": cls.BOT}
        if raw.lower() in aliases:
            return aliases[raw.lower()]
        return cls(raw.upper())


class StatusCode(str, Enum):
    """The four fixed outcome codes every role can have."""
    PENDING = "PENDING"
    PASSED = "PASSED"
    RETURNED = "RETURNED"
    REJECTED = "REJECTED"

    @property
    def originates_transitions(self) -> bool:
        """PENDING is the entry state and never routes anywhere."""
        return self is not StatusCode.PENDING


def _pick(raw: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first key present in raw."""
    for key in keys:
        if key in raw:
            return raw[key]
    return default


def _require(raw: Dict[str, Any], what: str, *keys: str) -> Any:
    value = _pick(raw, *keys)
    if value is None:
        raise ConfigurationLoadError(f"{what} missing required field: {keys[0]}")
    return value


@dataclass
class Transition:
    """A directed edge from a (role, status) pair to a target role."""
    transition_id: str
    to_role_id: str
    condition: Optional[str] = None
    sort_order: int = 0

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Transition":
        """Create from raw dict."""
        return cls(
            transition_id=str(_pick(raw, "id", "transition_id", default="")),
            to_role_id=_require(raw, "Transition", "toRoleId", "to_role_id"),
            condition=_pick(raw, "condition"),
            sort_order=int(_pick(raw, "sortOrder", "sort_order", default=0)),
        )


@dataclass
class Status:
    """One outcome status of a role, owning its outgoing transitions."""
    status_id: str
    code: StatusCode
    transitions: List[Transition] = field(default_factory=list)

    def transitions_in_order(self) -> List[Transition]:
        """Transitions sorted by sort order (stable for ties)."""
        return sorted(self.transitions, key=lambda t: t.sort_order)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Status":
        """Create from raw dict."""
        code = _require(raw, "Status", "code")
        try:
            status_code = StatusCode(code)
        except ValueError as e:
            raise ConfigurationLoadError(f"Invalid status code: {code}") from e
        return cls(
            status_id=str(_pick(raw, "id", "status_id", default=code)),
            code=status_code,
            transitions=[
                Transition.from_dict(t) for t in _pick(raw, "transitions", default=[])
            ],
        )


@dataclass
class Role:
    """A workflow participant (human or automated)."""
    role_id: str
    name: str
    role_type: RoleType = RoleType.USER
    is_start: bool = False
    statuses: List[Status] = field(default_factory=list)
    institution_ids: List[str] = field(default_factory=list)

    @property
    def is_human(self) -> bool:
        return self.role_type is RoleType.USER

    def status_for(self, code: StatusCode) -> Optional[Status]:
        """Return this role's status with the given code, if configured."""
        for status in self.statuses:
            if status.code is code:
                return status
        return None

    def outgoing_transitions(self) -> Iterator[Transition]:
        """Yield transitions of every non-PENDING status, in insertion order."""
        for status in self.statuses:
            if not status.code.originates_transitions:
                continue
            yield from status.transitions

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Role":
        """Create from raw dict."""
        role_id = _require(raw, "Role", "id", "role_id")
        raw_type = _pick(raw, "roleType", "role_type", "kind", default="USER")
        try:
            role_type = RoleType.parse(raw_type)
        except ValueError as e:
            raise ConfigurationLoadError(
                f"Role '{role_id}' has invalid role type: {raw_type}"
            ) from e
        return cls(
            role_id=role_id,
            name=_pick(raw, "name", default=role_id),
            role_type=role_type,
            is_start=bool(_pick(raw, "isStartRole", "isStart", "is_start", default=False)),
            statuses=[Status.from_dict(s) for s in _pick(raw, "statuses", default=[])],
            institution_ids=list(_pick(raw, "institutionIds", "institution_ids", default=[])),
        )


@dataclass
class Registration:
    """Something processed by the workflow, bound to the roles handling it."""
    registration_id: str
    name: str
    role_ids: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Registration":
        """Create from raw dict."""
        registration_id = _require(raw, "Registration", "id", "registration_id")
        return cls(
            registration_id=registration_id,
            name=_pick(raw, "name", default=registration_id),
            role_ids=list(_pick(raw, "roleIds", "role_ids", default=[])),
        )


@dataclass
class Workflow:
    """The complete role graph of one service."""
    roles: List[Role] = field(default_factory=list)
    registrations: List[Registration] = field(default_factory=list)

    def role_by_id(self, role_id: str) -> Optional[Role]:
        for role in self.roles:
            if role.role_id == role_id:
                return role
        return None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Workflow":
        """Create from raw dict."""
        return cls(
            roles=[Role.from_dict(r) for r in raw.get("roles", [])],
            registrations=[
                Registration.from_dict(r) for r in raw.get("registrations", [])
            ],
        )
