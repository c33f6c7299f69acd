"""Workflow validator for role/status/transition graphs.

Checks a service's design-time workflow for structural soundness before
it can be published. Enforces, in order:
1. At least one role exists (fail fast)
2. Exactly one start role
3. Transitions exist when there is more than one role
4. At least one terminal role when transitions exist
5. Every role is reachable from the start role
6. No orphan roles (non-start roles without incoming transitions)
7. Every registration is bound to a role
8. Every human role has an institution assignment
"""

import logging
from typing import Iterable, List, Optional

from service_designer.domain.workflow.graph import AdjacencyView, build_adjacency
from service_designer.domain.workflow.models import Registration, Role, Workflow
from service_designer.domain.workflow.types import (
    ValidationIssue,
    ValidationIssueCode,
    ValidationSeverity,
    WorkflowValidationResult,
)

logger = logging.getLogger(__name__)


class WorkflowValidator:
    """Validates a workflow's role graph and bindings.

    Malformed input is reported, never raised: a transition to an unknown
    role simply contributes no incoming edge, so the affected roles show up
    as unreachable or orphaned.
    """

    def validate_workflow(self, workflow: Workflow) -> WorkflowValidationResult:
        """Validate a Workflow model."""
        return self.validate(workflow.roles, workflow.registrations)

    def validate(
        self,
        roles: Iterable[Role],
        registrations: Optional[Iterable[Registration]] = None,
    ) -> WorkflowValidationResult:
        """Validate workflow configuration.

        Args:
            roles: Active roles of the workflow, with statuses and transitions
            registrations: Registrations of the service, with bound role ids

        Returns:
            WorkflowValidationResult with issues in rule order
        """
        roles = list(roles)
        registrations = list(registrations or [])
        issues: List[ValidationIssue] = []

        # Rule 1: no roles (fail fast)
        if not roles:
            issues.append(ValidationIssue(
                code=ValidationIssueCode.NO_ROLES,
                severity=ValidationSeverity.ERROR,
                message="No workflow roles defined. Add at least one role to create a workflow.",
            ))
            return WorkflowValidationResult(issues=issues)

        # Rule 2: start role
        start_roles = [r for r in roles if r.is_start]
        issues.extend(self._check_start_roles(start_roles))

        graph = build_adjacency(roles)
        has_transitions = graph.has_transitions()

        # Rules 3-4: transitions and terminal roles
        issues.extend(self._check_flow(roles, graph, has_transitions))

        # Rule 5: reachability
        if len(start_roles) == 1:
            issues.extend(self._check_reachability(start_roles[0], roles, graph))

        # Rule 6: orphans
        if has_transitions:
            issues.extend(self._check_orphans(roles, graph))

        # Rules 7-8: bindings
        issues.extend(self._check_unbound_registrations(registrations))
        issues.extend(self._check_unassigned_institutions(roles))

        result = WorkflowValidationResult(issues=issues)
        logger.debug(
            f"Validated workflow with {len(roles)} roles: "
            f"{result.error_count} errors, {result.warning_count} warnings"
        )
        return result

    def _check_start_roles(self, start_roles: List[Role]) -> List[ValidationIssue]:
        if not start_roles:
            return [ValidationIssue(
                code=ValidationIssueCode.NO_START_ROLE,
                severity=ValidationSeverity.ERROR,
                message="No start role defined. Mark one role as the start role.",
            )]
        if len(start_roles) > 1:
            names = ", ".join(r.name for r in start_roles)
            return [ValidationIssue(
                code=ValidationIssueCode.MULTIPLE_START_ROLES,
                severity=ValidationSeverity.ERROR,
                message=f"Multiple start roles found: {names}. Only one start role is allowed.",
            )]
        return []

    def _check_flow(
        self,
        roles: List[Role],
        graph: AdjacencyView,
        has_transitions: bool,
    ) -> List[ValidationIssue]:
        issues: List[ValidationIssue] = []

        if not has_transitions and len(roles) > 1:
            issues.append(ValidationIssue(
                code=ValidationIssueCode.NO_TRANSITIONS,
                severity=ValidationSeverity.WARNING,
                message="No transitions defined between roles. "
                        "Configure transitions to create the workflow flow.",
            ))

        # Every role routes somewhere: the workflow can only cycle
        if has_transitions and not graph.terminal_role_ids():
            issues.append(ValidationIssue(
                code=ValidationIssueCode.NO_END_ROLE,
                severity=ValidationSeverity.WARNING,
                message="No terminal roles found. "
                        "Ensure at least one role has no outgoing transitions.",
            ))

        return issues

    def _check_reachability(
        self,
        start_role: Role,
        roles: List[Role],
        graph: AdjacencyView,
    ) -> List[ValidationIssue]:
        reachable = graph.reachable_from(start_role.role_id)
        return [
            ValidationIssue(
                code=ValidationIssueCode.UNREACHABLE_ROLE,
                severity=ValidationSeverity.ERROR,
                message=f'Role "{role.name}" is not reachable from the start role.',
                role_id=role.role_id,
                role_name=role.name,
            )
            for role in roles
            if role.role_id not in reachable
        ]

    def _check_orphans(
        self,
        roles: List[Role],
        graph: AdjacencyView,
    ) -> List[ValidationIssue]:
        return [
            ValidationIssue(
                code=ValidationIssueCode.ORPHAN_ROLE,
                severity=ValidationSeverity.WARNING,
                message=f'Role "{role.name}" has no incoming transitions and is not the start role.',
                role_id=role.role_id,
                role_name=role.name,
            )
            for role in roles
            if not role.is_start and not graph.incoming.get(role.role_id)
        ]

    def _check_unbound_registrations(
        self,
        registrations: List[Registration],
    ) -> List[ValidationIssue]:
        return [
            ValidationIssue(
                code=ValidationIssueCode.UNBOUND_REGISTRATION,
                severity=ValidationSeverity.WARNING,
                message=f'Registration "{registration.name}" has no processing roles.',
                registration_id=registration.registration_id,
                registration_name=registration.name,
            )
            for registration in registrations
            if not registration.role_ids
        ]

    def _check_unassigned_institutions(self, roles: List[Role]) -> List[ValidationIssue]:
        # Bot roles run without an institution
        return [
            ValidationIssue(
                code=ValidationIssueCode.UNASSIGNED_INSTITUTION,
                severity=ValidationSeverity.ERROR,
                message=f'Role "{role.name}" requires institution assignment for publishing.',
                role_id=role.role_id,
                role_name=role.name,
            )
            for role in roles
            if role.is_human and not role.institution_ids
        ]
