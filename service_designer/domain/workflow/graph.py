"""Adjacency view over a role graph.

Roles are addressed by id only; edges live in id-keyed maps. Neighbour
lists behave as insertion-ordered sets so traversal is deterministic.
No validation happens here: a transition targeting an unknown role is
kept in ``outgoing`` but never produces an ``incoming`` entry.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Set

from service_designer.domain.workflow.models import Role


@dataclass
class AdjacencyView:
    """Outgoing and incoming edges keyed by role id."""
    outgoing: Dict[str, List[str]] = field(default_factory=dict)
    incoming: Dict[str, List[str]] = field(default_factory=dict)

    def add_edge(self, from_id: str, to_id: str) -> None:
        targets = self.outgoing.setdefault(from_id, [])
        if to_id not in targets:
            targets.append(to_id)
        if to_id in self.incoming:
            sources = self.incoming[to_id]
            if from_id not in sources:
                sources.append(from_id)

    def has_transitions(self) -> bool:
        """True if any role has at least one outgoing edge."""
        return any(self.outgoing.values())

    def terminal_role_ids(self) -> List[str]:
        """Roles with no outgoing edges, in role order."""
        return [role_id for role_id, targets in self.outgoing.items() if not targets]

    def reachable_from(self, start_id: str) -> Set[str]:
        """Find all roles reachable from start_id via BFS.

        Unweighted connectivity only; visited-set membership decides
        reachability. Neighbours are expanded in edge insertion order.
        """
        reachable: Set[str] = {start_id}
        queue = deque([start_id])

        while queue:
            current = queue.popleft()
            for neighbor in self.outgoing.get(current, []):
                if neighbor not in reachable:
                    reachable.add(neighbor)
                    queue.append(neighbor)

        return reachable


def build_adjacency(roles: Iterable[Role]) -> AdjacencyView:
    """Build the adjacency view from every role's non-PENDING transitions."""
    roles = list(roles)
    view = AdjacencyView()

    for role in roles:
        view.outgoing[role.role_id] = []
        view.incoming[role.role_id] = []

    for role in roles:
        for transition in role.outgoing_transitions():
            view.add_edge(role.role_id, transition.to_role_id)

    return view
