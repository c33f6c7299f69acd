"""Tests for the role adjacency view."""

from service_designer.domain.workflow.graph import AdjacencyView, build_adjacency
from service_designer.domain.workflow.models import (
    Role,
    Status,
    StatusCode,
    Transition,
)


def _role(role_id, passed=(), returned=(), pending=()):
    def status(code, targets):
        return Status(
            status_id=f"{role_id}-{code.value}",
            code=code,
            transitions=[
                Transition(transition_id=f"{role_id}-{t}", to_role_id=t) for t in targets
            ],
        )

    return Role(
        role_id=role_id,
        name=role_id,
        statuses=[
            status(StatusCode.PENDING, pending),
            status(StatusCode.PASSED, passed),
            status(StatusCode.RETURNED, returned),
        ],
    )


class TestBuildAdjacency:
    """Tests for build_adjacency."""

    def test_every_role_has_entries(self):
        """Roles without transitions still get empty entries."""
        view = build_adjacency([_role("a"), _role("b")])

        assert view.outgoing == {"a": [], "b": []}
        assert view.incoming == {"a": [], "b": []}

    def test_edges_from_non_pending_statuses(self):
        """PASSED and RETURNED transitions become edges."""
        view = build_adjacency([
            _role("a", passed=["b"]),
            _role("b", returned=["a"]),
        ])

        assert view.outgoing["a"] == ["b"]
        assert view.outgoing["b"] == ["a"]
        assert view.incoming["a"] == ["b"]
        assert view.incoming["b"] == ["a"]

    def test_pending_never_originates_edges(self):
        """Transitions on PENDING are ignored."""
        view = build_adjacency([_role("a", pending=["b"]), _role("b")])

        assert view.outgoing["a"] == []
        assert view.incoming["b"] == []
        assert not view.has_transitions()

    def test_duplicate_edges_collapse(self):
        """Two statuses routing to the same role give one edge."""
        view = build_adjacency([
            _role("a", passed=["b"], returned=["b"]),
            _role("b"),
        ])

        assert view.outgoing["a"] == ["b"]
        assert view.incoming["b"] == ["a"]

    def test_dangling_target_has_no_incoming_entry(self):
        """Unknown targets stay in outgoing but never in incoming."""
        view = build_adjacency([_role("a", passed=["ghost"])])

        assert view.outgoing["a"] == ["ghost"]
        assert "ghost" not in view.incoming

    def test_incoming_is_inverse_of_outgoing(self):
        """Every known-target edge appears in both maps."""
        roles = [
            _role("a", passed=["b", "c"]),
            _role("b", passed=["c"], returned=["a"]),
            _role("c"),
        ]
        view = build_adjacency(roles)

        for source, targets in view.outgoing.items():
            for target in targets:
                assert source in view.incoming[target]
        for target, sources in view.incoming.items():
            for source in sources:
                assert target in view.outgoing[source]


class TestAdjacencyView:
    """Tests for AdjacencyView helpers."""

    def test_terminal_role_ids(self):
        """Roles without outgoing edges are terminal, in role order."""
        view = build_adjacency([
            _role("a", passed=["b"]),
            _role("b"),
            _role("c"),
        ])

        assert view.terminal_role_ids() == ["b", "c"]

    def test_reachable_from_follows_edges(self):
        """BFS reaches transitive successors and the start itself."""
        view = build_adjacency([
            _role("a", passed=["b"]),
            _role("b", passed=["c"]),
            _role("c"),
            _role("d", passed=["a"]),
        ])

        assert view.reachable_from("a") == {"a", "b", "c"}

    def test_reachable_from_handles_cycles(self):
        """Cycles terminate."""
        view = build_adjacency([
            _role("a", passed=["b"]),
            _role("b", returned=["a"]),
        ])

        assert view.reachable_from("a") == {"a", "b"}

    def test_reachable_from_unknown_start(self):
        """An unknown start id reaches only itself."""
        assert AdjacencyView().reachable_from("x") == {"x"}
