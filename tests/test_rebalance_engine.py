"""Tests for RebalanceEngine suggestion generation.

Tests cover:
- Greedy moves from the most-loaded member until balanced
- Strict ratio improvement per suggestion
- Bounds (max_suggestions) and degenerate inputs
- Target eligibility and the overload guard
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from fairshare import const
from fairshare.engines.rebalance_engine import RebalanceEngine

from tests.conftest import REFERENCE_DATE
from tests.helpers import make_member, make_task, profile


def _profiles(alice: float = 40, bob: float = 10):
    return [profile("alice", alice), profile("bob", bob)]


# =============================================================================
# Test: Greedy suggestions
# =============================================================================


class TestSuggestRebalance:
    """Moves from the heaviest member to lighter ones."""

    def test_moves_until_balanced(self, unbalanced_tasks, two_members) -> None:
        """40 / 10 with 5 point tasks takes two moves to reach 1.5."""
        suggestions = RebalanceEngine.suggest_rebalance(
            unbalanced_tasks,
            _profiles(),
            two_members,
            max_suggestions=3,
            reference_date=REFERENCE_DATE,
        )

        assert [(s.task_id, s.proposed_assignee) for s in suggestions] == [
            ("a0", "bob"),
            ("a1", "bob"),
        ]
        assert [s.projected_ratio for s in suggestions] == [2.33, 1.5]
        assert all(s.current_assignee == "alice" for s in suggestions)
        assert all(s.weight_delta == 5.0 for s in suggestions)

    def test_each_suggestion_strictly_improves(
        self, unbalanced_tasks, two_members
    ) -> None:
        """Projected ratios strictly decrease from the starting ratio."""
        suggestions = RebalanceEngine.suggest_rebalance(
            unbalanced_tasks, _profiles(), two_members, reference_date=REFERENCE_DATE
        )

        ratios = [4.0] + [s.projected_ratio for s in suggestions]
        assert all(later < earlier for earlier, later in zip(ratios, ratios[1:]))

    def test_project_loads(self, unbalanced_tasks, two_members) -> None:
        """Projecting suggestions reproduces the final loads."""
        suggestions = RebalanceEngine.suggest_rebalance(
            unbalanced_tasks, _profiles(), two_members, reference_date=REFERENCE_DATE
        )

        assert RebalanceEngine.project_loads(
            {"alice": 40.0, "bob": 10.0}, suggestions
        ) == {"alice": 30.0, "bob": 20.0}

    def test_lowest_projected_ratio_wins(self, two_members) -> None:
        """The move giving the lowest ratio is chosen over a lighter task."""
        tasks = [
            make_task("heavy", assigned_to="alice", weight=5, due_date=REFERENCE_DATE),
            make_task("light", assigned_to="alice", weight=3, due_date=REFERENCE_DATE),
        ]

        suggestions = RebalanceEngine.suggest_rebalance(
            tasks,
            _profiles(alice=16, bob=4),
            two_members,
            max_suggestions=1,
            reference_date=REFERENCE_DATE,
        )

        assert [s.task_id for s in suggestions] == ["heavy"]
        assert suggestions[0].projected_ratio == 1.22

    def test_inputs_not_mutated(self, unbalanced_tasks, two_members) -> None:
        """Profiles keep their loads after suggesting."""
        profiles = _profiles()

        RebalanceEngine.suggest_rebalance(
            unbalanced_tasks, profiles, two_members, reference_date=REFERENCE_DATE
        )

        assert [p.total_weight for p in profiles] == [40, 10]


# =============================================================================
# Test: Bounds and degenerate inputs
# =============================================================================


class TestBounds:
    """Edge cases that yield no suggestions."""

    def test_max_zero(self, unbalanced_tasks, two_members) -> None:
        """max_suggestions = 0 returns an empty list."""
        assert (
            RebalanceEngine.suggest_rebalance(
                unbalanced_tasks, _profiles(), two_members, max_suggestions=0
            )
            == []
        )

    def test_max_bounds_result(self, unbalanced_tasks, two_members) -> None:
        """Never more than max_suggestions."""
        suggestions = RebalanceEngine.suggest_rebalance(
            unbalanced_tasks,
            _profiles(),
            two_members,
            max_suggestions=1,
            reference_date=REFERENCE_DATE,
        )

        assert len(suggestions) == 1

    def test_negative_max_raises(self, unbalanced_tasks, two_members) -> None:
        """A negative bound is rejected."""
        with pytest.raises(ValueError):
            RebalanceEngine.suggest_rebalance(
                unbalanced_tasks, _profiles(), two_members, max_suggestions=-1
            )

    def test_single_member(self, unbalanced_tasks, two_members) -> None:
        """One profile cannot be rebalanced."""
        assert (
            RebalanceEngine.suggest_rebalance(
                unbalanced_tasks, [profile("alice", 40)], two_members
            )
            == []
        )

    def test_already_balanced(self, two_members) -> None:
        """At or below the balanced ratio nothing is suggested."""
        tasks = [make_task("t1", assigned_to="alice", weight=5)]

        assert (
            RebalanceEngine.suggest_rebalance(
                tasks,
                _profiles(alice=15, bob=10),
                two_members,
                reference_date=REFERENCE_DATE,
            )
            == []
        )

    def test_no_pending_tasks(self, two_members) -> None:
        """Completed work cannot move."""
        done = datetime(2026, 1, 20, 10, 0, tzinfo=timezone.utc)
        tasks = [
            make_task(f"a{i}", assigned_to="alice", weight=5, completed_at=done)
            for i in range(8)
        ]

        assert (
            RebalanceEngine.suggest_rebalance(
                tasks, _profiles(), two_members, reference_date=REFERENCE_DATE
            )
            == []
        )


# =============================================================================
# Test: Target constraints
# =============================================================================


class TestTargetConstraints:
    """Targets must be eligible and must not become overloaded."""

    def test_blocked_target(self, unbalanced_tasks) -> None:
        """No move to a member who blocks the category."""
        members = [
            make_member("alice"),
            make_member("bob", blocked=[const.CATEGORY_DAILY]),
        ]

        assert (
            RebalanceEngine.suggest_rebalance(
                unbalanced_tasks, _profiles(), members, reference_date=REFERENCE_DATE
            )
            == []
        )

    def test_capacity_limits_moves(self, unbalanced_tasks) -> None:
        """The target's weekly cap stops further moves."""
        members = [make_member("alice"), make_member("bob", max_weekly_load=15)]

        suggestions = RebalanceEngine.suggest_rebalance(
            unbalanced_tasks, _profiles(), members, reference_date=REFERENCE_DATE
        )

        assert [s.task_id for s in suggestions] == ["a0"]

    def test_target_not_newly_overloaded(self, unbalanced_tasks, two_members) -> None:
        """A move pushing the target above the overload threshold is skipped."""
        suggestions = RebalanceEngine.suggest_rebalance(
            unbalanced_tasks,
            _profiles(alice=60, bob=29),
            two_members,
            reference_date=REFERENCE_DATE,
        )

        assert suggestions == []
