"""End-to-end tests for the fairshare entry points."""

from __future__ import annotations

from datetime import date, datetime, timezone

from freezegun import freeze_time

import fairshare
from fairshare import const
from fairshare.store import FairShareStore

from tests.conftest import REFERENCE_DATE
from tests.helpers import make_member, make_period, make_task

NOW = datetime(2026, 1, 21, 9, 0, tzinfo=timezone.utc)


def _done(day: int) -> datetime:
    return datetime(2026, 1, day, 18, 0, tzinfo=timezone.utc)


# =============================================================================
# Test: Load distribution
# =============================================================================


class TestComputeLoadDistribution:
    """Aggregation plus classification."""

    def test_unbalanced_household(self, unbalanced_tasks, two_members) -> None:
        """40 / 10 pending points: 80 % / 20 %, critical."""
        result = fairshare.compute_load_distribution(
            unbalanced_tasks,
            two_members,
            view=const.LOAD_VIEW_PENDING,
            reference_date=REFERENCE_DATE,
        )

        assert [
            (p.member_id, p.total_weight, p.percentage) for p in result.profiles
        ] == [("alice", 40.0, 80), ("bob", 10.0, 20)]
        assert result.balance_state.imbalance_ratio == 4.0
        assert result.balance_state.alert_level == const.BALANCE_LEVEL_CRITICAL
        assert result.aggregation.unassigned_load == 0.0

    def test_single_member_household(self, unbalanced_tasks) -> None:
        """One member is trivially balanced."""
        result = fairshare.compute_load_distribution(
            unbalanced_tasks,
            [make_member("alice")],
            view=const.LOAD_VIEW_PENDING,
            reference_date=REFERENCE_DATE,
        )

        assert result.balance_state.is_balanced is True
        assert result.aggregation.unattributed_load == 10.0

    def test_exclusions_merged_into_members(self, two_members) -> None:
        """Extra exclusion periods are applied without mutating members."""
        tasks = [make_task("t1", assigned_to="alice", weight=2, due_date=REFERENCE_DATE)]
        period = make_period("2026-01-20", "2026-01-22", "p1")

        fairshare.compute_load_distribution(
            tasks,
            two_members,
            exclusions={"bob": [period]},
            view=const.LOAD_VIEW_PENDING,
            reference_date=REFERENCE_DATE,
        )

        assert two_members[1][const.DATA_MEMBER_EXCLUSION_PERIODS] == []

    def test_inactivity_from_completions(self, two_members) -> None:
        """Members without recent completions are flagged."""
        tasks = [
            make_task("t1", assigned_to="alice", weight=2, completed_at=_done(1)),
            make_task("t2", assigned_to="alice", weight=2, completed_at=_done(20)),
        ]

        result = fairshare.compute_load_distribution(
            tasks, two_members, reference_date=REFERENCE_DATE
        )

        assert result.balance_state.member("alice").is_inactive is False
        assert result.balance_state.member("bob").never_active is True

    def test_scores_and_time_weighted_loads(self, two_members) -> None:
        """Distribution carries the balance score, Gini and decayed loads."""
        tasks = [
            make_task("t1", assigned_to="alice", weight=4, completed_at=_done(21)),
            make_task("t2", assigned_to="alice", weight=4, completed_at=_done(7)),
            make_task("t3", assigned_to="bob", weight=2, completed_at=_done(21)),
        ]

        result = fairshare.compute_load_distribution(
            tasks, two_members, reference_date=REFERENCE_DATE
        )

        assert result.balance_state.imbalance_ratio == 4.0
        assert result.balance_state.balance_score == 40
        assert result.balance_state.gini_coefficient == 0.3
        assert result.time_weighted["alice"].score == 6.0
        assert result.time_weighted["bob"].score == 2.0

    @freeze_time("2026-01-21 12:00:00", tz_offset=0)
    def test_defaults_to_today(self, two_members) -> None:
        """Without a reference date, inactivity is counted from today."""
        tasks = [make_task("t1", assigned_to="bob", completed_at=_done(10))]

        result = fairshare.compute_load_distribution(tasks, two_members)

        assert result.balance_state.member("bob").days_since_activity == 11


# =============================================================================
# Test: Suggest and apply
# =============================================================================


class TestSuggestAndApply:
    """The full rebalance workflow through a store."""

    def test_suggest_then_apply(self, unbalanced_tasks, two_members) -> None:
        """Applied suggestions bring the household to the balanced ratio."""
        store = FairShareStore()
        store.upsert_members(two_members)
        store.upsert_tasks(unbalanced_tasks)
        distribution = fairshare.compute_load_distribution(
            store.list_tasks(),
            store.list_members(),
            view=const.LOAD_VIEW_PENDING,
            reference_date=REFERENCE_DATE,
        )

        suggestions = fairshare.suggest_rebalance(
            store.list_tasks(),
            distribution.profiles,
            store.list_members(),
            reference_date=REFERENCE_DATE,
        )
        results = [
            fairshare.apply_suggestion(
                store, s, "alice", now=NOW, reference_date=REFERENCE_DATE
            )
            for s in suggestions
        ]
        after = fairshare.compute_load_distribution(
            store.list_tasks(),
            store.list_members(),
            view=const.LOAD_VIEW_PENDING,
            reference_date=REFERENCE_DATE,
        )

        assert all(r.success for r in results)
        assert len(store.audit_log) == len(suggestions) == 2
        assert after.balance_state.imbalance_ratio == 1.5
        assert after.balance_state.is_balanced is True


# =============================================================================
# Test: Assignment
# =============================================================================


class TestSelectAssignee:
    """select_assignee returns a member id or None."""

    def test_rotation_through_facade(self, two_members) -> None:
        """Same category three times with equal loads: alice, bob, alice."""
        rotation = fairshare.RotationState()
        snapshot = {"alice": 0.0, "bob": 0.0}

        picks = [
            fairshare.select_assignee(
                make_task(f"t{i}", category="health", due_date=REFERENCE_DATE),
                two_members,
                snapshot,
                rotation,
            )
            for i in range(3)
        ]

        assert picks == ["alice", "bob", "alice"]

    def test_old_history_does_not_exhaust_capacity(self) -> None:
        """Last year's completions weigh in scoring but not in this week's cap."""
        members = [
            make_member("alice", max_weekly_load=20),
            make_member("bob", max_weekly_load=20),
        ]
        history = [
            make_task(
                f"a{i}",
                assigned_to="alice",
                weight=5,
                completed_at=datetime(2025, 6, i + 1, 18, 0, tzinfo=timezone.utc),
            )
            for i in range(6)
        ] + [
            make_task(
                f"b{i}",
                assigned_to="bob",
                weight=5,
                completed_at=datetime(2025, 6, i + 1, 18, 0, tzinfo=timezone.utc),
            )
            for i in range(5)
        ]
        snapshot = fairshare.compute_load_distribution(
            history, members, reference_date=REFERENCE_DATE
        ).aggregation.loads()
        task = make_task("new", weight=2, due_date=REFERENCE_DATE)

        assert snapshot == {"alice": 30.0, "bob": 25.0}
        assert fairshare.select_assignee(task, members, snapshot) == "bob"
        assert (
            fairshare.select_assignee(task, members, snapshot, tasks=history)
            == "bob"
        )

    def test_week_loads_computed_from_tasks(self) -> None:
        """Pending work due this week counts against the cap."""
        members = [
            make_member("alice", max_weekly_load=20),
            make_member("bob", max_weekly_load=20),
        ]
        tasks = [
            make_task(
                f"b{i}", assigned_to="bob", weight=5, due_date=REFERENCE_DATE
            )
            for i in range(4)
        ]
        task = make_task("new", weight=2, due_date=REFERENCE_DATE)

        picked = fairshare.select_assignee(
            task, members, {"alice": 30.0, "bob": 0.0}, tasks=tasks
        )
        explicit = fairshare.select_assignee(
            task,
            members,
            {"alice": 30.0, "bob": 0.0},
            week_loads={"alice": 0.0, "bob": 19.0},
        )

        assert picked == "alice"
        assert explicit == "alice"

    def test_nobody_eligible(self) -> None:
        """None when every member is inactive."""
        members = [make_member("alice", is_active=False)]

        assert (
            fairshare.select_assignee(
                make_task("t1", due_date=REFERENCE_DATE), members, {}
            )
            is None
        )


# =============================================================================
# Test: Alerts and digest
# =============================================================================


class TestAlertsAndDigest:
    """Alert and digest entry points."""

    def test_build_alerts(self, unbalanced_tasks, two_members) -> None:
        """An unbalanced household gets an imbalance alert first."""
        distribution = fairshare.compute_load_distribution(
            unbalanced_tasks,
            two_members,
            view=const.LOAD_VIEW_PENDING,
            reference_date=REFERENCE_DATE,
        )

        alerts = fairshare.build_alerts(distribution.balance_state, now=NOW)

        assert alerts[0].id == "imbalance"
        assert alerts[0].placeholders["max_name"] == "Alice"

    def test_build_digest(self, two_members) -> None:
        """Current week against the previous week."""
        tasks = [
            make_task("w3a", assigned_to="alice", weight=2, completed_at=_done(13)),
            make_task("w3b", assigned_to="bob", weight=2, completed_at=_done(14)),
            make_task(
                "w4a",
                assigned_to="alice",
                weight=4,
                category="admin",
                completed_at=_done(20),
            ),
            make_task("w4b", assigned_to="bob", weight=1, completed_at=_done(21)),
        ]

        digest = fairshare.build_digest(
            tasks, two_members, date(2026, 1, 19), date(2026, 1, 25)
        )

        assert digest.total_completed == 2
        assert digest.total_load == 5.0
        assert digest.top_categories == (("admin", 4.0), ("daily", 1.0))
        assert digest.imbalance_ratio == 4.0
        assert digest.previous_ratio == 1.0
        assert digest.trend == const.TREND_WORSENING
