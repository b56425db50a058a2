"""Tests for AvailabilityEngine eligibility and exclusion housekeeping."""

from __future__ import annotations

from datetime import date

from fairshare import const
from fairshare.engines.availability_engine import AvailabilityEngine

from tests.helpers import make_member, make_period, make_task

VACATION = {
    const.DATA_EXCLUSION_ID: "vacation",
    const.DATA_EXCLUSION_START_DATE: "2025-07-01",
    const.DATA_EXCLUSION_END_DATE: "2025-07-10",
}


# =============================================================================
# Test: Exclusion periods
# =============================================================================


class TestExclusionPeriods:
    """Closed intervals, both endpoints inclusive."""

    def test_inside_and_after_period(self) -> None:
        """Excluded on 2025-07-05, eligible again on 2025-07-11."""
        member = make_member("alice", exclusions=[VACATION])
        task = make_task("t1", weight=2)

        assert AvailabilityEngine.is_eligible(member, task, date(2025, 7, 5)) is False
        assert AvailabilityEngine.is_eligible(member, task, date(2025, 7, 11)) is True

    def test_endpoints_are_excluded(self) -> None:
        """Both the start and the end day are excluded."""
        member = make_member("alice", exclusions=[VACATION])

        assert AvailabilityEngine.is_excluded(member, date(2025, 7, 1)) is True
        assert AvailabilityEngine.is_excluded(member, date(2025, 7, 10)) is True
        assert AvailabilityEngine.is_excluded(member, date(2025, 6, 30)) is False

    def test_due_date_decides_when_no_date_given(self) -> None:
        """Without an explicit date, the task due date is checked."""
        member = make_member("alice", exclusions=[VACATION])
        task = make_task("t1", due_date=date(2025, 7, 3))

        assert (
            AvailabilityEngine.eligibility_reason(member, task)
            == const.INELIGIBLE_EXCLUDED
        )

    def test_overlapping_periods_count_days_once(self) -> None:
        """Overlapping periods behave like their union."""
        member = make_member(
            "alice",
            exclusions=[
                VACATION,
                {
                    const.DATA_EXCLUSION_START_DATE: "2025-07-08",
                    const.DATA_EXCLUSION_END_DATE: "2025-07-12",
                },
            ],
        )

        assert AvailabilityEngine.excluded_days(
            member, date(2025, 7, 1), date(2025, 7, 31)
        ) == 12
        assert AvailabilityEngine.is_excluded(member, date(2025, 7, 12)) is True

    def test_merged_periods_join_adjacent(self) -> None:
        """Adjacent periods merge into one interval."""
        periods = [
            make_period("2025-07-01", "2025-07-03"),
            make_period("2025-07-04", "2025-07-06"),
            make_period("2025-07-10", "2025-07-10"),
        ]

        assert AvailabilityEngine.merged_periods(periods) == [
            (date(2025, 7, 1), date(2025, 7, 6)),
            (date(2025, 7, 10), date(2025, 7, 10)),
        ]


# =============================================================================
# Test: Eligibility rules
# =============================================================================


class TestEligibility:
    """Rule order: inactive, blocked, excluded, over capacity."""

    def test_over_capacity(self) -> None:
        """19 points this week plus a 5 point task exceeds a cap of 20."""
        member = make_member("alice", max_weekly_load=20)
        task = make_task("t1", weight=5)

        reason = AvailabilityEngine.eligibility_reason(
            member, task, date(2026, 1, 21), current_week_load=19
        )

        assert reason == const.INELIGIBLE_OVER_CAPACITY

    def test_exactly_at_capacity_is_allowed(self) -> None:
        """Reaching the cap exactly is still eligible."""
        member = make_member("alice", max_weekly_load=20)
        task = make_task("t1", weight=5)

        assert AvailabilityEngine.is_eligible(
            member, task, date(2026, 1, 21), current_week_load=15
        )

    def test_unlimited_never_triggers(self) -> None:
        """An uncapped member is never over capacity."""
        member = make_member("alice")

        assert member[const.DATA_MEMBER_MAX_WEEKLY_LOAD] == const.UNLIMITED
        assert not AvailabilityEngine.exceeds_capacity(member, 5, 1000)
        assert (
            AvailabilityEngine.remaining_weekly_capacity(member, 1000)
            == const.UNLIMITED
        )

    def test_remaining_capacity_never_negative(self) -> None:
        """Remaining capacity floors at zero."""
        member = make_member("alice", max_weekly_load=20)

        assert AvailabilityEngine.remaining_weekly_capacity(member, 12.5) == 7.5
        assert AvailabilityEngine.remaining_weekly_capacity(member, 25) == 0.0

    def test_blocked_wins_over_preferred(self) -> None:
        """A category both preferred and blocked is blocked."""
        member = make_member(
            "alice",
            preferred=[const.CATEGORY_ADMIN],
            blocked=[const.CATEGORY_ADMIN],
        )
        task = make_task("t1", category=const.CATEGORY_ADMIN)

        assert (
            AvailabilityEngine.eligibility_reason(member, task, date(2026, 1, 21))
            == const.INELIGIBLE_CATEGORY_BLOCKED
        )

    def test_inactive_checked_first(self) -> None:
        """Inactive is reported before any other failure."""
        member = make_member(
            "alice", blocked=[const.CATEGORY_DAILY], is_active=False
        )
        task = make_task("t1")

        assert (
            AvailabilityEngine.eligibility_reason(member, task, date(2026, 1, 21))
            == const.INELIGIBLE_INACTIVE
        )

    def test_eligible_members_sorted_by_id(self) -> None:
        """Only eligible members are returned, ordered by id."""
        members = [
            make_member("zoe"),
            make_member("bob", blocked=[const.CATEGORY_DAILY]),
            make_member("amy", max_weekly_load=3),
            make_member("cal"),
        ]
        task = make_task("t1", weight=2)

        eligible = AvailabilityEngine.eligible_members(
            members, task, {"amy": 2}, date(2026, 1, 21)
        )

        assert [m[const.DATA_MEMBER_ID] for m in eligible] == ["cal", "zoe"]


# =============================================================================
# Test: Housekeeping
# =============================================================================


class TestExclusionHousekeeping:
    """Pure list transforms on exclusion periods."""

    def test_add_replaces_same_id_and_sorts(self) -> None:
        """Adding an existing id replaces it; result is ordered by start."""
        periods = [make_period("2025-08-01", "2025-08-05", "p2")]
        periods = AvailabilityEngine.add_exclusion(
            periods, make_period("2025-07-01", "2025-07-03", "p1")
        )
        periods = AvailabilityEngine.add_exclusion(
            periods, make_period("2025-09-01", "2025-09-02", "p2")
        )

        assert [p[const.DATA_EXCLUSION_ID] for p in periods] == ["p1", "p2"]
        assert periods[1][const.DATA_EXCLUSION_START_DATE] == date(2025, 9, 1)

    def test_remove(self) -> None:
        """Removing by id drops only that period."""
        periods = [
            make_period("2025-07-01", "2025-07-03", "p1"),
            make_period("2025-08-01", "2025-08-05", "p2"),
        ]

        result = AvailabilityEngine.remove_exclusion(periods, "p1")

        assert [p[const.DATA_EXCLUSION_ID] for p in result] == ["p2"]
        assert len(periods) == 2

    def test_prune_and_upcoming(self) -> None:
        """Ended periods are pruned; upcoming looks a week ahead."""
        periods = [
            make_period("2026-01-01", "2026-01-10", "past"),
            make_period("2026-01-20", "2026-01-22", "current"),
            make_period("2026-01-25", "2026-01-26", "soon"),
            make_period("2026-03-01", "2026-03-02", "later"),
        ]
        ref = date(2026, 1, 21)

        pruned = AvailabilityEngine.prune_expired(periods, ref)
        upcoming = AvailabilityEngine.upcoming_exclusions(periods, ref)

        assert [p[const.DATA_EXCLUSION_ID] for p in pruned] == [
            "current",
            "soon",
            "later",
        ]
        assert [p[const.DATA_EXCLUSION_ID] for p in upcoming] == ["soon"]
