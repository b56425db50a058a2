"""Availability Engine - Member eligibility and exclusion periods.

Answers "may member M receive task T on date D" from the member record:
- Active flag (inactive members never receive work)
- Blocked categories (a block wins over a preference)
- Exclusion periods, closed intervals with both endpoints inclusive
- Maximum weekly load ("unlimited" never triggers)

Also holds exclusion-period housekeeping (add, remove, prune, upcoming)
as pure list transforms; persisting the result is the caller's job.

ARCHITECTURE: This is a pure logic engine. Preferences never gate
eligibility here; they only feed optimizer scoring.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import TYPE_CHECKING

from .. import const
from ..utils.dt_utils import dt_today_local
from ..utils.math_utils import round_points
from .weight_engine import WeightEngine

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from ..type_defs import ExclusionPeriodData, MemberData, TaskData


class AvailabilityEngine:
    """Pure eligibility rules for members.

    Rule order for eligibility_reason (first failure wins):
        inactive → category_blocked → excluded → over_capacity
    """

    # ────────────────────────────────────────────────────────────────
    # Exclusion periods
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def excluding_period(
        member: MemberData, on_date: date
    ) -> ExclusionPeriodData | None:
        """Return the first exclusion period containing on_date, if any."""
        for period in member.get(const.DATA_MEMBER_EXCLUSION_PERIODS, []):
            start = period[const.DATA_EXCLUSION_START_DATE]
            end = period[const.DATA_EXCLUSION_END_DATE]
            if start <= on_date <= end:
                return period
        return None

    @staticmethod
    def is_excluded(member: MemberData, on_date: date) -> bool:
        """Check whether on_date falls inside any exclusion period."""
        return AvailabilityEngine.excluding_period(member, on_date) is not None

    @staticmethod
    def merged_periods(
        periods: Iterable[ExclusionPeriodData],
    ) -> list[tuple[date, date]]:
        """Collapse overlapping or adjacent periods into disjoint intervals."""
        intervals = sorted(
            (p[const.DATA_EXCLUSION_START_DATE], p[const.DATA_EXCLUSION_END_DATE])
            for p in periods
        )
        merged: list[tuple[date, date]] = []
        for start, end in intervals:
            if merged and start <= merged[-1][1] + timedelta(days=1):
                merged[-1] = (merged[-1][0], max(merged[-1][1], end))
            else:
                merged.append((start, end))
        return merged

    @staticmethod
    def excluded_days(member: MemberData, start: date, end: date) -> int:
        """Count days in [start, end] on which member is excluded (each day once)."""
        total = 0
        for period_start, period_end in AvailabilityEngine.merged_periods(
            member.get(const.DATA_MEMBER_EXCLUSION_PERIODS, [])
        ):
            lo = max(start, period_start)
            hi = min(end, period_end)
            if lo <= hi:
                total += (hi - lo).days + 1
        return total

    # ────────────────────────────────────────────────────────────────
    # Capacity
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def remaining_weekly_capacity(
        member: MemberData, current_week_load: float
    ) -> float | str:
        """Return capacity left this week, or UNLIMITED when uncapped.

        Never negative.
        """
        cap = member.get(const.DATA_MEMBER_MAX_WEEKLY_LOAD, const.UNLIMITED)
        if cap == const.UNLIMITED or cap is None:
            return const.UNLIMITED
        return round_points(max(cap - current_week_load, 0.0))

    @staticmethod
    def exceeds_capacity(
        member: MemberData, task_points: float, current_week_load: float
    ) -> bool:
        """Check whether adding task_points pushes the week strictly above the cap."""
        cap = member.get(const.DATA_MEMBER_MAX_WEEKLY_LOAD, const.UNLIMITED)
        if cap == const.UNLIMITED or cap is None:
            return False
        return round_points(current_week_load + task_points) > cap

    # ────────────────────────────────────────────────────────────────
    # Eligibility
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def assignment_date(task: TaskData, today: date | None = None) -> date:
        """Date an assignment is judged on: the due date, else today."""
        due = task.get(const.DATA_TASK_DUE_DATE)
        if due is not None:
            return due
        return today or dt_today_local()

    @staticmethod
    def eligibility_reason(
        member: MemberData,
        task: TaskData,
        on_date: date | None = None,
        current_week_load: float = 0.0,
    ) -> str | None:
        """Return the first failing INELIGIBLE_* reason, or None if eligible.

        Args:
            member: Member record
            task: Task being placed
            on_date: Assignment date (default: task due date, else today)
            current_week_load: Member's load points already in the week
        """
        if not member.get(const.DATA_MEMBER_IS_ACTIVE, True):
            return const.INELIGIBLE_INACTIVE

        category = task.get(const.DATA_TASK_CATEGORY, const.CATEGORY_OTHER)
        if category in member.get(const.DATA_MEMBER_BLOCKED_CATEGORIES, []):
            return const.INELIGIBLE_CATEGORY_BLOCKED

        when = on_date or AvailabilityEngine.assignment_date(task)
        if AvailabilityEngine.is_excluded(member, when):
            return const.INELIGIBLE_EXCLUDED

        if AvailabilityEngine.exceeds_capacity(
            member, WeightEngine.task_points(task), current_week_load
        ):
            return const.INELIGIBLE_OVER_CAPACITY

        return None

    @staticmethod
    def is_eligible(
        member: MemberData,
        task: TaskData,
        on_date: date | None = None,
        current_week_load: float = 0.0,
    ) -> bool:
        """Check whether member may receive task on on_date."""
        return (
            AvailabilityEngine.eligibility_reason(
                member, task, on_date, current_week_load
            )
            is None
        )

    @staticmethod
    def eligible_members(
        members: Iterable[MemberData],
        task: TaskData,
        week_loads: Mapping[str, float] | None = None,
        on_date: date | None = None,
    ) -> list[MemberData]:
        """Return eligible members sorted by id."""
        loads = week_loads or {}
        when = on_date or AvailabilityEngine.assignment_date(task)
        return sorted(
            (
                m
                for m in members
                if AvailabilityEngine.is_eligible(
                    m, task, when, loads.get(m[const.DATA_MEMBER_ID], 0.0)
                )
            ),
            key=lambda m: m[const.DATA_MEMBER_ID],
        )

    # ────────────────────────────────────────────────────────────────
    # Exclusion housekeeping (pure list transforms)
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def add_exclusion(
        periods: Sequence[ExclusionPeriodData], period: ExclusionPeriodData
    ) -> list[ExclusionPeriodData]:
        """Return periods plus period, ordered by start date then id.

        A period with an existing id replaces the old one.
        """
        period_id = period[const.DATA_EXCLUSION_ID]
        result = [p for p in periods if p[const.DATA_EXCLUSION_ID] != period_id]
        result.append(period)
        result.sort(
            key=lambda p: (
                p[const.DATA_EXCLUSION_START_DATE],
                p[const.DATA_EXCLUSION_ID],
            )
        )
        return result

    @staticmethod
    def remove_exclusion(
        periods: Sequence[ExclusionPeriodData], period_id: str
    ) -> list[ExclusionPeriodData]:
        """Return periods without the one whose id is period_id."""
        return [p for p in periods if p[const.DATA_EXCLUSION_ID] != period_id]

    @staticmethod
    def prune_expired(
        periods: Sequence[ExclusionPeriodData], reference_date: date
    ) -> list[ExclusionPeriodData]:
        """Drop periods that ended before reference_date."""
        return [
            p for p in periods if p[const.DATA_EXCLUSION_END_DATE] >= reference_date
        ]

    @staticmethod
    def upcoming_exclusions(
        periods: Sequence[ExclusionPeriodData],
        reference_date: date,
        days: int = const.DEFAULT_UPCOMING_EXCLUSION_DAYS,
    ) -> list[ExclusionPeriodData]:
        """Return periods starting within [reference_date, reference_date + days]."""
        horizon = reference_date + timedelta(days=days)
        return [
            p
            for p in periods
            if reference_date <= p[const.DATA_EXCLUSION_START_DATE] <= horizon
        ]
