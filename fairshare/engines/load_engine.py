"""Load Engine - Per-member load aggregation over a time window.

This engine folds weighted tasks, grouped by assignee, into per-member load
profiles:
- Totals in load points, task counts, share of the household total
- Per-category breakdown
- Separate reporting of unassigned and unattributed load (auditable totals)
- Current-week load per member (capacity checks)
- Last completion per member (inactivity checks)
- Time-weighted completed load (recent work counts more)
- Weekly history (trend and digest inputs)

Design Principles:
    - Stateless: operates on task/member lists passed in per call
    - Explicit views: HISTORICAL (completed inside the window) or PENDING
      (not completed yet); one call never mixes the two
    - Deterministic: profiles sorted by descending load, ties by member id
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING

from .. import const
from ..utils.dt_utils import (
    days_between,
    dt_to_date,
    dt_today_local,
    week_bounds,
    week_key,
)
from ..utils.math_utils import calculate_percentage, round_points
from .weight_engine import WeightEngine

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from ..type_defs import MemberData, TaskData


# =============================================================================
# RESULT STRUCTURES
# =============================================================================


@dataclass(frozen=True)
class LoadWindow:
    """Inclusive calendar-date window [start, end]."""

    start: date
    end: date

    def contains(self, value: date | datetime) -> bool:
        """Check whether a date or datetime (local day) falls in the window."""
        return self.start <= dt_to_date(value) <= self.end

    @classmethod
    def week_of(cls, reference: date | datetime) -> LoadWindow:
        """Return the Monday-Sunday window holding reference."""
        start, end = week_bounds(reference)
        return cls(start, end)


@dataclass
class LoadProfile:
    """Derived load of one member. Recomputed on demand, never persisted."""

    member_id: str
    name: str
    total_weight: float = 0.0
    task_count: int = 0
    percentage: int = 0
    completed_count: int = 0
    pending_count: int = 0
    category_breakdown: dict[str, float] = field(default_factory=dict)
    last_completed_at: datetime | None = None


@dataclass
class LoadAggregation:
    """Result of one aggregation call.

    Attributes:
        view: LOAD_VIEW_HISTORICAL or LOAD_VIEW_PENDING
        window: Window applied (None for the pending view)
        profiles: One profile per active member, sorted by load desc then id
        total_weight: Sum of all member totals (basis for percentages)
        unassigned_load / unassigned_count: Tasks with no assignee
        unattributed_load / unattributed_count: Tasks assigned to a member who
            is inactive or unknown to the directory
    """

    view: str
    window: LoadWindow | None
    profiles: list[LoadProfile]
    total_weight: float = 0.0
    unassigned_load: float = 0.0
    unassigned_count: int = 0
    unattributed_load: float = 0.0
    unattributed_count: int = 0

    def profile(self, member_id: str) -> LoadProfile | None:
        """Return the profile of member_id, if present."""
        for profile in self.profiles:
            if profile.member_id == member_id:
                return profile
        return None

    def loads(self) -> dict[str, float]:
        """Return {member_id: total_weight} for every profile."""
        return {p.member_id: p.total_weight for p in self.profiles}


@dataclass(frozen=True)
class TimeWeightedLoad:
    """Completed load of one member with older completions decayed.

    Attributes:
        score: Sum of points x decay over every completion
        decay_factor: Average decay applied (1.0 when nothing completed)
        average_age_days: Rounded average completion age in days
    """

    score: float = 0.0
    decay_factor: float = 1.0
    average_age_days: int = 0


@dataclass
class WeeklyStats:
    """Completed work of one ISO week."""

    week: str
    start: date
    end: date
    points: dict[str, float]
    counts: dict[str, int]
    total_points: float
    total_count: int


class LoadEngine:
    """Pure aggregation engine for member load profiles.

    All methods are static - callers hand in validated task and member
    records and receive new result objects.

    Example:
        aggregation = LoadEngine.aggregate(
            tasks,
            members,
            window=LoadWindow.week_of(date(2026, 1, 21)),
            view=const.LOAD_VIEW_HISTORICAL,
        )
        aggregation.profiles[0].percentage  # most loaded member's share
    """

    # ────────────────────────────────────────────────────────────────
    # Membership helpers
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def active_members(members: Iterable[MemberData]) -> list[MemberData]:
        """Return members that take part in computations, sorted by id."""
        return sorted(
            (m for m in members if m.get(const.DATA_MEMBER_IS_ACTIVE, True)),
            key=lambda m: m[const.DATA_MEMBER_ID],
        )

    @staticmethod
    def sort_profiles(profiles: Iterable[LoadProfile]) -> list[LoadProfile]:
        """Sort by descending total weight, ties by ascending member id."""
        return sorted(profiles, key=lambda p: (-p.total_weight, p.member_id))

    @staticmethod
    def _selected(
        task: TaskData, view: str, window: LoadWindow | None
    ) -> bool:
        """Check whether a task belongs to the requested view/window."""
        completed_at = task.get(const.DATA_TASK_COMPLETED_AT)
        if view == const.LOAD_VIEW_PENDING:
            return completed_at is None
        if completed_at is None:
            return False
        return window is None or window.contains(completed_at)

    # ────────────────────────────────────────────────────────────────
    # Aggregation
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def aggregate(
        tasks: Iterable[TaskData],
        members: Iterable[MemberData],
        window: LoadWindow | None = None,
        view: str = const.LOAD_VIEW_HISTORICAL,
    ) -> LoadAggregation:
        """Fold tasks into per-member load profiles.

        Args:
            tasks: Validated task records
            members: Member records (inactive members are skipped)
            window: Completion window for the historical view. None means
                every completed task. Ignored by the pending view.
            view: LOAD_VIEW_HISTORICAL or LOAD_VIEW_PENDING

        Returns:
            LoadAggregation whose percentages sum to 100 (± rounding), or are
            all 0 when the household total is 0

        Raises:
            ValueError: If view is not a known LOAD_VIEW_* value
        """
        if view not in const.LOAD_VIEWS:
            raise ValueError(f"Unknown load view: {view}")

        profiles: dict[str, LoadProfile] = {
            m[const.DATA_MEMBER_ID]: LoadProfile(
                member_id=m[const.DATA_MEMBER_ID],
                name=m.get(const.DATA_MEMBER_NAME) or m[const.DATA_MEMBER_ID],
            )
            for m in LoadEngine.active_members(members)
        }
        result = LoadAggregation(
            view=view,
            window=None if view == const.LOAD_VIEW_PENDING else window,
            profiles=[],
        )

        for task in tasks:
            if not LoadEngine._selected(task, view, window):
                continue
            points = WeightEngine.task_points(task)
            assignee = task.get(const.DATA_TASK_ASSIGNED_TO)

            if not assignee:
                result.unassigned_load += points
                result.unassigned_count += 1
                continue

            profile = profiles.get(assignee)
            if profile is None:
                result.unattributed_load += points
                result.unattributed_count += 1
                continue

            profile.total_weight += points
            profile.task_count += 1
            if task.get(const.DATA_TASK_COMPLETED_AT) is None:
                profile.pending_count += 1
            else:
                profile.completed_count += 1
                if (
                    profile.last_completed_at is None
                    or task[const.DATA_TASK_COMPLETED_AT] > profile.last_completed_at
                ):
                    profile.last_completed_at = task[const.DATA_TASK_COMPLETED_AT]
            category = task.get(const.DATA_TASK_CATEGORY, const.CATEGORY_OTHER)
            profile.category_breakdown[category] = round_points(
                profile.category_breakdown.get(category, 0.0) + points
            )

        total = 0.0
        for profile in profiles.values():
            profile.total_weight = round_points(profile.total_weight)
            total += profile.total_weight
        total = round_points(total)

        for profile in profiles.values():
            profile.percentage = calculate_percentage(profile.total_weight, total)

        result.profiles = LoadEngine.sort_profiles(profiles.values())
        result.total_weight = total
        result.unassigned_load = round_points(result.unassigned_load)
        result.unattributed_load = round_points(result.unattributed_load)
        return result

    @staticmethod
    def profiles_from_loads(
        loads: dict[str, float], names: dict[str, str] | None = None
    ) -> list[LoadProfile]:
        """Build sorted profiles (with percentages) from a {member: load} map.

        Used for projected snapshots where only totals are known.
        """
        names = names or {}
        total = round_points(sum(loads.values()))
        profiles = [
            LoadProfile(
                member_id=member_id,
                name=names.get(member_id, member_id),
                total_weight=round_points(load),
                percentage=calculate_percentage(load, total),
            )
            for member_id, load in loads.items()
        ]
        return LoadEngine.sort_profiles(profiles)

    # ────────────────────────────────────────────────────────────────
    # Capacity & Activity
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def weekly_loads(
        tasks: Iterable[TaskData],
        members: Iterable[MemberData],
        reference_date: date | None = None,
    ) -> dict[str, float]:
        """Return each active member's load for the week holding reference_date.

        A task counts toward the week when it was completed inside the week,
        or is still pending and either undated or due on/before the week end.
        """
        ref = reference_date or dt_today_local()
        window = LoadWindow.week_of(ref)
        loads: dict[str, float] = {
            m[const.DATA_MEMBER_ID]: 0.0 for m in LoadEngine.active_members(members)
        }

        for task in tasks:
            assignee = task.get(const.DATA_TASK_ASSIGNED_TO)
            if assignee not in loads:
                continue
            completed_at = task.get(const.DATA_TASK_COMPLETED_AT)
            if completed_at is not None:
                counts = window.contains(completed_at)
            else:
                due = task.get(const.DATA_TASK_DUE_DATE)
                counts = due is None or due <= window.end
            if counts:
                loads[assignee] += WeightEngine.task_points(task)

        return {member_id: round_points(load) for member_id, load in loads.items()}

    @staticmethod
    def last_activity(
        tasks: Iterable[TaskData], members: Iterable[MemberData]
    ) -> dict[str, datetime | None]:
        """Return each active member's most recent completion (None if never)."""
        activity: dict[str, datetime | None] = {
            m[const.DATA_MEMBER_ID]: None for m in LoadEngine.active_members(members)
        }
        for task in tasks:
            assignee = task.get(const.DATA_TASK_ASSIGNED_TO)
            completed_at = task.get(const.DATA_TASK_COMPLETED_AT)
            if assignee not in activity or completed_at is None:
                continue
            latest = activity[assignee]
            if latest is None or completed_at > latest:
                activity[assignee] = completed_at
        return activity

    # ────────────────────────────────────────────────────────────────
    # Time decay
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def time_decay(age_days: int) -> float:
        """Return the weight kept by a completion age_days old.

        Examples:
            time_decay(0) → 1.0
            time_decay(14) → 0.5
            time_decay(120) → 0.1
        """
        if age_days <= 0:
            return 1.0
        if age_days >= const.TIME_DECAY_MAX_AGE_DAYS:
            return const.TIME_DECAY_FLOOR
        return 0.5 ** (age_days / const.TIME_DECAY_HALF_LIFE_DAYS)

    @staticmethod
    def time_weighted_loads(
        tasks: Iterable[TaskData],
        members: Iterable[MemberData],
        reference_date: date | None = None,
    ) -> dict[str, TimeWeightedLoad]:
        """Return each active member's completed load with recency decay.

        Informational only: capacity, balance and rebalancing keep using
        undecayed points.
        """
        ref = reference_date or dt_today_local()
        entries: dict[str, list[tuple[float, int]]] = {
            m[const.DATA_MEMBER_ID]: [] for m in LoadEngine.active_members(members)
        }
        for task in tasks:
            assignee = task.get(const.DATA_TASK_ASSIGNED_TO)
            completed_at = task.get(const.DATA_TASK_COMPLETED_AT)
            if assignee not in entries or completed_at is None:
                continue
            entries[assignee].append(
                (WeightEngine.task_points(task), days_between(completed_at, ref))
            )

        result: dict[str, TimeWeightedLoad] = {}
        for member_id, completions in entries.items():
            if not completions:
                result[member_id] = TimeWeightedLoad()
                continue
            decays = [LoadEngine.time_decay(age) for _points, age in completions]
            result[member_id] = TimeWeightedLoad(
                score=round_points(
                    sum(
                        points * decay
                        for (points, _age), decay in zip(completions, decays)
                    )
                ),
                decay_factor=round_points(sum(decays) / len(decays)),
                average_age_days=round(
                    sum(age for _points, age in completions) / len(completions)
                ),
            )
        return result

    # ────────────────────────────────────────────────────────────────
    # History
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def weekly_stats(
        tasks: Sequence[TaskData],
        members: Iterable[MemberData],
        week_date: date,
    ) -> WeeklyStats:
        """Summarize work completed during the ISO week holding week_date."""
        window = LoadWindow.week_of(week_date)
        aggregation = LoadEngine.aggregate(
            tasks, members, window=window, view=const.LOAD_VIEW_HISTORICAL
        )
        ordered = sorted(aggregation.profiles, key=lambda p: p.member_id)
        return WeeklyStats(
            week=week_key(week_date),
            start=window.start,
            end=window.end,
            points={p.member_id: p.total_weight for p in ordered},
            counts={p.member_id: p.completed_count for p in ordered},
            total_points=aggregation.total_weight,
            total_count=sum(p.completed_count for p in ordered),
        )

    @staticmethod
    def weekly_history(
        tasks: Sequence[TaskData],
        members: Sequence[MemberData],
        reference_date: date | None = None,
        weeks_back: int = const.DEFAULT_HISTORY_WEEKS,
    ) -> list[WeeklyStats]:
        """Return weekly stats for the last weeks_back weeks, oldest first."""
        ref = reference_date or dt_today_local()
        history = [
            LoadEngine.weekly_stats(tasks, members, ref - timedelta(weeks=offset))
            for offset in range(max(weeks_back, 0))
        ]
        history.reverse()
        return history

