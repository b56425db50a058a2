"""FairShare - household chore load balancing.

Entry points consumed by the HTTP layer. Each one is a thin composition of
the pure engines; only apply_suggestion writes, through a PersistenceSink.

    compute_load_distribution → profiles + balance state
    suggest_rebalance         → bounded list of task moves
    apply_suggestion          → re-validated atomic reassignment
    select_assignee           → best eligible member for one task
    build_alerts / build_digest
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import TYPE_CHECKING

from . import const
from .engines import (
    Alert,
    AlertEngine,
    AssignmentEngine,
    AvailabilityEngine,
    BalanceConfig,
    BalanceEngine,
    BalanceState,
    Digest,
    LoadAggregation,
    LoadEngine,
    LoadProfile,
    LoadWindow,
    RebalanceEngine,
    RebalanceSuggestion,
    RotationState,
    TimeWeightedLoad,
)
from .managers import ApplyResult, RebalanceManager
from .utils.dt_utils import dt_today_local, previous_period

if TYPE_CHECKING:
    from .engines import WeeklyStats
    from .store import PersistenceSink
    from .type_defs import ExclusionPeriodData, MemberData, TaskData


@dataclass(frozen=True)
class LoadDistribution:
    """Result of compute_load_distribution.

    time_weighted holds each active member's completed load with older
    completions decayed; it is informational and never feeds balance.
    """

    profiles: list[LoadProfile]
    balance_state: BalanceState
    aggregation: LoadAggregation
    time_weighted: dict[str, TimeWeightedLoad] = field(default_factory=dict)


def _with_exclusions(
    members: Iterable[MemberData],
    exclusions: Mapping[str, Iterable[ExclusionPeriodData]] | None,
) -> list[MemberData]:
    """Merge extra exclusion periods (keyed by member id) into member copies."""
    merged: list[MemberData] = []
    for member in members:
        extra = (exclusions or {}).get(member[const.DATA_MEMBER_ID], ())
        periods = list(member.get(const.DATA_MEMBER_EXCLUSION_PERIODS, []))
        for period in extra:
            periods = AvailabilityEngine.add_exclusion(periods, period)
        merged.append({**member, const.DATA_MEMBER_EXCLUSION_PERIODS: periods})
    return merged


def compute_load_distribution(
    tasks: Sequence[TaskData],
    members: Sequence[MemberData],
    exclusions: Mapping[str, Iterable[ExclusionPeriodData]] | None = None,
    window: LoadWindow | None = None,
    view: str = const.LOAD_VIEW_HISTORICAL,
    config: BalanceConfig | None = None,
    reference_date: date | None = None,
) -> LoadDistribution:
    """Aggregate loads and classify the household.

    Args:
        tasks: Validated task records
        members: Validated member records
        exclusions: Extra exclusion periods per member id, merged into members
        window: Completion window for the historical view (None: all time)
        view: LOAD_VIEW_HISTORICAL or LOAD_VIEW_PENDING
        config: Classification thresholds
        reference_date: Date for inactivity counts and completion ages
            (default: today, local)
    """
    ref = reference_date or dt_today_local()
    household = _with_exclusions(members, exclusions)
    aggregation = LoadEngine.aggregate(tasks, household, window=window, view=view)
    state = BalanceEngine.classify(
        aggregation.profiles,
        config,
        LoadEngine.last_activity(tasks, household),
        ref,
    )
    return LoadDistribution(
        profiles=aggregation.profiles,
        balance_state=state,
        aggregation=aggregation,
        time_weighted=LoadEngine.time_weighted_loads(tasks, household, ref),
    )


def suggest_rebalance(
    tasks: Sequence[TaskData],
    profiles: Sequence[LoadProfile],
    members: Sequence[MemberData],
    max_suggestions: int = const.DEFAULT_MAX_SUGGESTIONS,
    config: BalanceConfig | None = None,
    reference_date: date | None = None,
) -> list[RebalanceSuggestion]:
    """Propose task moves that reduce the imbalance ratio."""
    return RebalanceEngine.suggest_rebalance(
        tasks,
        profiles,
        members,
        max_suggestions=max_suggestions,
        config=config,
        reference_date=reference_date,
    )


def apply_suggestion(
    sink: PersistenceSink,
    suggestion: RebalanceSuggestion,
    actor_id: str,
    now: datetime | None = None,
    reference_date: date | None = None,
) -> ApplyResult:
    """Re-validate and apply one suggestion through sink."""
    return RebalanceManager(sink).apply_suggestion(
        suggestion, actor_id, now=now, reference_date=reference_date
    )


def select_assignee(
    task: TaskData,
    members: Sequence[MemberData],
    snapshot: Mapping[str, float],
    rotation_state: RotationState | None = None,
    week_loads: Mapping[str, float] | None = None,
    reference_date: date | None = None,
    tasks: Sequence[TaskData] | None = None,
) -> str | None:
    """Return the best eligible member id for task, or None if nobody is.

    Args:
        task: Pending task to place
        members: Member records
        snapshot: {member_id: load points} used for scoring only
        rotation_state: Category memory, updated with the winner
        week_loads: {member_id: load points} of the week the task lands in,
            for capacity checks
        reference_date: Date for undated tasks (default: today, local)
        tasks: Current tasks; when week_loads is None, week loads are
            computed from these. With neither, nothing counts as booked.
    """
    on_date = AvailabilityEngine.assignment_date(task, reference_date)
    if week_loads is None and tasks is not None:
        week_loads = LoadEngine.weekly_loads(tasks, members, on_date)
    return AssignmentEngine.select_assignee(
        task, members, snapshot, rotation_state, week_loads, on_date
    ).member_id


def build_alerts(
    balance_state: BalanceState,
    history: Sequence[WeeklyStats] | None = None,
    config: BalanceConfig | None = None,
    now: datetime | None = None,
) -> list[Alert]:
    """Build sorted alerts for a classified household."""
    return AlertEngine.build_alerts(balance_state, history, config, now)


def build_digest(
    tasks: Sequence[TaskData],
    members: Sequence[MemberData],
    period_start: date,
    period_end: date,
    top_categories: int = const.DEFAULT_TOP_CATEGORIES,
) -> Digest:
    """Summarize completed work over [period_start, period_end].

    The trend compares against the previous period of equal length.
    """
    prev_start, prev_end = previous_period(period_start, period_end)
    current = LoadEngine.aggregate(
        tasks, members, window=LoadWindow(period_start, period_end)
    )
    previous = LoadEngine.aggregate(
        tasks, members, window=LoadWindow(prev_start, prev_end)
    )
    return AlertEngine.build_digest(
        current.profiles,
        previous.profiles,
        period_start,
        period_end,
        top_categories=top_categories,
    )


__all__ = [
    "ApplyResult",
    "BalanceConfig",
    "LoadDistribution",
    "LoadWindow",
    "RotationState",
    "apply_suggestion",
    "build_alerts",
    "build_digest",
    "compute_load_distribution",
    "select_assignee",
    "suggest_rebalance",
]
