"""Rebalance Engine - Bounded reassignment suggestions.

Proposes task moves from the most-loaded member to others that strictly
reduce the household imbalance ratio.

Algorithm (greedy, one move per round):
    1. Source = most-loaded member (re-identified after every move)
    2. Candidates = source's pending tasks, lightest first
    3. Try each candidate on every other eligible member; keep the move
       with the lowest projected ratio that does not newly overload the
       target. Ties: lighter task, then lower member id.
    4. Stop at max_suggestions, at/below the balanced ratio, or when no
       improving move remains.

Suggestions are never applied here. RebalanceManager re-validates and
writes them through the persistence sink.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING

from .. import const
from ..utils.dt_utils import dt_today_local
from ..utils.math_utils import round_points
from .availability_engine import AvailabilityEngine
from .balance_engine import BalanceConfig, BalanceEngine
from .load_engine import LoadEngine
from .weight_engine import WeightEngine

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from ..type_defs import MemberData, TaskData
    from .load_engine import LoadProfile


@dataclass(frozen=True)
class RebalanceSuggestion:
    """One proposed move, transient until applied.

    Attributes:
        task_id: Task to move
        current_assignee: Member holding the task when suggested
        proposed_assignee: Member who would receive it
        weight_delta: Load points moved
        projected_ratio: Household ratio after this and all earlier moves
    """

    task_id: str
    current_assignee: str
    proposed_assignee: str
    weight_delta: float
    projected_ratio: float
    task_title: str = const.SENTINEL_EMPTY
    category: str = const.CATEGORY_OTHER


class RebalanceEngine:
    """Pure suggestion engine. Inputs are never mutated."""

    @staticmethod
    def project_loads(
        loads: Mapping[str, float], suggestions: Iterable[RebalanceSuggestion]
    ) -> dict[str, float]:
        """Return loads after applying suggestions in order."""
        projected = dict(loads)
        for suggestion in suggestions:
            projected[suggestion.current_assignee] = round_points(
                projected.get(suggestion.current_assignee, 0.0)
                - suggestion.weight_delta
            )
            projected[suggestion.proposed_assignee] = round_points(
                projected.get(suggestion.proposed_assignee, 0.0)
                + suggestion.weight_delta
            )
        return projected

    @staticmethod
    def suggest_rebalance(
        tasks: Sequence[TaskData],
        profiles: Sequence[LoadProfile],
        members: Sequence[MemberData],
        max_suggestions: int = const.DEFAULT_MAX_SUGGESTIONS,
        config: BalanceConfig | None = None,
        week_loads: Mapping[str, float] | None = None,
        reference_date: date | None = None,
    ) -> list[RebalanceSuggestion]:
        """Propose up to max_suggestions moves that reduce the imbalance ratio.

        Args:
            tasks: Task records (only pending tasks can move)
            profiles: Current load profiles (scoring basis)
            members: Member records (eligibility of targets)
            max_suggestions: Upper bound on returned moves (>= 0)
            config: Thresholds (balanced ratio, overload rule)
            week_loads: Current-week loads for capacity checks (computed
                from tasks when None)
            reference_date: Date used for undated tasks and week bounds

        Returns:
            Ordered suggestions; empty when balanced, degenerate, or the
            most-loaded member has no pending task

        Raises:
            ValueError: If max_suggestions is negative
        """
        if max_suggestions < 0:
            raise ValueError("max_suggestions must be >= 0")

        cfg = config or BalanceConfig()
        ref = reference_date or dt_today_local()
        loads = {p.member_id: p.total_weight for p in profiles}
        if max_suggestions == 0 or len(loads) < 2:
            return []

        member_map = {
            m[const.DATA_MEMBER_ID]: m
            for m in LoadEngine.active_members(members)
            if m[const.DATA_MEMBER_ID] in loads
        }
        week = dict(
            week_loads
            if week_loads is not None
            else LoadEngine.weekly_loads(tasks, members, ref)
        )
        average = sum(loads.values()) / len(loads)

        pending: dict[str, list[TaskData]] = {member_id: [] for member_id in loads}
        for task in tasks:
            assignee = task.get(const.DATA_TASK_ASSIGNED_TO)
            if task.get(const.DATA_TASK_COMPLETED_AT) is None and assignee in pending:
                pending[assignee].append(task)

        suggestions: list[RebalanceSuggestion] = []
        while len(suggestions) < max_suggestions:
            ratio = BalanceEngine.ratio_from_loads(loads)
            if ratio <= cfg.balanced_ratio:
                break

            source = min(loads, key=lambda member_id: (-loads[member_id], member_id))
            candidates = sorted(
                pending[source],
                key=lambda t: (WeightEngine.task_points(t), t[const.DATA_TASK_ID]),
            )
            if not candidates:
                const.LOGGER.debug("No pending task to move away from %s", source)
                break

            best: tuple[tuple[float, float, str, str], TaskData] | None = None
            for task in candidates:
                points = WeightEngine.task_points(task)
                when = AvailabilityEngine.assignment_date(task, ref)
                for target in sorted(member_map):
                    if target == source:
                        continue
                    if not AvailabilityEngine.is_eligible(
                        member_map[target], task, when, week.get(target, 0.0)
                    ):
                        continue

                    projected = dict(loads)
                    projected[source] = round_points(projected[source] - points)
                    projected[target] = round_points(projected[target] + points)
                    new_ratio = BalanceEngine.ratio_from_loads(projected)
                    if new_ratio >= ratio:
                        continue
                    if BalanceEngine.is_overloaded(
                        projected[target], average, cfg
                    ) and not BalanceEngine.is_overloaded(loads[target], average, cfg):
                        continue

                    key = (new_ratio, points, task[const.DATA_TASK_ID], target)
                    if best is None or key < best[0]:
                        best = (key, task)

            if best is None:
                break

            (new_ratio, points, task_id, target), task = best
            loads[source] = round_points(loads[source] - points)
            loads[target] = round_points(loads[target] + points)
            week[target] = round_points(week.get(target, 0.0) + points)
            pending[source].remove(task)

            suggestions.append(
                RebalanceSuggestion(
                    task_id=task_id,
                    current_assignee=source,
                    proposed_assignee=target,
                    weight_delta=points,
                    projected_ratio=new_ratio,
                    task_title=task.get(const.DATA_TASK_TITLE, const.SENTINEL_EMPTY),
                    category=task.get(const.DATA_TASK_CATEGORY, const.CATEGORY_OTHER),
                )
            )

        return suggestions
