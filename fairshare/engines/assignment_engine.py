"""Assignment Engine - Greedy, constraint-aware assignee selection.

Picks the best eligible member for one pending task:
    score = current_load - preference_bonus + rotation_penalty
Lowest score wins; ties go to the lower member id. Rotation state records
the last member given each category so one person does not become the
permanent default for it.

Batch assignment layers single greedy picks, updating the load snapshot,
week loads and rotation state between picks. It is not a global optimizer.

ARCHITECTURE: Pure logic engine. The only state touched is the
caller-supplied RotationState, which the caller owns and persists (no
built-in expiry).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from .. import const
from ..utils.dt_utils import days_between, dt_now_utc, dt_parse, dt_today_local
from ..utils.math_utils import round_points
from .availability_engine import AvailabilityEngine
from .weight_engine import WeightEngine

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from ..type_defs import MemberData, TaskData


# =============================================================================
# ROTATION STATE
# =============================================================================


@dataclass
class RotationState:
    """Per-category assignment memory.

    Attributes:
        last_assigned: {category: member_id} of the most recent pick
        history: {category: {member_id: ISO timestamp of last pick}}
    """

    last_assigned: dict[str, str] = field(default_factory=dict)
    history: dict[str, dict[str, str]] = field(default_factory=dict)

    def last_for(self, category: str) -> str | None:
        """Return the member last assigned category, if any."""
        return self.last_assigned.get(category)

    def record(
        self, category: str, member_id: str, when: datetime | None = None
    ) -> None:
        """Record member_id as the latest assignee of category."""
        self.last_assigned[category] = member_id
        stamp = (when or dt_now_utc()).isoformat()
        self.history.setdefault(category, {})[member_id] = stamp

    def copy(self) -> RotationState:
        """Return an independent copy."""
        return RotationState(
            last_assigned=dict(self.last_assigned),
            history={cat: dict(per) for cat, per in self.history.items()},
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize for storage by the caller."""
        return {
            "last_assigned": dict(self.last_assigned),
            "history": {cat: dict(per) for cat, per in self.history.items()},
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> RotationState:
        """Restore from to_dict() output (missing keys become empty)."""
        data = data or {}
        return cls(
            last_assigned=dict(data.get("last_assigned", {})),
            history={
                cat: dict(per) for cat, per in data.get("history", {}).items()
            },
        )


# =============================================================================
# RESULT STRUCTURES
# =============================================================================


@dataclass(frozen=True)
class ScoredCandidate:
    """One eligible member's score for a task."""

    member_id: str
    current_load: float
    preference_bonus: float
    rotation_penalty: float
    score: float


@dataclass(frozen=True)
class AssignmentDecision:
    """Outcome of one selection.

    member_id is None when nobody is eligible; the caller surfaces that as
    "assign manually" rather than forcing an assignment.
    """

    task_id: str
    member_id: str | None
    reason: str | None
    candidates: tuple[ScoredCandidate, ...] = ()
    ineligible: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class RotationStatus:
    """How long ago a member last received a category."""

    member_id: str
    last_assigned_at: datetime | None
    days_since: int | None


@dataclass(frozen=True)
class AssignmentStats:
    """Summary of a batch of decisions."""

    total: int
    assigned: int
    unassigned: int
    per_member: dict[str, int]


# =============================================================================
# ENGINE
# =============================================================================


class AssignmentEngine:
    """Greedy assignee selection.

    Example:
        rotation = RotationState()
        decision = AssignmentEngine.select_assignee(
            task, members, {"alice": 12.0, "bob": 9.5}, rotation
        )
        decision.member_id  # "bob"
    """

    @staticmethod
    def score_candidates(
        task: TaskData,
        members: Iterable[MemberData],
        load_snapshot: Mapping[str, float],
        rotation_state: RotationState | None = None,
        week_loads: Mapping[str, float] | None = None,
        on_date: date | None = None,
    ) -> tuple[list[ScoredCandidate], dict[str, str]]:
        """Score every eligible member for task.

        Args:
            task: Pending task being placed
            members: Member records
            load_snapshot: {member_id: current load points} used for scoring
            rotation_state: Category memory (None means no rotation penalty)
            week_loads: {member_id: load points already in the assignment
                week} for capacity checks. None counts every member as
                having nothing booked that week yet; load_snapshot is never
                used for capacity.
            on_date: Assignment date (default: task due date, else today)

        Returns:
            Tuple of (candidates ordered best first, {member_id: reason} for
            every ineligible member)
        """
        capacity_loads = week_loads or {}
        when = on_date or AvailabilityEngine.assignment_date(task)
        category = task.get(const.DATA_TASK_CATEGORY, const.CATEGORY_OTHER)
        last = rotation_state.last_for(category) if rotation_state else None

        candidates: list[ScoredCandidate] = []
        ineligible: dict[str, str] = {}
        for member in members:
            member_id = member[const.DATA_MEMBER_ID]
            reason = AvailabilityEngine.eligibility_reason(
                member, task, when, capacity_loads.get(member_id, 0.0)
            )
            if reason is not None:
                ineligible[member_id] = reason
                continue

            current = load_snapshot.get(member_id, 0.0)
            preferred = category in member.get(
                const.DATA_MEMBER_PREFERRED_CATEGORIES, []
            )
            bonus = const.PREFERENCE_BONUS if preferred else 0.0
            penalty = const.ROTATION_PENALTY if member_id == last else 0.0
            candidates.append(
                ScoredCandidate(
                    member_id=member_id,
                    current_load=current,
                    preference_bonus=bonus,
                    rotation_penalty=penalty,
                    score=round_points(current - bonus + penalty),
                )
            )

        candidates.sort(key=lambda c: (c.score, c.member_id))
        return candidates, ineligible

    @staticmethod
    def _decision_reason(candidates: Sequence[ScoredCandidate]) -> str:
        """Explain why candidates[0] won."""
        if len(candidates) == 1:
            return const.ASSIGN_REASON_ONLY_MEMBER
        winner = candidates[0]
        unrotated = min(
            candidates,
            key=lambda c: (c.current_load - c.preference_bonus, c.member_id),
        )
        if unrotated.member_id != winner.member_id and unrotated.rotation_penalty:
            return const.ASSIGN_REASON_ROTATION
        if winner.preference_bonus:
            return const.ASSIGN_REASON_PREFERENCE
        return const.ASSIGN_REASON_LEAST_LOADED

    @staticmethod
    def select_assignee(
        task: TaskData,
        members: Iterable[MemberData],
        load_snapshot: Mapping[str, float],
        rotation_state: RotationState | None = None,
        week_loads: Mapping[str, float] | None = None,
        on_date: date | None = None,
        now: datetime | None = None,
    ) -> AssignmentDecision:
        """Select the best eligible member for task.

        On success the winner is recorded in rotation_state (when given) as
        the last assignee of the task's category.
        """
        candidates, ineligible = AssignmentEngine.score_candidates(
            task, members, load_snapshot, rotation_state, week_loads, on_date
        )
        task_id = task[const.DATA_TASK_ID]
        if not candidates:
            const.LOGGER.debug(
                "No eligible member for task %s (%s)", task_id, ineligible
            )
            return AssignmentDecision(
                task_id=task_id,
                member_id=None,
                reason=None,
                ineligible=ineligible,
            )

        winner = candidates[0]
        if rotation_state is not None:
            rotation_state.record(
                task.get(const.DATA_TASK_CATEGORY, const.CATEGORY_OTHER),
                winner.member_id,
                now,
            )
        return AssignmentDecision(
            task_id=task_id,
            member_id=winner.member_id,
            reason=AssignmentEngine._decision_reason(candidates),
            candidates=tuple(candidates),
            ineligible=ineligible,
        )

    @staticmethod
    def batch_assign(
        tasks: Iterable[TaskData],
        members: Sequence[MemberData],
        load_snapshot: Mapping[str, float],
        rotation_state: RotationState | None = None,
        week_loads: Mapping[str, float] | None = None,
        reference_date: date | None = None,
        now: datetime | None = None,
    ) -> list[AssignmentDecision]:
        """Assign several tasks with one greedy pick each.

        Tasks are processed heaviest first by ranking points, then by
        deadline pressure (closest due date first), ties by task id. After
        each pick the winner's load and week load grow by the task's points.
        Input mappings are not mutated.

        Returns:
            Decisions in processing order
        """
        ref = reference_date or dt_today_local()
        snapshot = dict(load_snapshot)
        week = dict(week_loads or {})

        tasks = list(tasks)
        weights = {t[const.DATA_TASK_ID]: WeightEngine.weigh(t, ref) for t in tasks}
        ordered = sorted(
            tasks,
            key=lambda t: (
                -weights[t[const.DATA_TASK_ID]].ranking_points,
                -weights[t[const.DATA_TASK_ID]].deadline_pressure,
                t[const.DATA_TASK_ID],
            ),
        )
        decisions: list[AssignmentDecision] = []
        for task in ordered:
            decision = AssignmentEngine.select_assignee(
                task,
                members,
                snapshot,
                rotation_state,
                week,
                AvailabilityEngine.assignment_date(task, ref),
                now,
            )
            decisions.append(decision)
            if decision.member_id is not None:
                points = WeightEngine.task_points(task)
                snapshot[decision.member_id] = round_points(
                    snapshot.get(decision.member_id, 0.0) + points
                )
                week[decision.member_id] = round_points(
                    week.get(decision.member_id, 0.0) + points
                )
        return decisions

    @staticmethod
    def assignment_stats(decisions: Iterable[AssignmentDecision]) -> AssignmentStats:
        """Count assigned/unassigned decisions and picks per member."""
        total = 0
        per_member: dict[str, int] = {}
        for decision in decisions:
            total += 1
            if decision.member_id is not None:
                per_member[decision.member_id] = (
                    per_member.get(decision.member_id, 0) + 1
                )
        assigned = sum(per_member.values())
        return AssignmentStats(
            total=total,
            assigned=assigned,
            unassigned=total - assigned,
            per_member=dict(sorted(per_member.items())),
        )

    @staticmethod
    def category_rotation_status(
        rotation_state: RotationState,
        category: str,
        member_ids: Iterable[str],
        reference_date: date | None = None,
    ) -> list[RotationStatus]:
        """List members by how long ago they last received category.

        Members who never received it come first, then the longest wait;
        ties by member id.
        """
        ref = reference_date or dt_today_local()
        history = rotation_state.history.get(category, {})
        statuses: list[RotationStatus] = []
        for member_id in member_ids:
            stamp = dt_parse(history.get(member_id))
            statuses.append(
                RotationStatus(
                    member_id=member_id,
                    last_assigned_at=stamp,
                    days_since=days_between(stamp, ref) if stamp else None,
                )
            )
        statuses.sort(
            key=lambda s: (
                s.days_since is not None,
                -(s.days_since or 0),
                s.member_id,
            )
        )
        return statuses
