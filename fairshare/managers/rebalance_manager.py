"""Rebalance Manager - Applies reassignments and exclusion-period changes.

This manager is the only stateful layer of FairShare. It handles:
- Applying a RebalanceSuggestion (re-validate, then one atomic write)
- Recording and removing member exclusion periods (one atomic sink update each)
- Pruning exclusion periods that already ended

ARCHITECTURE:
- RebalanceManager = STATEFUL operations through a PersistenceSink
- RebalanceEngine / AvailabilityEngine = pure suggestion and eligibility logic

Stale suggestions are expected under concurrency. They come back as an
ApplyResult with a REJECT_* reason, never as an exception.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from .. import const, data_builders as db
from ..engines.availability_engine import AvailabilityEngine
from ..engines.load_engine import LoadEngine
from ..store import StaleSuggestionError
from ..type_defs import AuditRecord
from ..utils.dt_utils import dt_now_utc, dt_today_local

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    from ..engines.rebalance_engine import RebalanceSuggestion
    from ..store import PersistenceSink
    from ..type_defs import ExclusionPeriodData, MemberData, TaskData


@dataclass(frozen=True)
class ApplyResult:
    """Outcome of apply_suggestion.

    success=True carries the audit record written; success=False carries a
    REJECT_* reason.
    """

    success: bool
    audit_record: AuditRecord | None = None
    reason: str | None = None


class RebalanceManager:
    """Manager for reassignment writes and exclusion periods.

    Responsibilities:
    - Re-validate suggestions against the sink's current state
    - Write assignee change plus audit record as one atomic update
    - Maintain member exclusion periods

    NOT responsible for:
    - Producing suggestions (RebalanceEngine)
    - Rendering alerts (translation_helpers)
    """

    def __init__(self, sink: PersistenceSink) -> None:
        """Initialize the RebalanceManager.

        Args:
            sink: Persistence sink holding tasks, members and the audit log
        """
        self._sink = sink

    # ────────────────────────────────────────────────────────────────
    # Reassignment
    # ────────────────────────────────────────────────────────────────

    def _reject(self, suggestion: RebalanceSuggestion, reason: str) -> ApplyResult:
        const.LOGGER.info(
            "Rejected move of task %s from %s to %s: %s",
            suggestion.task_id,
            suggestion.current_assignee,
            suggestion.proposed_assignee,
            reason,
        )
        return ApplyResult(success=False, reason=reason)

    @staticmethod
    def target_rejection(
        suggestion: RebalanceSuggestion,
        task: TaskData,
        tasks: Sequence[TaskData],
        members: Sequence[MemberData],
        reference_date: date,
    ) -> str | None:
        """Re-check the proposed assignee against current tasks and members.

        Used before the write and again inside the sink's atomic section.

        Returns:
            REJECT_TARGET_NOT_ELIGIBLE, or None when the move may proceed
        """
        target_id = suggestion.proposed_assignee
        target = next(
            (m for m in members if m[const.DATA_MEMBER_ID] == target_id), None
        )
        if target is None:
            return const.REJECT_TARGET_NOT_ELIGIBLE

        week_loads = LoadEngine.weekly_loads(tasks, members, reference_date)
        ineligible = AvailabilityEngine.eligibility_reason(
            target,
            task,
            AvailabilityEngine.assignment_date(task, reference_date),
            week_loads.get(target_id, 0.0),
        )
        if ineligible is not None:
            const.LOGGER.debug(
                "Member %s no longer eligible for task %s: %s",
                target_id,
                suggestion.task_id,
                ineligible,
            )
            return const.REJECT_TARGET_NOT_ELIGIBLE
        return None

    def apply_suggestion(
        self,
        suggestion: RebalanceSuggestion,
        actor_id: str,
        reason: str = const.AUDIT_REASON_REBALANCE,
        now: datetime | None = None,
        reference_date: date | None = None,
    ) -> ApplyResult:
        """Apply one suggestion after re-validating it.

        Checks, in order: task still exists, still pending, still held by the
        suggestion's current assignee, and the proposed assignee is still
        eligible (active, not blocked, not excluded, within weekly capacity).
        The sink repeats every check inside its atomic write, so a
        conflicting concurrent apply is rejected rather than overwritten and
        two moves onto the same member cannot both slip under its cap.

        Args:
            suggestion: Suggestion produced by RebalanceEngine
            actor_id: Member applying the suggestion (audit trail)
            reason: Audit reason code
            now: Audit timestamp (default: current UTC time)
            reference_date: Date for eligibility of undated tasks and week
                capacity (default: today, local)

        Returns:
            ApplyResult
        """
        ref = reference_date or dt_today_local()
        task = self._sink.get_task(suggestion.task_id)
        if task is None:
            return self._reject(suggestion, const.REJECT_TASK_NOT_FOUND)
        if task.get(const.DATA_TASK_COMPLETED_AT) is not None:
            return self._reject(suggestion, const.REJECT_TASK_ALREADY_COMPLETED)
        if task.get(const.DATA_TASK_ASSIGNED_TO) != suggestion.current_assignee:
            return self._reject(suggestion, const.REJECT_TASK_ALREADY_REASSIGNED)

        rejection = self.target_rejection(
            suggestion, task, self._sink.list_tasks(), self._sink.list_members(), ref
        )
        if rejection is not None:
            return self._reject(suggestion, rejection)

        audit = AuditRecord(
            task_id=suggestion.task_id,
            previous_assignee=suggestion.current_assignee,
            new_assignee=suggestion.proposed_assignee,
            reason=reason,
            actor=actor_id,
            timestamp=(now or dt_now_utc()).isoformat(),
        )
        try:
            self._sink.commit_reassignment(
                suggestion.task_id,
                suggestion.current_assignee,
                audit,
                check=lambda current, tasks, members: self.target_rejection(
                    suggestion, current, tasks, members, ref
                ),
            )
        except StaleSuggestionError as err:
            return self._reject(suggestion, err.reason)

        const.LOGGER.info(
            "Task %s reassigned from %s to %s by %s",
            suggestion.task_id,
            suggestion.current_assignee,
            suggestion.proposed_assignee,
            actor_id,
        )
        return ApplyResult(success=True, audit_record=audit)

    # ────────────────────────────────────────────────────────────────
    # Exclusion periods
    # ────────────────────────────────────────────────────────────────

    def _update_periods(
        self,
        member_id: str,
        transform: Callable[[list[ExclusionPeriodData]], list[ExclusionPeriodData]],
    ) -> tuple[list[ExclusionPeriodData], list[ExclusionPeriodData]]:
        try:
            return self._sink.update_exclusion_periods(member_id, transform)
        except KeyError as err:
            raise db.EntityValidationError(
                field=const.DATA_MEMBER_ID,
                translation_key=const.TRANS_KEY_MEMBER_NOT_FOUND,
                placeholders={"member_id": member_id},
            ) from err

    def add_exclusion_period(
        self, member_id: str, raw_period: Mapping[str, Any]
    ) -> ExclusionPeriodData:
        """Validate and record an exclusion period for member_id.

        Raises:
            EntityValidationError: If the member is unknown or the period invalid
        """
        period = db.build_exclusion_period(raw_period)
        self._update_periods(
            member_id,
            lambda periods: AvailabilityEngine.add_exclusion(periods, period),
        )
        const.LOGGER.info(
            "Exclusion period %s (%s to %s) recorded for %s",
            period[const.DATA_EXCLUSION_ID],
            period[const.DATA_EXCLUSION_START_DATE],
            period[const.DATA_EXCLUSION_END_DATE],
            member_id,
        )
        return period

    def remove_exclusion_period(self, member_id: str, period_id: str) -> None:
        """Remove one exclusion period by id.

        Raises:
            EntityValidationError: If the member or the period is unknown
        """

        def _remove(periods: list[ExclusionPeriodData]) -> list[ExclusionPeriodData]:
            remaining = AvailabilityEngine.remove_exclusion(periods, period_id)
            if len(remaining) == len(periods):
                raise db.EntityValidationError(
                    field=const.DATA_EXCLUSION_ID,
                    translation_key=const.TRANS_KEY_EXCLUSION_NOT_FOUND,
                    placeholders={"member_id": member_id, "period_id": period_id},
                )
            return remaining

        self._update_periods(member_id, _remove)
        const.LOGGER.info("Exclusion period %s removed for %s", period_id, member_id)

    def prune_expired_exclusions(self, reference_date: date | None = None) -> int:
        """Drop every exclusion period that ended before reference_date.

        Returns:
            Number of periods removed across all members
        """
        ref = reference_date or dt_today_local()
        removed = 0
        for member in self._sink.list_members():
            before, after = self._update_periods(
                member[const.DATA_MEMBER_ID],
                lambda periods: AvailabilityEngine.prune_expired(periods, ref),
            )
            removed += len(before) - len(after)
        if removed:
            const.LOGGER.debug("Pruned %s expired exclusion period(s)", removed)
        return removed
