"""Weight Engine - Pure logic for task effort scoring.

This engine provides stateless, pure Python functions for:
- Resolving a task's declared weight (flat scalar or four-dimension breakdown)
- Clamping every dimension to the 1-5 scale
- Reconciling flat and breakdown weights onto one load-point scale
- Ranking-only factors: urgency (critical or overdue pending tasks),
  priority and routine recurrence discount
- Graded deadline pressure, used to order equally ranked pending tasks

ARCHITECTURE: This is a pure logic engine. All functions are static methods
that operate on passed-in data. Nothing here writes back onto a task.

Scales:
    total:  sum of the four dimensions (4-20). A flat weight w reconciles to
            the breakdown {w, w, w, w}, so flat 2 → total 8.
    points: total / BREAKDOWN_TOTAL_PER_FLAT_POINT (1-5). Every load figure
            (aggregation, capacity, overload thresholds) is in points.
    ranking_points: points x urgency x priority x recurrence. Only ever
            used to order work, never stored or aggregated.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .. import const
from ..utils.dt_utils import dt_today_local
from ..utils.math_utils import apply_multiplier, clamp, round_points

if TYPE_CHECKING:
    from datetime import date

    from ..type_defs import TaskData

WEIGHT_SOURCE_FLAT = "flat"
WEIGHT_SOURCE_BREAKDOWN = "breakdown"
WEIGHT_SOURCE_CATEGORY_DEFAULT = "category_default"


# =============================================================================
# DECLARED WEIGHT (tagged union)
# =============================================================================


@dataclass(frozen=True)
class FlatWeight:
    """Single scalar weight on the 1-5 scale."""

    value: float

    def total(self) -> float:
        """Return the breakdown-equivalent total."""
        return self.value * const.BREAKDOWN_TOTAL_PER_FLAT_POINT

    def dimensions(self) -> dict[str, float]:
        """Spread the scalar evenly across every dimension."""
        return dict.fromkeys(const.WEIGHT_DIMENSIONS, self.value)


@dataclass(frozen=True)
class BreakdownWeight:
    """Four-dimension effort score, each dimension on the 1-5 scale."""

    mental: float
    time: float
    emotional: float
    physical: float

    def total(self) -> float:
        """Return the sum of all dimensions."""
        return self.mental + self.time + self.emotional + self.physical

    def dimensions(self) -> dict[str, float]:
        """Return the dimensions keyed by WEIGHT_DIM_* names."""
        return {
            const.WEIGHT_DIM_MENTAL: self.mental,
            const.WEIGHT_DIM_TIME: self.time,
            const.WEIGHT_DIM_EMOTIONAL: self.emotional,
            const.WEIGHT_DIM_PHYSICAL: self.physical,
        }


DeclaredWeight = FlatWeight | BreakdownWeight


@dataclass(frozen=True)
class TaskWeight:
    """Scored weight of one task as of a reference date.

    Attributes:
        task_id: The task scored
        mental/time/emotional/physical: Clamped dimensions (1-5)
        total: Sum of dimensions (4-20)
        points: Load points on the flat scale (1-5)
        ranking_points: points times every ranking multiplier
        is_urgent: True for critical tasks and overdue pending tasks
        source: WEIGHT_SOURCE_* naming where the weight came from
        priority_multiplier / recurrence_multiplier: Ranking factors applied
        deadline_pressure: Graded closeness of the due date (1.0 when
            completed, undated or more than a week out)
    """

    task_id: str
    mental: float
    time: float
    emotional: float
    physical: float
    total: float
    points: float
    ranking_points: float
    is_urgent: bool
    source: str
    priority_multiplier: float = 1.0
    recurrence_multiplier: float = 1.0
    deadline_pressure: float = const.DEADLINE_PRESSURE_NONE


class WeightEngine:
    """Pure logic engine for task weights.

    All methods are static - no instance state. Given the same task and
    reference date, every method returns the same value.
    """

    @staticmethod
    def clamp_dimension(value: float) -> float:
        """Clamp one weight dimension (or flat weight) to [WEIGHT_MIN, WEIGHT_MAX]."""
        return float(clamp(value, const.WEIGHT_MIN, const.WEIGHT_MAX))

    @staticmethod
    def declared_weight(task: TaskData) -> tuple[DeclaredWeight, str]:
        """Resolve the task's declared weight and where it came from.

        Priority: breakdown > flat weight > category default.

        Returns:
            Tuple of (FlatWeight | BreakdownWeight, WEIGHT_SOURCE_*)
        """
        breakdown = task.get(const.DATA_TASK_WEIGHT_BREAKDOWN)
        if breakdown:
            return (
                BreakdownWeight(
                    **{
                        dim: WeightEngine.clamp_dimension(
                            breakdown.get(dim, const.WEIGHT_MIN)
                        )
                        for dim in const.WEIGHT_DIMENSIONS
                    }
                ),
                WEIGHT_SOURCE_BREAKDOWN,
            )

        flat = task.get(const.DATA_TASK_WEIGHT)
        if flat is not None:
            return FlatWeight(WeightEngine.clamp_dimension(flat)), WEIGHT_SOURCE_FLAT

        category = task.get(const.DATA_TASK_CATEGORY, const.CATEGORY_OTHER)
        default = const.CATEGORY_DEFAULT_WEIGHTS.get(
            category, const.CATEGORY_DEFAULT_WEIGHTS[const.CATEGORY_OTHER]
        )
        return FlatWeight(float(default)), WEIGHT_SOURCE_CATEGORY_DEFAULT

    @staticmethod
    def task_points(task: TaskData) -> float:
        """Return the load points of a task (no urgency weighting)."""
        declared, _source = WeightEngine.declared_weight(task)
        return round_points(declared.total() / const.BREAKDOWN_TOTAL_PER_FLAT_POINT)

    @staticmethod
    def is_urgent(task: TaskData, reference_date: date) -> bool:
        """Check whether a task earns the ranking-only urgency multiplier.

        Critical tasks are always urgent. Pending tasks whose due date is
        strictly before the reference date are overdue and urgent too.
        """
        if task.get(const.DATA_TASK_IS_CRITICAL):
            return True
        if task.get(const.DATA_TASK_COMPLETED_AT) is not None:
            return False
        due = task.get(const.DATA_TASK_DUE_DATE)
        return due is not None and due < reference_date

    @staticmethod
    def priority_multiplier(task: TaskData) -> float:
        """Return the ranking multiplier for the task's priority (1 high, 3 low)."""
        return const.PRIORITY_MULTIPLIERS.get(
            task.get(const.DATA_TASK_PRIORITY, const.DEFAULT_PRIORITY), 1.0
        )

    @staticmethod
    def recurrence_multiplier(task: TaskData) -> float:
        """Return the routine discount for recurring tasks (1.0 for one-offs)."""
        return const.RECURRENCE_MULTIPLIERS.get(
            task.get(const.DATA_TASK_RECURRENCE, const.RECURRENCE_NONE), 1.0
        )

    @staticmethod
    def deadline_pressure(task: TaskData, reference_date: date) -> float:
        """Grade how close a pending task's due date is to reference_date.

        overdue 1.8, today 1.5, tomorrow 1.3, within a week 1.1, else 1.0.
        Completed and undated tasks are under no pressure.
        """
        due = task.get(const.DATA_TASK_DUE_DATE)
        if due is None or task.get(const.DATA_TASK_COMPLETED_AT) is not None:
            return const.DEADLINE_PRESSURE_NONE
        days_until = (due - reference_date).days
        if days_until < 0:
            return const.DEADLINE_PRESSURE_OVERDUE
        if days_until == 0:
            return const.DEADLINE_PRESSURE_TODAY
        if days_until == 1:
            return const.DEADLINE_PRESSURE_TOMORROW
        if days_until <= const.DEADLINE_THIS_WEEK_DAYS:
            return const.DEADLINE_PRESSURE_THIS_WEEK
        return const.DEADLINE_PRESSURE_NONE

    @staticmethod
    def weigh(task: TaskData, reference_date: date | None = None) -> TaskWeight:
        """Score a task as of reference_date.

        Args:
            task: Validated task record
            reference_date: Date used for the overdue check and deadline
                pressure (default: today, local)

        Returns:
            TaskWeight with clamped dimensions, total, points and ranking figures
        """
        ref = reference_date or dt_today_local()
        declared, source = WeightEngine.declared_weight(task)
        dims = declared.dimensions()
        total = round_points(declared.total())
        points = round_points(total / const.BREAKDOWN_TOTAL_PER_FLAT_POINT)
        urgent = WeightEngine.is_urgent(task, ref)
        priority = WeightEngine.priority_multiplier(task)
        recurrence = WeightEngine.recurrence_multiplier(task)
        urgency = const.URGENCY_MULTIPLIER if urgent else 1.0
        ranking = apply_multiplier(points, urgency * priority * recurrence)

        return TaskWeight(
            task_id=task[const.DATA_TASK_ID],
            mental=dims[const.WEIGHT_DIM_MENTAL],
            time=dims[const.WEIGHT_DIM_TIME],
            emotional=dims[const.WEIGHT_DIM_EMOTIONAL],
            physical=dims[const.WEIGHT_DIM_PHYSICAL],
            total=total,
            points=points,
            ranking_points=ranking,
            is_urgent=urgent,
            source=source,
            priority_multiplier=priority,
            recurrence_multiplier=recurrence,
            deadline_pressure=WeightEngine.deadline_pressure(task, ref),
        )

    @staticmethod
    def ranking_points(task: TaskData, reference_date: date | None = None) -> float:
        """Return points with every ranking multiplier applied, for ordering only."""
        return WeightEngine.weigh(task, reference_date).ranking_points
