"""Type definitions for FairShare data structures.

ARCHITECTURE DECISION: HYBRID APPROACH (TypedDict + dataclasses)
================================================================

1. **TypedDict for collaborator records** (fixed keys, dict at runtime):
   - TaskData, MemberData, ExclusionPeriodData, AuditRecord
   - Records arrive from the task repository and membership directory as
     plain dicts; data_builders.py normalizes them into these shapes.

2. **Dataclasses for engine results** (defined next to their engine):
   - TaskWeight, LoadProfile, BalanceState, RebalanceSuggestion, Alert...
   - Results are derived per request and never persisted as source of truth.

IMPORTANT: This file must NOT import from engines, managers or helpers to
avoid circular dependencies. Only import from typing (type machinery).

NOTE: TypedDict is STATIC ANALYSIS ONLY. It does NOT enforce types at
runtime; voluptuous schemas in data_builders.py do that at the boundary.
"""

from datetime import date, datetime
from typing import Literal, NotRequired, TypedDict

# =============================================================================
# Type Aliases (for readability)
# =============================================================================

TaskId = str
MemberId = str
Category = str
ExclusionId = str
ISODatetime = str  # ISO 8601 datetime string "2026-01-18T12:30:00+00:00"

LoadView = Literal["historical", "pending"]
Severity = Literal["critical", "warning", "info"]
AlertLevel = Literal["none", "warning", "critical"]
MemberState = Literal["normal", "overloaded", "inactive"]
Trend = Literal["improving", "stable", "worsening"]


# =============================================================================
# Collaborator Records
# =============================================================================


class WeightBreakdownData(TypedDict):
    """Multi-dimensional effort score, each dimension on a 1-5 scale."""

    mental: float
    time: float
    emotional: float
    physical: float


class TaskData(TypedDict):
    """Type definition for a task record.

    Invariant: a completed task has both completed_at and assigned_to set.
    """

    id: TaskId
    title: str
    category: Category
    priority: int
    due_date: date | None
    completed_at: datetime | None
    recurrence: str
    is_critical: bool
    child_id: str | None
    assigned_to: MemberId | None
    estimated_minutes: int | None
    weight: float | None
    weight_breakdown: NotRequired[WeightBreakdownData | None]


class ExclusionPeriodData(TypedDict):
    """Closed date interval during which a member takes no new assignments."""

    id: ExclusionId
    start_date: date
    end_date: date
    reason: str | None


class MemberData(TypedDict):
    """Type definition for a household member record.

    max_weekly_load is a positive number or const.UNLIMITED.
    """

    user_id: MemberId
    name: str
    preferred_categories: list[Category]
    blocked_categories: list[Category]
    max_weekly_load: float | str
    exclusion_periods: list[ExclusionPeriodData]
    is_active: bool


class AuditRecord(TypedDict):
    """Immutable trail entry written with every applied reassignment."""

    task_id: TaskId
    previous_assignee: MemberId | None
    new_assignee: MemberId
    reason: str
    actor: MemberId
    timestamp: ISODatetime
