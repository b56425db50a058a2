"""Record factories for FairShare tests.

Records go through the real data builders so tests exercise the same
validated shapes the engines receive in production.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from fairshare import const
from fairshare.data_builders import build_exclusion_period, build_member, build_task
from fairshare.engines.load_engine import LoadProfile
from fairshare.type_defs import ExclusionPeriodData, MemberData, TaskData


def make_task(
    task_id: str,
    *,
    assigned_to: str | None = None,
    weight: float | None = None,
    category: str = const.CATEGORY_DAILY,
    due_date: date | str | None = None,
    completed_at: datetime | str | None = None,
    is_critical: bool = False,
    breakdown: dict[str, float] | None = None,
    **extra: Any,
) -> TaskData:
    """Build a validated task record."""
    raw: dict[str, Any] = {
        const.DATA_TASK_ID: task_id,
        const.DATA_TASK_TITLE: f"Task {task_id}",
        const.DATA_TASK_CATEGORY: category,
        const.DATA_TASK_ASSIGNED_TO: assigned_to,
        const.DATA_TASK_WEIGHT: weight,
        const.DATA_TASK_DUE_DATE: due_date,
        const.DATA_TASK_COMPLETED_AT: completed_at,
        const.DATA_TASK_IS_CRITICAL: is_critical,
        const.DATA_TASK_WEIGHT_BREAKDOWN: breakdown,
    }
    raw.update(extra)
    return build_task(raw)


def make_period(
    start: date | str, end: date | str, period_id: str | None = None
) -> ExclusionPeriodData:
    """Build a validated exclusion period."""
    raw: dict[str, Any] = {
        const.DATA_EXCLUSION_START_DATE: start,
        const.DATA_EXCLUSION_END_DATE: end,
    }
    if period_id:
        raw[const.DATA_EXCLUSION_ID] = period_id
    return build_exclusion_period(raw)


def make_member(
    member_id: str,
    *,
    name: str | None = None,
    preferred: list[str] | None = None,
    blocked: list[str] | None = None,
    max_weekly_load: float | str | None = None,
    exclusions: list[dict[str, Any]] | None = None,
    is_active: bool = True,
) -> MemberData:
    """Build a validated member record."""
    return build_member(
        {
            const.DATA_MEMBER_ID: member_id,
            const.DATA_MEMBER_NAME: name or member_id.title(),
            const.DATA_MEMBER_PREFERRED_CATEGORIES: preferred or [],
            const.DATA_MEMBER_BLOCKED_CATEGORIES: blocked or [],
            const.DATA_MEMBER_MAX_WEEKLY_LOAD: max_weekly_load,
            const.DATA_MEMBER_EXCLUSION_PERIODS: exclusions or [],
            const.DATA_MEMBER_IS_ACTIVE: is_active,
        }
    )


def profile(member_id: str, total: float, **kwargs: Any) -> LoadProfile:
    """Build a bare LoadProfile for classifier/rebalance tests."""
    return LoadProfile(
        member_id=member_id,
        name=kwargs.pop("name", member_id.title()),
        total_weight=total,
        **kwargs,
    )
