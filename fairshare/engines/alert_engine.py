"""Alert Engine - Structured alerts and periodic digests.

Composes classification results and weekly history into:
- Alerts (imbalance, overload, inactivity, trend) with stable ids,
  numeric evidence as translation placeholders and a suggested action key
- Digests: per-member completion counts, load points and share for a
  period, top categories, and the imbalance trend against the prior
  equal-length period

Message text never lives here. Alerts carry a translation_key plus
placeholders; helpers/translation_helpers.py renders them per language.

ARCHITECTURE: Pure logic engine. "now" is always passed in or defaulted
once per call.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Any

from .. import const
from ..utils.dt_utils import dt_now_utc
from ..utils.math_utils import calculate_percentage, round_points
from .balance_engine import BalanceConfig, BalanceEngine

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable, Sequence

    from .balance_engine import BalanceState
    from .load_engine import LoadProfile, WeeklyStats


# =============================================================================
# RESULT STRUCTURES
# =============================================================================


@dataclass(frozen=True)
class Alert:
    """One structured alert.

    Attributes:
        id: Stable id ("imbalance", "overload-<member>", ...) used for
            dismissal tracking across rebuilds
        type: ALERT_TYPE_*
        severity: SEVERITY_*
        member_ids: Affected members
        translation_key: Template key (TRANS_KEY_ALERT_*)
        placeholders: Numeric evidence and names for the template
        action_key: Suggested-action template key (TRANS_KEY_ACTION_*)
    """

    id: str
    type: str
    severity: str
    member_ids: tuple[str, ...]
    translation_key: str
    placeholders: dict[str, Any]
    action_key: str
    created_at: datetime
    expires_at: datetime | None = None


@dataclass(frozen=True)
class AlertSummary:
    """Counts of an alert list."""

    total: int
    by_type: dict[str, int]
    by_severity: dict[str, int]
    most_critical: Alert | None


@dataclass(frozen=True)
class DigestMember:
    """One member's line in a digest."""

    member_id: str
    name: str
    completed_count: int
    load_points: float
    share: int


@dataclass(frozen=True)
class Digest:
    """Summary of one period, compared with the previous equal-length one."""

    period_start: date
    period_end: date
    members: tuple[DigestMember, ...]
    total_completed: int
    total_load: float
    top_categories: tuple[tuple[str, float], ...]
    imbalance_ratio: float
    previous_ratio: float
    trend: str


# =============================================================================
# ENGINE
# =============================================================================


class AlertEngine:
    """Pure alert and digest builder."""

    # ────────────────────────────────────────────────────────────────
    # Alerts
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def sort_alerts(alerts: Iterable[Alert]) -> list[Alert]:
        """Order critical → warning → info, stable within a severity."""
        return sorted(
            alerts,
            key=lambda a: const.SEVERITY_ORDER.get(
                a.severity, len(const.SEVERITY_ORDER)
            ),
        )

    @staticmethod
    def trend_from_ratios(current: float, previous: float) -> str:
        """Return the TREND_* given by the sign of current - previous."""
        delta = round_points(current - previous)
        if delta < 0:
            return const.TREND_IMPROVING
        if delta > 0:
            return const.TREND_WORSENING
        return const.TREND_STABLE

    @staticmethod
    def history_ratios(history: Sequence[WeeklyStats]) -> list[float]:
        """Imbalance ratio of each week in history (same order)."""
        return [BalanceEngine.ratio_from_loads(week.points) for week in history]

    @staticmethod
    def build_alerts(
        state: BalanceState,
        history: Sequence[WeeklyStats] | None = None,
        config: BalanceConfig | None = None,
        now: datetime | None = None,
    ) -> list[Alert]:
        """Build the sorted alert list for a classified household.

        Args:
            state: Output of BalanceEngine.classify
            history: Weekly stats, oldest first. When the latest week's ratio
                is above the balanced threshold and rose from the week before,
                an info-level trend alert is added.
            config: Thresholds (for evidence values)
            now: Creation time (default: current UTC time)
        """
        cfg = config or BalanceConfig()
        created = now or dt_now_utc()
        expires = created + timedelta(days=const.DEFAULT_ALERT_TTL_DAYS)
        alerts: list[Alert] = []

        if state.alert_level != const.BALANCE_LEVEL_NONE:
            most = state.member(state.max_member) if state.max_member else None
            least = state.member(state.min_member) if state.min_member else None
            critical = state.alert_level == const.BALANCE_LEVEL_CRITICAL
            alerts.append(
                Alert(
                    id=const.ALERT_TYPE_IMBALANCE,
                    type=const.ALERT_TYPE_IMBALANCE,
                    severity=(
                        const.SEVERITY_CRITICAL if critical else const.SEVERITY_WARNING
                    ),
                    member_ids=tuple(
                        m.member_id for m in (most, least) if m is not None
                    ),
                    translation_key=const.TRANS_KEY_ALERT_IMBALANCE,
                    placeholders={
                        "ratio": state.imbalance_ratio,
                        "threshold": (
                            cfg.critical_ratio if critical else cfg.balanced_ratio
                        ),
                        "max_name": most.name if most else const.SENTINEL_EMPTY,
                        "max_percentage": most.percentage if most else 0,
                        "min_name": least.name if least else const.SENTINEL_EMPTY,
                        "min_percentage": least.percentage if least else 0,
                    },
                    action_key=const.TRANS_KEY_ACTION_REBALANCE,
                    created_at=created,
                    expires_at=expires,
                )
            )

        for member in state.members:
            if member.overload_severity is None:
                continue
            alerts.append(
                Alert(
                    id=f"{const.ALERT_TYPE_OVERLOAD}-{member.member_id}",
                    type=const.ALERT_TYPE_OVERLOAD,
                    severity=member.overload_severity,
                    member_ids=(member.member_id,),
                    translation_key=const.TRANS_KEY_ALERT_OVERLOAD,
                    placeholders={
                        "name": member.name,
                        "load": member.load,
                        "threshold": cfg.overload_threshold,
                        "average": member.average_load,
                        "percentage": member.percentage,
                    },
                    action_key=const.TRANS_KEY_ACTION_REDISTRIBUTE,
                    created_at=created,
                    expires_at=expires,
                )
            )

        for member in state.members:
            if member.inactivity_severity is None:
                continue
            alerts.append(
                Alert(
                    id=f"{const.ALERT_TYPE_INACTIVITY}-{member.member_id}",
                    type=const.ALERT_TYPE_INACTIVITY,
                    severity=member.inactivity_severity,
                    member_ids=(member.member_id,),
                    translation_key=(
                        const.TRANS_KEY_ALERT_INACTIVITY_NEVER
                        if member.never_active
                        else const.TRANS_KEY_ALERT_INACTIVITY
                    ),
                    placeholders={
                        "name": member.name,
                        "days": member.days_since_activity,
                        "threshold": (
                            cfg.inactivity_critical_days
                            if member.inactivity_severity == const.SEVERITY_CRITICAL
                            else cfg.inactivity_warning_days
                        ),
                    },
                    action_key=const.TRANS_KEY_ACTION_CHECK_IN,
                    created_at=created,
                    expires_at=expires,
                )
            )

        if history and len(history) >= 2:
            ratios = AlertEngine.history_ratios(history)
            latest, previous = ratios[-1], ratios[-2]
            if (
                latest > cfg.balanced_ratio
                and AlertEngine.trend_from_ratios(latest, previous)
                == const.TREND_WORSENING
            ):
                alerts.append(
                    Alert(
                        id=const.ALERT_TYPE_TREND,
                        type=const.ALERT_TYPE_TREND,
                        severity=const.SEVERITY_INFO,
                        member_ids=(),
                        translation_key=const.TRANS_KEY_ALERT_TREND,
                        placeholders={
                            "ratio": latest,
                            "previous_ratio": previous,
                            "week": history[-1].week,
                        },
                        action_key=const.TRANS_KEY_ACTION_REBALANCE,
                        created_at=created,
                        expires_at=expires,
                    )
                )

        return AlertEngine.sort_alerts(alerts)

    @staticmethod
    def should_show_alert(
        alert: Alert,
        dismissed_ids: Collection[str] = (),
        now: datetime | None = None,
    ) -> bool:
        """Check an alert is neither dismissed nor expired."""
        if alert.id in dismissed_ids:
            return False
        if alert.expires_at is not None and alert.expires_at < (now or dt_now_utc()):
            return False
        return True

    @staticmethod
    def alert_summary(alerts: Sequence[Alert]) -> AlertSummary:
        """Count alerts per type and severity; pick the most critical one."""
        by_type = dict.fromkeys(const.ALERT_TYPES, 0)
        by_severity = dict.fromkeys(const.SEVERITY_ORDER, 0)
        for alert in alerts:
            by_type[alert.type] = by_type.get(alert.type, 0) + 1
            by_severity[alert.severity] = by_severity.get(alert.severity, 0) + 1
        ordered = AlertEngine.sort_alerts(alerts)
        return AlertSummary(
            total=len(alerts),
            by_type=by_type,
            by_severity=by_severity,
            most_critical=ordered[0] if ordered else None,
        )

    # ────────────────────────────────────────────────────────────────
    # Digest
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def build_digest(
        profiles: Sequence[LoadProfile],
        previous_profiles: Sequence[LoadProfile],
        period_start: date,
        period_end: date,
        top_categories: int = const.DEFAULT_TOP_CATEGORIES,
    ) -> Digest:
        """Summarize a period of completed work.

        Args:
            profiles: Historical-view profiles for [period_start, period_end]
            previous_profiles: Historical-view profiles for the previous
                equal-length period (see dt_utils.previous_period)
            period_start / period_end: Inclusive period bounds
            top_categories: How many categories to list, heaviest first

        Raises:
            ValueError: If period_end is before period_start
        """
        if period_end < period_start:
            raise ValueError("period_end must not be before period_start")

        total_load = round_points(sum(p.total_weight for p in profiles))
        members = tuple(
            DigestMember(
                member_id=p.member_id,
                name=p.name,
                completed_count=p.completed_count,
                load_points=p.total_weight,
                share=calculate_percentage(p.total_weight, total_load),
            )
            for p in sorted(profiles, key=lambda p: (-p.total_weight, p.member_id))
        )

        categories: dict[str, float] = {}
        for profile in profiles:
            for category, points in profile.category_breakdown.items():
                categories[category] = categories.get(category, 0.0) + points
        top = tuple(
            (category, round_points(points))
            for category, points in sorted(
                categories.items(), key=lambda item: (-item[1], item[0])
            )[: max(top_categories, 0)]
        )

        ratio = BalanceEngine.imbalance_ratio(profiles)
        previous = BalanceEngine.imbalance_ratio(previous_profiles)
        return Digest(
            period_start=period_start,
            period_end=period_end,
            members=members,
            total_completed=sum(p.completed_count for p in profiles),
            total_load=total_load,
            top_categories=top,
            imbalance_ratio=ratio,
            previous_ratio=previous,
            trend=AlertEngine.trend_from_ratios(ratio, previous),
        )
