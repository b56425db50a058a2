"""Balance Engine - Household fairness classification.

Turns load profiles into a BalanceState:
- Imbalance ratio (highest load / max(lowest load, 1))
- Balance score (0-100) and Gini coefficient over member loads
- Household alert level (none / warning / critical) from ratio thresholds
- Per-member overload (absolute threshold and/or household-average multiple)
- Per-member inactivity (days since the last completed task)

ARCHITECTURE: This is a pure logic engine. Classification reads profiles,
an optional activity map and a reference date; it never mutates inputs, so
classifying the same input twice yields equal results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .. import const
from ..data_builders import build_balance_options
from ..utils.dt_utils import days_between, dt_today_local
from ..utils.math_utils import round_points, safe_ratio

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from datetime import date, datetime

    from .load_engine import LoadProfile


# =============================================================================
# CONFIGURATION
# =============================================================================


@dataclass(frozen=True)
class BalanceConfig:
    """Thresholds used by classification, alerts and rebalancing.

    Overload precedence: by default either condition (absolute threshold or
    household-average multiple) marks a member overloaded. Set
    overload_requires_both to require both.
    """

    balanced_ratio: float = const.DEFAULT_BALANCED_RATIO
    critical_ratio: float = const.DEFAULT_CRITICAL_RATIO
    overload_threshold: float = const.DEFAULT_OVERLOAD_THRESHOLD
    overload_average_multiple: float = const.DEFAULT_OVERLOAD_AVERAGE_MULTIPLE
    overload_critical_factor: float = const.DEFAULT_OVERLOAD_CRITICAL_FACTOR
    overload_requires_both: bool = const.DEFAULT_OVERLOAD_REQUIRES_BOTH
    inactivity_warning_days: int = const.DEFAULT_INACTIVITY_WARNING_DAYS
    inactivity_critical_days: int = const.DEFAULT_INACTIVITY_CRITICAL_DAYS

    @classmethod
    def from_options(cls, options: Mapping[str, Any] | None = None) -> BalanceConfig:
        """Build a config from a CONF_* mapping (validated, defaults applied).

        Raises:
            EntityValidationError: If any option is unknown or out of range
        """
        validated = build_balance_options(options)
        return cls(
            balanced_ratio=validated[const.CONF_BALANCED_RATIO],
            critical_ratio=validated[const.CONF_CRITICAL_RATIO],
            overload_threshold=validated[const.CONF_OVERLOAD_THRESHOLD],
            overload_average_multiple=validated[const.CONF_OVERLOAD_AVERAGE_MULTIPLE],
            overload_critical_factor=validated[const.CONF_OVERLOAD_CRITICAL_FACTOR],
            overload_requires_both=validated[const.CONF_OVERLOAD_REQUIRES_BOTH],
            inactivity_warning_days=validated[const.CONF_INACTIVITY_WARNING_DAYS],
            inactivity_critical_days=validated[const.CONF_INACTIVITY_CRITICAL_DAYS],
        )


# =============================================================================
# RESULT STRUCTURES
# =============================================================================


@dataclass(frozen=True)
class MemberBalance:
    """Classification of one member.

    Attributes:
        state: Primary state. Overloaded wins over inactive.
        overload_severity / inactivity_severity: SEVERITY_* or None
        days_since_activity: Whole days since last completion (0 if never)
        never_active: True when the member has no completion at all
    """

    member_id: str
    name: str
    load: float
    percentage: int
    average_load: float
    state: str
    is_overloaded: bool = False
    is_inactive: bool = False
    overload_severity: str | None = None
    inactivity_severity: str | None = None
    days_since_activity: int = 0
    never_active: bool = False


@dataclass(frozen=True)
class BalanceState:
    """Household-level classification plus per-member detail.

    balance_score (0-100) and gini_coefficient (0-1) summarize how evenly
    load is spread; the alert level stays driven by imbalance_ratio.
    """

    is_balanced: bool
    imbalance_ratio: float
    alert_level: str
    total_load: float = 0.0
    average_load: float = 0.0
    max_member: str | None = None
    min_member: str | None = None
    balance_score: int = const.BALANCE_SCORE_MAX
    gini_coefficient: float = 0.0
    members: tuple[MemberBalance, ...] = field(default_factory=tuple)

    def member(self, member_id: str) -> MemberBalance | None:
        """Return the classification of member_id, if present."""
        for member in self.members:
            if member.member_id == member_id:
                return member
        return None


# =============================================================================
# ENGINE
# =============================================================================


class BalanceEngine:
    """Pure classification engine.

    Example:
        state = BalanceEngine.classify(aggregation.profiles)
        state.alert_level  # "critical" for loads 40 / 10
    """

    @staticmethod
    def imbalance_ratio(profiles: Sequence[LoadProfile]) -> float:
        """Return highest load / max(lowest load, 1).

        Households with fewer than two members, or fewer than two members
        carrying any load, are trivially balanced and return 1.0.
        """
        return BalanceEngine.ratio_from_loads(
            {p.member_id: p.total_weight for p in profiles}
        )

    @staticmethod
    def ratio_from_loads(loads: Mapping[str, float]) -> float:
        """imbalance_ratio for a bare {member: load} snapshot."""
        values = list(loads.values())
        if len(values) < 2 or sum(1 for v in values if v > 0) < 2:
            return 1.0
        return safe_ratio(max(values), min(values))

    @staticmethod
    def gini_coefficient(loads: Sequence[float]) -> float:
        """Return the Gini coefficient of a load list (0 equal, near 1 one-sided).

        Examples:
            gini_coefficient([40, 10]) → 0.3
            gini_coefficient([0, 0, 0, 100]) → 0.75
            gini_coefficient([]) → 0.0
        """
        values = sorted(loads)
        count = len(values)
        total = sum(values)
        if count == 0 or total <= 0:
            return 0.0
        mean = total / count
        spread = sum(abs(a - b) for a in values for b in values)
        return round_points(spread / (2 * count * count * mean))

    @staticmethod
    def balance_score(loads: Sequence[float]) -> int:
        """Return a 0-100 fairness score (100 means every share is equal).

        Each member's share is compared with an equal split; the score drops
        BALANCE_SCORE_DEVIATION_PENALTY per percentage point of average
        deviation. Single-member and empty households score 100.
        """
        values = list(loads)
        total = sum(values)
        if len(values) <= 1 or total <= 0:
            return const.BALANCE_SCORE_MAX
        ideal = 100 / len(values)
        deviation = sum(abs(v / total * 100 - ideal) for v in values) / len(values)
        return max(
            0,
            round(
                const.BALANCE_SCORE_MAX
                - const.BALANCE_SCORE_DEVIATION_PENALTY * deviation
            ),
        )

    @staticmethod
    def alert_level(ratio: float, config: BalanceConfig) -> str:
        """Map a ratio onto BALANCE_LEVEL_* using the configured thresholds."""
        if ratio <= config.balanced_ratio:
            return const.BALANCE_LEVEL_NONE
        if ratio <= config.critical_ratio:
            return const.BALANCE_LEVEL_WARNING
        return const.BALANCE_LEVEL_CRITICAL

    @staticmethod
    def is_overloaded(load: float, average: float, config: BalanceConfig) -> bool:
        """Check the overload rule for one load against the household average."""
        over_absolute = load > config.overload_threshold
        over_average = (
            average > 0 and load > average * config.overload_average_multiple
        )
        if config.overload_requires_both:
            return over_absolute and over_average
        return over_absolute or over_average

    @staticmethod
    def overload_severity(
        load: float, average: float, config: BalanceConfig
    ) -> str | None:
        """Return SEVERITY_* for an overloaded load, or None when not overloaded."""
        if not BalanceEngine.is_overloaded(load, average, config):
            return None
        if load > config.overload_threshold * config.overload_critical_factor:
            return const.SEVERITY_CRITICAL
        return const.SEVERITY_WARNING

    @staticmethod
    def inactivity(
        last_completed_at: datetime | None,
        reference_date: date,
        config: BalanceConfig,
    ) -> tuple[str | None, int, bool]:
        """Classify inactivity for one member.

        Returns:
            Tuple of (severity or None, days_since_activity, never_active).
            A member with no completion is critical with 0 days.
        """
        if last_completed_at is None:
            return const.SEVERITY_CRITICAL, 0, True
        days = days_between(last_completed_at, reference_date)
        if days >= config.inactivity_critical_days:
            return const.SEVERITY_CRITICAL, days, False
        if days >= config.inactivity_warning_days:
            return const.SEVERITY_WARNING, days, False
        return None, days, False

    @staticmethod
    def classify(
        profiles: Sequence[LoadProfile],
        config: BalanceConfig | None = None,
        last_activity: Mapping[str, datetime | None] | None = None,
        reference_date: date | None = None,
    ) -> BalanceState:
        """Classify household and member state.

        Args:
            profiles: Load profiles of active members (any order)
            config: Thresholds (defaults when None)
            last_activity: {member_id: last completion}. When None, inactivity
                is not evaluated. A member missing from a given mapping
                counts as never active.
            reference_date: Date used for inactivity day counts (default today)

        Returns:
            BalanceState. Degenerate inputs (no or one profile) are balanced.
        """
        cfg = config or BalanceConfig()
        ref = reference_date or dt_today_local()
        ratio = BalanceEngine.imbalance_ratio(profiles)
        level = BalanceEngine.alert_level(ratio, cfg)

        loads = [p.total_weight for p in profiles]
        total = round_points(sum(loads))
        average = round_points(total / len(profiles)) if profiles else 0.0

        members: list[MemberBalance] = []
        for profile in sorted(profiles, key=lambda p: p.member_id):
            overload = BalanceEngine.overload_severity(
                profile.total_weight, average, cfg
            )
            inactive_severity: str | None = None
            days = 0
            never = False
            if last_activity is not None:
                inactive_severity, days, never = BalanceEngine.inactivity(
                    last_activity.get(profile.member_id), ref, cfg
                )

            if overload is not None:
                state = const.MEMBER_STATE_OVERLOADED
            elif inactive_severity is not None:
                state = const.MEMBER_STATE_INACTIVE
            else:
                state = const.MEMBER_STATE_NORMAL

            members.append(
                MemberBalance(
                    member_id=profile.member_id,
                    name=profile.name,
                    load=profile.total_weight,
                    percentage=profile.percentage,
                    average_load=average,
                    state=state,
                    is_overloaded=overload is not None,
                    is_inactive=inactive_severity is not None,
                    overload_severity=overload,
                    inactivity_severity=inactive_severity,
                    days_since_activity=days,
                    never_active=never,
                )
            )

        ordered = sorted(profiles, key=lambda p: (-p.total_weight, p.member_id))
        return BalanceState(
            is_balanced=level == const.BALANCE_LEVEL_NONE,
            imbalance_ratio=ratio,
            alert_level=level,
            total_load=total,
            average_load=average,
            max_member=ordered[0].member_id if ordered else None,
            min_member=ordered[-1].member_id if ordered else None,
            balance_score=BalanceEngine.balance_score(loads),
            gini_coefficient=BalanceEngine.gini_coefficient(loads),
            members=tuple(members),
        )
