"""Engine modules for FairShare.

Contains pure computation engines, leaf-first:
- weight_engine: Task effort scoring (flat or four-dimension weights)
- load_engine: Per-member load aggregation, week loads, decayed loads, history
- balance_engine: Imbalance ratio, balance score, Gini, overload/inactivity
- availability_engine: Eligibility rules and exclusion periods
- assignment_engine: Greedy assignee selection with rotation memory
- rebalance_engine: Bounded reassignment suggestions
- alert_engine: Structured alerts and periodic digests
"""

# Use relative imports within package to avoid mypy module resolution issues
from .alert_engine import Alert, AlertEngine, AlertSummary, Digest, DigestMember
from .assignment_engine import (
    AssignmentDecision,
    AssignmentEngine,
    AssignmentStats,
    RotationState,
    RotationStatus,
    ScoredCandidate,
)
from .availability_engine import AvailabilityEngine
from .balance_engine import BalanceConfig, BalanceEngine, BalanceState, MemberBalance
from .load_engine import (
    LoadAggregation,
    LoadEngine,
    LoadProfile,
    LoadWindow,
    TimeWeightedLoad,
    WeeklyStats,
)
from .rebalance_engine import RebalanceEngine, RebalanceSuggestion
from .weight_engine import BreakdownWeight, FlatWeight, TaskWeight, WeightEngine

__all__ = [
    "Alert",
    "AlertEngine",
    "AlertSummary",
    "AssignmentDecision",
    "AssignmentEngine",
    "AssignmentStats",
    "AvailabilityEngine",
    "BalanceConfig",
    "BalanceEngine",
    "BalanceState",
    "BreakdownWeight",
    "Digest",
    "DigestMember",
    "FlatWeight",
    "LoadAggregation",
    "LoadEngine",
    "LoadProfile",
    "LoadWindow",
    "MemberBalance",
    "RebalanceEngine",
    "RebalanceSuggestion",
    "RotationState",
    "RotationStatus",
    "ScoredCandidate",
    "TaskWeight",
    "TimeWeightedLoad",
    "WeeklyStats",
    "WeightEngine",
]
