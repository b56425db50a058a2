"""Manager modules for FairShare.

Managers are the stateful layer: they re-validate engine output against
current stored state and write through the persistence sink.
"""

from .rebalance_manager import ApplyResult, RebalanceManager

__all__ = [
    "ApplyResult",
    "RebalanceManager",
]
