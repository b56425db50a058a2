# File: utils/math_utils.py
"""Math and calculation utilities for FairShare.

Pure Python math functions shared by the engines.

Functions:
    - round_points: Consistent rounding to configured precision
    - apply_multiplier: Multiplier arithmetic with proper rounding
    - calculate_percentage: Integer share of a total (0 when total is 0)
    - clamp: Bound a value to [min, max]
    - safe_ratio: Division with a floor on the denominator
"""

from __future__ import annotations

import logging

# Module-level logger
_LOGGER = logging.getLogger(__name__)

# ==============================================================================
# Constants (local copies to avoid circular imports)
# ==============================================================================

DATA_FLOAT_PRECISION = 2


# ==============================================================================
# Point Arithmetic Functions
# ==============================================================================


def round_points(value: float, precision: int = DATA_FLOAT_PRECISION) -> float:
    """Round a point value to the configured precision.

    Prevents float drift (27.499999999999996 → 27.5) from leaking into
    load totals and ratios.

    Examples:
        round_points(10.456) → 10.46
        round_points(10.0) → 10.0
    """
    return round(value, precision)


def apply_multiplier(
    base: float,
    multiplier: float,
    precision: int = DATA_FLOAT_PRECISION,
) -> float:
    """Apply a multiplier to a base value with proper rounding.

    Examples:
        apply_multiplier(10, 1.5) → 15.0
        apply_multiplier(10, 1.333) → 13.33
    """
    return round_points(base * multiplier, precision)


def calculate_percentage(part: float, total: float) -> int:
    """Return part as a whole-number percentage of total.

    Rounds to the nearest integer. Returns 0 when total is 0 (never NaN).

    Examples:
        calculate_percentage(40, 50) → 80
        calculate_percentage(1, 3) → 33
        calculate_percentage(5, 0) → 0
    """
    if total <= 0:
        return 0
    return round((part / total) * 100)


def clamp(value: float, min_val: float, max_val: float) -> float:
    """Clamp a value between minimum and maximum bounds.

    Examples:
        clamp(7, 1, 5) → 5
        clamp(-1, 1, 5) → 1
    """
    return max(min_val, min(value, max_val))


def safe_ratio(numerator: float, denominator: float, floor: float = 1.0) -> float:
    """Divide by max(denominator, floor) and round the result.

    Examples:
        safe_ratio(40, 10) → 4.0
        safe_ratio(12, 0) → 12.0
    """
    divisor = max(denominator, floor)
    if divisor <= 0:
        _LOGGER.debug("safe_ratio called with non-positive floor %s", floor)
        return 0.0
    return round_points(numerator / divisor)
