# File: utils/__init__.py
"""Pure Python utilities for FairShare.

This module contains pure Python functions with no I/O. All functions here
can be unit tested with plain in-memory inputs.

Submodules:
    - dt_utils: Date/time parsing, week bounds, period arithmetic
    - math_utils: Point rounding, percentages, clamping, ratios

Usage:
    from . import dt_utils
    from .math_utils import round_points
"""

from . import dt_utils, math_utils

__all__ = ["dt_utils", "math_utils"]
