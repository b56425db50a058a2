# File: helpers/__init__.py
"""Presentation helpers for FairShare.

Functions here touch the filesystem (translation files) and so stay out of
the pure engines and utils.

Submodules:
    - translation_helpers: Translation file loading, caching and rendering

Usage:
    from . import translation_helpers as th
"""

from . import translation_helpers

__all__ = ["translation_helpers"]
