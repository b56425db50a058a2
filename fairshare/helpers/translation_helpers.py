# File: helpers/translation_helpers.py
"""Translation helper functions for FairShare.

Renders structured engine output (alerts, validation errors) into text using
JSON templates in translations/<language>.json. Engines never produce text;
they hand over a translation key plus placeholders.

Files are read once per language and kept in a module-level cache. Any key
missing from a language falls back to English.
"""

from __future__ import annotations

import json
import os
from typing import TYPE_CHECKING, Any

from .. import const

if TYPE_CHECKING:
    from ..data_builders import EntityValidationError
    from ..engines.alert_engine import Alert


# ==============================================================================
# Module-Level Cache
# ==============================================================================

# Key: language code. Avoids repeated file I/O when rendering many alerts.
_translation_cache: dict[str, dict[str, Any]] = {}


# ==============================================================================
# Internal Helpers
# ==============================================================================


class _KeepMissing(dict):
    """format_map mapping that leaves unknown placeholders untouched."""

    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


def _read_json_file(file_path: str) -> dict:
    """Read and parse a JSON file."""
    with open(file_path, encoding="utf-8") as f:
        return json.load(f)


def _get_translations_path() -> str:
    """Get the absolute path to the translations directory."""
    return os.path.join(
        os.path.dirname(os.path.dirname(__file__)), const.TRANSLATIONS_DIR
    )


def _format(template: str, placeholders: dict[str, Any]) -> str:
    return template.format_map(_KeepMissing(placeholders))


# ==============================================================================
# Loading
# ==============================================================================


def get_available_languages() -> list[str]:
    """List language codes that have a translation file (English always first)."""
    translations_path = _get_translations_path()
    try:
        codes = sorted(
            name[: -len(".json")]
            for name in os.listdir(translations_path)
            if name.endswith(".json")
        )
    except OSError as err:
        const.LOGGER.error("Error reading translations directory: %s", err)
        return [const.DEFAULT_LANGUAGE]

    if const.DEFAULT_LANGUAGE in codes:
        codes.remove(const.DEFAULT_LANGUAGE)
    return [const.DEFAULT_LANGUAGE, *codes]


def load_translation(language: str = const.DEFAULT_LANGUAGE) -> dict[str, Any]:
    """Load translations for a language with English fallback.

    Returns:
        Parsed translation file. Unknown languages return the English file;
        a missing English file returns an empty dict.
    """
    if language in _translation_cache:
        return _translation_cache[language]

    file_path = os.path.join(_get_translations_path(), f"{language}.json")
    if os.path.exists(file_path):
        try:
            data = _read_json_file(file_path)
        except (OSError, ValueError) as err:
            const.LOGGER.error("Error loading %s translations: %s", language, err)
        else:
            const.LOGGER.debug("Loaded %s translations", language)
            _translation_cache[language] = data
            return data

    if language != const.DEFAULT_LANGUAGE:
        const.LOGGER.warning(
            "Translations for '%s' not available, falling back to English", language
        )
        return load_translation(const.DEFAULT_LANGUAGE)

    const.LOGGER.error("English translations missing at %s", file_path)
    return {}


def clear_translation_cache() -> None:
    """Drop every cached translation file."""
    _translation_cache.clear()


def _lookup(language: str, group: str, key: str) -> Any:
    """Find group/key in language, then in English."""
    value = load_translation(language).get(group, {}).get(key)
    if value is None and language != const.DEFAULT_LANGUAGE:
        value = load_translation(const.DEFAULT_LANGUAGE).get(group, {}).get(key)
    return value


# ==============================================================================
# Rendering
# ==============================================================================


def render_alert(
    alert: Alert, language: str = const.DEFAULT_LANGUAGE
) -> dict[str, str]:
    """Render an alert into title, message and suggested action.

    Returns:
        {"title": ..., "message": ..., "action": ...}. An unknown template key
        renders as the key itself so nothing is silently dropped.
    """
    template = (
        _lookup(language, const.TRANS_GROUP_ALERTS, alert.translation_key) or {}
    )
    action = _lookup(language, const.TRANS_GROUP_ACTIONS, alert.action_key)
    if not template:
        const.LOGGER.warning("No alert template for '%s'", alert.translation_key)

    return {
        const.TRANS_SECTION_TITLE: _format(
            template.get(const.TRANS_SECTION_TITLE, alert.translation_key),
            alert.placeholders,
        ),
        const.TRANS_SECTION_MESSAGE: _format(
            template.get(const.TRANS_SECTION_MESSAGE, const.SENTINEL_EMPTY),
            alert.placeholders,
        ),
        const.TRANS_SECTION_ACTION: _format(
            action or alert.action_key, alert.placeholders
        ),
    }


def render_error(
    err: EntityValidationError, language: str = const.DEFAULT_LANGUAGE
) -> str:
    """Render a validation error into a user-facing sentence."""
    template = _lookup(language, const.TRANS_GROUP_ERRORS, err.translation_key)
    if template is None:
        return f"{err.translation_key}: {err.field}"
    return _format(template, err.placeholders)
