"""Tests for translation_helpers rendering and language fallback."""

from __future__ import annotations

from datetime import datetime, timezone

from fairshare import const
from fairshare.data_builders import EntityValidationError
from fairshare.engines.alert_engine import Alert, AlertEngine
from fairshare.engines.balance_engine import BalanceEngine
from fairshare.helpers import translation_helpers as th

from tests.helpers import profile

NOW = datetime(2026, 1, 21, 9, 0, tzinfo=timezone.utc)


def _imbalance_alert() -> Alert:
    state = BalanceEngine.classify(
        [
            profile("alice", 40, name="Alice", percentage=80),
            profile("bob", 10, name="Bob", percentage=20),
        ]
    )
    return AlertEngine.build_alerts(state, now=NOW)[0]


class TestLoading:
    """Translation files and the module cache."""

    def test_available_languages(self) -> None:
        """English first, then the other bundled languages."""
        languages = th.get_available_languages()

        assert languages[0] == const.DEFAULT_LANGUAGE
        assert "fr" in languages

    def test_cache_reused(self) -> None:
        """The second load returns the cached object."""
        first = th.load_translation("en")

        assert th.load_translation("en") is first

    def test_unknown_language_falls_back(self) -> None:
        """Languages without a file use English."""
        assert th.load_translation("de") == th.load_translation("en")


class TestRenderAlert:
    """Alerts render into title, message and action."""

    def test_english(self) -> None:
        """Placeholders are filled with the numeric evidence."""
        rendered = th.render_alert(_imbalance_alert())

        assert rendered["title"] == "Household load is uneven"
        assert rendered["message"] == (
            "Alice is carrying 80% of the load while Bob carries 20% "
            "(ratio 4.0, threshold 2.5)."
        )
        assert rendered["action"] == "Review the suggested task moves together."

    def test_french(self) -> None:
        """The same alert renders in French."""
        rendered = th.render_alert(_imbalance_alert(), "fr")

        assert rendered["title"] == "La charge du foyer est déséquilibrée"

    def test_missing_key_falls_back_to_english(self) -> None:
        """A key absent from a language uses the English template."""
        th._translation_cache["fr"] = {"alerts": {}, "actions": {}}

        rendered = th.render_alert(_imbalance_alert(), "fr")

        assert rendered["title"] == "Household load is uneven"

    def test_unknown_template_renders_key(self) -> None:
        """An unknown key is shown rather than dropped."""
        alert = Alert(
            id="custom",
            type=const.ALERT_TYPE_TREND,
            severity=const.SEVERITY_INFO,
            member_ids=(),
            translation_key="alert_unknown",
            placeholders={},
            action_key="action_unknown",
            created_at=NOW,
        )

        rendered = th.render_alert(alert)

        assert rendered == {
            "title": "alert_unknown",
            "message": "",
            "action": "action_unknown",
        }


class TestRenderError:
    """Validation errors render into sentences."""

    def test_known_error(self) -> None:
        """Placeholders from the error are applied."""
        err = EntityValidationError(
            field=const.DATA_MEMBER_ID,
            translation_key=const.TRANS_KEY_MEMBER_NOT_FOUND,
            placeholders={"member_id": "ghost"},
        )

        assert th.render_error(err) == "Member ghost was not found."
        assert th.render_error(err, "fr") == "Membre ghost introuvable."

    def test_missing_placeholder_kept(self) -> None:
        """Placeholders the error does not carry stay visible."""
        err = EntityValidationError(
            field=const.DATA_EXCLUSION_END_DATE,
            translation_key=const.TRANS_KEY_INVALID_DATE_RANGE,
        )

        assert th.render_error(err) == (
            "The end date {end} is before the start date {start}."
        )

    def test_unknown_error_key(self) -> None:
        """Unknown keys render as key and field."""
        err = EntityValidationError(field="weight", translation_key="nope")

        assert th.render_error(err) == "nope: weight"
