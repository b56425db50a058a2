"""Record normalization and boundary validation.

This module is the SINGLE SOURCE OF TRUTH for:
- Collaborator record shapes (tasks, members, exclusion periods)
- Field defaults and coercion (ISO strings, camelCase aliases)
- Business-rule validation before anything reaches the engines

### Build Functions
Each record type has a `build_<record>()` function that:
- Renames collaborator aliases (``dueDate`` → ``due_date``)
- Runs the voluptuous schema (types, coercion, defaults)
- Applies business rules the schema cannot express
- Returns a complete TypedDict ready for the engines

Engines assume validated inputs. They still clamp weight dimensions, but
they never re-check dates or ids.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime
from typing import Any
import uuid

import voluptuous as vol

from . import const
from .type_defs import ExclusionPeriodData, MemberData, TaskData
from .utils.dt_utils import dt_parse, dt_parse_date

# ==============================================================================
# EXCEPTIONS
# ==============================================================================


class EntityValidationError(Exception):
    """Validation error with field-specific information.

    Raised when a collaborator record fails schema or business validation.
    The field attribute lets the boundary layer point at the offending input.

    Attributes:
        field: The DATA_* key that failed
        translation_key: The TRANS_KEY_* constant for the error message
        placeholders: Optional dict for translation string placeholders

    Example:
        raise EntityValidationError(
            field=const.DATA_EXCLUSION_END_DATE,
            translation_key=const.TRANS_KEY_INVALID_DATE_RANGE,
            placeholders={"start": "2025-07-10", "end": "2025-07-01"},
        )
    """

    def __init__(
        self,
        field: str,
        translation_key: str,
        placeholders: dict[str, str] | None = None,
    ) -> None:
        """Initialize EntityValidationError."""
        self.field = field
        self.translation_key = translation_key
        self.placeholders = placeholders or {}
        super().__init__(f"{translation_key}: {field}")


# ==============================================================================
# VALIDATORS
# ==============================================================================


def _coerce_date(value: Any) -> date | None:
    """Coerce a date, datetime or string to a calendar date."""
    if value is None or value == const.SENTINEL_EMPTY:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    parsed = dt_parse_date(value) if isinstance(value, str) else None
    if parsed is None:
        raise vol.Invalid(f"invalid date: {value!r}")
    return parsed


def _coerce_datetime(value: Any) -> datetime | None:
    """Coerce a datetime or ISO string to an aware datetime."""
    if value is None or value == const.SENTINEL_EMPTY:
        return None
    if not isinstance(value, (str, date)):
        raise vol.Invalid(f"invalid datetime: {value!r}")
    parsed = dt_parse(value)
    if parsed is None:
        raise vol.Invalid(f"invalid datetime: {value!r}")
    return parsed


def _normalize_category(value: Any) -> str:
    """Fold unknown categories into CATEGORY_OTHER."""
    category = str(value).strip().lower() if value else const.CATEGORY_OTHER
    return category if category in const.CATEGORIES else const.CATEGORY_OTHER


def _normalize_recurrence(value: Any) -> str:
    """Fold unknown or missing recurrence kinds into RECURRENCE_NONE."""
    if not value:
        return const.RECURRENCE_NONE
    kind = str(value).strip().lower()
    return kind if kind in const.RECURRENCE_KINDS else const.RECURRENCE_NONE


def _normalize_category_list(value: Any) -> list[str]:
    """Normalize a category collection, dropping duplicates but keeping order."""
    if value is None:
        return []
    if isinstance(value, str):
        value = [value] if value else []
    result: list[str] = []
    for item in value:
        category = _normalize_category(item)
        if category not in result:
            result.append(category)
    return result


def _max_weekly_load(value: Any) -> float | str:
    """Accept a positive number or the UNLIMITED sentinel (None means unlimited)."""
    if value is None or value == const.UNLIMITED:
        return const.UNLIMITED
    try:
        load = float(value)
    except (TypeError, ValueError) as err:
        raise vol.Invalid(f"invalid max weekly load: {value!r}") from err
    if load <= 0:
        raise vol.Invalid(f"max weekly load must be positive: {value!r}")
    return load


_POSITIVE_NUMBER = vol.All(vol.Coerce(float), vol.Range(min=0, min_included=False))

WEIGHT_BREAKDOWN_SCHEMA = vol.Schema(
    {vol.Required(dim): _POSITIVE_NUMBER for dim in const.WEIGHT_DIMENSIONS},
    extra=vol.REMOVE_EXTRA,
)

EXCLUSION_PERIOD_SCHEMA = vol.Schema(
    {
        vol.Optional(const.DATA_EXCLUSION_ID): vol.Any(None, str),
        vol.Required(const.DATA_EXCLUSION_START_DATE): _coerce_date,
        vol.Required(const.DATA_EXCLUSION_END_DATE): _coerce_date,
        vol.Optional(const.DATA_EXCLUSION_REASON, default=None): vol.Any(None, str),
    },
    extra=vol.REMOVE_EXTRA,
)

TASK_RECORD_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_TASK_ID): vol.All(str, vol.Length(min=1)),
        vol.Optional(const.DATA_TASK_TITLE, default=const.SENTINEL_EMPTY): str,
        vol.Optional(
            const.DATA_TASK_CATEGORY, default=const.CATEGORY_OTHER
        ): _normalize_category,
        vol.Optional(
            const.DATA_TASK_PRIORITY, default=const.DEFAULT_PRIORITY
        ): vol.All(
            vol.Coerce(int),
            vol.Range(min=const.PRIORITY_HIGH, max=const.PRIORITY_LOW),
        ),
        vol.Optional(const.DATA_TASK_DUE_DATE, default=None): _coerce_date,
        vol.Optional(const.DATA_TASK_COMPLETED_AT, default=None): _coerce_datetime,
        vol.Optional(
            const.DATA_TASK_RECURRENCE, default=const.RECURRENCE_NONE
        ): _normalize_recurrence,
        vol.Optional(const.DATA_TASK_IS_CRITICAL, default=False): vol.Boolean(),
        vol.Optional(const.DATA_TASK_CHILD_ID, default=None): vol.Any(None, str),
        vol.Optional(const.DATA_TASK_ASSIGNED_TO, default=None): vol.Any(None, str),
        vol.Optional(const.DATA_TASK_ESTIMATED_MINUTES, default=None): vol.Any(
            None, vol.All(vol.Coerce(int), vol.Range(min=0))
        ),
        vol.Optional(const.DATA_TASK_WEIGHT, default=None): vol.Any(
            None, _POSITIVE_NUMBER
        ),
        vol.Optional(const.DATA_TASK_WEIGHT_BREAKDOWN, default=None): vol.Any(
            None, WEIGHT_BREAKDOWN_SCHEMA
        ),
    },
    extra=vol.REMOVE_EXTRA,
)

MEMBER_RECORD_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_MEMBER_ID): vol.All(str, vol.Length(min=1)),
        vol.Optional(const.DATA_MEMBER_NAME, default=const.SENTINEL_EMPTY): str,
        vol.Optional(
            const.DATA_MEMBER_PREFERRED_CATEGORIES, default=list
        ): _normalize_category_list,
        vol.Optional(
            const.DATA_MEMBER_BLOCKED_CATEGORIES, default=list
        ): _normalize_category_list,
        vol.Optional(
            const.DATA_MEMBER_MAX_WEEKLY_LOAD, default=const.UNLIMITED
        ): _max_weekly_load,
        vol.Optional(const.DATA_MEMBER_EXCLUSION_PERIODS, default=list): list,
        vol.Optional(const.DATA_MEMBER_IS_ACTIVE, default=True): vol.Boolean(),
    },
    extra=vol.REMOVE_EXTRA,
)

_RATIO = vol.All(vol.Coerce(float), vol.Range(min=1.0))
_DAYS = vol.All(vol.Coerce(int), vol.Range(min=1))

BALANCE_CONFIG_SCHEMA = vol.Schema(
    {
        vol.Optional(
            const.CONF_BALANCED_RATIO, default=const.DEFAULT_BALANCED_RATIO
        ): _RATIO,
        vol.Optional(
            const.CONF_CRITICAL_RATIO, default=const.DEFAULT_CRITICAL_RATIO
        ): _RATIO,
        vol.Optional(
            const.CONF_OVERLOAD_THRESHOLD, default=const.DEFAULT_OVERLOAD_THRESHOLD
        ): _POSITIVE_NUMBER,
        vol.Optional(
            const.CONF_OVERLOAD_AVERAGE_MULTIPLE,
            default=const.DEFAULT_OVERLOAD_AVERAGE_MULTIPLE,
        ): _RATIO,
        vol.Optional(
            const.CONF_OVERLOAD_CRITICAL_FACTOR,
            default=const.DEFAULT_OVERLOAD_CRITICAL_FACTOR,
        ): _RATIO,
        vol.Optional(
            const.CONF_OVERLOAD_REQUIRES_BOTH,
            default=const.DEFAULT_OVERLOAD_REQUIRES_BOTH,
        ): vol.Boolean(),
        vol.Optional(
            const.CONF_INACTIVITY_WARNING_DAYS,
            default=const.DEFAULT_INACTIVITY_WARNING_DAYS,
        ): _DAYS,
        vol.Optional(
            const.CONF_INACTIVITY_CRITICAL_DAYS,
            default=const.DEFAULT_INACTIVITY_CRITICAL_DAYS,
        ): _DAYS,
    },
    extra=vol.PREVENT_EXTRA,
)


# ==============================================================================
# HELPER FUNCTIONS
# ==============================================================================


def _apply_aliases(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Rename collaborator camelCase keys onto canonical DATA_* keys.

    A canonical key already present wins over its alias.
    """
    data: dict[str, Any] = {}
    for key, value in raw.items():
        canonical = const.RECORD_KEY_ALIASES.get(key, key)
        if canonical in data and canonical != key:
            continue
        data[canonical] = value
    return data


def _run_schema(schema: vol.Schema, raw: Mapping[str, Any]) -> dict[str, Any]:
    """Run a schema, translating voluptuous errors into EntityValidationError."""
    try:
        return schema(_apply_aliases(raw))
    except vol.MultipleInvalid as err:
        first = err.errors[0]
        field = str(first.path[0]) if first.path else const.SENTINEL_EMPTY
        translation_key = (
            const.TRANS_KEY_INVALID_WEIGHT
            if field in (const.DATA_TASK_WEIGHT, const.DATA_TASK_WEIGHT_BREAKDOWN)
            else const.TRANS_KEY_INVALID_MAX_WEEKLY_LOAD
            if field == const.DATA_MEMBER_MAX_WEEKLY_LOAD
            else const.TRANS_KEY_INVALID_RECORD
        )
        raise EntityValidationError(
            field=field,
            translation_key=translation_key,
            placeholders={"error": first.msg},
        ) from err


# ==============================================================================
# EXCLUSION PERIODS
# ==============================================================================


def build_exclusion_period(raw: Mapping[str, Any]) -> ExclusionPeriodData:
    """Build a validated exclusion period.

    Generates an id when the record has none.

    Raises:
        EntityValidationError: If dates are missing/invalid or end precedes start
    """
    data = _run_schema(EXCLUSION_PERIOD_SCHEMA, raw)
    start = data[const.DATA_EXCLUSION_START_DATE]
    end = data[const.DATA_EXCLUSION_END_DATE]
    if start is None or end is None:
        raise EntityValidationError(
            field=const.DATA_EXCLUSION_START_DATE
            if start is None
            else const.DATA_EXCLUSION_END_DATE,
            translation_key=const.TRANS_KEY_INVALID_DATE_RANGE,
        )
    if end < start:
        raise EntityValidationError(
            field=const.DATA_EXCLUSION_END_DATE,
            translation_key=const.TRANS_KEY_INVALID_DATE_RANGE,
            placeholders={"start": start.isoformat(), "end": end.isoformat()},
        )
    return ExclusionPeriodData(
        id=data.get(const.DATA_EXCLUSION_ID) or str(uuid.uuid4()),
        start_date=start,
        end_date=end,
        reason=data[const.DATA_EXCLUSION_REASON],
    )


# ==============================================================================
# TASKS
# ==============================================================================


def build_task(raw: Mapping[str, Any]) -> TaskData:
    """Build a validated task record from a task-repository record.

    Raises:
        EntityValidationError: If the record is malformed, declares a
            non-positive weight, or is completed without an assignee
    """
    data = _run_schema(TASK_RECORD_SCHEMA, raw)

    if (
        data[const.DATA_TASK_COMPLETED_AT] is not None
        and not data[const.DATA_TASK_ASSIGNED_TO]
    ):
        raise EntityValidationError(
            field=const.DATA_TASK_ASSIGNED_TO,
            translation_key=const.TRANS_KEY_INVALID_COMPLETED_TASK,
            placeholders={"task_id": data[const.DATA_TASK_ID]},
        )

    return TaskData(
        id=data[const.DATA_TASK_ID],
        title=data[const.DATA_TASK_TITLE],
        category=data[const.DATA_TASK_CATEGORY],
        priority=data[const.DATA_TASK_PRIORITY],
        due_date=data[const.DATA_TASK_DUE_DATE],
        completed_at=data[const.DATA_TASK_COMPLETED_AT],
        recurrence=data[const.DATA_TASK_RECURRENCE],
        is_critical=data[const.DATA_TASK_IS_CRITICAL],
        child_id=data[const.DATA_TASK_CHILD_ID],
        assigned_to=data[const.DATA_TASK_ASSIGNED_TO] or None,
        estimated_minutes=data[const.DATA_TASK_ESTIMATED_MINUTES],
        weight=data[const.DATA_TASK_WEIGHT],
        weight_breakdown=data[const.DATA_TASK_WEIGHT_BREAKDOWN],
    )


# ==============================================================================
# MEMBERS
# ==============================================================================


def build_member(raw: Mapping[str, Any]) -> MemberData:
    """Build a validated member record from a membership-directory record.

    Preferred and blocked sets may overlap; the availability engine lets the
    block win.

    Raises:
        EntityValidationError: If the record or any exclusion period is invalid
    """
    data = _run_schema(MEMBER_RECORD_SCHEMA, raw)
    periods = [
        build_exclusion_period(period)
        for period in data[const.DATA_MEMBER_EXCLUSION_PERIODS]
    ]
    periods.sort(
        key=lambda p: (p[const.DATA_EXCLUSION_START_DATE], p[const.DATA_EXCLUSION_ID])
    )

    return MemberData(
        user_id=data[const.DATA_MEMBER_ID],
        name=data[const.DATA_MEMBER_NAME] or data[const.DATA_MEMBER_ID],
        preferred_categories=data[const.DATA_MEMBER_PREFERRED_CATEGORIES],
        blocked_categories=data[const.DATA_MEMBER_BLOCKED_CATEGORIES],
        max_weekly_load=data[const.DATA_MEMBER_MAX_WEEKLY_LOAD],
        exclusion_periods=periods,
        is_active=data[const.DATA_MEMBER_IS_ACTIVE],
    )


# ==============================================================================
# OPTIONS
# ==============================================================================


def build_balance_options(raw: Mapping[str, Any] | None) -> dict[str, Any]:
    """Validate balance options and fill in defaults.

    Raises:
        EntityValidationError: On unknown keys, out-of-range values, or a
            critical threshold below its warning counterpart
    """
    try:
        options = BALANCE_CONFIG_SCHEMA(dict(raw or {}))
    except vol.MultipleInvalid as err:
        first = err.errors[0]
        raise EntityValidationError(
            field=str(first.path[0]) if first.path else const.SENTINEL_EMPTY,
            translation_key=const.TRANS_KEY_INVALID_CONFIG,
            placeholders={"error": first.msg},
        ) from err

    if options[const.CONF_CRITICAL_RATIO] < options[const.CONF_BALANCED_RATIO]:
        raise EntityValidationError(
            field=const.CONF_CRITICAL_RATIO,
            translation_key=const.TRANS_KEY_INVALID_CONFIG,
            placeholders={"error": "critical ratio below balanced ratio"},
        )
    if (
        options[const.CONF_INACTIVITY_CRITICAL_DAYS]
        < options[const.CONF_INACTIVITY_WARNING_DAYS]
    ):
        raise EntityValidationError(
            field=const.CONF_INACTIVITY_CRITICAL_DAYS,
            translation_key=const.TRANS_KEY_INVALID_CONFIG,
            placeholders={"error": "critical days below warning days"},
        )
    return options
