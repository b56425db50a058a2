# File: const.py
"""Constants for the FairShare load-balancing engine.

This file centralizes record keys, defaults, thresholds, reason codes,
alert types and translation keys for consistency across the package.
Engines, managers and helpers read every literal from here.
"""

import logging

# ------------------------------------------------------------------------------------------------
# General / Package Information
# ------------------------------------------------------------------------------------------------

# Logger
LOGGER = logging.getLogger(__package__)

# Translations
TRANSLATIONS_DIR = "translations"
DEFAULT_LANGUAGE = "en"

# Float precision for point rounding
DATA_FLOAT_PRECISION = 2

# Storage
STORAGE_VERSION = 1
STORAGE_FILENAME = "fairshare.json"

# Sentinels
SENTINEL_EMPTY = ""

# Maximum weekly load sentinel ("no cap")
UNLIMITED = "unlimited"

# ------------------------------------------------------------------------------------------------
# Task Record Keys
# ------------------------------------------------------------------------------------------------
DATA_TASK_ID = "id"
DATA_TASK_TITLE = "title"
DATA_TASK_CATEGORY = "category"
DATA_TASK_PRIORITY = "priority"
DATA_TASK_DUE_DATE = "due_date"
DATA_TASK_COMPLETED_AT = "completed_at"
DATA_TASK_RECURRENCE = "recurrence"
DATA_TASK_IS_CRITICAL = "is_critical"
DATA_TASK_CHILD_ID = "child_id"
DATA_TASK_ASSIGNED_TO = "assigned_to"
DATA_TASK_ESTIMATED_MINUTES = "estimated_minutes"
DATA_TASK_WEIGHT = "weight"
DATA_TASK_WEIGHT_BREAKDOWN = "weight_breakdown"

# Weight dimensions (breakdown keys)
WEIGHT_DIM_MENTAL = "mental"
WEIGHT_DIM_TIME = "time"
WEIGHT_DIM_EMOTIONAL = "emotional"
WEIGHT_DIM_PHYSICAL = "physical"

WEIGHT_DIMENSIONS = (
    WEIGHT_DIM_MENTAL,
    WEIGHT_DIM_TIME,
    WEIGHT_DIM_EMOTIONAL,
    WEIGHT_DIM_PHYSICAL,
)

# ------------------------------------------------------------------------------------------------
# Member Record Keys
# ------------------------------------------------------------------------------------------------
DATA_MEMBER_ID = "user_id"
DATA_MEMBER_NAME = "name"
DATA_MEMBER_PREFERRED_CATEGORIES = "preferred_categories"
DATA_MEMBER_BLOCKED_CATEGORIES = "blocked_categories"
DATA_MEMBER_MAX_WEEKLY_LOAD = "max_weekly_load"
DATA_MEMBER_EXCLUSION_PERIODS = "exclusion_periods"
DATA_MEMBER_IS_ACTIVE = "is_active"

# Exclusion period keys
DATA_EXCLUSION_ID = "id"
DATA_EXCLUSION_START_DATE = "start_date"
DATA_EXCLUSION_END_DATE = "end_date"
DATA_EXCLUSION_REASON = "reason"

# Storage buckets
DATA_META = "meta"
DATA_META_STORAGE_VERSION = "storage_version"
DATA_TASKS = "tasks"
DATA_MEMBERS = "members"
DATA_AUDIT_LOG = "audit_log"

# Audit record keys
DATA_AUDIT_NEW_ASSIGNEE = "new_assignee"

# Collaborator records use camelCase; map them onto canonical keys
RECORD_KEY_ALIASES: dict[str, str] = {
    "dueDate": DATA_TASK_DUE_DATE,
    "completedAt": DATA_TASK_COMPLETED_AT,
    "isCritical": DATA_TASK_IS_CRITICAL,
    "childId": DATA_TASK_CHILD_ID,
    "assignedTo": DATA_TASK_ASSIGNED_TO,
    "estimatedMinutes": DATA_TASK_ESTIMATED_MINUTES,
    "recurrencePattern": DATA_TASK_RECURRENCE,
    "weightBreakdown": DATA_TASK_WEIGHT_BREAKDOWN,
    "userId": DATA_MEMBER_ID,
    "preferredCategories": DATA_MEMBER_PREFERRED_CATEGORIES,
    "blockedCategories": DATA_MEMBER_BLOCKED_CATEGORIES,
    "maxWeeklyLoad": DATA_MEMBER_MAX_WEEKLY_LOAD,
    "exclusionPeriods": DATA_MEMBER_EXCLUSION_PERIODS,
    "isActive": DATA_MEMBER_IS_ACTIVE,
    "startDate": DATA_EXCLUSION_START_DATE,
    "endDate": DATA_EXCLUSION_END_DATE,
}

# ------------------------------------------------------------------------------------------------
# Categories
# ------------------------------------------------------------------------------------------------
CATEGORY_EDUCATION = "education"
CATEGORY_HEALTH = "health"
CATEGORY_ADMIN = "admin"
CATEGORY_SOCIAL = "social"
CATEGORY_LOGISTICS = "logistics"
CATEGORY_DAILY = "daily"
CATEGORY_OTHER = "other"

CATEGORIES = (
    CATEGORY_EDUCATION,
    CATEGORY_HEALTH,
    CATEGORY_ADMIN,
    CATEGORY_SOCIAL,
    CATEGORY_LOGISTICS,
    CATEGORY_DAILY,
    CATEGORY_OTHER,
)

# Default flat weight per category (1-5 scale)
CATEGORY_DEFAULT_WEIGHTS: dict[str, int] = {
    CATEGORY_EDUCATION: 3,
    CATEGORY_HEALTH: 4,
    CATEGORY_ADMIN: 4,
    CATEGORY_SOCIAL: 2,
    CATEGORY_LOGISTICS: 2,
    CATEGORY_DAILY: 2,
    CATEGORY_OTHER: 2,
}

# ------------------------------------------------------------------------------------------------
# Recurrence Kinds
# ------------------------------------------------------------------------------------------------
RECURRENCE_NONE = "none"
RECURRENCE_DAILY = "daily"
RECURRENCE_WEEKLY = "weekly"
RECURRENCE_MONTHLY = "monthly"
RECURRENCE_YEARLY = "yearly"
RECURRENCE_SEASONAL = "seasonal"

RECURRENCE_KINDS = (
    RECURRENCE_NONE,
    RECURRENCE_DAILY,
    RECURRENCE_WEEKLY,
    RECURRENCE_MONTHLY,
    RECURRENCE_YEARLY,
    RECURRENCE_SEASONAL,
)

# ------------------------------------------------------------------------------------------------
# Weight Model
# ------------------------------------------------------------------------------------------------
WEIGHT_MIN = 1
WEIGHT_MAX = 5

# Flat weight w reconciles to breakdown {w, w, w, w}: flat 2 ~ breakdown sum 8
BREAKDOWN_TOTAL_PER_FLAT_POINT = 4

# Ranking-only multiplier for critical or overdue pending tasks
URGENCY_MULTIPLIER = 1.5

# Ranking-only priority multipliers (1 = high, 2 = normal, 3 = low)
PRIORITY_HIGH = 1
PRIORITY_NORMAL = 2
PRIORITY_LOW = 3
DEFAULT_PRIORITY = PRIORITY_NORMAL
PRIORITY_MULTIPLIERS = {
    PRIORITY_HIGH: 1.5,
    PRIORITY_NORMAL: 1.0,
    PRIORITY_LOW: 0.8,
}

# Ranking-only routine discount; yearly and seasonal share the weekly rate
RECURRENCE_MULTIPLIERS = {
    RECURRENCE_NONE: 1.0,
    RECURRENCE_DAILY: 0.6,
    RECURRENCE_WEEKLY: 0.8,
    RECURRENCE_MONTHLY: 0.9,
    RECURRENCE_YEARLY: 0.8,
    RECURRENCE_SEASONAL: 0.8,
}

# Graded deadline pressure for pending tasks (days until due)
DEADLINE_PRESSURE_OVERDUE = 1.8
DEADLINE_PRESSURE_TODAY = 1.5
DEADLINE_PRESSURE_TOMORROW = 1.3
DEADLINE_PRESSURE_THIS_WEEK = 1.1
DEADLINE_PRESSURE_NONE = 1.0
DEADLINE_THIS_WEEK_DAYS = 7

# ------------------------------------------------------------------------------------------------
# Load Aggregation
# ------------------------------------------------------------------------------------------------
LOAD_VIEW_HISTORICAL = "historical"
LOAD_VIEW_PENDING = "pending"

LOAD_VIEWS = (LOAD_VIEW_HISTORICAL, LOAD_VIEW_PENDING)

DEFAULT_HISTORY_WEEKS = 4

# Time-weighted load: completions halve in weight every half-life, floored
# once they are older than the max age
TIME_DECAY_HALF_LIFE_DAYS = 14
TIME_DECAY_MAX_AGE_DAYS = 90
TIME_DECAY_FLOOR = 0.1

PERIOD_FORMAT_WEEKLY = "%G-W%V"

# ------------------------------------------------------------------------------------------------
# Balance Classification
# ------------------------------------------------------------------------------------------------
BALANCE_LEVEL_NONE = "none"
BALANCE_LEVEL_WARNING = "warning"
BALANCE_LEVEL_CRITICAL = "critical"

MEMBER_STATE_NORMAL = "normal"
MEMBER_STATE_OVERLOADED = "overloaded"
MEMBER_STATE_INACTIVE = "inactive"

# Balance score: 100 minus this many points per percentage point of average
# deviation from an equal share
BALANCE_SCORE_MAX = 100
BALANCE_SCORE_DEVIATION_PENALTY = 2

# Configuration keys
CONF_BALANCED_RATIO = "balanced_ratio"
CONF_CRITICAL_RATIO = "critical_ratio"
CONF_OVERLOAD_THRESHOLD = "overload_threshold"
CONF_OVERLOAD_AVERAGE_MULTIPLE = "overload_average_multiple"
CONF_OVERLOAD_CRITICAL_FACTOR = "overload_critical_factor"
CONF_OVERLOAD_REQUIRES_BOTH = "overload_requires_both"
CONF_INACTIVITY_WARNING_DAYS = "inactivity_warning_days"
CONF_INACTIVITY_CRITICAL_DAYS = "inactivity_critical_days"

# Defaults
DEFAULT_BALANCED_RATIO = 1.5
DEFAULT_CRITICAL_RATIO = 2.5
DEFAULT_OVERLOAD_THRESHOLD = 30.0
DEFAULT_OVERLOAD_AVERAGE_MULTIPLE = 1.2
DEFAULT_OVERLOAD_CRITICAL_FACTOR = 1.5
DEFAULT_OVERLOAD_REQUIRES_BOTH = False
DEFAULT_INACTIVITY_WARNING_DAYS = 7
DEFAULT_INACTIVITY_CRITICAL_DAYS = 14

# ------------------------------------------------------------------------------------------------
# Availability / Eligibility Reasons
# ------------------------------------------------------------------------------------------------
INELIGIBLE_INACTIVE = "inactive"
INELIGIBLE_CATEGORY_BLOCKED = "category_blocked"
INELIGIBLE_EXCLUDED = "excluded"
INELIGIBLE_OVER_CAPACITY = "over_capacity"

DEFAULT_UPCOMING_EXCLUSION_DAYS = 7

# ------------------------------------------------------------------------------------------------
# Assignment Optimizer
# ------------------------------------------------------------------------------------------------
PREFERENCE_BONUS = 2.0
ROTATION_PENALTY = 3.0

ASSIGN_REASON_ONLY_MEMBER = "only_member"
ASSIGN_REASON_PREFERENCE = "preference"
ASSIGN_REASON_LEAST_LOADED = "least_loaded"
ASSIGN_REASON_ROTATION = "rotation"

# ------------------------------------------------------------------------------------------------
# Rebalancing
# ------------------------------------------------------------------------------------------------
DEFAULT_MAX_SUGGESTIONS = 5

REJECT_TARGET_NOT_ELIGIBLE = "target_not_eligible"
REJECT_TASK_ALREADY_REASSIGNED = "task_already_reassigned"
REJECT_TASK_ALREADY_COMPLETED = "task_already_completed"
REJECT_TASK_NOT_FOUND = "task_not_found"

AUDIT_REASON_REBALANCE = "rebalance"

# ------------------------------------------------------------------------------------------------
# Alerts & Digest
# ------------------------------------------------------------------------------------------------
ALERT_TYPE_IMBALANCE = "imbalance"
ALERT_TYPE_OVERLOAD = "overload"
ALERT_TYPE_INACTIVITY = "inactivity"
ALERT_TYPE_TREND = "trend"

ALERT_TYPES = (
    ALERT_TYPE_IMBALANCE,
    ALERT_TYPE_OVERLOAD,
    ALERT_TYPE_INACTIVITY,
    ALERT_TYPE_TREND,
)

# Alerts stop showing after this many days unless rebuilt
DEFAULT_ALERT_TTL_DAYS = 7

SEVERITY_CRITICAL = "critical"
SEVERITY_WARNING = "warning"
SEVERITY_INFO = "info"

# Lower rank sorts first
SEVERITY_ORDER: dict[str, int] = {
    SEVERITY_CRITICAL: 0,
    SEVERITY_WARNING: 1,
    SEVERITY_INFO: 2,
}

TREND_IMPROVING = "improving"
TREND_STABLE = "stable"
TREND_WORSENING = "worsening"

DEFAULT_TOP_CATEGORIES = 3

# Translation keys (alerts)
TRANS_KEY_ALERT_IMBALANCE = "alert_imbalance"
TRANS_KEY_ALERT_OVERLOAD = "alert_overload"
TRANS_KEY_ALERT_INACTIVITY = "alert_inactivity"
TRANS_KEY_ALERT_INACTIVITY_NEVER = "alert_inactivity_never"
TRANS_KEY_ALERT_TREND = "alert_trend"

# Translation keys (suggested actions)
TRANS_KEY_ACTION_REBALANCE = "action_rebalance"
TRANS_KEY_ACTION_REDISTRIBUTE = "action_redistribute"
TRANS_KEY_ACTION_CHECK_IN = "action_check_in"

# Translation keys (validation errors)
TRANS_KEY_INVALID_RECORD = "invalid_record"
TRANS_KEY_INVALID_WEIGHT = "invalid_weight"
TRANS_KEY_INVALID_DATE_RANGE = "invalid_date_range"
TRANS_KEY_INVALID_MAX_WEEKLY_LOAD = "invalid_max_weekly_load"
TRANS_KEY_INVALID_COMPLETED_TASK = "invalid_completed_task"
TRANS_KEY_INVALID_CONFIG = "invalid_config"
TRANS_KEY_MEMBER_NOT_FOUND = "member_not_found"
TRANS_KEY_EXCLUSION_NOT_FOUND = "exclusion_not_found"

# Template sections inside a translation file
TRANS_SECTION_TITLE = "title"
TRANS_SECTION_MESSAGE = "message"
TRANS_SECTION_ACTION = "action"

# Top-level groups inside a translation file
TRANS_GROUP_ALERTS = "alerts"
TRANS_GROUP_ACTIONS = "actions"
TRANS_GROUP_ERRORS = "errors"
