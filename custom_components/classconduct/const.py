# File: const.py
"""Constants for the Class Conduct integration.

This file centralizes storage keys, field names, defaults, rule constants,
signal suffixes and service names for consistency across the integration.
"""

import logging
from typing import Final

# ------------------------------------------------------------------------------------------------
# General / Integration Information
# ------------------------------------------------------------------------------------------------
CLASSCONDUCT_TITLE = "Class Conduct"

# Integration Domain
DOMAIN = "classconduct"

# Logger
LOGGER = logging.getLogger(__package__)

# Coordinator
COORDINATOR = "coordinator"
COORDINATOR_SUFFIX = "_coordinator"
STORE = "store"

# Storage and Versioning
STORAGE_KEY = "classconduct_data"
STORAGE_VERSION = 1
STORAGE_SAVE_DELAY = 1  # seconds, debounced write
SCHEMA_VERSION = 1

# ------------------------------------------------------------------------------------------------
# Storage collections
# ------------------------------------------------------------------------------------------------
DATA_META = "meta"
DATA_META_SCHEMA_VERSION = "schema_version"
DATA_STUDENTS = "students"
DATA_CONDUCT_RECORDS = "conduct_records"
DATA_SETTINGS = "settings"
DATA_PENDING_ORDERS = "pending_orders"
DATA_PENDING_REPORTS = "pending_reports"
DATA_COIN_GRANTS = "coin_grants"

STORE_COLLECTIONS: Final = (
    DATA_STUDENTS,
    DATA_CONDUCT_RECORDS,
    DATA_SETTINGS,
    DATA_PENDING_ORDERS,
    DATA_PENDING_REPORTS,
    DATA_COIN_GRANTS,
)

# ------------------------------------------------------------------------------------------------
# Behavior catalog
# ------------------------------------------------------------------------------------------------
DATA_BEHAVIOR_ID = "id"
DATA_BEHAVIOR_LABEL = "label"
DATA_BEHAVIOR_POINTS = "points"
DATA_BEHAVIOR_CATEGORY = "category"

BEHAVIOR_CATEGORY_STUDY = "STUDY"
BEHAVIOR_CATEGORY_DISCIPLINE = "DISCIPLINE"
BEHAVIOR_CATEGORY_LABOR = "LABOR"
BEHAVIOR_CATEGORY_OTHER = "OTHER"
BEHAVIOR_CATEGORIES: Final = (
    BEHAVIOR_CATEGORY_STUDY,
    BEHAVIOR_CATEGORY_DISCIPLINE,
    BEHAVIOR_CATEGORY_LABOR,
    BEHAVIOR_CATEGORY_OTHER,
)

# ------------------------------------------------------------------------------------------------
# Conduct records
# ------------------------------------------------------------------------------------------------
DATA_RECORD_ID = "id"
DATA_RECORD_STUDENT_ID = "student_id"
DATA_RECORD_WEEK = "week"
DATA_RECORD_SCORE = "score"
DATA_RECORD_VIOLATIONS = "violations"
DATA_RECORD_POSITIVE_BEHAVIORS = "positive_behaviors"
DATA_RECORD_NOTE = "note"

# Occurrence (one application of a behavior inside a record)
DATA_OCCURRENCE_LABEL = "label"
DATA_OCCURRENCE_POINTS = "points"

RECORD_ID_FMT = "CON-{student_id}-W{week}"

MIN_SCORE = 0
MAX_SCORE = 100

ADJUSTMENT_ADD = 1
ADJUSTMENT_REMOVE = -1

# Historical "<label> (+5đ)" annotation and "(x2)" multiplicity suffix
POINT_ANNOTATION_PATTERN = r"\s*\(([+-]?\d+)đ\)"
MULTIPLICITY_PATTERN = r"\s*\(x\d+\)"
POINT_ANNOTATION_FMT = "{label} ({sign}{points}đ)"

# ------------------------------------------------------------------------------------------------
# Settings
# ------------------------------------------------------------------------------------------------
DATA_SETTINGS_DEFAULT_SCORE = "default_score"
DATA_SETTINGS_THRESHOLDS = "thresholds"
DATA_SETTINGS_RANK_SCORES = "rank_scores"
DATA_SETTINGS_SEMESTER_THRESHOLDS = "semester_thresholds"
DATA_SETTINGS_SEMESTER_TWO_START_WEEK = "semester_two_start_week"
DATA_SETTINGS_BEHAVIOR_CONFIG = "behavior_config"
DATA_SETTINGS_LOCKED_WEEKS = "locked_weeks"
DATA_SETTINGS_COIN_RULES = "coin_rules"
DATA_SETTINGS_ROLE_BUDGETS = "role_budgets"
DATA_SETTINGS_BADGES = "badges"
DATA_SETTINGS_REWARDS = "rewards"
DATA_SETTINGS_AVATARS = "avatars"
DATA_SETTINGS_FRAMES = "frames"

BEHAVIOR_CONFIG_VIOLATIONS = "violations"
BEHAVIOR_CONFIG_POSITIVES = "positives"

THRESHOLD_GOOD = "good"
THRESHOLD_FAIR = "fair"
THRESHOLD_PASS = "pass"
THRESHOLD_FAIL = "fail"

COIN_RULE_WEEKLY_GOOD = "weekly_good"
COIN_RULE_BEHAVIOR_BONUS = "behavior_bonus"
COIN_RULE_IMPROVEMENT = "improvement"
COIN_RULE_CLEAN_SHEET = "clean_sheet"

ROLE_BUDGET_MONITOR_WEEKLY = "monitor_weekly_budget"
ROLE_BUDGET_VICE_WEEKLY = "vice_weekly_budget"
ROLE_BUDGET_MAX_PER_STUDENT = "max_reward_per_student"

DEFAULT_SCORE = 100
DEFAULT_THRESHOLDS: Final = {THRESHOLD_GOOD: 80, THRESHOLD_FAIR: 65, THRESHOLD_PASS: 50}
DEFAULT_RANK_SCORES: Final = {
    THRESHOLD_GOOD: 10,
    THRESHOLD_FAIR: 8,
    THRESHOLD_PASS: 6,
    THRESHOLD_FAIL: 4,
}
DEFAULT_SEMESTER_THRESHOLDS: Final = {
    THRESHOLD_GOOD: 9,
    THRESHOLD_FAIR: 7,
    THRESHOLD_PASS: 5,
}
DEFAULT_SEMESTER_TWO_START_WEEK = 19
DEFAULT_COIN_RULES: Final = {
    COIN_RULE_WEEKLY_GOOD: 50,
    COIN_RULE_BEHAVIOR_BONUS: 10,
    COIN_RULE_IMPROVEMENT: 20,
    COIN_RULE_CLEAN_SHEET: 30,
}
DEFAULT_ROLE_BUDGETS: Final = {
    ROLE_BUDGET_MONITOR_WEEKLY: 50,
    ROLE_BUDGET_VICE_WEEKLY: 30,
    ROLE_BUDGET_MAX_PER_STUDENT: 5,
}
DEFAULT_UNKNOWN_VIOLATION_POINTS = -2

# ------------------------------------------------------------------------------------------------
# Ranks
# ------------------------------------------------------------------------------------------------
RANK_GOOD = "GOOD"
RANK_FAIR = "FAIR"
RANK_PASS = "PASS"
RANK_FAIL = "FAIL"
RANK_NOT_AVAILABLE = "N/A"

SEMESTER_ONE = "s1"
SEMESTER_TWO = "s2"
SEMESTER_YEAR = "year"
SEMESTER_PERIODS: Final = (SEMESTER_ONE, SEMESTER_TWO, SEMESTER_YEAR)

# ------------------------------------------------------------------------------------------------
# Analytics
# ------------------------------------------------------------------------------------------------
ALERT_TYPE_CRITICAL = "CRITICAL"
ALERT_TYPE_WARNING = "WARNING"
ALERT_TYPE_INFO = "INFO"

ALERT_CODE_DROP = "DROP"
ALERT_CODE_TREND = "TREND"
ALERT_CODE_RECURRING = "RECURRING"
ALERT_CODE_THRESHOLD = "THRESHOLD"
ALERT_CODE_MISSING_DATA = "MISSING_DATA"

ALERT_KEY_TYPE = "type"
ALERT_KEY_CODE = "code"
ALERT_KEY_MESSAGE = "message"

ANALYSIS_DROP_LOOKBACK_WEEKS = 3
ANALYSIS_DROP_MIN_POINTS = 15
ANALYSIS_TREND_WINDOW = 3
ANALYSIS_TREND_MIN_DECLINE = 5
ANALYSIS_RECURRING_WINDOW = 3
ANALYSIS_RECURRING_MIN_WEEKS = 3
ANALYSIS_THRESHOLD_WARNING_MARGIN = 3
ANALYSIS_MIN_RECORDS = 2

# ------------------------------------------------------------------------------------------------
# Students
# ------------------------------------------------------------------------------------------------
DATA_STUDENT_ID = "id"
DATA_STUDENT_NAME = "name"
DATA_STUDENT_IS_ACTIVE = "is_active"
DATA_STUDENT_ROLES = "roles"
DATA_STUDENT_BALANCE = "balance"
DATA_STUDENT_BADGES = "badges"
DATA_STUDENT_INVENTORY = "inventory"
DATA_STUDENT_OWNED_AVATARS = "owned_avatars"
DATA_STUDENT_OWNED_FRAMES = "owned_frames"
DATA_STUDENT_AVATAR_ID = "avatar_id"
DATA_STUDENT_FRAME_ID = "frame_id"
DATA_STUDENT_HAS_PRIORITY_SEATING = "has_priority_seating"

DATA_INVENTORY_ITEM_ID = "item_id"
DATA_INVENTORY_COUNT = "count"

ROLE_MONITOR = "MONITOR"
ROLE_VICE_STUDY = "VICE_STUDY"
ROLE_VICE_DISCIPLINE = "VICE_DISCIPLINE"
ROLE_VICE_LABOR = "VICE_LABOR"
ROLE_TREASURER = "TREASURER"
ROLE_NONE = "NONE"
STUDENT_ROLES: Final = (
    ROLE_MONITOR,
    ROLE_VICE_STUDY,
    ROLE_VICE_DISCIPLINE,
    ROLE_VICE_LABOR,
    ROLE_TREASURER,
    ROLE_NONE,
)
OFFICER_ROLES: Final = frozenset(
    {ROLE_MONITOR, ROLE_VICE_STUDY, ROLE_VICE_DISCIPLINE, ROLE_VICE_LABOR}
)

# ------------------------------------------------------------------------------------------------
# Badges
# ------------------------------------------------------------------------------------------------
DATA_BADGE_ID = "id"
DATA_BADGE_LABEL = "label"
DATA_BADGE_ICON = "icon"
DATA_BADGE_TYPE = "type"
DATA_BADGE_THRESHOLD = "threshold"
DATA_BADGE_TARGET_BEHAVIOR_LABEL = "target_behavior_label"
DATA_BADGE_DESCRIPTION = "description"

BADGE_TYPE_STREAK_GOOD = "streak_good"
BADGE_TYPE_NO_VIOLATION_STREAK = "no_violation_streak"
BADGE_TYPE_COUNT_BEHAVIOR = "count_behavior"
BADGE_TYPE_IMPROVEMENT = "improvement"
BADGE_TYPES: Final = (
    BADGE_TYPE_STREAK_GOOD,
    BADGE_TYPE_NO_VIOLATION_STREAK,
    BADGE_TYPE_COUNT_BEHAVIOR,
    BADGE_TYPE_IMPROVEMENT,
)
# Streak badges follow the current streak; the rest are kept once earned
REVOCABLE_BADGE_TYPES: Final = frozenset(
    {BADGE_TYPE_STREAK_GOOD, BADGE_TYPE_NO_VIOLATION_STREAK}
)

IMPROVEMENT_MIN_JUMP = 10

# ------------------------------------------------------------------------------------------------
# Shop items and orders
# ------------------------------------------------------------------------------------------------
DATA_ITEM_ID = "id"
DATA_ITEM_LABEL = "label"
DATA_ITEM_COST = "cost"
DATA_ITEM_DESCRIPTION = "description"
DATA_ITEM_STOCK = "stock"
DATA_ITEM_TYPE = "type"
DATA_ITEM_URL = "url"
DATA_ITEM_IMAGE = "image"

REWARD_TYPE_PHYSICAL = "PHYSICAL"
REWARD_TYPE_IMMUNITY = "IMMUNITY"
REWARD_TYPE_SEAT_TICKET = "SEAT_TICKET"
REWARD_TYPES: Final = (REWARD_TYPE_PHYSICAL, REWARD_TYPE_IMMUNITY, REWARD_TYPE_SEAT_TICKET)

ITEM_TYPE_REWARD = "REWARD"
ITEM_TYPE_AVATAR = "AVATAR"
ITEM_TYPE_FRAME = "FRAME"
ITEM_TYPES: Final = (ITEM_TYPE_REWARD, ITEM_TYPE_AVATAR, ITEM_TYPE_FRAME)

DATA_ORDER_ID = "id"
DATA_ORDER_STUDENT_ID = "student_id"
DATA_ORDER_STUDENT_NAME = "student_name"
DATA_ORDER_ITEM_ID = "item_id"
DATA_ORDER_ITEM_NAME = "item_name"
DATA_ORDER_ITEM_TYPE = "item_type"
DATA_ORDER_COST = "cost"
DATA_ORDER_STATUS = "status"
DATA_ORDER_TIMESTAMP = "timestamp"
DATA_ORDER_RESOLVED_AT = "resolved_at"

STATUS_PENDING = "PENDING"
STATUS_APPROVED = "APPROVED"
STATUS_REJECTED = "REJECTED"

ORDER_ACTION_APPROVE = "APPROVE"
ORDER_ACTION_REJECT = "REJECT"
ORDER_ACTIONS: Final = (ORDER_ACTION_APPROVE, ORDER_ACTION_REJECT)

# ------------------------------------------------------------------------------------------------
# Coin grants (weekly settlement audit trail)
# ------------------------------------------------------------------------------------------------
DATA_GRANT_ID = "id"
DATA_GRANT_STUDENT_ID = "student_id"
DATA_GRANT_WEEK = "week"
DATA_GRANT_AMOUNT = "amount"
DATA_GRANT_TIMESTAMP = "timestamp"

# ------------------------------------------------------------------------------------------------
# Officer reports
# ------------------------------------------------------------------------------------------------
DATA_REPORT_ID = "id"
DATA_REPORT_TIMESTAMP = "timestamp"
DATA_REPORT_WEEK = "week"
DATA_REPORT_REPORTER_ID = "reporter_id"
DATA_REPORT_REPORTER_NAME = "reporter_name"
DATA_REPORT_STUDENT_ID = "student_id"
DATA_REPORT_TYPE = "report_type"
DATA_REPORT_CONTENT = "content"
DATA_REPORT_AMOUNT = "amount"
DATA_REPORT_POINTS = "points"
DATA_REPORT_NOTE = "note"
DATA_REPORT_RESOLVED_AT = "resolved_at"
DATA_REPORT_IMMUNITY_USED = "immunity_used"
DATA_REPORT_STATUS = "status"

REPORT_TYPE_VIOLATION = "VIOLATION"
REPORT_TYPE_BONUS = "BONUS"
REPORT_TYPES: Final = (REPORT_TYPE_VIOLATION, REPORT_TYPE_BONUS)

# ------------------------------------------------------------------------------------------------
# Event signals (instance scoped, see helpers.get_event_signal)
# ------------------------------------------------------------------------------------------------
SIGNAL_SUFFIX_CATALOG_CHANGED = "catalog_changed"
SIGNAL_SUFFIX_SETTINGS_CHANGED = "settings_changed"
SIGNAL_SUFFIX_RECORDS_CHANGED = "records_changed"
SIGNAL_SUFFIX_WEEK_LOCK_CHANGED = "week_lock_changed"
SIGNAL_SUFFIX_COINS_CHANGED = "coins_changed"
SIGNAL_SUFFIX_BADGES_CHANGED = "badges_changed"
SIGNAL_SUFFIX_ORDER_CREATED = "order_created"
SIGNAL_SUFFIX_ORDER_RESOLVED = "order_resolved"
SIGNAL_SUFFIX_REPORT_SUBMITTED = "report_submitted"
SIGNAL_SUFFIX_REPORT_RESOLVED = "report_resolved"
SIGNAL_SUFFIX_STUDENT_CHANGED = "student_changed"

# ------------------------------------------------------------------------------------------------
# Services
# ------------------------------------------------------------------------------------------------
SERVICE_ADD_BEHAVIOR = "add_behavior"
SERVICE_EDIT_BEHAVIOR = "edit_behavior"
SERVICE_DELETE_BEHAVIOR = "delete_behavior"
SERVICE_UPDATE_SETTINGS = "update_settings"
SERVICE_APPLY_ADJUSTMENT = "apply_adjustment"
SERVICE_SET_NOTE = "set_note"
SERVICE_BATCH_CLASS_BONUS = "batch_class_bonus"
SERVICE_BATCH_CLASS_PENALTY = "batch_class_penalty"
SERVICE_FILL_MISSING = "fill_missing"
SERVICE_CLEAR_WEEK = "clear_week"
SERVICE_LOCK_WEEK = "lock_week"
SERVICE_UNLOCK_WEEK = "unlock_week"
SERVICE_ANALYZE_CLASS = "analyze_class"
SERVICE_SEMESTER_SUMMARY = "semester_summary"
SERVICE_WEEK_SUMMARY = "week_summary"
SERVICE_SETTLE_WEEK = "settle_week"
SERVICE_UNDO_SETTLEMENT = "undo_settlement"
SERVICE_CHECK_BADGES = "check_badges"
SERVICE_AWARD_BADGE = "award_badge"
SERVICE_REVOKE_BADGE = "revoke_badge"
SERVICE_CREATE_ORDER = "create_order"
SERVICE_RESOLVE_ORDER = "resolve_order"
SERVICE_USE_ITEM = "use_item"
SERVICE_EQUIP_COSMETIC = "equip_cosmetic"
SERVICE_SUBMIT_REPORT = "submit_report"
SERVICE_APPROVE_REPORT = "approve_report"
SERVICE_REJECT_REPORT = "reject_report"
SERVICE_CREATE_STUDENT = "create_student"
SERVICE_UPDATE_STUDENT = "update_student"

ALL_SERVICES: Final = (
    SERVICE_ADD_BEHAVIOR,
    SERVICE_EDIT_BEHAVIOR,
    SERVICE_DELETE_BEHAVIOR,
    SERVICE_UPDATE_SETTINGS,
    SERVICE_APPLY_ADJUSTMENT,
    SERVICE_SET_NOTE,
    SERVICE_BATCH_CLASS_BONUS,
    SERVICE_BATCH_CLASS_PENALTY,
    SERVICE_FILL_MISSING,
    SERVICE_CLEAR_WEEK,
    SERVICE_LOCK_WEEK,
    SERVICE_UNLOCK_WEEK,
    SERVICE_ANALYZE_CLASS,
    SERVICE_SEMESTER_SUMMARY,
    SERVICE_WEEK_SUMMARY,
    SERVICE_SETTLE_WEEK,
    SERVICE_UNDO_SETTLEMENT,
    SERVICE_CHECK_BADGES,
    SERVICE_AWARD_BADGE,
    SERVICE_REVOKE_BADGE,
    SERVICE_CREATE_ORDER,
    SERVICE_RESOLVE_ORDER,
    SERVICE_USE_ITEM,
    SERVICE_EQUIP_COSMETIC,
    SERVICE_SUBMIT_REPORT,
    SERVICE_APPROVE_REPORT,
    SERVICE_REJECT_REPORT,
    SERVICE_CREATE_STUDENT,
    SERVICE_UPDATE_STUDENT,
)

# Service fields
FIELD_STUDENT_NAME = "student_name"
FIELD_REPORTER_NAME = "reporter_name"
FIELD_WEEK = "week"
FIELD_AS_OF_WEEK = "as_of_week"
FIELD_LABEL = "label"
FIELD_NEW_LABEL = "new_label"
FIELD_POINTS = "points"
FIELD_CATEGORY = "category"
FIELD_IS_POSITIVE = "is_positive"
FIELD_DELTA = "delta"
FIELD_REASON = "reason"
FIELD_NOTE = "note"
FIELD_BADGE_ID = "badge_id"
FIELD_ITEM_ID = "item_id"
FIELD_ITEM_TYPE = "item_type"
FIELD_ORDER_ID = "order_id"
FIELD_ACTION = "action"
FIELD_REPORT_ID = "report_id"
FIELD_REPORT_TYPE = "report_type"
FIELD_CONTENT = "content"
FIELD_AMOUNT = "amount"
FIELD_USE_IMMUNITY = "use_immunity"
FIELD_PERIOD = "period"
FIELD_NAME = "name"
FIELD_ROLES = "roles"
FIELD_IS_ACTIVE = "is_active"
FIELD_DEFAULT_SCORE = "default_score"
FIELD_THRESHOLDS = "thresholds"
FIELD_COIN_RULES = "coin_rules"
FIELD_ROLE_BUDGETS = "role_budgets"
FIELD_RANK_SCORES = "rank_scores"
FIELD_SEMESTER_THRESHOLDS = "semester_thresholds"
FIELD_SEMESTER_TWO_START_WEEK = "semester_two_start_week"
FIELD_BADGES = "badges"
FIELD_REWARDS = "rewards"
FIELD_AVATARS = "avatars"
FIELD_FRAMES = "frames"

# ------------------------------------------------------------------------------------------------
# Translation keys (translations/en.json -> exceptions)
# ------------------------------------------------------------------------------------------------
TRANS_KEY_ERROR_SINGLE_INSTANCE = "single_instance_allowed"
TRANS_KEY_ERROR_NOT_FOUND = "not_found"
TRANS_KEY_ERROR_INVALID_INPUT = "invalid_input"
TRANS_KEY_ERROR_INSUFFICIENT_COINS = "insufficient_coins"
TRANS_KEY_ERROR_INVALID_TRANSITION = "invalid_transition"
TRANS_KEY_ERROR_WEEK_NOT_LOCKED = "week_not_locked"
TRANS_KEY_ERROR_WEEK_LOCKED = "week_locked"
TRANS_KEY_ERROR_ALREADY_SETTLED = "already_settled"
TRANS_KEY_ERROR_NOT_SETTLED = "not_settled"
TRANS_KEY_ERROR_ALREADY_OWNED = "already_owned"
TRANS_KEY_ERROR_ORDER_PENDING = "order_pending"
TRANS_KEY_ERROR_ITEM_NOT_USABLE = "item_not_usable"
TRANS_KEY_ERROR_NOT_OFFICER = "not_officer"
TRANS_KEY_ERROR_BUDGET_EXCEEDED = "budget_exceeded"
TRANS_KEY_ERROR_NO_ENTRY = "no_entry"

# Validation translation keys (raised by data_builders.EntityValidationError)
TRANS_KEY_INVALID_LABEL = "invalid_label"
TRANS_KEY_DUPLICATE_LABEL = "duplicate_label"
TRANS_KEY_INVALID_POINTS = "invalid_points"
TRANS_KEY_INVALID_CATEGORY = "invalid_category"
TRANS_KEY_INVALID_WEEK = "invalid_week"
TRANS_KEY_INVALID_COST = "invalid_cost"
TRANS_KEY_INVALID_NAME = "invalid_name"
TRANS_KEY_INVALID_ROLE = "invalid_role"
TRANS_KEY_INVALID_AMOUNT = "invalid_amount"
TRANS_KEY_INVALID_SCORE = "invalid_score"
TRANS_KEY_INVALID_THRESHOLDS = "invalid_thresholds"

# Labels used in not_found placeholders
LABEL_STUDENT = "student"
LABEL_BEHAVIOR = "behavior"
LABEL_BADGE = "badge"
LABEL_ITEM = "item"
LABEL_ORDER = "order"
LABEL_REPORT = "report"
