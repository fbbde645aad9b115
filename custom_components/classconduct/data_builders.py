"""Entity lifecycle management helpers.

This module is the SINGLE SOURCE OF TRUTH for:
- Entity field defaults
- Business logic validation
- Complete entity structure building
- Back-filling settings loaded from older storage

### Build Functions
Each entity type has a `build_<entity>()` function that:
- Takes user_input or mapped data (DATA_* keys)
- Generates an id (UUID) for new entities
- Applies field defaults
- Returns a complete entity dict ready for storage
- Raises EntityValidationError when a business rule fails

### Validation Functions
`validate_<entity>_data()` functions return a dict of errors
({field: translation_key}, empty if valid) for callers that want to collect
errors instead of failing fast.

Consumers:
- managers/* (all mutations)
- services.py (settings updates)
- store.py (default structure)
"""

from __future__ import annotations

import copy
from typing import Any
import uuid

from . import const
from .type_defs import (
    BadgeConfig,
    BehaviorItem,
    CoinGrant,
    ConductRecord,
    CosmeticItem,
    Occurrence,
    PendingOrder,
    PendingReport,
    RewardItem,
    SettingsData,
    StudentData,
)
from .utils.dt_utils import dt_to_iso

# ==============================================================================
# HELPER FUNCTIONS FOR FIELD NORMALIZATION
# ==============================================================================


def _normalize_list_field(value: Any) -> list[Any]:
    """Normalize a field that should be a list.

    Prevents bugs like list("MONITOR") → ['M', 'O', ...]
    """
    if value is None:
        return []
    if isinstance(value, list):
        return value
    if isinstance(value, str):
        return [value] if value else []
    return list(value) if value else []


def _normalize_dict_field(value: Any) -> dict[str, Any]:
    """Normalize a field that should be a dict."""
    if value is None:
        return {}
    if isinstance(value, dict):
        return dict(value)
    return {}


def coerce_int(value: Any) -> int | None:
    """Return value as int when it is integral, else None.

    Booleans are rejected even though they subclass int.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


# ==============================================================================
# EXCEPTIONS
# ==============================================================================


class EntityValidationError(Exception):
    """Validation error with field-specific information.

    Raised when business logic validation fails in entity creation or update.
    Managers translate it into a HomeAssistantError before any state is
    written.

    Attributes:
        field: The DATA_* / FIELD_* constant identifying the offending field
        translation_key: The TRANS_KEY_* constant for the error message
        placeholders: Optional dict for translation string placeholders

    Example:
        raise EntityValidationError(
            field=const.DATA_ITEM_COST,
            translation_key=const.TRANS_KEY_INVALID_COST,
            placeholders={"value": str(cost)},
        )
    """

    def __init__(
        self,
        field: str,
        translation_key: str,
        placeholders: dict[str, str] | None = None,
    ) -> None:
        """Initialize EntityValidationError.

        Args:
            field: The constant for the field that failed validation
            translation_key: The TRANS_KEY_* constant for error message
            placeholders: Optional dict for translation placeholders
        """
        self.field = field
        self.translation_key = translation_key
        self.placeholders = placeholders or {}
        super().__init__(translation_key)


# ==============================================================================
# WEEKS
# ==============================================================================


def validate_week(week: Any) -> int:
    """Return week as a positive int or raise EntityValidationError."""
    value = coerce_int(week)
    if value is None or value < 1:
        raise EntityValidationError(
            field=const.FIELD_WEEK,
            translation_key=const.TRANS_KEY_INVALID_WEEK,
            placeholders={"value": str(week)},
        )
    return value


# ==============================================================================
# BEHAVIORS
# ==============================================================================


def validate_behavior_data(
    data: dict[str, Any],
    existing_items: list[BehaviorItem] | None = None,
    *,
    current_behavior_id: str | None = None,
) -> dict[str, str]:
    """Validate behavior business rules.

    Args:
        data: Behavior data dict with DATA_BEHAVIOR_* keys
        existing_items: The sub-list the behavior lives in, for duplicate checks
        current_behavior_id: ID of the behavior being edited (excluded from
            the duplicate check)

    Returns:
        Dict of errors: {field: translation_key}. Empty means valid.

    Validation Rules:
        1. Label not blank
        2. Label unique within its sub-list
        3. Points an integer other than zero
        4. Category one of BEHAVIOR_CATEGORIES
    """
    errors: dict[str, str] = {}

    # === 1. Label ===
    label = data.get(const.DATA_BEHAVIOR_LABEL, "")
    label = label.strip() if isinstance(label, str) else ""
    if not label:
        errors[const.DATA_BEHAVIOR_LABEL] = const.TRANS_KEY_INVALID_LABEL
        return errors

    # === 2. Duplicate label ===
    for item in existing_items or []:
        if item.get(const.DATA_BEHAVIOR_ID) == current_behavior_id:
            continue
        if item.get(const.DATA_BEHAVIOR_LABEL) == label:
            errors[const.DATA_BEHAVIOR_LABEL] = const.TRANS_KEY_DUPLICATE_LABEL
            return errors

    # === 3. Points ===
    points = coerce_int(data.get(const.DATA_BEHAVIOR_POINTS))
    if points is None or points == 0:
        errors[const.DATA_BEHAVIOR_POINTS] = const.TRANS_KEY_INVALID_POINTS
        return errors

    # === 4. Category ===
    category = data.get(const.DATA_BEHAVIOR_CATEGORY, const.BEHAVIOR_CATEGORY_OTHER)
    if category not in const.BEHAVIOR_CATEGORIES:
        errors[const.DATA_BEHAVIOR_CATEGORY] = const.TRANS_KEY_INVALID_CATEGORY

    return errors


def build_behavior(
    user_input: dict[str, Any],
    existing: BehaviorItem | None = None,
    *,
    existing_items: list[BehaviorItem] | None = None,
    is_positive: bool = False,
) -> BehaviorItem:
    """Build a catalog item for create (existing=None) or update.

    Points are stored with the sign of the sub-list: positives are kept
    positive and violations negative regardless of the sign supplied.

    Raises:
        EntityValidationError: If any rule in validate_behavior_data fails
    """

    def get_field(data_key: str, default: Any) -> Any:
        """Get field value: user_input > existing > default."""
        if data_key in user_input:
            return user_input[data_key]
        if existing is not None:
            return existing.get(data_key, default)
        return default

    merged = {
        const.DATA_BEHAVIOR_LABEL: get_field(const.DATA_BEHAVIOR_LABEL, ""),
        const.DATA_BEHAVIOR_POINTS: get_field(const.DATA_BEHAVIOR_POINTS, None),
        const.DATA_BEHAVIOR_CATEGORY: get_field(
            const.DATA_BEHAVIOR_CATEGORY, const.BEHAVIOR_CATEGORY_OTHER
        ),
    }
    current_id = existing.get(const.DATA_BEHAVIOR_ID) if existing else None
    errors = validate_behavior_data(
        merged, existing_items, current_behavior_id=current_id
    )
    if errors:
        field, translation_key = next(iter(errors.items()))
        raise EntityValidationError(
            field=field,
            translation_key=translation_key,
            placeholders={"value": str(merged.get(field))},
        )

    points = abs(int(coerce_int(merged[const.DATA_BEHAVIOR_POINTS]) or 0))
    return BehaviorItem(
        id=current_id or str(uuid.uuid4()),
        label=merged[const.DATA_BEHAVIOR_LABEL].strip(),
        points=points if is_positive else -points,
        category=merged[const.DATA_BEHAVIOR_CATEGORY],
    )


# ==============================================================================
# CONDUCT RECORDS
# ==============================================================================


def build_record_id(student_id: str, week: int) -> str:
    """Return the deterministic record id for a student/week pair."""
    return const.RECORD_ID_FMT.format(student_id=student_id, week=week)


def build_conduct_record(
    student_id: str, week: int, default_score: int
) -> ConductRecord:
    """Build an empty record at the default score."""
    return ConductRecord(
        id=build_record_id(student_id, week),
        student_id=student_id,
        week=week,
        score=default_score,
        violations=[],
        positive_behaviors=[],
        note="",
    )


def build_occurrence(label: str, points: int | None) -> Occurrence:
    """Build one occurrence entry."""
    return Occurrence(label=label, points=points)


def normalize_occurrence(raw: Any) -> Occurrence:
    """Accept a legacy plain-string occurrence or a dict and return a dict."""
    if isinstance(raw, str):
        return build_occurrence(raw, None)
    if isinstance(raw, dict):
        return build_occurrence(
            str(raw.get(const.DATA_OCCURRENCE_LABEL, "")),
            coerce_int(raw.get(const.DATA_OCCURRENCE_POINTS)),
        )
    return build_occurrence(str(raw), None)


def normalize_conduct_record(raw: dict[str, Any]) -> ConductRecord:
    """Return a record with normalized occurrence lists and all keys present."""
    student_id = str(raw.get(const.DATA_RECORD_STUDENT_ID, ""))
    week = coerce_int(raw.get(const.DATA_RECORD_WEEK)) or 0
    return ConductRecord(
        id=raw.get(const.DATA_RECORD_ID) or build_record_id(student_id, week),
        student_id=student_id,
        week=week,
        score=coerce_int(raw.get(const.DATA_RECORD_SCORE)) or 0,
        violations=[
            normalize_occurrence(item)
            for item in _normalize_list_field(raw.get(const.DATA_RECORD_VIOLATIONS))
        ],
        positive_behaviors=[
            normalize_occurrence(item)
            for item in _normalize_list_field(
                raw.get(const.DATA_RECORD_POSITIVE_BEHAVIORS)
            )
        ],
        note=str(raw.get(const.DATA_RECORD_NOTE) or ""),
    )


# ==============================================================================
# STUDENTS
# ==============================================================================


def build_student(
    user_input: dict[str, Any],
    existing: StudentData | None = None,
    *,
    existing_students: dict[str, StudentData] | None = None,
) -> StudentData:
    """Build a roster entry for create (existing=None) or update.

    Only identity fields (name, is_active, roles) come from user_input; the
    wallet and cosmetics are preserved from existing or defaulted.

    Raises:
        EntityValidationError: blank or duplicate name, unknown role
    """

    def get_field(data_key: str, default: Any) -> Any:
        """Get field value: user_input > existing > default."""
        if data_key in user_input:
            return user_input[data_key]
        if existing is not None:
            return existing.get(data_key, default)
        return default

    raw_name = get_field(const.DATA_STUDENT_NAME, "")
    name = str(raw_name).strip() if raw_name else ""
    if not name:
        raise EntityValidationError(
            field=const.DATA_STUDENT_NAME,
            translation_key=const.TRANS_KEY_INVALID_NAME,
        )

    current_id = existing.get(const.DATA_STUDENT_ID) if existing else None
    for student_id, student in (existing_students or {}).items():
        if student_id != current_id and student.get(const.DATA_STUDENT_NAME) == name:
            raise EntityValidationError(
                field=const.DATA_STUDENT_NAME,
                translation_key=const.TRANS_KEY_INVALID_NAME,
                placeholders={"value": name},
            )

    roles = [
        role
        for role in _normalize_list_field(get_field(const.DATA_STUDENT_ROLES, []))
        if role != const.ROLE_NONE
    ]
    for role in roles:
        if role not in const.STUDENT_ROLES:
            raise EntityValidationError(
                field=const.DATA_STUDENT_ROLES,
                translation_key=const.TRANS_KEY_INVALID_ROLE,
                placeholders={"value": str(role)},
            )

    base = existing or {}
    return StudentData(
        id=current_id or str(uuid.uuid4()),
        name=name,
        is_active=bool(get_field(const.DATA_STUDENT_IS_ACTIVE, True)),
        roles=roles,
        balance=max(0, coerce_int(base.get(const.DATA_STUDENT_BALANCE)) or 0),
        badges=list(_normalize_list_field(base.get(const.DATA_STUDENT_BADGES))),
        inventory=copy.deepcopy(
            _normalize_list_field(base.get(const.DATA_STUDENT_INVENTORY))
        ),
        owned_avatars=list(
            _normalize_list_field(base.get(const.DATA_STUDENT_OWNED_AVATARS))
        ),
        owned_frames=list(
            _normalize_list_field(base.get(const.DATA_STUDENT_OWNED_FRAMES))
        ),
        avatar_id=base.get(const.DATA_STUDENT_AVATAR_ID),
        frame_id=base.get(const.DATA_STUDENT_FRAME_ID),
        has_priority_seating=bool(
            base.get(const.DATA_STUDENT_HAS_PRIORITY_SEATING, False)
        ),
    )


# ==============================================================================
# ORDERS, GRANTS, REPORTS
# ==============================================================================


def build_order(
    student: StudentData,
    item: dict[str, Any],
    item_type: str,
    now: Any = None,
) -> PendingOrder:
    """Build a PENDING order for one unit of item."""
    return PendingOrder(
        id=str(uuid.uuid4()),
        student_id=student[const.DATA_STUDENT_ID],
        student_name=student[const.DATA_STUDENT_NAME],
        item_id=item[const.DATA_ITEM_ID],
        item_name=item.get(const.DATA_ITEM_LABEL, ""),
        item_type=item_type,  # type: ignore[typeddict-item]
        cost=int(item.get(const.DATA_ITEM_COST, 0)),
        status=const.STATUS_PENDING,  # type: ignore[typeddict-item]
        timestamp=dt_to_iso(now),
        resolved_at=None,
    )


def build_coin_grant(
    student_id: str, week: int, amount: int, now: Any = None
) -> CoinGrant:
    """Build the audit entry for one weekly settlement."""
    return CoinGrant(
        id=build_record_id(student_id, week),
        student_id=student_id,
        week=week,
        amount=amount,
        timestamp=dt_to_iso(now),
    )


def build_report(
    user_input: dict[str, Any],
    reporter: StudentData,
    now: Any = None,
) -> PendingReport:
    """Build a PENDING officer report.

    Raises:
        EntityValidationError: bad week, blank content, unknown report type,
            or a BONUS report without a positive amount
    """
    week = validate_week(user_input.get(const.DATA_REPORT_WEEK))
    report_type = user_input.get(const.DATA_REPORT_TYPE)
    if report_type not in const.REPORT_TYPES:
        raise EntityValidationError(
            field=const.DATA_REPORT_TYPE,
            translation_key=const.TRANS_KEY_INVALID_CATEGORY,
            placeholders={"value": str(report_type)},
        )
    content = str(user_input.get(const.DATA_REPORT_CONTENT) or "").strip()
    if not content:
        raise EntityValidationError(
            field=const.DATA_REPORT_CONTENT,
            translation_key=const.TRANS_KEY_INVALID_LABEL,
        )

    report = PendingReport(
        id=str(uuid.uuid4()),
        timestamp=dt_to_iso(now),
        week=week,
        reporter_id=reporter[const.DATA_STUDENT_ID],
        reporter_name=reporter[const.DATA_STUDENT_NAME],
        student_id=str(user_input.get(const.DATA_REPORT_STUDENT_ID, "")),
        report_type=report_type,
        content=content,
        note=str(user_input.get(const.DATA_REPORT_NOTE) or ""),
        status=const.STATUS_PENDING,  # type: ignore[typeddict-item]
    )
    if report_type == const.REPORT_TYPE_BONUS:
        amount = coerce_int(user_input.get(const.DATA_REPORT_AMOUNT))
        if amount is None or amount <= 0:
            raise EntityValidationError(
                field=const.DATA_REPORT_AMOUNT,
                translation_key=const.TRANS_KEY_INVALID_AMOUNT,
                placeholders={"value": str(user_input.get(const.DATA_REPORT_AMOUNT))},
            )
        report[const.DATA_REPORT_AMOUNT] = amount  # type: ignore[literal-required]
    return report


# ==============================================================================
# SHOP AND BADGE CONFIGURATION
# ==============================================================================


def build_shop_item(raw: dict[str, Any], item_type: str) -> dict[str, Any]:
    """Validate and normalize a reward, avatar or frame definition.

    Raises:
        EntityValidationError: blank label or non-positive cost
    """
    label = str(raw.get(const.DATA_ITEM_LABEL) or "").strip()
    if not label:
        raise EntityValidationError(
            field=const.DATA_ITEM_LABEL,
            translation_key=const.TRANS_KEY_INVALID_LABEL,
        )
    cost = coerce_int(raw.get(const.DATA_ITEM_COST))
    if cost is None or cost <= 0:
        raise EntityValidationError(
            field=const.DATA_ITEM_COST,
            translation_key=const.TRANS_KEY_INVALID_COST,
            placeholders={"value": str(raw.get(const.DATA_ITEM_COST))},
        )
    item: dict[str, Any] = dict(raw)
    item[const.DATA_ITEM_ID] = raw.get(const.DATA_ITEM_ID) or str(uuid.uuid4())
    item[const.DATA_ITEM_LABEL] = label
    item[const.DATA_ITEM_COST] = cost
    if item_type == const.ITEM_TYPE_REWARD:
        reward_type = raw.get(const.DATA_ITEM_TYPE, const.REWARD_TYPE_PHYSICAL)
        if reward_type not in const.REWARD_TYPES:
            raise EntityValidationError(
                field=const.DATA_ITEM_TYPE,
                translation_key=const.TRANS_KEY_INVALID_CATEGORY,
                placeholders={"value": str(reward_type)},
            )
        item[const.DATA_ITEM_TYPE] = reward_type
        return RewardItem(**item)  # type: ignore[typeddict-item]
    return CosmeticItem(**item)  # type: ignore[typeddict-item]


def build_badge(raw: dict[str, Any]) -> BadgeConfig:
    """Validate and normalize a badge definition.

    Unknown badge types are accepted and stored; the evaluator skips them.

    Raises:
        EntityValidationError: blank label or threshold below 1
    """
    label = str(raw.get(const.DATA_BADGE_LABEL) or "").strip()
    if not label:
        raise EntityValidationError(
            field=const.DATA_BADGE_LABEL,
            translation_key=const.TRANS_KEY_INVALID_LABEL,
        )
    threshold = coerce_int(raw.get(const.DATA_BADGE_THRESHOLD))
    if threshold is None or threshold < 1:
        raise EntityValidationError(
            field=const.DATA_BADGE_THRESHOLD,
            translation_key=const.TRANS_KEY_INVALID_AMOUNT,
            placeholders={"value": str(raw.get(const.DATA_BADGE_THRESHOLD))},
        )
    badge: dict[str, Any] = dict(raw)
    badge[const.DATA_BADGE_ID] = raw.get(const.DATA_BADGE_ID) or str(uuid.uuid4())
    badge[const.DATA_BADGE_LABEL] = label
    badge[const.DATA_BADGE_THRESHOLD] = threshold
    badge.setdefault(const.DATA_BADGE_ICON, "")
    badge.setdefault(const.DATA_BADGE_TYPE, const.BADGE_TYPE_STREAK_GOOD)
    return BadgeConfig(**badge)  # type: ignore[typeddict-item]


# ==============================================================================
# SETTINGS
# ==============================================================================


def build_default_settings() -> SettingsData:
    """Return a fresh settings dict with every default applied."""
    return SettingsData(
        default_score=const.DEFAULT_SCORE,
        thresholds=dict(const.DEFAULT_THRESHOLDS),
        rank_scores=dict(const.DEFAULT_RANK_SCORES),
        semester_thresholds=dict(const.DEFAULT_SEMESTER_THRESHOLDS),
        semester_two_start_week=const.DEFAULT_SEMESTER_TWO_START_WEEK,
        behavior_config={
            const.BEHAVIOR_CONFIG_VIOLATIONS: [],
            const.BEHAVIOR_CONFIG_POSITIVES: [],
        },
        locked_weeks=[],
        coin_rules=dict(const.DEFAULT_COIN_RULES),  # type: ignore[typeddict-item]
        role_budgets=dict(const.DEFAULT_ROLE_BUDGETS),  # type: ignore[typeddict-item]
        badges=[],
        rewards=[],
        avatars=[],
        frames=[],
    )


def normalize_settings(raw: dict[str, Any] | None) -> SettingsData:
    """Back-fill missing settings keys from defaults.

    Nested dicts are merged key by key so stored data written before a key
    existed still gains it. Unknown keys are kept.
    """
    settings: dict[str, Any] = dict(build_default_settings())
    for key, value in _normalize_dict_field(raw).items():
        default = settings.get(key)
        if isinstance(default, dict) and isinstance(value, dict):
            merged = dict(default)
            merged.update(value)
            settings[key] = merged
        else:
            settings[key] = value

    behavior_config = settings[const.DATA_SETTINGS_BEHAVIOR_CONFIG]
    for sub_list in (const.BEHAVIOR_CONFIG_VIOLATIONS, const.BEHAVIOR_CONFIG_POSITIVES):
        behavior_config[sub_list] = _normalize_list_field(behavior_config.get(sub_list))
    settings[const.DATA_SETTINGS_LOCKED_WEEKS] = sorted(
        {
            int(week)
            for week in _normalize_list_field(
                settings.get(const.DATA_SETTINGS_LOCKED_WEEKS)
            )
            if coerce_int(week) is not None
        }
    )
    return settings  # type: ignore[return-value]


def _validate_rank_table(field: str, table: dict[str, Any]) -> dict[str, int]:
    """Require integer values with good >= fair >= pass."""
    values: dict[str, int] = {}
    for key, value in table.items():
        number = coerce_int(value)
        if number is None or number < 0:
            raise EntityValidationError(
                field=field,
                translation_key=const.TRANS_KEY_INVALID_THRESHOLDS,
                placeholders={"value": f"{key}={value}"},
            )
        values[key] = number
    ordered = [
        values.get(key)
        for key in (const.THRESHOLD_GOOD, const.THRESHOLD_FAIR, const.THRESHOLD_PASS)
    ]
    present = [value for value in ordered if value is not None]
    if present != sorted(present, reverse=True):
        raise EntityValidationError(
            field=field,
            translation_key=const.TRANS_KEY_INVALID_THRESHOLDS,
            placeholders={"value": str(table)},
        )
    return values


def merge_settings(
    settings: SettingsData, partial: dict[str, Any]
) -> SettingsData:
    """Return a copy of settings with the validated partial update applied.

    Accepts default score, rank tables, semester parameters, coin rules,
    role budgets and the badge/shop catalogs. The behavior catalog and
    locked weeks have dedicated operations and are ignored here.

    Raises:
        EntityValidationError: on any invalid value; settings is untouched
    """
    result: dict[str, Any] = copy.deepcopy(dict(settings))

    if const.DATA_SETTINGS_DEFAULT_SCORE in partial:
        score = coerce_int(partial[const.DATA_SETTINGS_DEFAULT_SCORE])
        if score is None or not const.MIN_SCORE <= score <= const.MAX_SCORE:
            raise EntityValidationError(
                field=const.DATA_SETTINGS_DEFAULT_SCORE,
                translation_key=const.TRANS_KEY_INVALID_SCORE,
                placeholders={
                    "value": str(partial[const.DATA_SETTINGS_DEFAULT_SCORE])
                },
            )
        result[const.DATA_SETTINGS_DEFAULT_SCORE] = score

    for key in (
        const.DATA_SETTINGS_THRESHOLDS,
        const.DATA_SETTINGS_SEMESTER_THRESHOLDS,
    ):
        if key in partial:
            merged = dict(result[key])
            merged.update(_normalize_dict_field(partial[key]))
            result[key] = _validate_rank_table(key, merged)

    for key in (
        const.DATA_SETTINGS_RANK_SCORES,
        const.DATA_SETTINGS_COIN_RULES,
        const.DATA_SETTINGS_ROLE_BUDGETS,
    ):
        if key in partial:
            merged = dict(result[key])
            for sub_key, value in _normalize_dict_field(partial[key]).items():
                number = coerce_int(value)
                if number is None or number < 0:
                    raise EntityValidationError(
                        field=key,
                        translation_key=const.TRANS_KEY_INVALID_AMOUNT,
                        placeholders={"value": f"{sub_key}={value}"},
                    )
                merged[sub_key] = number
            result[key] = merged

    if const.DATA_SETTINGS_SEMESTER_TWO_START_WEEK in partial:
        result[const.DATA_SETTINGS_SEMESTER_TWO_START_WEEK] = validate_week(
            partial[const.DATA_SETTINGS_SEMESTER_TWO_START_WEEK]
        )

    if const.DATA_SETTINGS_BADGES in partial:
        result[const.DATA_SETTINGS_BADGES] = [
            build_badge(badge)
            for badge in _normalize_list_field(partial[const.DATA_SETTINGS_BADGES])
        ]

    for key, item_type in (
        (const.DATA_SETTINGS_REWARDS, const.ITEM_TYPE_REWARD),
        (const.DATA_SETTINGS_AVATARS, const.ITEM_TYPE_AVATAR),
        (const.DATA_SETTINGS_FRAMES, const.ITEM_TYPE_FRAME),
    ):
        if key in partial:
            result[key] = [
                build_shop_item(item, item_type)
                for item in _normalize_list_field(partial[key])
            ]

    return result  # type: ignore[return-value]
