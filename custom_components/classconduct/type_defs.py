"""Type definitions for Class Conduct data structures.

TypedDicts describe the STATIC structures persisted by the store (fixed keys
known at design time). Collections keyed by runtime ids use dict[str, ...].

IMPORTANT: This file must NOT import from coordinator.py, managers or any file
that imports the coordinator to avoid circular dependencies. Only import from
typing (type machinery).

NOTE: TypedDict is STATIC ANALYSIS ONLY. All runtime error handling
(.get() defaults, validation) stays in data_builders.py and the managers.
"""

from typing import Any, Literal, NotRequired, TypedDict

# =============================================================================
# Type Aliases (for readability)
# =============================================================================

StudentId = str  # UUID string
RecordId = str  # "CON-{student_id}-W{week}"
OrderId = str  # UUID string
ReportId = str  # UUID string
ISODatetime = str  # ISO 8601 datetime string "2026-01-18T12:30:00+00:00"

Rank = Literal["GOOD", "FAIR", "PASS", "FAIL", "N/A"]
AlertType = Literal["CRITICAL", "WARNING", "INFO"]
AlertCode = Literal["DROP", "TREND", "RECURRING", "THRESHOLD", "MISSING_DATA"]
OrderStatus = Literal["PENDING", "APPROVED", "REJECTED"]
ItemType = Literal["REWARD", "AVATAR", "FRAME"]


# =============================================================================
# Behavior catalog
# =============================================================================


class BehaviorItem(TypedDict):
    """One catalogued behavior. Sign is implied by the sub-list holding it."""

    id: str
    label: str
    points: int
    category: str


class BehaviorConfig(TypedDict):
    """Catalog split into violations (negative) and positives."""

    violations: list[BehaviorItem]
    positives: list[BehaviorItem]


class Occurrence(TypedDict):
    """One application of a behavior inside a conduct record.

    points is the catalog value when the behavior was applied. Legacy
    records carry None and fall back to the label annotation.
    """

    label: str
    points: int | None


# =============================================================================
# Conduct ledger
# =============================================================================


class ConductRecord(TypedDict):
    """One student's record for one week."""

    id: RecordId
    student_id: StudentId
    week: int
    score: int
    violations: list[Occurrence]
    positive_behaviors: list[Occurrence]
    note: NotRequired[str]


# =============================================================================
# Settings
# =============================================================================


# Thresholds stay dict[str, int]: "pass" is a keyword and cannot be a field.


class CoinRules(TypedDict):
    """Coin amounts used by the weekly settlement formula."""

    weekly_good: int
    behavior_bonus: int
    improvement: int
    clean_sheet: int


class RoleBudgets(TypedDict):
    """Officer bonus budgets per week."""

    monitor_weekly_budget: int
    vice_weekly_budget: int
    max_reward_per_student: int


class BadgeConfig(TypedDict):
    """Configured badge definition."""

    id: str
    label: str
    icon: str
    type: str
    threshold: int
    target_behavior_label: NotRequired[str]
    description: NotRequired[str]


class RewardItem(TypedDict):
    """Shop reward definition."""

    id: str
    label: str
    cost: int
    description: NotRequired[str]
    stock: NotRequired[int]
    type: NotRequired[str]


class CosmeticItem(TypedDict):
    """Avatar or frame definition."""

    id: str
    label: str
    cost: int
    url: NotRequired[str]
    image: NotRequired[str]


class SettingsData(TypedDict):
    """Everything stored under the settings collection."""

    default_score: int
    thresholds: dict[str, int]
    rank_scores: dict[str, int]
    semester_thresholds: dict[str, int]
    semester_two_start_week: int
    behavior_config: BehaviorConfig
    locked_weeks: list[int]
    coin_rules: CoinRules
    role_budgets: RoleBudgets
    badges: list[BadgeConfig]
    rewards: list[RewardItem]
    avatars: list[CosmeticItem]
    frames: list[CosmeticItem]


# =============================================================================
# Students and economy
# =============================================================================


class InventoryItem(TypedDict):
    """Count of one owned functional reward."""

    item_id: str
    count: int


class StudentData(TypedDict):
    """Roster entry with coin wallet and cosmetics."""

    id: StudentId
    name: str
    is_active: bool
    roles: list[str]
    balance: int
    badges: list[str]
    inventory: list[InventoryItem]
    owned_avatars: list[str]
    owned_frames: list[str]
    avatar_id: str | None
    frame_id: str | None
    has_priority_seating: bool


class PendingOrder(TypedDict):
    """Two-phase purchase order."""

    id: OrderId
    student_id: StudentId
    student_name: str
    item_id: str
    item_name: str
    item_type: ItemType
    cost: int
    status: OrderStatus
    timestamp: ISODatetime
    resolved_at: NotRequired[ISODatetime | None]


class CoinGrant(TypedDict):
    """Audit entry for one weekly settlement."""

    id: str
    student_id: StudentId
    week: int
    amount: int
    timestamp: ISODatetime


class PendingReport(TypedDict):
    """Officer-submitted violation or bonus report."""

    id: ReportId
    timestamp: ISODatetime
    week: int
    reporter_id: StudentId
    reporter_name: str
    student_id: StudentId
    report_type: str
    content: str
    amount: NotRequired[int]
    points: NotRequired[int]
    note: NotRequired[str]
    status: OrderStatus
    resolved_at: NotRequired[ISODatetime | None]
    immunity_used: NotRequired[bool]


# =============================================================================
# Engine results
# =============================================================================


class Alert(TypedDict):
    """One analytics finding."""

    type: AlertType
    code: AlertCode
    message: str


class StudentAnalysis(TypedDict):
    """Alerts for one student, as returned by class analysis."""

    student_id: StudentId
    student_name: str
    alerts: list[Alert]


class SemesterSummary(TypedDict):
    """Aggregated semester figures for one student."""

    period: str
    weeks: int
    average_score: float | None
    average_converted: float | None
    rank: Rank


class OrderResult(TypedDict):
    """Outcome of a purchase attempt."""

    success: bool
    order: PendingOrder | None
    shortfall: int


class BadgeEvaluation(TypedDict):
    """Badge list after evaluation plus the diff against the stored one."""

    badges: list[str]
    awarded: list[str]
    revoked: list[str]


# Generic alias for the raw storage document
StoreData = dict[str, Any]
