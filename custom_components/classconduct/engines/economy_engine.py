"""Economy Engine - Pure logic for coins, orders and inventory.

This engine provides stateless, pure Python functions for:
- Weekly coin settlement amounts
- Sufficient funds validation (NSF checks)
- Purchase order state transitions (PENDING → APPROVED | REJECTED)
- Inventory and cosmetic ownership changes
- Officer bonus budgets

ARCHITECTURE: This is a pure logic engine with NO Home Assistant dependencies.
All functions are static methods that operate on passed-in data.
State management belongs in EconomyManager.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .. import const

if TYPE_CHECKING:
    from ..type_defs import (
        ConductRecord,
        PendingOrder,
        PendingReport,
        SettingsData,
        StudentData,
    )


class InsufficientFundsError(Exception):
    """Raised when a debit would result in a negative balance.

    Attributes:
        student_id: The student attempting the purchase
        current_balance: Current coin balance
        requested_amount: Amount attempted to debit
        shortfall: How much more is needed (requested - current)
    """

    def __init__(
        self,
        student_id: str,
        current_balance: int,
        requested_amount: int,
    ) -> None:
        """Initialize InsufficientFundsError."""
        self.student_id = student_id
        self.current_balance = current_balance
        self.requested_amount = requested_amount
        self.shortfall = requested_amount - current_balance
        super().__init__(
            f"Insufficient coins for student {student_id}: "
            f"balance={current_balance}, requested={requested_amount}, "
            f"shortfall={self.shortfall}"
        )


# Settings key holding the catalog for each orderable item type
_CATALOG_BY_ITEM_TYPE: dict[str, str] = {
    const.ITEM_TYPE_REWARD: const.DATA_SETTINGS_REWARDS,
    const.ITEM_TYPE_AVATAR: const.DATA_SETTINGS_AVATARS,
    const.ITEM_TYPE_FRAME: const.DATA_SETTINGS_FRAMES,
}

# Student field listing owned cosmetics for each cosmetic type
_OWNED_FIELD_BY_ITEM_TYPE: dict[str, str] = {
    const.ITEM_TYPE_AVATAR: const.DATA_STUDENT_OWNED_AVATARS,
    const.ITEM_TYPE_FRAME: const.DATA_STUDENT_OWNED_FRAMES,
}

# Student field holding the equipped cosmetic for each cosmetic type
_EQUIPPED_FIELD_BY_ITEM_TYPE: dict[str, str] = {
    const.ITEM_TYPE_AVATAR: const.DATA_STUDENT_AVATAR_ID,
    const.ITEM_TYPE_FRAME: const.DATA_STUDENT_FRAME_ID,
}


class EconomyEngine:
    """Pure logic engine for coin calculations and order workflow.

    All methods are static - no instance state.
    """

    # =========================================================================
    # Settlement
    # =========================================================================

    @staticmethod
    def calculate_weekly_coins(
        record: ConductRecord | None,
        prev_record: ConductRecord | None,
        settings: SettingsData,
    ) -> int:
        """Return the coins earned for one week.

        weekly_good when score >= good, behavior_bonus per positive
        occurrence, improvement when score beats the previous week by more
        than 10, clean_sheet when there are no violations. No record, no
        coins.
        """
        if record is None:
            return 0
        rules = settings[const.DATA_SETTINGS_COIN_RULES]
        score = record[const.DATA_RECORD_SCORE]
        coins = 0
        if score >= settings[const.DATA_SETTINGS_THRESHOLDS][const.THRESHOLD_GOOD]:
            coins += rules[const.COIN_RULE_WEEKLY_GOOD]
        coins += len(record[const.DATA_RECORD_POSITIVE_BEHAVIORS]) * rules[
            const.COIN_RULE_BEHAVIOR_BONUS
        ]
        if (
            prev_record is not None
            and score > prev_record[const.DATA_RECORD_SCORE] + const.IMPROVEMENT_MIN_JUMP
        ):
            coins += rules[const.COIN_RULE_IMPROVEMENT]
        if not record[const.DATA_RECORD_VIOLATIONS]:
            coins += rules[const.COIN_RULE_CLEAN_SHEET]
        return coins

    # =========================================================================
    # Balance arithmetic
    # =========================================================================

    @staticmethod
    def validate_sufficient_funds(balance: int, cost: int) -> bool:
        """Return True if balance >= cost."""
        return balance >= cost

    @staticmethod
    def debit(student: StudentData, amount: int) -> int:
        """Debit in place and return the new balance.

        Raises:
            InsufficientFundsError: balance < amount (student unchanged)
        """
        balance = int(student.get(const.DATA_STUDENT_BALANCE, 0))
        if not EconomyEngine.validate_sufficient_funds(balance, amount):
            raise InsufficientFundsError(
                student[const.DATA_STUDENT_ID], balance, amount
            )
        student[const.DATA_STUDENT_BALANCE] = balance - amount
        return balance - amount

    @staticmethod
    def credit(student: StudentData, amount: int) -> int:
        """Add amount in place (negative amounts floor at 0). Returns balance."""
        balance = max(0, int(student.get(const.DATA_STUDENT_BALANCE, 0)) + amount)
        student[const.DATA_STUDENT_BALANCE] = balance
        return balance

    # =========================================================================
    # Catalog and ownership
    # =========================================================================

    @staticmethod
    def find_item(
        settings: SettingsData, item_type: str, item_id: str
    ) -> dict[str, Any] | None:
        """Return the reward/avatar/frame definition, or None."""
        catalog_key = _CATALOG_BY_ITEM_TYPE.get(item_type)
        if catalog_key is None:
            return None
        return next(
            (
                item
                for item in settings.get(catalog_key, [])
                if item.get(const.DATA_ITEM_ID) == item_id
            ),
            None,
        )

    @staticmethod
    def owns_cosmetic(student: StudentData, item_type: str, item_id: str) -> bool:
        """Return True when an avatar/frame is already unlocked."""
        field = _OWNED_FIELD_BY_ITEM_TYPE.get(item_type)
        return field is not None and item_id in student.get(field, [])

    @staticmethod
    def has_pending_cosmetic_order(
        orders: dict[str, PendingOrder], student_id: str, item_type: str, item_id: str
    ) -> bool:
        """Return True when the same cosmetic already waits in a PENDING order."""
        if item_type not in _OWNED_FIELD_BY_ITEM_TYPE:
            return False
        return any(
            order.get(const.DATA_ORDER_STUDENT_ID) == student_id
            and order.get(const.DATA_ORDER_ITEM_TYPE) == item_type
            and order.get(const.DATA_ORDER_ITEM_ID) == item_id
            and order.get(const.DATA_ORDER_STATUS) == const.STATUS_PENDING
            for order in orders.values()
        )

    @staticmethod
    def inventory_count(student: StudentData, item_id: str) -> int:
        """Return how many units of a reward the student holds."""
        for entry in student.get(const.DATA_STUDENT_INVENTORY, []):
            if entry[const.DATA_INVENTORY_ITEM_ID] == item_id:
                return int(entry[const.DATA_INVENTORY_COUNT])
        return 0

    @staticmethod
    def add_inventory(student: StudentData, item_id: str, count: int = 1) -> None:
        """Increment inventory in place, creating the entry if needed."""
        inventory = student.setdefault(const.DATA_STUDENT_INVENTORY, [])
        for entry in inventory:
            if entry[const.DATA_INVENTORY_ITEM_ID] == item_id:
                entry[const.DATA_INVENTORY_COUNT] += count
                return
        inventory.append(
            {const.DATA_INVENTORY_ITEM_ID: item_id, const.DATA_INVENTORY_COUNT: count}
        )

    @staticmethod
    def consume_item(student: StudentData, item_id: str) -> bool:
        """Decrement one unit in place; the entry is removed at zero.

        Returns False (student unchanged) when the item is not held.
        """
        inventory = student.get(const.DATA_STUDENT_INVENTORY, [])
        for index, entry in enumerate(inventory):
            if entry[const.DATA_INVENTORY_ITEM_ID] != item_id:
                continue
            if entry[const.DATA_INVENTORY_COUNT] <= 0:
                return False
            entry[const.DATA_INVENTORY_COUNT] -= 1
            if entry[const.DATA_INVENTORY_COUNT] == 0:
                inventory.pop(index)
            return True
        return False

    @staticmethod
    def equip_cosmetic(student: StudentData, item_type: str, item_id: str) -> bool:
        """Equip an owned avatar/frame in place. False when not owned."""
        if not EconomyEngine.owns_cosmetic(student, item_type, item_id):
            return False
        student[_EQUIPPED_FIELD_BY_ITEM_TYPE[item_type]] = item_id  # type: ignore[literal-required]
        return True

    # =========================================================================
    # Order workflow
    # =========================================================================

    @staticmethod
    def can_resolve(order: PendingOrder | PendingReport) -> bool:
        """Only PENDING orders and reports may be resolved."""
        return order.get(const.DATA_ORDER_STATUS) == const.STATUS_PENDING

    @staticmethod
    def apply_order_effect(student: StudentData, order: PendingOrder) -> None:
        """Grant one unit of an approved order to the student in place.

        Rewards add one inventory unit; cosmetics are unlocked once (repeat
        approvals of the same cosmetic are harmless).
        """
        item_type = order[const.DATA_ORDER_ITEM_TYPE]
        item_id = order[const.DATA_ORDER_ITEM_ID]
        if item_type == const.ITEM_TYPE_REWARD:
            EconomyEngine.add_inventory(student, item_id)
            return
        field = _OWNED_FIELD_BY_ITEM_TYPE[item_type]
        owned = student.setdefault(field, [])  # type: ignore[misc]
        if item_id not in owned:
            owned.append(item_id)

    @staticmethod
    def resolve_order(
        student: StudentData, order: PendingOrder, action: str, now_iso: str
    ) -> None:
        """Apply APPROVE or REJECT to a PENDING order and its student in place.

        REJECT refunds exactly the order cost. APPROVE grants the item and
        never debits again; approving a cosmetic the student already owns
        refunds the cost and closes the order as REJECTED instead.
        """
        if action == const.ORDER_ACTION_APPROVE and not EconomyEngine.owns_cosmetic(
            student, order[const.DATA_ORDER_ITEM_TYPE], order[const.DATA_ORDER_ITEM_ID]
        ):
            EconomyEngine.apply_order_effect(student, order)
            order[const.DATA_ORDER_STATUS] = const.STATUS_APPROVED
        else:
            EconomyEngine.credit(student, int(order[const.DATA_ORDER_COST]))
            order[const.DATA_ORDER_STATUS] = const.STATUS_REJECTED
        order[const.DATA_ORDER_RESOLVED_AT] = now_iso

    # =========================================================================
    # Officer budgets
    # =========================================================================

    @staticmethod
    def officer_weekly_budget(officer: StudentData, settings: SettingsData) -> int:
        """Monitors get the monitor budget; every other officer the vice one."""
        budgets = settings[const.DATA_SETTINGS_ROLE_BUDGETS]
        if const.ROLE_MONITOR in officer.get(const.DATA_STUDENT_ROLES, []):
            return int(budgets[const.ROLE_BUDGET_MONITOR_WEEKLY])
        return int(budgets[const.ROLE_BUDGET_VICE_WEEKLY])

    @staticmethod
    def remaining_budget(
        officer: StudentData,
        reports: list[PendingReport],
        week: int,
        settings: SettingsData,
    ) -> int:
        """Weekly budget minus the officer's non-rejected bonus reports."""
        spent = sum(
            int(report.get(const.DATA_REPORT_AMOUNT, 0))
            for report in reports
            if report[const.DATA_REPORT_REPORTER_ID] == officer[const.DATA_STUDENT_ID]
            and report[const.DATA_REPORT_WEEK] == week
            and report[const.DATA_REPORT_TYPE] == const.REPORT_TYPE_BONUS
            and report[const.DATA_REPORT_STATUS] != const.STATUS_REJECTED
        )
        return max(0, EconomyEngine.officer_weekly_budget(officer, settings) - spent)
