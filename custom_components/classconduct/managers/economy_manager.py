"""Economy Manager - Coins, badges, purchase orders and inventory.

This manager handles all coin-related operations:
- Weekly settlement (per student and class-wide) with CoinGrant audit entries
- Exact undo of a settlement
- Badge evaluation plus manual award/revoke
- Two-phase purchase orders (debit on create, refund on reject)
- Using functional rewards and equipping cosmetics
- Plain deposits (approved officer bonus reports)

ARCHITECTURE:
- EconomyManager = "The Bank" (STATEFUL coin operations)
- EconomyEngine / GamificationEngine = pure rules (STATELESS)

Cross-collection writes are sequenced students first, then the dependent
collection (coin_grants or pending_orders).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.core import callback
from homeassistant.util import dt as dt_util

from .. import const, data_builders as db
from ..engines.conduct_engine import ConductEngine
from ..engines.economy_engine import EconomyEngine, InsufficientFundsError
from ..engines.gamification_engine import GamificationEngine
from ..helpers.entity_helpers import not_found_error
from .base_manager import BaseManager

if TYPE_CHECKING:
    from ..type_defs import (
        BadgeEvaluation,
        CoinGrant,
        OrderResult,
        PendingOrder,
        StudentData,
    )

# Re-export exception for external use
__all__ = ["EconomyManager", "InsufficientFundsError"]


class EconomyManager(BaseManager):
    """Manager for coin balances, settlements, badges and orders.

    Responsibilities:
    - Keep balances >= 0
    - Keep exactly one CoinGrant per settled (student, week)
    - Move orders only from PENDING
    - Emit coins/badges/order events

    NOT responsible for:
    - Conduct scores (ConductManager)
    - Report validation (ReportManager)
    """

    async def async_setup(self) -> None:
        """Set up the EconomyManager.

        Watches ledger changes so edits to an already-settled week are
        reported (the grant is not recalculated automatically).
        """
        self.listen(const.SIGNAL_SUFFIX_RECORDS_CHANGED, self._on_records_changed)

    @callback
    def _on_records_changed(self, payload: dict[str, Any]) -> None:
        """Warn when records of a settled week change after settlement."""
        week = payload.get("week")
        if week is None:
            return
        grants = self.store.get(const.DATA_COIN_GRANTS)
        student_ids = payload.get("student_ids")
        stale = [
            grant[const.DATA_GRANT_STUDENT_ID]
            for grant in grants.values()
            if grant[const.DATA_GRANT_WEEK] == week
            and (student_ids is None or grant[const.DATA_GRANT_STUDENT_ID] in student_ids)
        ]
        if stale:
            const.LOGGER.warning(
                "WARNING: Week %s records changed after settlement for %s students; "
                "undo and settle again to refresh coins",
                week,
                len(stale),
            )

    # =========================================================================
    # Balances
    # =========================================================================

    def get_balance(self, student_id: str) -> int:
        """Return a student's coin balance."""
        student = self.require_student(self.store.get(const.DATA_STUDENTS), student_id)
        return int(student.get(const.DATA_STUDENT_BALANCE, 0))

    def deposit(self, student_id: str, amount: int, source: str) -> int:
        """Credit coins to a student. Returns the new balance."""
        students = self.store.get(const.DATA_STUDENTS)
        student = self.require_student(students, student_id)
        old_balance = int(student.get(const.DATA_STUDENT_BALANCE, 0))
        new_balance = EconomyEngine.credit(student, amount)
        self.commit(**{const.DATA_STUDENTS: students})
        self.emit(
            const.SIGNAL_SUFFIX_COINS_CHANGED,
            student_id=student_id,
            old_balance=old_balance,
            new_balance=new_balance,
            delta=new_balance - old_balance,
            source=source,
        )
        const.LOGGER.info(
            "INFO: Deposited %s coins to student %s (%s), balance %s",
            amount,
            student_id,
            source,
            new_balance,
        )
        return new_balance

    # =========================================================================
    # Weekly settlement
    # =========================================================================

    def _require_locked(self, week: int) -> None:
        if not ConductEngine.is_week_locked(self.get_settings(), week):
            self.raise_transition_error(
                const.TRANS_KEY_ERROR_WEEK_NOT_LOCKED, week=str(week)
            )

    def _settle(
        self,
        students: dict[str, StudentData],
        grants: dict[str, Any],
        records: dict[str, Any],
        student_id: str,
        week: int,
        now_iso: str,
    ) -> int:
        """Credit one student's weekly coins in place. Returns the amount."""
        student = students[student_id]
        amount = EconomyEngine.calculate_weekly_coins(
            ConductEngine.get_record(records, student_id, week),
            ConductEngine.get_record(records, student_id, week - 1),
            self.get_settings(),
        )
        EconomyEngine.credit(student, amount)
        grant = db.build_coin_grant(student_id, week, amount, now_iso)
        grants[grant[const.DATA_GRANT_ID]] = grant
        return amount

    def settle_week(self, student_id: str, week: Any) -> int:
        """Settle one student's coins for a locked week. Returns coins granted.

        Raises:
            HomeAssistantError: week not locked, already settled, unknown student
        """
        week = self._validated_week(week)
        self._require_locked(week)
        students = self.store.get(const.DATA_STUDENTS)
        self.require_student(students, student_id)
        grants = self.store.get(const.DATA_COIN_GRANTS)
        if db.build_record_id(student_id, week) in grants:
            self.raise_transition_error(
                const.TRANS_KEY_ERROR_ALREADY_SETTLED,
                student=student_id,
                week=str(week),
            )

        records = self.store.get(const.DATA_CONDUCT_RECORDS)
        amount = self._settle(
            students, grants, records, student_id, week, dt_util.utcnow().isoformat()
        )
        self.commit(
            **{const.DATA_STUDENTS: students, const.DATA_COIN_GRANTS: grants}
        )
        self.emit(
            const.SIGNAL_SUFFIX_COINS_CHANGED,
            student_id=student_id,
            delta=amount,
            new_balance=students[student_id][const.DATA_STUDENT_BALANCE],
            source="settlement",
            week=week,
        )
        const.LOGGER.info(
            "INFO: Settled week %s for student %s: %s coins", week, student_id, amount
        )
        return amount

    def settle_class_week(self, week: Any) -> dict[str, int]:
        """Settle every active, not yet settled student, then check badges.

        Returns {student_id: coins} for the students settled by this call.
        """
        week = self._validated_week(week)
        self._require_locked(week)
        students = self.store.get(const.DATA_STUDENTS)
        grants = self.store.get(const.DATA_COIN_GRANTS)
        records = self.store.get(const.DATA_CONDUCT_RECORDS)
        now_iso = dt_util.utcnow().isoformat()

        settled: dict[str, int] = {}
        for student_id, student in students.items():
            if not student.get(const.DATA_STUDENT_IS_ACTIVE, True):
                continue
            if db.build_record_id(student_id, week) in grants:
                const.LOGGER.debug(
                    "DEBUG: Student %s already settled for week %s", student_id, week
                )
                continue
            settled[student_id] = self._settle(
                students, grants, records, student_id, week, now_iso
            )

        if settled:
            self.commit(
                **{const.DATA_STUDENTS: students, const.DATA_COIN_GRANTS: grants}
            )
            for student_id, amount in settled.items():
                self.emit(
                    const.SIGNAL_SUFFIX_COINS_CHANGED,
                    student_id=student_id,
                    delta=amount,
                    new_balance=students[student_id][const.DATA_STUDENT_BALANCE],
                    source="settlement",
                    week=week,
                )
        const.LOGGER.info(
            "INFO: Class settlement for week %s: %s students, %s coins",
            week,
            len(settled),
            sum(settled.values()),
        )
        self.check_class_badges()
        return settled

    def undo_settlement(self, student_id: str, week: Any) -> int:
        """Reverse exactly the granted amount (balance floored at 0).

        Returns the amount reversed.

        Raises:
            HomeAssistantError: no settlement recorded for this student/week
        """
        week = self._validated_week(week)
        students = self.store.get(const.DATA_STUDENTS)
        self.require_student(students, student_id)
        grants = self.store.get(const.DATA_COIN_GRANTS)
        if db.build_record_id(student_id, week) not in grants:
            self.raise_transition_error(
                const.TRANS_KEY_ERROR_NOT_SETTLED,
                student=student_id,
                week=str(week),
            )

        amount = self._unsettle(students, grants, student_id, week)
        self.commit(
            **{const.DATA_STUDENTS: students, const.DATA_COIN_GRANTS: grants}
        )
        self._emit_undone(students, student_id, week, amount)
        return amount

    def _unsettle(
        self,
        students: dict[str, StudentData],
        grants: dict[str, CoinGrant],
        student_id: str,
        week: int,
    ) -> int:
        """Drop one grant and debit its amount in place; no commit."""
        grant = grants.pop(db.build_record_id(student_id, week))
        amount = int(grant[const.DATA_GRANT_AMOUNT])
        EconomyEngine.credit(students[student_id], -amount)
        return amount

    def _emit_undone(
        self, students: dict[str, StudentData], student_id: str, week: int, amount: int
    ) -> None:
        self.emit(
            const.SIGNAL_SUFFIX_COINS_CHANGED,
            student_id=student_id,
            delta=-amount,
            new_balance=students[student_id][const.DATA_STUDENT_BALANCE],
            source="settlement_undo",
            week=week,
        )
        const.LOGGER.info(
            "INFO: Undid week %s settlement for student %s (-%s coins)",
            week,
            student_id,
            amount,
        )

    def undo_class_settlement(self, week: Any) -> dict[str, int]:
        """Undo every settlement recorded for the week in a single save."""
        week = self._validated_week(week)
        students = self.store.get(const.DATA_STUDENTS)
        grants = self.store.get(const.DATA_COIN_GRANTS)
        student_ids = [
            grant[const.DATA_GRANT_STUDENT_ID]
            for grant in grants.values()
            if grant[const.DATA_GRANT_WEEK] == week
            and grant[const.DATA_GRANT_STUDENT_ID] in students
        ]
        undone = {
            student_id: self._unsettle(students, grants, student_id, week)
            for student_id in student_ids
        }
        if undone:
            self.commit(
                **{const.DATA_STUDENTS: students, const.DATA_COIN_GRANTS: grants}
            )
            for student_id, amount in undone.items():
                self._emit_undone(students, student_id, week, amount)
        return undone

    # =========================================================================
    # Badges
    # =========================================================================

    def _evaluate(
        self, students: dict[str, StudentData], student_id: str
    ) -> BadgeEvaluation:
        records = self.store.get(const.DATA_CONDUCT_RECORDS)
        history = ConductEngine.student_history(records, student_id)
        evaluation = GamificationEngine.evaluate_badges(
            students[student_id].get(const.DATA_STUDENT_BADGES, []),
            history,
            self.get_settings(),
        )
        students[student_id][const.DATA_STUDENT_BADGES] = evaluation["badges"]
        return evaluation

    def _emit_badge_changes(
        self, student_id: str, evaluation: BadgeEvaluation, source: str
    ) -> None:
        self.emit(
            const.SIGNAL_SUFFIX_BADGES_CHANGED,
            student_id=student_id,
            awarded=evaluation["awarded"],
            revoked=evaluation["revoked"],
            source=source,
        )
        const.LOGGER.info(
            "INFO: Badges for student %s: +%s -%s",
            student_id,
            evaluation["awarded"],
            evaluation["revoked"],
        )

    def check_badges(self, student_id: str) -> BadgeEvaluation:
        """Evaluate every configured badge for one student."""
        students = self.store.get(const.DATA_STUDENTS)
        self.require_student(students, student_id)
        evaluation = self._evaluate(students, student_id)
        if evaluation["awarded"] or evaluation["revoked"]:
            self.commit(**{const.DATA_STUDENTS: students})
            self._emit_badge_changes(student_id, evaluation, "evaluation")
        return evaluation

    def check_class_badges(self) -> dict[str, BadgeEvaluation]:
        """Evaluate badges for every active student; one write at the end."""
        students = self.store.get(const.DATA_STUDENTS)
        changed: dict[str, BadgeEvaluation] = {}
        for student_id, student in students.items():
            if not student.get(const.DATA_STUDENT_IS_ACTIVE, True):
                continue
            evaluation = self._evaluate(students, student_id)
            if evaluation["awarded"] or evaluation["revoked"]:
                changed[student_id] = evaluation
        if changed:
            self.commit(**{const.DATA_STUDENTS: students})
            for student_id, evaluation in changed.items():
                self._emit_badge_changes(student_id, evaluation, "evaluation")
        return changed

    def award_badge(self, student_id: str, badge_id: str) -> bool:
        """Manually grant a configured badge. False when already held."""
        badges = self.get_settings()[const.DATA_SETTINGS_BADGES]
        if not any(badge[const.DATA_BADGE_ID] == badge_id for badge in badges):
            raise not_found_error(const.LABEL_BADGE, badge_id)
        students = self.store.get(const.DATA_STUDENTS)
        student = self.require_student(students, student_id)
        owned = student.setdefault(const.DATA_STUDENT_BADGES, [])
        if badge_id in owned:
            return False
        owned.append(badge_id)
        self.commit(**{const.DATA_STUDENTS: students})
        self._emit_badge_changes(
            student_id, {"badges": owned, "awarded": [badge_id], "revoked": []}, "manual"
        )
        return True

    def revoke_badge(self, student_id: str, badge_id: str) -> bool:
        """Manually remove a badge. False when the student does not hold it."""
        students = self.store.get(const.DATA_STUDENTS)
        student = self.require_student(students, student_id)
        owned = student.get(const.DATA_STUDENT_BADGES, [])
        if badge_id not in owned:
            return False
        owned.remove(badge_id)
        self.commit(**{const.DATA_STUDENTS: students})
        self._emit_badge_changes(
            student_id, {"badges": owned, "awarded": [], "revoked": [badge_id]}, "manual"
        )
        return True

    # =========================================================================
    # Orders
    # =========================================================================

    def create_order(
        self, student_id: str, item_type: str, item_id: str
    ) -> OrderResult:
        """Debit the item cost and record a PENDING order.

        Insufficient balance returns success=False with the shortfall and
        changes nothing.

        Raises:
            HomeAssistantError: unknown student/item, cosmetic already owned
                or already pending
        """
        students = self.store.get(const.DATA_STUDENTS)
        student = self.require_student(students, student_id)
        item = EconomyEngine.find_item(self.get_settings(), item_type, item_id)
        if item is None:
            raise not_found_error(const.LABEL_ITEM, item_id)
        if EconomyEngine.owns_cosmetic(student, item_type, item_id):
            self.raise_transition_error(
                const.TRANS_KEY_ERROR_ALREADY_OWNED, item=str(item_id)
            )
        orders = self.store.get(const.DATA_PENDING_ORDERS)
        if EconomyEngine.has_pending_cosmetic_order(
            orders, student_id, item_type, item_id
        ):
            self.raise_transition_error(
                const.TRANS_KEY_ERROR_ORDER_PENDING, item=str(item_id)
            )

        cost = int(item[const.DATA_ITEM_COST])
        try:
            new_balance = EconomyEngine.debit(student, cost)
        except InsufficientFundsError as err:
            const.LOGGER.warning(
                "WARNING: Order of '%s' by student %s refused, short %s coins",
                item.get(const.DATA_ITEM_LABEL),
                student_id,
                err.shortfall,
            )
            return {"success": False, "order": None, "shortfall": err.shortfall}

        order = db.build_order(student, item, item_type, dt_util.utcnow())
        orders[order[const.DATA_ORDER_ID]] = order
        self.commit(
            **{const.DATA_STUDENTS: students, const.DATA_PENDING_ORDERS: orders}
        )
        self.emit(
            const.SIGNAL_SUFFIX_COINS_CHANGED,
            student_id=student_id,
            delta=-cost,
            new_balance=new_balance,
            source="order",
        )
        self.emit(
            const.SIGNAL_SUFFIX_ORDER_CREATED,
            order_id=order[const.DATA_ORDER_ID],
            student_id=student_id,
            item_id=item_id,
        )
        const.LOGGER.info(
            "INFO: Order %s created: '%s' for student %s (%s coins)",
            order[const.DATA_ORDER_ID],
            order[const.DATA_ORDER_ITEM_NAME],
            student_id,
            cost,
        )
        return {"success": True, "order": order, "shortfall": 0}

    def resolve_order(self, order_id: str, action: str) -> PendingOrder:
        """Approve (grant item) or reject (refund cost) a PENDING order.

        Approving a cosmetic the student already owns refunds it instead.

        Raises:
            HomeAssistantError: unknown order, bad action, order not PENDING
        """
        orders = self.store.get(const.DATA_PENDING_ORDERS)
        order = orders.get(order_id)
        if order is None:
            raise not_found_error(const.LABEL_ORDER, order_id)
        if action not in const.ORDER_ACTIONS:
            self.raise_validation_error(
                db.EntityValidationError(
                    field=const.FIELD_ACTION,
                    translation_key=const.TRANS_KEY_INVALID_CATEGORY,
                    placeholders={"value": str(action)},
                )
            )
        if not EconomyEngine.can_resolve(order):
            self.raise_transition_error(
                const.TRANS_KEY_ERROR_INVALID_TRANSITION,
                id=order_id,
                status=str(order[const.DATA_ORDER_STATUS]),
            )

        students = self.store.get(const.DATA_STUDENTS)
        student = self.require_student(students, order[const.DATA_ORDER_STUDENT_ID])
        old_balance = int(student.get(const.DATA_STUDENT_BALANCE, 0))
        EconomyEngine.resolve_order(
            student, order, action, dt_util.utcnow().isoformat()
        )
        self.commit(
            **{const.DATA_STUDENTS: students, const.DATA_PENDING_ORDERS: orders}
        )
        if order[const.DATA_ORDER_STATUS] == const.STATUS_REJECTED:
            self.emit(
                const.SIGNAL_SUFFIX_COINS_CHANGED,
                student_id=student[const.DATA_STUDENT_ID],
                delta=student[const.DATA_STUDENT_BALANCE] - old_balance,
                new_balance=student[const.DATA_STUDENT_BALANCE],
                source="order_refund",
            )
        self.emit(
            const.SIGNAL_SUFFIX_ORDER_RESOLVED,
            order_id=order_id,
            student_id=student[const.DATA_STUDENT_ID],
            status=order[const.DATA_ORDER_STATUS],
        )
        const.LOGGER.info(
            "INFO: Order %s %s", order_id, order[const.DATA_ORDER_STATUS].lower()
        )
        return order

    # =========================================================================
    # Inventory and cosmetics
    # =========================================================================

    def use_functional_item(self, student_id: str, item_id: str) -> StudentData:
        """Consume one held reward unit.

        SEAT_TICKET also grants priority seating. IMMUNITY cards are refused;
        staff consume them when approving a violation report.

        Raises:
            HomeAssistantError: item not held or not usable by students
        """
        item = EconomyEngine.find_item(
            self.get_settings(), const.ITEM_TYPE_REWARD, item_id
        )
        if item is None:
            raise not_found_error(const.LABEL_ITEM, item_id)
        reward_type = item.get(const.DATA_ITEM_TYPE, const.REWARD_TYPE_PHYSICAL)
        if reward_type == const.REWARD_TYPE_IMMUNITY:
            self.raise_transition_error(
                const.TRANS_KEY_ERROR_ITEM_NOT_USABLE, item=str(item_id)
            )

        students = self.store.get(const.DATA_STUDENTS)
        student = self.require_student(students, student_id)
        if not EconomyEngine.consume_item(student, item_id):
            raise not_found_error(const.LABEL_ITEM, item_id)
        if reward_type == const.REWARD_TYPE_SEAT_TICKET:
            student[const.DATA_STUDENT_HAS_PRIORITY_SEATING] = True

        self.commit(**{const.DATA_STUDENTS: students})
        self.emit(
            const.SIGNAL_SUFFIX_STUDENT_CHANGED,
            action="item_used",
            student_id=student_id,
            item_id=item_id,
        )
        const.LOGGER.info(
            "INFO: Student %s used '%s'", student_id, item.get(const.DATA_ITEM_LABEL)
        )
        return student

    def consume_immunity(self, students: dict[str, StudentData], student_id: str) -> str | None:
        """Consume one IMMUNITY card in place. Returns its item id or None."""
        student = students[student_id]
        for reward in self.get_settings()[const.DATA_SETTINGS_REWARDS]:
            if reward.get(const.DATA_ITEM_TYPE) != const.REWARD_TYPE_IMMUNITY:
                continue
            if EconomyEngine.consume_item(student, reward[const.DATA_ITEM_ID]):
                return reward[const.DATA_ITEM_ID]
        return None

    def equip_cosmetic(self, student_id: str, item_type: str, item_id: str) -> bool:
        """Equip an owned avatar or frame.

        Raises:
            HomeAssistantError: the cosmetic is not owned
        """
        students = self.store.get(const.DATA_STUDENTS)
        student = self.require_student(students, student_id)
        if not EconomyEngine.equip_cosmetic(student, item_type, item_id):
            raise not_found_error(const.LABEL_ITEM, item_id)
        self.commit(**{const.DATA_STUDENTS: students})
        self.emit(
            const.SIGNAL_SUFFIX_STUDENT_CHANGED,
            action="equipped",
            student_id=student_id,
            item_type=item_type,
            item_id=item_id,
        )
        return True

    def equip_avatar(self, student_id: str, avatar_id: str) -> bool:
        """Equip an owned avatar."""
        return self.equip_cosmetic(student_id, const.ITEM_TYPE_AVATAR, avatar_id)

    def equip_frame(self, student_id: str, frame_id: str) -> bool:
        """Equip an owned frame."""
        return self.equip_cosmetic(student_id, const.ITEM_TYPE_FRAME, frame_id)
