"""Daily cafeteria coupon ledger"""

import logging
import threading
from dataclasses import replace
from datetime import date
from typing import Dict, Mapping, Optional, Protocol
from tracksmart.domain.exceptions import CouponContentionError, LedgerConflictError
from tracksmart.domain.models import CouponLedger, MealPlan, VendorCategory

logger = logging.getLogger(__name__)

DEFAULT_COUPON_VALUES: Dict[MealPlan, int] = {
    MealPlan.TWO_MEAL: 4000,
    MealPlan.THREE_MEAL: 6000,
    MealPlan.PAY_TO_EAT: 0,
}

COUPON_ELIGIBLE_CATEGORIES = frozenset({VendorCategory.SCHOOL_CAFETERIA})


def coupon_value_for_plan(meal_plan: MealPlan, values: Mapping[MealPlan, int] = DEFAULT_COUPON_VALUES) -> int:
    return values.get(meal_plan, 0)


def is_coupon_eligible(vendor_category: VendorCategory) -> bool:
    return vendor_category in COUPON_ELIGIBLE_CATEGORIES


def new_coupon(initial_value: int, today: date) -> CouponLedger:
    """Fresh ledger for today; yesterday's unused value is not carried over"""
    return CouponLedger(
        initial_value=initial_value,
        value=initial_value,
        is_valid=initial_value > 0,
        date=today,
    )


def draw_down(ledger: Optional[CouponLedger], purchase_amount: int) -> tuple[Optional[CouponLedger], int]:
    """
    Apply the coupon to a purchase.

    A missing, invalid or exhausted ledger leaves the purchase at full price,
    and a non-positive amount leaves the ledger untouched.
    Otherwise the coupon covers min(purchase_amount, value).

    Returns: (updated_ledger, amount_owed_after_coupon)
    """
    if ledger is None or not ledger.is_valid or ledger.value <= 0 or purchase_amount <= 0:
        return ledger, purchase_amount

    deduction = min(purchase_amount, ledger.value)
    remaining = ledger.value - deduction
    updated = replace(ledger, value=remaining, is_valid=remaining > 0)
    return updated, purchase_amount - deduction


class CouponStore(Protocol):
    """Persistence for one current coupon ledger per user"""

    def get(self, user_id: str) -> Optional[CouponLedger]:
        ...

    def put(self, user_id: str, ledger: CouponLedger) -> CouponLedger:
        ...

    def compare_and_set(
        self, user_id: str, expected_version: Optional[int], ledger: CouponLedger
    ) -> CouponLedger:
        """
        Write ledger only if the stored version equals expected_version
        (None meaning no record yet). Returns the ledger with its new version.

        Raises:
            LedgerConflictError: If the stored version differs
        """
        ...


class InMemoryCouponStore:
    """Process-local coupon store guarded by a single lock"""

    def __init__(self) -> None:
        self._ledgers: Dict[str, CouponLedger] = {}
        self._lock = threading.Lock()

    def get(self, user_id: str) -> Optional[CouponLedger]:
        with self._lock:
            return self._ledgers.get(user_id)

    def put(self, user_id: str, ledger: CouponLedger) -> CouponLedger:
        with self._lock:
            current = self._ledgers.get(user_id)
            stored = replace(ledger, version=(current.version if current else 0) + 1)
            self._ledgers[user_id] = stored
            return stored

    def compare_and_set(
        self, user_id: str, expected_version: Optional[int], ledger: CouponLedger
    ) -> CouponLedger:
        with self._lock:
            current = self._ledgers.get(user_id)
            actual_version = current.version if current else None
            if actual_version != expected_version:
                raise LedgerConflictError(user_id, expected_version, actual_version)
            stored = replace(ledger, version=(actual_version or 0) + 1)
            self._ledgers[user_id] = stored
            return stored


class CouponLedgerService:
    """
    Reads and updates a user's daily coupon through a CouponStore.

    Every write is a compare-and-set on the record version, so concurrent
    draw-downs against the same ledger serialize: a loser re-reads and
    recomputes against the winner's balance.
    """

    def __init__(
        self,
        store: CouponStore,
        coupon_values: Mapping[MealPlan, int] = DEFAULT_COUPON_VALUES,
        max_retries: int = 5,
    ):
        self.store = store
        self.coupon_values = coupon_values
        self.max_retries = max_retries

    def get_or_create_today_coupon(
        self, user_id: str, meal_plan: MealPlan, today: date
    ) -> Optional[CouponLedger]:
        """
        Today's ledger for the user, creating it on first use each day.

        Returns None for meal plans without a coupon (pay-to-eat).
        """
        initial_value = coupon_value_for_plan(meal_plan, self.coupon_values)
        if initial_value <= 0:
            return None

        for attempt in range(self.max_retries):
            stored = self.store.get(user_id)
            if stored is not None and stored.date == today:
                return stored

            expected_version = stored.version if stored else None
            try:
                ledger = self.store.compare_and_set(user_id, expected_version, new_coupon(initial_value, today))
            except LedgerConflictError as e:
                logger.info("Coupon reset conflict", extra={"user_id": user_id, "attempt": attempt + 1, "error": str(e)})
                continue

            logger.info(
                "Coupon issued",
                extra={"user_id": user_id, "coupon_date": today.isoformat(), "initial_value": initial_value},
            )
            return ledger

        raise CouponContentionError(f"Could not issue coupon for {user_id!r} after {self.max_retries} attempts")

    def draw_down(self, user_id: str, purchase_amount: int, today: date) -> tuple[Optional[CouponLedger], int]:
        """
        Apply today's coupon to one eligible purchase and persist the result.

        Must be called exactly once per purchase, and only for coupon-eligible
        vendors. A ledger from another day counts as no coupon.

        Returns: (ledger_after, amount_owed_after_coupon)

        Raises:
            CouponContentionError: If every compare-and-set attempt conflicted
        """
        for attempt in range(self.max_retries):
            current = self.store.get(user_id)
            if current is not None and current.date != today:
                current = None

            updated, owed = draw_down(current, purchase_amount)
            if current is None or updated.value == current.value:
                return current, owed

            try:
                stored = self.store.compare_and_set(user_id, current.version, updated)
            except LedgerConflictError as e:
                logger.info("Coupon draw-down conflict", extra={"user_id": user_id, "attempt": attempt + 1, "error": str(e)})
                continue

            logger.info(
                "Coupon drawn down",
                extra={
                    "user_id": user_id,
                    "deducted": purchase_amount - owed,
                    "remaining": stored.value,
                },
            )
            return stored, owed

        raise CouponContentionError(f"Could not draw down coupon for {user_id!r} after {self.max_retries} attempts")
