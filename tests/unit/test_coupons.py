"""Unit tests for the daily coupon ledger"""

import threading
import pytest
from concurrent.futures import ThreadPoolExecutor
from datetime import date, timedelta
from tracksmart.domain.coupons import (
    CouponLedgerService,
    InMemoryCouponStore,
    coupon_value_for_plan,
    draw_down,
    is_coupon_eligible,
    new_coupon,
)
from tracksmart.domain.exceptions import CouponContentionError, LedgerConflictError
from tracksmart.domain.models import CouponLedger, MealPlan, VendorCategory

TODAY = date(2026, 10, 15)
YESTERDAY = TODAY - timedelta(days=1)


@pytest.fixture
def store() -> InMemoryCouponStore:
    return InMemoryCouponStore()


@pytest.fixture
def service(store: InMemoryCouponStore) -> CouponLedgerService:
    return CouponLedgerService(store)


def test_coupon_value_by_meal_plan():
    assert coupon_value_for_plan(MealPlan.TWO_MEAL) == 4000
    assert coupon_value_for_plan(MealPlan.THREE_MEAL) == 6000
    assert coupon_value_for_plan(MealPlan.PAY_TO_EAT) == 0


def test_only_cafeteria_is_coupon_eligible():
    assert is_coupon_eligible(VendorCategory.SCHOOL_CAFETERIA)
    assert not is_coupon_eligible(VendorCategory.PRIVATE_FOOD_VENDORS)
    assert not is_coupon_eligible(VendorCategory.GADGET_VENDORS)
    assert not is_coupon_eligible(VendorCategory.HEALTH_UTILITY_VENDORS)


def test_draw_down_arithmetic():
    """Partial then overflowing purchase against a 4000 coupon"""
    ledger = new_coupon(4000, TODAY)

    ledger, owed = draw_down(ledger, 1500)
    assert (ledger.value, ledger.is_valid, owed) == (2500, True, 0)

    ledger, owed = draw_down(ledger, 3000)
    assert (ledger.value, ledger.is_valid, owed) == (0, False, 500)
    assert ledger.initial_value == 4000


def test_exhausted_coupon_is_full_price_noop():
    exhausted = CouponLedger(initial_value=4000, value=0, is_valid=False, date=TODAY)

    ledger, owed = draw_down(exhausted, 1200)

    assert ledger == exhausted
    assert owed == 1200


def test_missing_coupon_is_full_price():
    assert draw_down(None, 800) == (None, 800)


def test_to_dict_wire_shape():
    assert new_coupon(6000, TODAY).to_dict() == {
        "initialValue": 6000,
        "value": 6000,
        "isValid": True,
        "date": "2026-10-15",
    }


def test_first_call_of_day_issues_coupon(service: CouponLedgerService, store: InMemoryCouponStore):
    ledger = service.get_or_create_today_coupon("s1", MealPlan.THREE_MEAL, TODAY)

    assert (ledger.initial_value, ledger.value, ledger.is_valid, ledger.date) == (6000, 6000, True, TODAY)
    assert store.get("s1") == ledger


def test_same_day_returns_stored_coupon(service: CouponLedgerService):
    service.get_or_create_today_coupon("s1", MealPlan.TWO_MEAL, TODAY)
    service.draw_down("s1", 1000, TODAY)

    ledger = service.get_or_create_today_coupon("s1", MealPlan.TWO_MEAL, TODAY)

    assert ledger.value == 3000


def test_daily_reset_forfeits_yesterday(service: CouponLedgerService, store: InMemoryCouponStore):
    """Exhausted coupon from yesterday is replaced, not topped up"""
    store.put("s1", CouponLedger(initial_value=4000, value=0, is_valid=False, date=YESTERDAY))

    ledger = service.get_or_create_today_coupon("s1", MealPlan.TWO_MEAL, TODAY)

    assert (ledger.value, ledger.is_valid, ledger.date) == (4000, True, TODAY)


def test_unused_value_does_not_carry_over(service: CouponLedgerService, store: InMemoryCouponStore):
    store.put("s1", CouponLedger(initial_value=4000, value=2500, is_valid=True, date=YESTERDAY))

    ledger = service.get_or_create_today_coupon("s1", MealPlan.TWO_MEAL, TODAY)

    assert ledger.value == 4000


def test_pay_to_eat_has_no_coupon(service: CouponLedgerService, store: InMemoryCouponStore):
    assert service.get_or_create_today_coupon("s1", MealPlan.PAY_TO_EAT, TODAY) is None
    assert store.get("s1") is None
    assert service.draw_down("s1", 1500, TODAY) == (None, 1500)


def test_draw_down_persists_and_bumps_version(service: CouponLedgerService, store: InMemoryCouponStore):
    issued = service.get_or_create_today_coupon("s1", MealPlan.TWO_MEAL, TODAY)

    ledger, owed = service.draw_down("s1", 1500, TODAY)

    assert owed == 0
    assert ledger.value == 2500
    assert ledger.version == issued.version + 1
    assert store.get("s1") == ledger


def test_exhausted_draw_down_leaves_store_untouched(service: CouponLedgerService, store: InMemoryCouponStore):
    service.get_or_create_today_coupon("s1", MealPlan.TWO_MEAL, TODAY)
    service.draw_down("s1", 5000, TODAY)
    exhausted = store.get("s1")

    ledger, owed = service.draw_down("s1", 700, TODAY)

    assert owed == 700
    assert ledger == exhausted
    assert store.get("s1").version == exhausted.version


def test_draw_down_against_yesterdays_coupon_is_full_price(
    service: CouponLedgerService, store: InMemoryCouponStore
):
    stale = store.put("s1", CouponLedger(initial_value=4000, value=4000, is_valid=True, date=YESTERDAY))

    assert service.draw_down("s1", 900, TODAY) == (None, 900)
    assert store.get("s1") == stale


def test_compare_and_set_rejects_stale_version(store: InMemoryCouponStore):
    first = store.compare_and_set("s1", None, new_coupon(4000, TODAY))

    with pytest.raises(LedgerConflictError):
        store.compare_and_set("s1", None, new_coupon(4000, TODAY))
    with pytest.raises(LedgerConflictError):
        store.compare_and_set("s1", first.version + 1, new_coupon(4000, TODAY))


class AlwaysConflictingStore(InMemoryCouponStore):
    def compare_and_set(self, user_id, expected_version, ledger):
        raise LedgerConflictError(user_id, expected_version, -1)


def test_retries_exhausted_raises_contention():
    service = CouponLedgerService(AlwaysConflictingStore(), max_retries=3)

    with pytest.raises(CouponContentionError):
        service.get_or_create_today_coupon("s1", MealPlan.TWO_MEAL, TODAY)


def test_concurrent_draw_downs_never_exceed_initial_value(store: InMemoryCouponStore):
    """16 simultaneous 700 purchases against a 4000 coupon deduct exactly 4000"""
    service = CouponLedgerService(store, max_retries=1000)
    service.get_or_create_today_coupon("s1", MealPlan.TWO_MEAL, TODAY)
    amounts = [700] * 16
    start = threading.Barrier(len(amounts))

    def purchase(amount: int) -> int:
        start.wait()
        _, owed = service.draw_down("s1", amount, TODAY)
        return owed

    with ThreadPoolExecutor(max_workers=len(amounts)) as pool:
        owed = list(pool.map(purchase, amounts))

    deducted = sum(amounts) - sum(owed)
    final = store.get("s1")
    assert deducted == 4000
    assert final.value == 0
    assert final.is_valid is False
    assert all(0 <= o <= 700 for o in owed)


@pytest.mark.parametrize("amount", [0, -5])
def test_non_positive_purchase_leaves_coupon_untouched(amount):
    ledger = new_coupon(4000, TODAY)

    updated, owed = draw_down(ledger, amount)

    assert updated == ledger
    assert owed == amount


def test_negative_purchase_is_not_persisted(service: CouponLedgerService, store: InMemoryCouponStore):
    issued = service.get_or_create_today_coupon("s1", MealPlan.TWO_MEAL, TODAY)

    service.draw_down("s1", -500, TODAY)

    assert store.get("s1") == issued
