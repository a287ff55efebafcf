"""Integration tests for the SQL repositories and coupon store"""

import pytest
from datetime import date, datetime
from sqlalchemy.orm import Session
from tracksmart.domain.coupons import CouponLedgerService, new_coupon
from tracksmart.domain.exceptions import LedgerConflictError, ProfileNotFoundError
from tracksmart.domain.models import MealPlan, VendorCategory
from tracksmart.infrastructure.database.repositories import ProfileRepository, PurchaseRepository, SqlCouponStore

TODAY = date(2026, 10, 15)


def test_profile_round_trip(db: Session, profile):
    repo = ProfileRepository(db)
    repo.save_profile(profile)
    db.commit()

    assert repo.get_profile(profile.user_id) == profile
    assert repo.get_profile("nobody") is None
    with pytest.raises(ProfileNotFoundError):
        repo.require_profile("nobody")


def test_purchases_listed_newest_first(db: Session, make_transaction):
    repo = PurchaseRepository(db)
    repo.add_transactions(
        "s1",
        [
            make_transaction(500, datetime(2026, 10, 1, 9)),
            make_transaction(900, datetime(2026, 10, 14, 9), VendorCategory.GADGET_VENDORS),
            make_transaction(300, datetime(2026, 9, 30, 9)),
        ],
    )
    repo.add_transactions("s2", [make_transaction(100, datetime(2026, 10, 2, 9))])
    db.commit()

    all_s1 = repo.list_transactions("s1")
    this_month = repo.list_transactions("s1", since=datetime(2026, 10, 1))
    latest = repo.list_transactions("s1", limit=1)

    assert [t.amount for t in all_s1] == [900, 500, 300]
    assert [t.amount for t in this_month] == [900, 500]
    assert latest[0].vendor_category == VendorCategory.GADGET_VENDORS
    assert all(t.transaction_id for t in all_s1)


def test_sql_store_compare_and_set(db: Session):
    store = SqlCouponStore(db)

    created = store.compare_and_set("s1", None, new_coupon(4000, TODAY))
    assert created.version == 1

    updated = store.compare_and_set("s1", 1, new_coupon(3000, TODAY))
    assert (updated.value, updated.version) == (3000, 2)

    with pytest.raises(LedgerConflictError):
        store.compare_and_set("s1", 1, new_coupon(1000, TODAY))
    assert store.get("s1").value == 3000


def test_coupon_service_over_sql_store(db: Session):
    service = CouponLedgerService(SqlCouponStore(db))

    service.get_or_create_today_coupon("s1", MealPlan.TWO_MEAL, TODAY)
    ledger, owed = service.draw_down("s1", 1500, TODAY)
    ledger, owed = service.draw_down("s1", 3000, TODAY)
    db.commit()

    assert (ledger.value, ledger.is_valid, owed) == (0, False, 500)
    assert SqlCouponStore(db).get("s1").to_dict() == {
        "initialValue": 4000,
        "value": 0,
        "isValid": False,
        "date": "2026-10-15",
    }
