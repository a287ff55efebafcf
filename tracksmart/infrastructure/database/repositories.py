"""Data access layer for profiles, purchases and coupon ledgers"""

from datetime import datetime
from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from tracksmart.infrastructure.database.models import CouponLedgerRecord, PurchaseRecord, UserProfileRecord
from tracksmart.domain.exceptions import LedgerConflictError, ProfileNotFoundError
from tracksmart.domain.models import CouponLedger, MealPlan, Transaction, UserProfile, VendorCategory


class ProfileRepository:
    """Repository for student profiles"""

    def __init__(self, db: Session):
        self.db = db

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        record = self.db.get(UserProfileRecord, user_id)
        if record is None:
            return None
        return UserProfile(
            user_id=record.user_id,
            monthly_allowance=record.monthly_allowance,
            meal_plan=MealPlan(record.meal_plan),
            financial_goal=record.financial_goal,
            financial_goal_amount=record.financial_goal_amount,
        )

    def require_profile(self, user_id: str) -> UserProfile:
        profile = self.get_profile(user_id)
        if profile is None:
            raise ProfileNotFoundError(f"No profile for user {user_id!r}")
        return profile

    def save_profile(self, profile: UserProfile) -> UserProfile:
        """Insert or replace the user's profile"""
        record = self.db.get(UserProfileRecord, profile.user_id)
        if record is None:
            record = UserProfileRecord(user_id=profile.user_id)
            self.db.add(record)
        record.monthly_allowance = profile.monthly_allowance
        record.meal_plan = profile.meal_plan.value
        record.financial_goal = profile.financial_goal
        record.financial_goal_amount = profile.financial_goal_amount
        self.db.flush()
        return profile


class PurchaseRepository:
    """Repository for the purchase log"""

    def __init__(self, db: Session):
        self.db = db

    def add_transactions(self, user_id: str, transactions: List[Transaction]) -> List[Transaction]:
        """Persist purchases, filling in their generated IDs"""
        records = [
            PurchaseRecord(
                user_id=user_id,
                amount=txn.amount,
                vendor=txn.vendor,
                vendor_category=txn.vendor_category.value,
                coupon_used=txn.coupon_used,
                coupon_amount=txn.coupon_amount,
                purchased_at=txn.timestamp,
            )
            for txn in transactions
        ]
        self.db.add_all(records)
        self.db.flush()  # Get IDs without committing

        for txn, record in zip(transactions, records):
            txn.transaction_id = str(record.id)
        return transactions

    def list_transactions(
        self,
        user_id: str,
        since: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[Transaction]:
        """Fetch purchases newest first, optionally bounded by time and count"""
        query = self.db.query(PurchaseRecord).filter(PurchaseRecord.user_id == user_id)
        if since is not None:
            query = query.filter(PurchaseRecord.purchased_at >= since)
        query = query.order_by(PurchaseRecord.purchased_at.desc())
        if limit is not None:
            query = query.limit(limit)

        return [
            Transaction(
                amount=record.amount,
                vendor=record.vendor,
                vendor_category=VendorCategory(record.vendor_category),
                timestamp=record.purchased_at,
                coupon_used=record.coupon_used,
                coupon_amount=record.coupon_amount,
                transaction_id=str(record.id),
            )
            for record in query.all()
        ]


class SqlCouponStore:
    """
    Coupon store backed by the coupon_ledger table.

    compare_and_set is a conditional UPDATE on the version column (or an
    INSERT for a first ledger), so a concurrent writer either blocks on the
    row lock and then matches nothing, or fails the primary key.
    """

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def _to_domain(record: CouponLedgerRecord) -> CouponLedger:
        return CouponLedger(
            initial_value=record.initial_value,
            value=record.value,
            is_valid=record.is_valid,
            date=record.ledger_date,
            version=record.version,
        )

    def get(self, user_id: str) -> Optional[CouponLedger]:
        record = (
            self.db.query(CouponLedgerRecord)
            .filter(CouponLedgerRecord.user_id == user_id)
            .populate_existing()
            .first()
        )
        return self._to_domain(record) if record else None

    def put(self, user_id: str, ledger: CouponLedger) -> CouponLedger:
        """Unconditional write"""
        current = self.get(user_id)
        return self.compare_and_set(user_id, current.version if current else None, ledger)

    def compare_and_set(
        self, user_id: str, expected_version: Optional[int], ledger: CouponLedger
    ) -> CouponLedger:
        if expected_version is None:
            record = CouponLedgerRecord(
                user_id=user_id,
                initial_value=ledger.initial_value,
                value=ledger.value,
                is_valid=ledger.is_valid,
                ledger_date=ledger.date,
                version=1,
            )
            try:
                with self.db.begin_nested():
                    self.db.add(record)
            except IntegrityError as e:
                current = self.get(user_id)
                raise LedgerConflictError(user_id, None, current.version if current else None) from e
            return self._to_domain(record)

        updated = (
            self.db.query(CouponLedgerRecord)
            .filter(
                CouponLedgerRecord.user_id == user_id,
                CouponLedgerRecord.version == expected_version,
            )
            .update(
                {
                    CouponLedgerRecord.initial_value: ledger.initial_value,
                    CouponLedgerRecord.value: ledger.value,
                    CouponLedgerRecord.is_valid: ledger.is_valid,
                    CouponLedgerRecord.ledger_date: ledger.date,
                    CouponLedgerRecord.version: expected_version + 1,
                },
                synchronize_session=False,
            )
        )
        if updated == 0:
            current = self.get(user_id)
            raise LedgerConflictError(user_id, expected_version, current.version if current else None)

        return self.get(user_id)
