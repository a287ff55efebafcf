"""SQLAlchemy ORM models for profiles, purchases and coupon ledgers"""

import uuid
from sqlalchemy import Column, String, BigInteger, Boolean, DateTime, Date, Integer, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class UserProfileRecord(Base):
    """Student spending profile"""

    __tablename__ = "user_profile"

    user_id = Column(Text, primary_key=True)
    monthly_allowance = Column(BigInteger, nullable=False)
    meal_plan = Column(String(16), nullable=False)
    financial_goal = Column(Text, nullable=False, default="")
    financial_goal_amount = Column(BigInteger, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class PurchaseRecord(Base):
    """Append-only purchase log"""

    __tablename__ = "purchase"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    amount = Column(BigInteger, nullable=False)
    vendor = Column(Text, nullable=False)
    vendor_category = Column(Text, nullable=False)
    coupon_used = Column(Boolean, nullable=False, default=False)
    coupon_amount = Column(BigInteger, nullable=False, default=0)
    purchased_at = Column(DateTime(timezone=True), nullable=False, index=True)


class CouponLedgerRecord(Base):
    """Current daily coupon per user; superseded by the next day's reset"""

    __tablename__ = "coupon_ledger"

    user_id = Column(Text, primary_key=True)
    initial_value = Column(BigInteger, nullable=False)
    value = Column(BigInteger, nullable=False)
    is_valid = Column(Boolean, nullable=False)
    ledger_date = Column(Date, nullable=False)
    version = Column(Integer, nullable=False, default=1)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
