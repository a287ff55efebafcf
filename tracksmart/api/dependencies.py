"""Dependency injection for FastAPI endpoints"""

from datetime import datetime
from fastapi import Depends, Request
from sqlalchemy.orm import Session
from tracksmart.config import settings
from tracksmart.domain.coupons import CouponLedgerService
from tracksmart.domain.models import MealPlan
from tracksmart.infrastructure.database.repositories import SqlCouponStore
from tracksmart.infrastructure.database.session import get_db
from tracksmart.utils.date_utils import local_now


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_now() -> datetime:
    """Evaluation instant for the request, captured once in the campus timezone"""
    return local_now(settings.timezone)


def get_coupon_service(db: Session = Depends(get_db)) -> CouponLedgerService:
    """Provide coupon ledger service bound to the request's session"""
    return CouponLedgerService(
        SqlCouponStore(db),
        coupon_values={
            MealPlan.TWO_MEAL: settings.two_meal_coupon_value,
            MealPlan.THREE_MEAL: settings.three_meal_coupon_value,
            MealPlan.PAY_TO_EAT: 0,
        },
        max_retries=settings.coupon_cas_max_retries,
    )
