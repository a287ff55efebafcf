"""GET /v1/users/{user_id}/coupon - Today's cafeteria coupon"""

import logging
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from tracksmart.api.dependencies import get_coupon_service, get_now, get_request_id
from tracksmart.api.v1.schemas import CouponResponse, CouponSchema
from tracksmart.domain.coupons import CouponLedgerService
from tracksmart.domain.exceptions import CouponContentionError, ProfileNotFoundError
from tracksmart.infrastructure.database.repositories import ProfileRepository
from tracksmart.infrastructure.database.session import get_db
from tracksmart.infrastructure.observability.metrics import coupon_contention_counter, coupon_lookup_counter

router = APIRouter()


@router.get("/users/{user_id}/coupon", response_model=CouponResponse)
def get_coupon(
    user_id: str,
    request: Request,
    db: Session = Depends(get_db),
    coupons: CouponLedgerService = Depends(get_coupon_service),
    now: datetime = Depends(get_now),
):
    """
    Fetch today's coupon, issuing a fresh one on the first call of the day.

    Pay-to-eat students have no coupon: available is false.
    """
    request_id = get_request_id(request)
    try:
        profile = ProfileRepository(db).require_profile(user_id)
        ledger = coupons.get_or_create_today_coupon(user_id, profile.meal_plan, now.date())
        db.commit()

    except ProfileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    except CouponContentionError as e:
        coupon_contention_counter.inc()
        db.rollback()
        logging.warning(f"Coupon contention: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail="Coupon is being updated, retry")

    coupon_lookup_counter.labels(meal_plan=profile.meal_plan.value, available=str(ledger is not None).lower()).inc()
    if ledger is None:
        return CouponResponse(user_id=user_id, available=False)
    return CouponResponse(user_id=user_id, available=True, coupon=CouponSchema(**ledger.to_dict()))
