"""POST /v1/users/{user_id}/checkout - Place a cart as vendor purchases"""

import time
import logging
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from tracksmart.api.dependencies import get_coupon_service, get_now, get_request_id
from tracksmart.api.v1.schemas import CheckoutRequest, CheckoutResponse, TransactionSchema
from tracksmart.domain.checkout import checkout
from tracksmart.domain.coupons import CouponLedgerService
from tracksmart.domain.exceptions import CouponContentionError, InvalidTransactionDataError, ProfileNotFoundError
from tracksmart.domain.models import CartItem
from tracksmart.infrastructure.database.repositories import ProfileRepository, PurchaseRepository
from tracksmart.infrastructure.database.session import get_db
from tracksmart.infrastructure.observability.logging import log_checkout
from tracksmart.infrastructure.observability.metrics import coupon_contention_counter, record_checkout

router = APIRouter()


@router.post("/users/{user_id}/checkout", response_model=CheckoutResponse)
def create_checkout(
    user_id: str,
    request_body: CheckoutRequest,
    request: Request,
    db: Session = Depends(get_db),
    coupons: CouponLedgerService = Depends(get_coupon_service),
    now: datetime = Depends(get_now),
):
    """
    Check out a cart.

    Flow:
    1. Load the student's profile (meal plan decides the coupon)
    2. Group the cart by vendor and apply today's coupon to cafeteria orders
    3. Persist one purchase per vendor together with the coupon update
    4. Return the purchases and amount payable
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        profile = ProfileRepository(db).require_profile(user_id)
        items = [CartItem(**item.model_dump()) for item in request_body.items]

        result = checkout(profile, items, coupons, now)
        PurchaseRepository(db).add_transactions(user_id, result.transactions)

        # Coupon draw-down and purchases commit together
        db.commit()

    except ProfileNotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))

    except InvalidTransactionDataError as e:
        db.rollback()
        logging.warning(f"Invalid cart: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except CouponContentionError as e:
        coupon_contention_counter.inc()
        db.rollback()
        logging.warning(f"Coupon contention: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail="Coupon is being updated, retry checkout")

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    duration_ms = (time.time() - start_time) * 1000
    record_checkout(result.coupon_savings, result.total_payable)
    log_checkout(
        request_id,
        user_id,
        len(result.transactions),
        result.coupon_savings,
        result.total_payable,
        duration_ms,
    )

    return CheckoutResponse(
        user_id=user_id,
        transactions=[TransactionSchema(**vars(txn)) for txn in result.transactions],
        coupon_savings=result.coupon_savings,
        total_payable=result.total_payable,
    )
