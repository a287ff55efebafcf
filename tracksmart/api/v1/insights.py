"""GET /v1/users/{user_id}/insights, /summary, /transactions - Spending analysis and history"""

import time
from datetime import datetime, timedelta
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from tracksmart.api.dependencies import get_now, get_request_id
from tracksmart.api.v1.schemas import (
    InsightResponse,
    SummaryResponse,
    TransactionHistoryResponse,
    TransactionSchema,
)
from tracksmart.config import settings
from tracksmart.domain.exceptions import ProfileNotFoundError
from tracksmart.domain.scoring import analyze_spending
from tracksmart.domain.summary import summarize_month
from tracksmart.infrastructure.database.repositories import ProfileRepository, PurchaseRepository
from tracksmart.infrastructure.database.session import get_db
from tracksmart.infrastructure.observability.logging import log_insight
from tracksmart.infrastructure.observability.metrics import record_insight
from tracksmart.utils.date_utils import start_of_month

router = APIRouter()


@router.get("/users/{user_id}/insights", response_model=InsightResponse)
def get_insights(
    user_id: str,
    request: Request,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """
    Score this month's spending against the student's allowance.

    Returns:
        Good/Moderate/Poor status with advice
    """
    start_time = time.time()
    try:
        profile = ProfileRepository(db).require_profile(user_id)
    except ProfileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    # Rules only look at today and the current month
    transactions = PurchaseRepository(db).list_transactions(user_id, since=start_of_month(now))
    insight = analyze_spending(profile, transactions, now)

    duration_ms = (time.time() - start_time) * 1000
    record_insight(insight.status.value)
    log_insight(get_request_id(request), user_id, insight.status.value, insight.advice, duration_ms)

    return InsightResponse(user_id=user_id, status=insight.status, advice=insight.advice)


@router.get("/users/{user_id}/summary", response_model=SummaryResponse)
def get_summary(
    user_id: str,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """Month-to-date totals, budget remaining, coupon savings, trend vs last month and goal progress"""
    try:
        profile = ProfileRepository(db).require_profile(user_id)
    except ProfileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    last_month_start = start_of_month(start_of_month(now) - timedelta(days=1))
    transactions = PurchaseRepository(db).list_transactions(user_id, since=last_month_start)
    summary = summarize_month(transactions, profile.monthly_allowance, now, profile.financial_goal_amount)

    return SummaryResponse(
        user_id=user_id,
        total_spent=summary.total_spent,
        budget_remaining=summary.budget_remaining,
        budget_utilization=summary.budget_utilization,
        coupon_savings=summary.coupon_savings,
        spending_trend=summary.spending_trend,
        category_totals=summary.category_totals,
        goal_savings=summary.goal_savings,
        goal_progress=summary.goal_progress,
    )


@router.get("/users/{user_id}/transactions", response_model=TransactionHistoryResponse)
def get_transactions(
    user_id: str,
    limit: Optional[int] = Query(None, ge=1, le=500, description="Maximum purchases to return"),
    db: Session = Depends(get_db),
):
    """Recent purchases, newest first"""
    transactions = PurchaseRepository(db).list_transactions(
        user_id, limit=limit or settings.transaction_history_limit
    )
    return TransactionHistoryResponse(
        user_id=user_id,
        transactions=[TransactionSchema(**vars(txn)) for txn in transactions],
    )
