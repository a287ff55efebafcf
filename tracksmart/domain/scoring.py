"""Spending risk scoring - rule-based point deduction over a student's purchases"""

from datetime import datetime
from typing import Dict, List, Optional, Sequence
from tracksmart.domain.models import (
    SpendingFeatures,
    SpendingInsight,
    SpendingStatus,
    Transaction,
    UserProfile,
    VendorCategory,
)
from tracksmart.utils.date_utils import align_to, is_same_day, start_of_month

DAYS_PER_BUDGET_MONTH = 30

NO_HISTORY_ADVICE = "Start making transactions to get personalized spending advice."
HIGH_DAILY_RISK_ADVICE = "You are at high risk of exceeding your daily budget. Limit further purchases."
MEDIUM_DAILY_RISK_ADVICE = "You are at medium risk of overspending today. Be mindful of your purchases."
MONTHLY_PACE_ADVICE = (
    "You are spending your monthly allowance much faster than expected. Consider setting stricter limits."
)
ORDER_FREQUENCY_ADVICE = "Multiple small purchases can add up quickly. Try to consolidate your orders."

GENERIC_ADVICE = {
    SpendingStatus.GOOD: "Your spending is on track. Keep up the good work!",
    SpendingStatus.MODERATE: "Your spending is okay, but there is room for improvement.",
    SpendingStatus.POOR: "You are at high risk of overspending. It is critical to review your purchases now.",
}


def extract_spending_features(
    profile: UserProfile,
    transactions: Sequence[Transaction],
    now: datetime,
) -> SpendingFeatures:
    """
    Derive the daily and monthly metrics the rules work on.

    Month transactions are those at or after 00:00 on the 1st of now's month.
    Category ties resolve to the category seen first in transaction order.
    """
    allowance = profile.monthly_allowance
    daily_budget = allowance / DAYS_PER_BUDGET_MONTH if allowance > 0 else 0.0

    todays = [t for t in transactions if is_same_day(t.timestamp, now)]
    month_start = start_of_month(now)
    monthly = [t for t in transactions if align_to(t.timestamp, now) >= month_start]

    monthly_spending = sum(t.amount for t in monthly)
    budget_utilization = monthly_spending / allowance * 100 if allowance > 0 else 0.0

    # dicts keep insertion order, so max() returns the first-encountered category on ties
    category_spending: Dict[VendorCategory, int] = {}
    for txn in monthly:
        category_spending[txn.vendor_category] = category_spending.get(txn.vendor_category, 0) + txn.amount

    top_category: Optional[VendorCategory] = None
    if category_spending:
        top_category = max(category_spending, key=category_spending.__getitem__)

    return SpendingFeatures(
        daily_budget=daily_budget,
        todays_spending=sum(t.amount for t in todays),
        todays_order_count=len(todays),
        monthly_spending=monthly_spending,
        budget_utilization=budget_utilization,
        category_spending=category_spending,
        top_category=top_category,
    )


def calculate_spending_score(features: SpendingFeatures, now: datetime) -> tuple[int, List[str]]:
    """
    Apply the deduction rules to a perfect score of 100.

    Rules (each fires independently):
    - Daily utilization: >80% of daily budget -40, else >50% -20
    - End-of-day forecast: projected spend >110% of daily budget -15
    - Monthly pace: utilization more than 25 points ahead of month progress -25
    - Category concentration: one category >60% of the month -10
    - Order frequency: more than 5 orders today -10

    Daily rules are skipped when there is no daily budget (allowance <= 0).

    Returns: (score, advice) with advice deduplicated in insertion order
    """
    score = 100
    advice: List[str] = []

    def add_advice(message: str) -> None:
        if message not in advice:
            advice.append(message)

    if features.daily_budget > 0:
        daily_utilization = features.todays_spending / features.daily_budget * 100
        if daily_utilization > 80:
            score -= 40
            add_advice(HIGH_DAILY_RISK_ADVICE)
        elif daily_utilization > 50:
            score -= 20
            add_advice(MEDIUM_DAILY_RISK_ADVICE)

        hours_passed = now.hour + 1  # 1..24
        forecast = features.todays_spending / hours_passed * 24
        if forecast > features.daily_budget * 1.1:
            score -= 15
            overage = forecast - features.daily_budget
            add_advice(f"At your current rate, you may exceed your daily budget by ₦{overage:,.0f}.")

    month_progress = now.day / DAYS_PER_BUDGET_MONTH * 100
    if features.budget_utilization > month_progress + 25:
        score -= 25
        add_advice(MONTHLY_PACE_ADVICE)

    if features.top_category is not None and features.monthly_spending > 0:
        share = features.category_spending[features.top_category] / features.monthly_spending * 100
        if share > 60:
            score -= 10
            add_advice(
                f"{features.top_category.value} purchases are the main contributor to your spending. "
                "Review if this can be optimized."
            )

    if features.todays_order_count > 5:
        score -= 10
        add_advice(ORDER_FREQUENCY_ADVICE)

    return score, advice


def determine_status(score: float) -> SpendingStatus:
    """
    Map score to status bucket.

    - 80+:   Good
    - 50-79: Moderate
    - <50:   Poor
    """
    if score >= 80:
        return SpendingStatus.GOOD
    elif score >= 50:
        return SpendingStatus.MODERATE
    else:
        return SpendingStatus.POOR


def analyze_spending(
    profile: Optional[UserProfile],
    transactions: Sequence[Transaction],
    now: datetime,
) -> SpendingInsight:
    """
    Main entry point: score a student's spending and collect advice.

    Never raises for empty or degenerate input; an empty history is Good with
    a prompt to start transacting. now must be captured once by the caller.
    """
    if profile is None or not transactions:
        return SpendingInsight(status=SpendingStatus.GOOD, advice=[NO_HISTORY_ADVICE])

    features = extract_spending_features(profile, transactions, now)
    score, advice = calculate_spending_score(features, now)
    status = determine_status(score)

    if not advice:
        advice.append(GENERIC_ADVICE[status])

    return SpendingInsight(status=status, advice=advice)
