"""Monthly spending summary for the dashboard"""

from datetime import datetime
from typing import Dict, Optional, Sequence
from tracksmart.domain.models import MonthlySummary, Transaction, VendorCategory
from tracksmart.utils.date_utils import align_to, previous_month


def summarize_month(
    transactions: Sequence[Transaction],
    monthly_allowance: int,
    now: datetime,
    goal_amount: Optional[int] = None,
) -> MonthlySummary:
    """
    Totals for now's calendar month, with the trend against the month before.

    Trend is the percentage change in spend; when last month had no spend it
    is 100 if anything was spent this month, else 0.

    Goal savings are the allowance left this month (never negative), and goal
    progress is that as a percentage of goal_amount, capped at 100. Both are
    None unless goal_amount is positive.
    """
    last_year, last_month = previous_month(now.date())

    this_month = []
    total_spent_last_month = 0
    for txn in transactions:
        ts = align_to(txn.timestamp, now)
        if (ts.year, ts.month) == (now.year, now.month):
            this_month.append(txn)
        elif (ts.year, ts.month) == (last_year, last_month):
            total_spent_last_month += txn.amount

    total_spent = sum(t.amount for t in this_month)

    if total_spent_last_month > 0:
        spending_trend = (total_spent - total_spent_last_month) / total_spent_last_month * 100
    elif total_spent > 0:
        spending_trend = 100.0
    else:
        spending_trend = 0.0

    category_totals: Dict[VendorCategory, int] = {}
    for txn in this_month:
        category_totals[txn.vendor_category] = category_totals.get(txn.vendor_category, 0) + txn.amount

    goal_savings = None
    goal_progress = None
    if goal_amount is not None and goal_amount > 0:
        goal_savings = max(0, monthly_allowance - total_spent)
        goal_progress = round(min(goal_savings * 100 / goal_amount, 100.0), 2)

    return MonthlySummary(
        total_spent=total_spent,
        budget_remaining=monthly_allowance - total_spent,
        budget_utilization=total_spent * 100 / monthly_allowance if monthly_allowance > 0 else 0.0,
        coupon_savings=sum(t.coupon_amount for t in this_month if t.coupon_used),
        spending_trend=round(spending_trend, 2),
        category_totals=category_totals,
        goal_savings=goal_savings,
        goal_progress=goal_progress,
    )
