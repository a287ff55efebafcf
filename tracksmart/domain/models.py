"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Optional


class MealPlan(str, Enum):
    TWO_MEAL = "two-meal"
    THREE_MEAL = "three-meal"
    PAY_TO_EAT = "pay-to-eat"


class VendorCategory(str, Enum):
    SCHOOL_CAFETERIA = "School Cafeteria"
    PRIVATE_FOOD_VENDORS = "Private Food Vendors"
    GADGET_VENDORS = "Gadget Vendors"
    HEALTH_UTILITY_VENDORS = "Health & Utility Vendors"


class SpendingStatus(str, Enum):
    GOOD = "Good"
    MODERATE = "Moderate"
    POOR = "Poor"


@dataclass
class UserProfile:
    """Student account settings relevant to spending"""

    user_id: str
    monthly_allowance: int
    meal_plan: MealPlan
    financial_goal: str = ""
    financial_goal_amount: Optional[int] = None


@dataclass
class Transaction:
    """Completed purchase from a campus vendor"""

    amount: int  # Amount paid after coupon discount
    vendor: str
    vendor_category: VendorCategory
    timestamp: datetime
    coupon_used: bool = False
    coupon_amount: int = 0
    transaction_id: Optional[str] = None


@dataclass
class SpendingFeatures:
    """Derived spending metrics used for scoring"""

    daily_budget: float
    todays_spending: int
    todays_order_count: int
    monthly_spending: int
    budget_utilization: float
    category_spending: Dict[VendorCategory, int]
    top_category: Optional[VendorCategory]


@dataclass
class SpendingInsight:
    """Output of spending analysis"""

    status: SpendingStatus
    advice: List[str]


@dataclass
class CouponLedger:
    """Daily cafeteria coupon balance for one user"""

    initial_value: int
    value: int
    is_valid: bool
    date: date
    version: int = 0  # Store revision, bumped on every write

    def to_dict(self) -> dict:
        return {
            "initialValue": self.initial_value,
            "value": self.value,
            "isValid": self.is_valid,
            "date": self.date.isoformat(),
        }


@dataclass
class CartItem:
    """Single line in a checkout cart"""

    name: str
    price: int
    quantity: int
    vendor: str
    vendor_category: VendorCategory

    @property
    def subtotal(self) -> int:
        return self.price * self.quantity


@dataclass
class VendorOrder:
    """Cart lines grouped under one vendor"""

    vendor: str
    vendor_category: VendorCategory
    items: List[CartItem] = field(default_factory=list)

    @property
    def subtotal(self) -> int:
        return sum(item.subtotal for item in self.items)


@dataclass
class CheckoutResult:
    """Outcome of a checkout: recorded transactions and totals"""

    transactions: List[Transaction]
    coupon_savings: int
    total_payable: int


@dataclass
class MonthlySummary:
    """Dashboard figures for the current month"""

    total_spent: int
    budget_remaining: int
    budget_utilization: float
    coupon_savings: int
    spending_trend: float
    category_totals: Dict[VendorCategory, int]
    goal_savings: Optional[int] = None  # None without a goal amount
    goal_progress: Optional[float] = None
