"""Pydantic schemas for API request/response validation"""

from datetime import date, datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from tracksmart.domain.models import MealPlan, SpendingStatus, VendorCategory


class ProfileRequest(BaseModel):
    """Request body for PUT /v1/users/{user_id}/profile"""

    monthly_allowance: int = Field(..., ge=0, description="Monthly allowance in naira")
    meal_plan: MealPlan
    financial_goal: str = Field("", max_length=500)
    financial_goal_amount: Optional[int] = Field(None, ge=0)


class ProfileResponse(ProfileRequest):
    """Stored spending profile"""

    user_id: str


class InsightResponse(BaseModel):
    """Response for GET /v1/users/{user_id}/insights"""

    user_id: str
    status: SpendingStatus
    advice: List[str]


class TransactionSchema(BaseModel):
    """Single recorded purchase"""

    transaction_id: Optional[str] = None
    amount: int
    vendor: str
    vendor_category: VendorCategory
    timestamp: datetime
    coupon_used: bool
    coupon_amount: int


class TransactionHistoryResponse(BaseModel):
    """Response for GET /v1/users/{user_id}/transactions"""

    user_id: str
    transactions: List[TransactionSchema]


class SummaryResponse(BaseModel):
    """Response for GET /v1/users/{user_id}/summary"""

    user_id: str
    total_spent: int
    budget_remaining: int
    budget_utilization: float
    coupon_savings: int
    spending_trend: float
    category_totals: Dict[VendorCategory, int]
    goal_savings: Optional[int] = None
    goal_progress: Optional[float] = None


class CouponSchema(BaseModel):
    """Daily coupon in its stored wire shape (camelCase keys)"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    initial_value: int
    value: int
    is_valid: bool
    date: date


class CouponResponse(BaseModel):
    """Response for GET /v1/users/{user_id}/coupon; no coupon on pay-to-eat plans"""

    user_id: str
    available: bool
    coupon: Optional[CouponSchema] = None


class CartItemSchema(BaseModel):
    """Single cart line"""

    name: str = Field(..., min_length=1)
    price: int = Field(..., ge=0, description="Unit price in naira")
    quantity: int = Field(..., gt=0)
    vendor: str = Field(..., min_length=1)
    vendor_category: VendorCategory


class CheckoutRequest(BaseModel):
    """Request body for POST /v1/users/{user_id}/checkout"""

    items: List[CartItemSchema] = Field(..., min_length=1)


class CheckoutResponse(BaseModel):
    """Response for POST /v1/users/{user_id}/checkout"""

    user_id: str
    transactions: List[TransactionSchema]
    coupon_savings: int
    total_payable: int
