"""Cart checkout - one purchase per vendor, cafeteria orders paid with the daily coupon first"""

from datetime import datetime
from typing import Dict, List, Sequence
from tracksmart.domain.coupons import CouponLedgerService, is_coupon_eligible
from tracksmart.domain.exceptions import InvalidTransactionDataError
from tracksmart.domain.models import CartItem, CheckoutResult, Transaction, UserProfile, VendorOrder


def price_cart(items: Sequence[CartItem]) -> List[VendorOrder]:
    """
    Group cart lines by vendor, keeping first-seen vendor order.

    Raises:
        InvalidTransactionDataError: On empty carts, negative prices,
            non-positive quantities or a vendor listed under two categories
    """
    if not items:
        raise InvalidTransactionDataError("Cart is empty")

    orders: Dict[str, VendorOrder] = {}
    for item in items:
        if item.price < 0:
            raise InvalidTransactionDataError(f"Negative price for {item.name!r}")
        if item.quantity <= 0:
            raise InvalidTransactionDataError(f"Quantity must be positive for {item.name!r}")

        order = orders.setdefault(item.vendor, VendorOrder(vendor=item.vendor, vendor_category=item.vendor_category))
        if order.vendor_category != item.vendor_category:
            raise InvalidTransactionDataError(f"Vendor {item.vendor!r} listed under more than one category")
        order.items.append(item)

    return list(orders.values())


def checkout(
    profile: UserProfile,
    items: Sequence[CartItem],
    coupons: CouponLedgerService,
    now: datetime,
) -> CheckoutResult:
    """
    Turn a cart into purchase transactions.

    Flow:
    1. Group the cart by vendor
    2. Issue today's coupon if any vendor is coupon-eligible
    3. Draw the coupon down once per eligible vendor order
    4. Record a transaction for every order with something paid or a coupon used
    """
    orders = price_cart(items)
    today = now.date()

    # Pay-to-eat plans get no coupon, whatever an earlier plan left stored for today
    coupon = None
    if any(is_coupon_eligible(order.vendor_category) for order in orders):
        coupon = coupons.get_or_create_today_coupon(profile.user_id, profile.meal_plan, today)

    transactions: List[Transaction] = []
    coupon_savings = 0
    for order in orders:
        subtotal = order.subtotal
        amount_owed = subtotal
        coupon_amount = 0

        if coupon is not None and is_coupon_eligible(order.vendor_category) and subtotal > 0:
            _, amount_owed = coupons.draw_down(profile.user_id, subtotal, today)
            coupon_amount = subtotal - amount_owed

        coupon_savings += coupon_amount
        if amount_owed > 0 or coupon_amount > 0:
            transactions.append(
                Transaction(
                    amount=amount_owed,
                    vendor=order.vendor,
                    vendor_category=order.vendor_category,
                    timestamp=now,
                    coupon_used=coupon_amount > 0,
                    coupon_amount=coupon_amount,
                )
            )

    return CheckoutResult(
        transactions=transactions,
        coupon_savings=coupon_savings,
        total_payable=sum(t.amount for t in transactions),
    )
