"""Prometheus metrics for spending status, coupon usage and checkout volume"""

from prometheus_client import Counter, Histogram

# Insight metrics
insight_status_counter = Counter(
    "tracksmart_insight_total",
    "Spending insights computed",
    ["status"],  # Good | Moderate | Poor
)

# Coupon metrics
coupon_lookup_counter = Counter(
    "tracksmart_coupon_lookup_total",
    "Daily coupon lookups by meal plan",
    ["meal_plan", "available"],  # available: true | false
)

coupon_redeemed_counter = Counter(
    "tracksmart_coupon_redeemed_naira_total",
    "Coupon value applied to purchases",
)

coupon_contention_counter = Counter(
    "tracksmart_coupon_contention_total",
    "Coupon updates abandoned after exhausting compare-and-set retries",
)

# Checkout metrics
checkout_counter = Counter(
    "tracksmart_checkout_total",
    "Checkouts processed",
    ["coupon"],  # used | unused
)

checkout_amount_histogram = Histogram(
    "tracksmart_checkout_payable_naira",
    "Amount payable per checkout after coupon",
    buckets=[0, 500, 1000, 2500, 5000, 10000, 25000, 50000],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_insight(status: str) -> None:
    insight_status_counter.labels(status=status).inc()


def record_checkout(coupon_savings: int, total_payable: int) -> None:
    """Record checkout volume and how much of it the coupon covered"""
    checkout_counter.labels(coupon="used" if coupon_savings > 0 else "unused").inc()
    checkout_amount_histogram.observe(total_payable)
    if coupon_savings > 0:
        coupon_redeemed_counter.inc(coupon_savings)
