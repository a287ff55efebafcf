"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, List
from pythonjsonlogger import jsonlogger
from tracksmart.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_insight(request_id: str, user_id: str, status: str, advice: List[str], duration_ms: float) -> None:
    """Log structured insight outcome for analysis"""
    logging.info(
        "Insight computed",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "step": "insight_complete",
            "spending_status": status,
            "advice_count": len(advice),
            "duration_ms": duration_ms,
        },
    )


def log_checkout(
    request_id: str,
    user_id: str,
    order_count: int,
    coupon_savings: int,
    total_payable: int,
    duration_ms: float,
) -> None:
    """Log structured checkout outcome"""
    logging.info(
        "Checkout completed",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "step": "checkout_complete",
            "order_count": order_count,
            "coupon_savings": coupon_savings,
            "total_payable": total_payable,
            "duration_ms": duration_ms,
        },
    )
