"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

from inventory_ledger.domain.models import BatchResult

SERVICE_NAME = "inventory-ledger"


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def __init__(self, *args, service_name: str = SERVICE_NAME, **kwargs):
        super().__init__(*args, **kwargs)
        self.service_name = service_name

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = self.service_name


def setup_logging(level: str = "INFO", service_name: str = SERVICE_NAME) -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s",
        service_name=service_name,
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_credit_created(user_id: int, credit_id: int, credit_amount, total_items: int, paid_amount) -> None:
    """Log a newly opened credit account"""
    logging.info(
        "Credit account created",
        extra={
            "user_id": user_id,
            "credit_id": credit_id,
            "step": "credit_created",
            "credit_amount": str(credit_amount),
            "total_items": total_items,
            "paid_amount": str(paid_amount),
        },
    )


def log_payment(user_id: int, credit_id: int, payment_amount, remaining_amount, status: str) -> None:
    """Log a payment journal entry and the resulting balance"""
    logging.info(
        "Payment recorded",
        extra={
            "user_id": user_id,
            "credit_id": credit_id,
            "step": "payment_recorded",
            "payment_amount": str(payment_amount),
            "remaining_amount": str(remaining_amount),
            "status": status,
        },
    )


def log_interest_accrued(credit_id: int, method: str, days: int, interest_amount, updated_balance) -> None:
    """Log one interest calculation"""
    logging.info(
        "Interest accrued",
        extra={
            "credit_id": credit_id,
            "step": "interest_accrued",
            "method": method,
            "days": days,
            "interest_amount": str(interest_amount),
            "updated_balance": str(updated_balance),
        },
    )


def log_interest_batch(trigger: str, result: BatchResult, duration_ms: float) -> None:
    """Log aggregate outcome of an accrual batch"""
    logging.info(
        "Interest batch completed",
        extra={
            "step": "interest_batch_complete",
            "trigger": trigger,
            "run_date": result.run_date.isoformat(),
            "processed": len(result.outcomes),
            "succeeded": result.succeeded,
            "failed": result.failed,
            "duration_ms": duration_ms,
        },
    )
