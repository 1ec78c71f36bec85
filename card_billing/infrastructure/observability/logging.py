"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger
from card_billing.config import settings


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

    # SQL echo is too noisy for INFO
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def log_allocation(
    request_id: str,
    user_id: str,
    card_id: str,
    value_cents: int,
    installments: int,
    duration_ms: float,
) -> None:
    """Log structured purchase allocation outcome"""
    logging.info(
        "Purchase allocated",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "card_id": card_id,
            "step": "allocation_complete",
            "value_cents": value_cents,
            "installments": installments,
            "duration_ms": duration_ms,
        },
    )


def log_payment(
    request_id: str,
    user_id: str,
    invoice_id: str,
    payment_cents: int,
    status: str,
) -> None:
    """Log structured invoice payment outcome"""
    logging.info(
        "Invoice payment applied",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "invoice_id": invoice_id,
            "step": "payment_complete",
            "payment_cents": payment_cents,
            "invoice_status": status,
        },
    )
