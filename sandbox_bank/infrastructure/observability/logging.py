"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger

from sandbox_bank.config import settings


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

    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_provisioning(
    request_id: str,
    user_id: str,
    tier: str,
    transactions_generated: int,
    cards_issued: int,
    duration_ms: float,
) -> None:
    """Log structured provisioning outcome"""
    logging.info(
        "Account provisioned",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "step": "provisioning_complete",
            "spending_tier": tier,
            "transactions_generated": transactions_generated,
            "cards_issued": cards_issued,
            "duration_ms": duration_ms,
        },
    )


def log_transfer_execution(
    transfer_id: str,
    confirmation_code: str,
    outcome: str,
    execution_count: int,
    error: Optional[str] = None,
) -> None:
    """Log one scheduled transfer run"""
    level = logging.WARNING if outcome == "failed" else logging.INFO
    logging.log(
        level,
        "Scheduled transfer executed",
        extra={
            "transfer_id": transfer_id,
            "confirmation_code": confirmation_code,
            "step": "transfer_execution",
            "outcome": outcome,
            "execution_count": execution_count,
            "error": error,
        },
    )
