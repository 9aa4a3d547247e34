"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger

SERVICE_NAME = "advancepay-gateway"


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = SERVICE_NAME
        log_record["thread"] = record.threadName


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


def log_rollover_submission(
    correlation_id: Optional[str],
    member_account_number: str,
    loan_suffix: int,
    state: str,
    success: bool,
    duration_ms: float,
) -> None:
    """Log structured rollover submission outcome for analysis"""
    logging.getLogger("advancepay.rollover").info(
        "Rollover submission completed",
        extra={
            "correlation_id": correlation_id,
            "member_account_number": member_account_number,
            "loan_suffix": loan_suffix,
            "step": "rollover_submission_complete",
            "state": state,
            "success": success,
            "duration_ms": duration_ms,
        },
    )


def log_loan_decision(
    record_id: Optional[int],
    outcome: str,
    attempts: int,
    failure_kind: Optional[str] = None,
) -> None:
    """Log structured loan decision outcome for analysis"""
    logging.getLogger("advancepay.loan").info(
        "Loan decision completed",
        extra={
            "record_id": record_id,
            "step": "loan_decision_complete",
            "decision_outcome": outcome,
            "poll_attempts": attempts,
            "failure_kind": failure_kind,
        },
    )
