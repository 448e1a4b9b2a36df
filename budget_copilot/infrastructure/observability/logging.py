"""Structured JSON logging for decision tracing"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from budget_copilot.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter stamping every record with time, level and service"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging on the root logger"""
    logger = logging.getLogger()
    logger.setLevel(level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s"))
    logger.addHandler(handler)


def log_decision(
    user_id: str,
    decision_id: str,
    risk_level: str,
    command_type: str,
    excluded_count: int,
    duration_ms: float,
    request_id: Optional[str] = None,
) -> None:
    """Log a computed decision; never includes balances or the basis"""
    logging.getLogger("budget_copilot.decision").info(
        "Decision computed",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "decision_id": decision_id,
            "step": "decision_complete",
            "risk_level": risk_level,
            "command_type": command_type,
            "excluded_entities": excluded_count,
            "duration_ms": duration_ms,
        },
    )
