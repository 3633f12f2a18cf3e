"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger.json import JsonFormatter

from dealer_gateway.domain.models import FinancingQuote, ScoreResult
from dealer_gateway.utils.formatting import round_currency


class CustomJsonFormatter(JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = "dealer-gateway"


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


def log_quote(request_id: str, quote: FinancingQuote, duration_ms: float) -> None:
    """Log structured quote outcome for analysis"""
    logging.info(
        "Financing quote issued",
        extra={
            "request_id": request_id,
            "lead_id": quote.lead_id,
            "step": "quote_complete",
            "model": quote.model,
            "financing_type": quote.financing_type,
            "from_campaign": quote.from_campaign,
            "term_months": quote.term_months,
            "monthly_payment": str(round_currency(quote.monthly_payment)),
            "duration_ms": duration_ms,
        },
    )


def log_quote_rejected(request_id: str, model: str | None, financing_type: str | None, code: str, message: str) -> None:
    """Log a validation failure; these are expected and not errors"""
    logging.info(
        "Financing request rejected",
        extra={
            "request_id": request_id,
            "step": "quote_rejected",
            "model": model,
            "financing_type": financing_type,
            "error_code": code,
            "error_message": message,
        },
    )


def log_score_adjustment(request_id: str, lead_id: str, event_type: str, previous_score: int, result: ScoreResult) -> None:
    """Log structured score change"""
    logging.info(
        "Lead score adjusted",
        extra={
            "request_id": request_id,
            "lead_id": lead_id,
            "step": "score_adjusted",
            "event_type": event_type,
            "previous_score": previous_score,
            "new_score": result.new_score,
            "delta": result.delta,
            "tier": result.new_tier.value,
        },
    )
