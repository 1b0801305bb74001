"""Structured JSON logging."""

import logging
import sys
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Mapping

from pythonjsonlogger import jsonlogger

from dnsbl_lookup.models.request_context import NOT_LISTED


# Global run ID for correlation across log entries
RUN_ID = str(uuid.uuid4())


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter that adds run_id and standardized fields."""

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        """Add custom fields to log record.

        Args:
            log_record: The log record to modify.
            record: The original logging.LogRecord.
            message_dict: Additional fields from the logging call.
        """
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["run_id"] = RUN_ID
        log_record["level"] = record.levelname
        log_record["logger"] = record.name


def setup_logging(verbose: bool = False) -> logging.Logger:
    """Configure structured JSON logging for the application.

    Args:
        verbose: Log at DEBUG instead of INFO.

    Returns:
        logging.Logger: Configured root logger.
    """
    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    # Remove existing handlers to avoid duplicates
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    json_handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(message)s",  # Message field
        timestamp=True,
    )
    json_handler.setFormatter(formatter)
    logger.addHandler(json_handler)

    return logger


def log_lookup_result(payload: Mapping[str, Any]) -> None:
    """Log structured per-address lookup result.

    Failed lookups are logged at WARNING, everything else at INFO.

    Args:
        payload: Completion event payload as delivered to the caller.
    """
    logger = logging.getLogger(__name__)
    address = payload.get("address")

    if payload.get("error") is not None:
        logger.warning(
            f"Lookup of {address} failed: {payload['error']}",
            extra={"address": address, "zone": payload.get("zone"), "error": payload["error"]},
        )
        return

    listed = payload.get("response") not in (None, NOT_LISTED)
    logger.info(
        f"{address} is listed" if listed else f"{address} is okay",
        extra={
            "address": address,
            "zone": payload.get("zone"),
            "listed": listed,
            "response": payload.get("response"),
            "reason": payload.get("reason"),
        },
    )


def log_rejected_request(reason: str, fields: Mapping[str, Any]) -> None:
    """Log a lookup request that failed validation.

    Args:
        reason: Validation failure message.
        fields: Raw request fields as received.
    """
    logger = logging.getLogger(__name__)
    logger.warning(
        f"Lookup request rejected: {reason}",
        extra={
            "reason": reason,
            "request_event": fields.get("event"),
            "request_address": fields.get("address"),
        },
    )
