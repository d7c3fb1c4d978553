"""Logging setup and structured logging for search strategies."""

import logging
import sys
from typing import Any

logger = logging.getLogger("hoteldocs.app.search")


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the service."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)-8s %(name)s - %(message)s",
        stream=sys.stderr,
    )


class StructuredSearchLogger:
    """Structured logger for strategy attempts."""

    def log_attempt(
        self,
        strategy: str,
        hotel_id: str,
        outcome: str,
        latency_ms: float,
        rows: int = 0,
        error_reason: str | None = None,
    ) -> None:
        """Log one strategy attempt with structured data."""
        log_data: dict[str, Any] = {
            "strategy": strategy,
            "hotel_id": hotel_id,
            "outcome": outcome,
            "latency_ms": round(latency_ms, 2),
            "rows": rows,
        }

        if error_reason:
            log_data["error_reason"] = error_reason

        log_msg = f"Search strategy: {strategy} - {outcome}"

        if outcome in ("success", "empty"):
            logger.info(log_msg, extra={"structured": log_data})
        else:
            logger.warning(log_msg, extra={"structured": log_data})
