"""Structured logging for search and indexing."""

import logging
from typing import Any
from uuid import UUID

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once for the application process."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=_LOG_FORMAT)


class StructuredSearchLogger:
    """Structured logger for search, indexing and backfill events."""

    def log_search(
        self,
        owner_id: UUID,
        kind: str,
        outcome: str,
        latency_ms: float,
        result_count: int = 0,
        error_reason: str | None = None,
    ) -> None:
        """Log a search request outcome."""
        log_data: dict[str, Any] = {
            "owner_id": str(owner_id),
            "kind": kind,
            "outcome": outcome,
            "latency_ms": round(latency_ms, 2),
            "result_count": result_count,
        }

        if error_reason:
            log_data["error_reason"] = error_reason

        log_msg = f"Search: {kind} - {outcome}"

        if outcome in ("success", "needs_indexing"):
            logger.info(log_msg, extra={"structured": log_data})
        else:
            logger.warning(log_msg, extra={"structured": log_data})

    def log_index(
        self,
        owner_id: UUID,
        operation: str,
        outcome: str,
        *,
        document_id: UUID | None = None,
        annotation_id: UUID | None = None,
        count: int | None = None,
        error_reason: str | None = None,
    ) -> None:
        """Log an indexing operation outcome."""
        log_data: dict[str, Any] = {
            "owner_id": str(owner_id),
            "operation": operation,
            "outcome": outcome,
        }
        if document_id is not None:
            log_data["document_id"] = str(document_id)
        if annotation_id is not None:
            log_data["annotation_id"] = str(annotation_id)
        if count is not None:
            log_data["count"] = count
        if error_reason:
            log_data["error_reason"] = error_reason

        log_msg = f"Index: {operation} - {outcome}"

        if outcome == "error":
            logger.warning(log_msg, extra={"structured": log_data})
        else:
            logger.info(log_msg, extra={"structured": log_data})
