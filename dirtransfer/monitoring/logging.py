"""
Structured logging for directory transfers

Provides structured logging utilities for tracing directory transfer runs,
with the run's context (transfer id, bucket, prefix, current item) propagated
through a context variable so concurrently running items log their own key.
"""

import json
import logging
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

from dirtransfer.types import TransferDirection, TransferStatus

# Context variables for propagating transfer context
transfer_context: ContextVar[dict[str, Any]] = ContextVar("transfer_context", default={})


class TransferJsonFormatter(logging.Formatter):
    """
    JSON formatter for transfer logs with structured fields
    """

    # Fields to extract from log record if present
    _EXTRA_FIELDS = (
        "transfer_id",
        "direction",
        "bucket",
        "prefix",
        "item_key",
        "size",
        "duration_ms",
        "error_type",
    )

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON"""
        log_entry = self._build_base_entry(record)
        self._add_transfer_context(log_entry)
        self._add_record_extras(log_entry, record)
        return json.dumps(log_entry, default=str)

    def _build_base_entry(self, record: logging.LogRecord) -> dict[str, Any]:
        """Build base log entry with standard fields."""
        return {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

    def _add_transfer_context(self, log_entry: dict[str, Any]) -> None:
        """Add transfer context to log entry if available."""
        context = transfer_context.get({})
        if context:
            log_entry.update(
                {
                    "transfer_id": context.get("transfer_id"),
                    "direction": context.get("direction"),
                    "bucket": context.get("bucket"),
                    "prefix": context.get("prefix"),
                    "item_key": context.get("item_key"),
                }
            )

    def _add_record_extras(self, log_entry: dict[str, Any], record: logging.LogRecord) -> None:
        """Add extra fields from log record."""
        for field in self._EXTRA_FIELDS:
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)


class TransferContextFilter(logging.Filter):
    """
    Logging filter that adds transfer context to log records
    """

    def filter(self, record: logging.LogRecord) -> bool:
        context = transfer_context.get({})

        record.transfer_id = context.get("transfer_id", "unknown")
        record.bucket = context.get("bucket", "")
        record.prefix = context.get("prefix", "")
        record.item_key = context.get("item_key", "")

        return True


class TransferLogger:
    """
    Transfer-aware logger with automatic context propagation
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)
        self.logger.addFilter(TransferContextFilter())

    def set_transfer_context(
        self,
        transfer_id: str,
        direction: TransferDirection,
        bucket: str,
        prefix: str,
        item_key: str | None = None,
    ) -> None:
        """Set transfer context for current execution"""
        transfer_context.set(
            {
                "transfer_id": transfer_id,
                "direction": direction.value,
                "bucket": bucket,
                "prefix": prefix,
                "item_key": item_key,
            }
        )

    def set_item_context(self, item_key: str) -> None:
        """Attach the current item's key to the context of this task"""
        context = dict(transfer_context.get({}))
        context["item_key"] = item_key
        transfer_context.set(context)

    def clear_transfer_context(self) -> None:
        transfer_context.set({})

    def transfer_started(
        self,
        transfer_id: str,
        direction: TransferDirection,
        bucket: str,
        prefix: str,
        local_directory: str,
    ) -> None:
        """Log run start"""
        self.set_transfer_context(transfer_id, direction, bucket, prefix)
        self.logger.info(
            f"Directory {direction.value} started: s3://{bucket}/{prefix} <-> {local_directory}",
            extra={
                "transfer_id": transfer_id,
                "direction": direction.value,
                "bucket": bucket,
                "prefix": prefix,
            },
        )

    def listing_completed(self, total_files: int, total_bytes: int, legacy: bool) -> None:
        self.logger.info(
            f"Listing completed: {total_files} files, {total_bytes} bytes"
            + (" (legacy listing)" if legacy else ""),
            extra={"total_files": total_files, "total_bytes": total_bytes},
        )

    def transfer_finished(
        self,
        transfer_id: str,
        direction: TransferDirection,
        status: TransferStatus,
        duration_ms: float,
        files_transferred: int,
        total_files: int,
    ) -> None:
        """Log run completion"""
        log_level = logging.INFO if status == TransferStatus.SUCCEEDED else logging.WARNING

        self.logger.log(
            log_level,
            f"Directory {direction.value} finished - Status: {status.value} "
            f"({files_transferred}/{total_files} files)",
            extra={
                "transfer_id": transfer_id,
                "direction": direction.value,
                "status": status.value,
                "duration_ms": duration_ms,
                "files_transferred": files_transferred,
                "total_files": total_files,
            },
        )

    def item_started(self, item_key: str, size: int) -> None:
        self.set_item_context(item_key)
        self.logger.debug(
            f"Item started: {item_key}",
            extra={"item_key": item_key, "size": size},
        )

    def item_completed(self, item_key: str, size: int, duration_ms: float) -> None:
        self.logger.debug(
            f"Item completed: {item_key}",
            extra={"item_key": item_key, "size": size, "duration_ms": duration_ms},
        )

    def item_failed(self, item_key: str, error: BaseException) -> None:
        """Log item failure"""
        self.logger.error(
            f"Item failed: {item_key} - {error!s}",
            extra={
                "item_key": item_key,
                "error_type": type(error).__name__,
                "error_message": str(error),
            },
        )


def setup_transfer_logging(
    log_level: str = "INFO", json_format: bool = True, include_console: bool = True
) -> TransferLogger:
    """
    Set up structured logging for directory transfers

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        json_format: Use JSON formatting for structured logs
        include_console: Include console handler

    Returns:
        Configured TransferLogger instance
    """
    root_logger = logging.getLogger("dirtransfer")
    root_logger.setLevel(getattr(logging, log_level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if include_console:
        console_handler = logging.StreamHandler()

        if json_format:
            console_handler.setFormatter(TransferJsonFormatter())
        else:
            formatter = logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - [%(transfer_id)s:%(item_key)s] - %(message)s"
            )
            console_handler.setFormatter(formatter)
            console_handler.addFilter(TransferContextFilter())

        root_logger.addHandler(console_handler)

    return TransferLogger("dirtransfer.transfer")


# Default transfer logger instance
transfer_logger = TransferLogger("dirtransfer.transfer")
