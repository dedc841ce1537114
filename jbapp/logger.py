"""
Structured logging system for JBApp.

Provides centralized logging with console and file outputs, plus
counters for gateway operations (rows written, queries, constraint
violations) so a test run or server session can be summarised.
"""

import logging
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime
import json


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks metrics for persistence operations.
    """

    def __init__(
        self,
        name: str = "jbapp",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """
        Initialize the structured logger.

        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files (default: logs/)
            enable_file: Write logs to file
            enable_console: Output logs to console
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper()))
        self.logger.handlers.clear()

        self.metrics = {
            "records_created": 0,
            "records_updated": 0,
            "records_deleted": 0,
            "queries": 0,
            "violations_by_kind": {},
            "operations_by_table": {},
        }

        if enable_console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(getattr(logging, level.upper()))
            console_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

        if enable_file:
            if log_dir is None:
                log_dir = Path("logs")
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"jbapp_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # Always log everything to file
            file_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)

    def debug(self, message: str, **kwargs):
        """Log debug message with optional context."""
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        """Log info message with optional context."""
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message with optional context."""
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        """Log error message with optional context."""
        self._log(logging.ERROR, message, kwargs)

    def critical(self, message: str, **kwargs):
        """Log critical message with optional context."""
        self._log(logging.CRITICAL, message, kwargs)

    def _log(self, level: int, message: str, context: dict):
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    # Metric tracking methods

    def _count_table(self, table: str, operation: str):
        ops = self.metrics["operations_by_table"].setdefault(table, {})
        ops[operation] = ops.get(operation, 0) + 1

    def record_create(self, table: str, count: int = 1):
        """Record rows inserted into a table."""
        self.metrics["records_created"] += count
        self._count_table(table, "create")

    def record_update(self, table: str, count: int = 1):
        """Record rows updated in a table."""
        self.metrics["records_updated"] += count
        self._count_table(table, "update")

    def record_delete(self, table: str, count: int = 1):
        """Record rows deleted from a table."""
        self.metrics["records_deleted"] += count
        self._count_table(table, "delete")

    def record_query(self, table: str):
        """Record a read against a table."""
        self.metrics["queries"] += 1
        self._count_table(table, "query")

    def record_violation(self, kind: str):
        """Record a rejected write by constraint kind."""
        if kind not in self.metrics["violations_by_kind"]:
            self.metrics["violations_by_kind"][kind] = 0
        self.metrics["violations_by_kind"][kind] += 1

    def get_metrics(self) -> dict:
        """Return a copy of the current metrics."""
        return json.loads(json.dumps(self.metrics))

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        self.info("=== Persistence Session Metrics ===")
        self.info(
            f"Rows: {metrics['records_created']} created, "
            f"{metrics['records_updated']} updated, "
            f"{metrics['records_deleted']} deleted"
        )
        self.info(f"Queries: {metrics['queries']}")

        if metrics["operations_by_table"]:
            self.info("Operations by table:")
            for table, ops in metrics["operations_by_table"].items():
                summary = ", ".join(f"{op}={n}" for op, n in sorted(ops.items()))
                self.info(f"  {table}: {summary}")

        if metrics["violations_by_kind"]:
            self.info("Constraint violations:")
            for kind, count in metrics["violations_by_kind"].items():
                self.info(f"  {kind}: {count}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "jbapp",
    level: Optional[str] = None,
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Level and file logging default to the JBAPP_LOG_LEVEL and JBAPP_LOG_DIR
    settings; file logging is off unless a log directory is configured.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        from .config import load_settings

        settings = load_settings(read_dotenv=False)
        if level is None:
            level = settings.log_level
        kwargs.setdefault("log_dir", settings.log_dir)
        kwargs.setdefault("enable_file", settings.log_dir is not None)
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
