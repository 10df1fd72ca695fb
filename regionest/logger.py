"""
Structured logging system for regionest.

Provides centralized logging with console and optional file output,
plus counters for monitoring knowledge-source and cache health.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime
import json


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks metrics for monitoring query and cache behaviour.
    """

    def __init__(
        self,
        name: str = "regionest",
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
        self.level = getattr(logging, str(level).upper(), logging.INFO)
        self.logger.setLevel(self.level)
        self.logger.handlers.clear()
        self.logger.propagate = False

        self.metrics = {
            "api_calls": 0,
            "queries_attempted": 0,
            "queries_successful": 0,
            "queries_failed": 0,
            "errors_by_type": {},
            "cache_hits": 0,
            "cache_misses": 0,
        }

        if enable_console:
            console_handler = logging.StreamHandler(sys.stderr)  # stdout carries CLI JSON
            console_handler.setLevel(self.level)
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

            log_file = log_dir / f"regionest_{datetime.now().strftime('%Y%m%d')}.log"
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

    def _log(self, level: int, message: str, context: dict):
        if context:
            message = f"{message} | Context: {json.dumps(context, ensure_ascii=False, default=str)}"
        self.logger.log(level, message)

    # Metric tracking methods

    def record_api_call(self):
        """Increment the HTTP request counter (one per attempt)."""
        self.metrics["api_calls"] += 1

    def record_query_attempt(self):
        self.metrics["queries_attempted"] += 1

    def record_query_success(self):
        self.metrics["queries_successful"] += 1

    def record_query_failure(self, error_type: str):
        """Record a query that exhausted its retries."""
        self.metrics["queries_failed"] += 1
        errors = self.metrics["errors_by_type"]
        errors[error_type] = errors.get(error_type, 0) + 1

    def record_cache_hit(self):
        self.metrics["cache_hits"] += 1

    def record_cache_miss(self):
        self.metrics["cache_misses"] += 1

    def get_metrics(self) -> dict:
        """Return current metrics with derived rates."""
        metrics_copy = dict(self.metrics)
        metrics_copy["errors_by_type"] = dict(self.metrics["errors_by_type"])

        attempted = metrics_copy["queries_attempted"]
        if attempted > 0:
            metrics_copy["query_success_rate"] = round(
                metrics_copy["queries_successful"] / attempted, 3
            )

        lookups = metrics_copy["cache_hits"] + metrics_copy["cache_misses"]
        if lookups > 0:
            metrics_copy["cache_hit_rate"] = round(
                metrics_copy["cache_hits"] / lookups, 3
            )
        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        self.info("=== Region Estimator Metrics ===")
        self.info(f"API Calls: {metrics['api_calls']}")
        self.info(
            f"Queries: {metrics['queries_successful']}/{metrics['queries_attempted']} "
            f"({metrics.get('query_success_rate', 0) * 100:.1f}% success)"
        )
        self.info(f"Cache: {metrics['cache_hits']} hits, {metrics['cache_misses']} misses")

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "regionest",
    level: Optional[str] = None,
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Level defaults to REGIONEST_LOG_LEVEL (INFO). File output is only
    enabled by default when REGIONEST_LOG_DIR is set.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        if level is None:
            level = os.getenv("REGIONEST_LOG_LEVEL", "INFO")
        log_dir = os.getenv("REGIONEST_LOG_DIR")
        kwargs.setdefault("enable_file", bool(log_dir))
        if log_dir:
            kwargs.setdefault("log_dir", Path(log_dir))
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
