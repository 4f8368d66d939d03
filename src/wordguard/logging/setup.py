"""Logging configuration for wordguard.

The library itself only creates module loggers; ``setup_logging`` is for
applications that want wordguard's structured output. Every record made
while a scan is running carries that scan's id, so the log lines of one
batch can be grouped together.
"""

import logging
import os
import sys
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import IO, Any, Iterator, Optional

from pythonjsonlogger.json import JsonFormatter


# Id of the scan running in the current context, "" outside of one
scan_id_var: ContextVar[str] = ContextVar("scan_id", default="")

NO_SCAN = "-"

TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s scan=%(scan_id)s %(message)s"
JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


class ScanContextFilter(logging.Filter):
    """Stamp records with the id of the running scan."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.scan_id = scan_id_var.get() or NO_SCAN
        return True


class CustomJsonFormatter(JsonFormatter):
    """JSON formatter for scan logs.

    Emits ``timestamp``, ``level``, ``logger``, ``service`` and, inside a
    scan, ``scan_id``. Extra fields passed to the logging call (match
    counts, previews, word counts) are kept as they are.
    """

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        if "levelname" in log_record:
            log_record["level"] = log_record.pop("levelname")
        if "asctime" in log_record:
            log_record["timestamp"] = log_record.pop("asctime")
        if "name" in log_record:
            log_record["logger"] = log_record.pop("name")

        log_record["service"] = "wordguard"

        scan_id = getattr(record, "scan_id", NO_SCAN)
        if scan_id and scan_id != NO_SCAN:
            log_record["scan_id"] = scan_id
        else:
            log_record.pop("scan_id", None)


def setup_logging(
    level: Optional[str] = None,
    json_format: Optional[bool] = None,
    stream: Optional[IO[str]] = None,
) -> None:
    """Configure root logging for applications embedding wordguard.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to env var
               WORDGUARD_LOG_LEVEL or INFO.
        json_format: Whether to use JSON format. Defaults to env var
                     WORDGUARD_LOG_FORMAT == 'json' or True.
        stream: Where log lines go. Defaults to stdout.
    """
    if level is None:
        level = os.getenv("WORDGUARD_LOG_LEVEL", "INFO").upper()
    if json_format is None:
        json_format = os.getenv("WORDGUARD_LOG_FORMAT", "json").lower() == "json"

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    handler.setLevel(level)
    handler.addFilter(ScanContextFilter())

    if json_format:
        formatter: logging.Formatter = CustomJsonFormatter(
            fmt=JSON_FORMAT,
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )
    else:
        formatter = logging.Formatter(fmt=TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the specified name (typically ``__name__``)."""
    return logging.getLogger(name)


def new_scan_id() -> str:
    """Short random id for a scan."""
    return uuid.uuid4().hex[:12]


@contextmanager
def scan_context(scan_id: Optional[str] = None) -> Iterator[str]:
    """Run a block as one scan.

    Log records made inside the block carry ``scan_id`` (a fresh one when
    not given). The previous id is restored on exit, so scans nest.

    Yields:
        The id of the scan.
    """
    scan_id = scan_id or new_scan_id()
    token = scan_id_var.set(scan_id)
    try:
        yield scan_id
    finally:
        scan_id_var.reset(token)


def set_scan_id(scan_id: str) -> None:
    """Set the scan ID for the current context."""
    scan_id_var.set(scan_id)


def get_scan_id() -> str:
    """Get the current scan ID, or an empty string outside of a scan."""
    return scan_id_var.get()
