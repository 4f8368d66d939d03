"""Logging configuration module for wordguard."""

from wordguard.logging.setup import (
    get_logger,
    get_scan_id,
    scan_context,
    set_scan_id,
    setup_logging,
)

__all__ = ["get_logger", "get_scan_id", "scan_context", "set_scan_id", "setup_logging"]
