"""
tor-auth Logging Module

This module provides structured logging for tor-auth: structlog configuration
and the verdict sink used by the request handler and resolver.
"""

from .logger import (
    StructuredLogger,
    get_logger,
    log_exception,
    setup_logging,
)
from .verdict_logger import VerdictLogger

__all__ = [
    # Core logging
    "StructuredLogger",
    "setup_logging",
    "get_logger",
    "log_exception",
    # Verdict logging
    "VerdictLogger",
]
