"""Logging for the settlement core."""

from .logger import (
    StructuredFormatter,
    configure_logging,
    correlation_scope,
    current_correlation_id,
    get_logger,
)

__all__ = [
    "StructuredFormatter",
    "configure_logging",
    "correlation_scope",
    "current_correlation_id",
    "get_logger",
]
