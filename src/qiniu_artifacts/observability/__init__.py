"""Observability utilities for the Qiniu artifact backend."""

from qiniu_artifacts.observability.logging import (
    StructuredLogger,
    get_logger,
    enable_structured_logging,
    disable_structured_logging,
)

__all__ = [
    "StructuredLogger",
    "get_logger",
    "enable_structured_logging",
    "disable_structured_logging",
]
