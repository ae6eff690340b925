"""Structured logging for the Qiniu artifact backend.

Emits JSON-formatted logs for:
- Backend configuration and registration events
- Download domain discovery
- Remote check failures

Secret material is never passed to this logger.
"""

import json
import sys
from datetime import datetime, timezone


class StructuredLogger:
    """Structured logger that emits JSON logs."""

    def __init__(self, enabled: bool = True, output=None):
        """Initialize structured logger.

        Args:
            enabled: Whether to enable logging
            output: Output stream (default: sys.stderr)
        """
        self.enabled = enabled
        self.output = output or sys.stderr

    def _log(self, level: str, event: str, **kwargs):
        """Emit a structured log entry.

        Args:
            level: Log level (INFO, WARNING)
            event: Event name
            **kwargs: Additional fields
        """
        if not self.enabled:
            return

        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": level,
            "event": event,
            **kwargs,
        }

        print(json.dumps(log_entry), file=self.output)

    def log_backend_configured(self, access_key: str, bucket_name: str, download_domain: str):
        """Log that a backend configuration was built."""
        self._log(
            "INFO",
            "backend_configured",
            access_key=access_key,
            bucket_name=bucket_name,
            download_domain=download_domain,
        )

    def log_backend_registered(self, bucket_name: str):
        """Log that the backend was added to the host's extension list."""
        self._log("INFO", "backend_registered", bucket_name=bucket_name)

    def log_backend_updated(self, bucket_name: str):
        """Log that the registered backend was updated in place."""
        self._log("INFO", "backend_updated", bucket_name=bucket_name)

    def log_registration_skipped(self, bucket_name: str):
        """Log that an existing backend instance was found and reused."""
        self._log("INFO", "registration_skipped", bucket_name=bucket_name)

    def log_download_domain_discovered(self, bucket_name: str, domain: str, candidates: int):
        """Log download domain auto-discovery."""
        self._log(
            "INFO",
            "download_domain_discovered",
            bucket_name=bucket_name,
            domain=domain,
            candidates=candidates,
        )

    def log_endpoint_promoted(self, role: str, old_host: str, new_host: str):
        """Log promotion of a process-wide default host."""
        self._log("INFO", "endpoint_promoted", role=role, old_host=old_host, new_host=new_host)

    def log_remote_check_failed(self, operation: str, bucket_name: str, error: str):
        """Log a failed remote call."""
        self._log(
            "WARNING",
            "remote_check_failed",
            operation=operation,
            bucket_name=bucket_name,
            error=error,
        )

    def log_warning(self, message: str, **kwargs):
        """Log warning."""
        self._log("WARNING", "warning", message=message, **kwargs)


# Global logger instance
_logger = StructuredLogger(enabled=False)  # Disabled by default


def get_logger() -> StructuredLogger:
    """Get global structured logger instance."""
    return _logger


def enable_structured_logging(output=None):
    """Enable structured logging.

    Args:
        output: Output stream (default: sys.stderr)
    """
    global _logger
    _logger = StructuredLogger(enabled=True, output=output)


def disable_structured_logging():
    """Disable structured logging."""
    global _logger
    _logger.enabled = False
