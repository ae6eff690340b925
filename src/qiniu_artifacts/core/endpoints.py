"""Endpoint resolution - which API, rs, uc and download hosts are active.

The provider client is configured once per process: a non-empty host that
differs from the current default for its role becomes the new default for
every later call. That shared state lives in an explicit ``EndpointContext``
instead of module globals, so tests can use a private one.
"""

import logging
import re
import threading
from dataclasses import dataclass
from typing import Optional

from qiniu_artifacts.exceptions import MalformedEndpointError
from qiniu_artifacts.observability import get_logger

logger = logging.getLogger(__name__)

# Compiled-in provider defaults
DEFAULT_API_HOST = "api.qiniu.com"
DEFAULT_RS_HOST = "rs.qiniu.com"
DEFAULT_UC_HOST = "uc.qbox.me"

_LABEL = r"[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?"
_HOST_RE = re.compile(rf"^{_LABEL}(?:\.{_LABEL})*(?::(?P<port>\d{{1,5}}))?$")


def is_valid_host(value: str) -> bool:
    """Check that a value is a bare host name, optionally with a port.

    Schemes, paths, user info and whitespace are rejected.

    Example:
        >>> is_valid_host("cdn.example.com:8080")
        True
        >>> is_valid_host("http://cdn.example.com")
        False
    """
    match = _HOST_RE.match(value)
    if match is None or len(value) > 261:
        return False
    port = match.group("port")
    return port is None or 0 < int(port) <= 65535


def check_host(role: str, value: Optional[str]) -> str:
    """Normalize a domain field and validate its syntax.

    Args:
        role: Field name used in the error (e.g. "api_domain")
        value: Raw value, empty or None meaning "use default"

    Returns:
        Stripped value ("" when unset)

    Raises:
        MalformedEndpointError: If the value is set but not a valid host
    """
    value = (value or "").strip()
    if value and not is_valid_host(value):
        raise MalformedEndpointError(role, value)
    return value


@dataclass(frozen=True)
class EndpointSet:
    """Operator-supplied endpoints. Empty domains mean "use the default"."""

    api_domain: str = ""
    rs_domain: str = ""
    uc_domain: str = ""
    download_domain: str = ""
    use_https: bool = False

    def __post_init__(self):
        for role in ("api_domain", "rs_domain", "uc_domain", "download_domain"):
            object.__setattr__(self, role, check_host(role, getattr(self, role)))


@dataclass(frozen=True)
class ResolvedEndpoints:
    """Fully specified endpoints used for remote calls."""

    api_host: str
    rs_host: str
    uc_host: str
    download_domain: str = ""
    use_https: bool = False

    @property
    def scheme(self) -> str:
        return "https" if self.use_https else "http"

    def api_url(self, path: str = "") -> str:
        return f"{self.scheme}://{self.api_host}{path}"

    def rs_url(self, path: str = "") -> str:
        return f"{self.scheme}://{self.rs_host}{path}"

    def uc_url(self, path: str = "") -> str:
        return f"{self.scheme}://{self.uc_host}{path}"

    def download_url(self, key: str) -> str:
        """Public URL of an object key on the download domain."""
        return f"{self.scheme}://{self.download_domain}/{key.lstrip('/')}"

    def with_download_domain(self, domain: str) -> "ResolvedEndpoints":
        return ResolvedEndpoints(
            api_host=self.api_host,
            rs_host=self.rs_host,
            uc_host=self.uc_host,
            download_domain=domain,
            use_https=self.use_https,
        )


class EndpointContext:
    """Process-wide default hosts shared by all validator and discovery calls.

    Last writer wins. Reads and promotions are serialized by one lock.
    """

    def __init__(
        self,
        api_host: str = DEFAULT_API_HOST,
        rs_host: str = DEFAULT_RS_HOST,
        uc_host: str = DEFAULT_UC_HOST,
    ):
        self._lock = threading.Lock()
        self._hosts = {"api": api_host, "rs": rs_host, "uc": uc_host}

    def defaults(self) -> dict[str, str]:
        """Snapshot of the current default host per role."""
        with self._lock:
            return dict(self._hosts)

    def resolve(self, endpoints: EndpointSet) -> ResolvedEndpoints:
        """Promote non-default hosts and fill empty roles with the defaults.

        Args:
            endpoints: Operator-supplied endpoints

        Returns:
            ResolvedEndpoints with every host set
        """
        requested = {
            "api": endpoints.api_domain,
            "rs": endpoints.rs_domain,
            "uc": endpoints.uc_domain,
        }
        with self._lock:
            for role, host in requested.items():
                if host and host != self._hosts[role]:
                    logger.info(f"Default {role} host changed from {self._hosts[role]} to {host}")
                    get_logger().log_endpoint_promoted(role, self._hosts[role], host)
                    self._hosts[role] = host
            hosts = dict(self._hosts)

        return ResolvedEndpoints(
            api_host=hosts["api"],
            rs_host=hosts["rs"],
            uc_host=hosts["uc"],
            download_domain=endpoints.download_domain,
            use_https=endpoints.use_https,
        )


_context: Optional[EndpointContext] = None
_context_lock = threading.Lock()


def get_endpoint_context() -> EndpointContext:
    """Get the process-wide endpoint context."""
    global _context
    with _context_lock:
        if _context is None:
            _context = EndpointContext()
        return _context


def resolve_endpoints(
    endpoints: EndpointSet,
    context: Optional[EndpointContext] = None,
) -> ResolvedEndpoints:
    """Resolve endpoints against a context (the process-wide one by default)."""
    context = context or get_endpoint_context()
    return context.resolve(endpoints)
