"""Download domain auto-discovery.

When no download domain is configured, the bucket's bound domains are
listed and the last one is used. The last-listed entry is a fixed,
deterministic choice; it is not assumed to be the newest binding.
"""

import logging
from typing import Optional

from qiniu_artifacts.contracts.bucket_service import BucketServiceFactory
from qiniu_artifacts.core.credentials import CredentialSet
from qiniu_artifacts.core.endpoints import EndpointContext, EndpointSet
from qiniu_artifacts.core.validator import RemoteValidator
from qiniu_artifacts.exceptions import NoDownloadDomainError, RemoteError
from qiniu_artifacts.observability import get_logger

logger = logging.getLogger(__name__)


def pick_domain(domains: list[str]) -> Optional[str]:
    """Select the download domain from a provider listing (last entry)."""
    if not domains:
        return None
    return domains[-1]


class DomainDiscovery:
    """Fills in a missing download domain from the bucket's bound domains."""

    def __init__(
        self,
        bucket_service_factory: Optional[BucketServiceFactory] = None,
        context: Optional[EndpointContext] = None,
    ):
        self._validator = RemoteValidator(bucket_service_factory, context)

    def list_domains(self, credentials: CredentialSet, endpoints: EndpointSet) -> list[str]:
        """List domains bound to the credentials' bucket.

        Raises:
            MissingFieldError: If the credentials are incomplete
            RemoteError: If the listing fails
        """
        credentials.require_complete()
        service = self._validator.open(credentials, endpoints)
        try:
            return service.list_domains(credentials.bucket_name)
        except RemoteError as e:
            get_logger().log_remote_check_failed("list_domains", credentials.bucket_name, str(e))
            raise
        finally:
            service.close()

    def resolve_download_domain(
        self,
        credentials: CredentialSet,
        endpoints: EndpointSet,
        current_download_domain: str = "",
    ) -> str:
        """Return the download domain to use.

        An explicitly configured domain always wins and no remote call is
        made. Otherwise the last domain bound to the bucket is returned.

        Args:
            credentials: Credentials and bucket
            endpoints: Operator endpoints
            current_download_domain: Configured domain, "" if unset

        Returns:
            Download domain host

        Raises:
            NoDownloadDomainError: If the bucket has no bound domain
            RemoteError: If the listing fails
        """
        if current_download_domain:
            return current_download_domain

        domains = self.list_domains(credentials, endpoints)
        domain = pick_domain(domains)
        if domain is None:
            raise NoDownloadDomainError(credentials.bucket_name)

        logger.info(f"download_domain was not configured for bucket {credentials.bucket_name}, using {domain}")
        get_logger().log_download_domain_discovered(credentials.bucket_name, domain, len(domains))
        return domain

    def has_download_domain(
        self,
        credentials: CredentialSet,
        endpoints: EndpointSet,
        current_download_domain: str = "",
        strict: bool = False,
    ) -> bool:
        """Field-level probe: can a download domain be determined?

        True when a domain is configured, when the credentials are still
        incomplete (nothing to check yet), or when the bucket has at least
        one bound domain. A failed listing counts as no domain, unless
        ``strict`` is set, in which case the RemoteError propagates.
        """
        if current_download_domain or not credentials.is_complete():
            return True
        try:
            return bool(self.list_domains(credentials, endpoints))
        except RemoteError as e:
            if strict:
                raise
            logger.warning(f"Cannot list domains of bucket {credentials.bucket_name}: {e}")
            return False
