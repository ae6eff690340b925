"""Remote validator - confirms credentials and bucket against the provider."""

import logging
from typing import Optional

from qiniu_artifacts.contracts.bucket_service import BucketService, BucketServiceFactory
from qiniu_artifacts.core.credentials import CredentialSet
from qiniu_artifacts.core.endpoints import EndpointContext, EndpointSet, get_endpoint_context
from qiniu_artifacts.exceptions import RemoteError
from qiniu_artifacts.observability import get_logger

logger = logging.getLogger(__name__)


def default_bucket_service_factory() -> BucketServiceFactory:
    from qiniu_artifacts.builtins.http_bucket_service import HttpBucketService

    return HttpBucketService


class RemoteValidator:
    """Checks that a bucket exists and the credentials may use it.

    Each call is a single synchronous request with no retry. Incomplete
    credentials are not an error: drafts are filled in field by field, so
    validation is skipped until all three fields are set.

    Example:
        >>> validator = RemoteValidator()
        >>> validator.validate(CredentialSet("ak", "sk", "artifacts"), EndpointSet())
        True
    """

    def __init__(
        self,
        bucket_service_factory: Optional[BucketServiceFactory] = None,
        context: Optional[EndpointContext] = None,
    ):
        self.bucket_service_factory = bucket_service_factory or default_bucket_service_factory()
        self.context = context or get_endpoint_context()

    def open(self, credentials: CredentialSet, endpoints: EndpointSet) -> BucketService:
        """Resolve endpoints against the shared context and open a bucket service."""
        resolved = self.context.resolve(endpoints)
        return self.bucket_service_factory(credentials, resolved)

    def validate(self, credentials: CredentialSet, endpoints: EndpointSet) -> bool:
        """Look up the bucket with the given credentials.

        Args:
            credentials: Credentials and bucket to check
            endpoints: Operator endpoints (defaults filled in here)

        Returns:
            True if the bucket was found, False if the credentials are
            still incomplete and nothing was checked

        Raises:
            RemoteAuthError: Provider rejected the credentials or the bucket
            RemoteUnavailableError: Provider could not be reached
        """
        if not credentials.is_complete():
            logger.debug(f"Skipping bucket check, missing: {credentials.missing_fields()}")
            return False

        service = self.open(credentials, endpoints)
        try:
            service.get_bucket_info(credentials.bucket_name)
        except RemoteError as e:
            get_logger().log_remote_check_failed("get_bucket_info", credentials.bucket_name, str(e))
            raise
        finally:
            service.close()

        logger.info(f"Bucket {credentials.bucket_name} is reachable with access key {credentials.access_key}")
        return True
