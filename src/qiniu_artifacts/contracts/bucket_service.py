"""Bucket service contract - the provider operations configuration relies on.

Bucket services answer two questions about a bucket: does it exist and are
these credentials allowed to use it, and which download domains are bound
to it.
"""

from abc import ABC, abstractmethod
from typing import Callable

from qiniu_artifacts.core.credentials import CredentialSet
from qiniu_artifacts.core.endpoints import ResolvedEndpoints


class BucketService(ABC):
    """Interface for the provider's bucket management API.

    A bucket service is bound to one credential set and one set of resolved
    endpoints. Each method performs a single blocking request; retry policy
    belongs to the caller.

    Example:
        >>> service = HttpBucketService(credentials, endpoints)
        >>> service.get_bucket_info("artifacts")
        {'region': 'z0', 'private': 0}
        >>> service.list_domains("artifacts")
        ['a.example.com', 'b.example.com']
    """

    def __init__(self, credentials: CredentialSet, endpoints: ResolvedEndpoints):
        self.credentials = credentials
        self.endpoints = endpoints

    @abstractmethod
    def get_bucket_info(self, bucket_name: str) -> dict:
        """Fetch bucket information.

        Args:
            bucket_name: Bucket to look up

        Returns:
            Provider bucket information

        Raises:
            RemoteAuthError: If credentials are rejected or the bucket is unknown
            RemoteUnavailableError: If the provider cannot be reached
        """
        ...

    @abstractmethod
    def list_domains(self, bucket_name: str) -> list[str]:
        """List the domains bound to a bucket, in provider order.

        Args:
            bucket_name: Bucket to look up

        Returns:
            Host names (may be empty)

        Raises:
            RemoteAuthError: If credentials are rejected or the bucket is unknown
            RemoteUnavailableError: If the provider cannot be reached
        """
        ...

    def close(self) -> None:
        """Release any connection resources. Default implementation is a no-op."""
        pass


# Builds a bucket service for a credential set and resolved endpoints
BucketServiceFactory = Callable[[CredentialSet, ResolvedEndpoints], BucketService]
