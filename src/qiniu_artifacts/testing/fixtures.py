"""Test fixtures for the Qiniu artifact backend.

Provides in-memory stand-ins so configuration can be tested offline:
- FakeBucketService: bucket service answering from a dict of buckets
- FakeProvider: builds FakeBucketService instances and records every call
"""

from typing import Optional

from qiniu_artifacts.contracts.bucket_service import BucketService
from qiniu_artifacts.core.credentials import CredentialSet, reveal
from qiniu_artifacts.core.endpoints import ResolvedEndpoints
from qiniu_artifacts.exceptions import RemoteAuthError, RemoteError


class FakeProvider:
    """In-memory provider account.

    Example:
        >>> provider = FakeProvider(access_key="ak", secret_key="sk")
        >>> provider.add_bucket("ci", domains=["a.example.com", "b.example.com"])
        >>> service = provider.service_factory(CredentialSet("ak", "sk", "ci"), endpoints)
        >>> service.list_domains("ci")
        ['a.example.com', 'b.example.com']
    """

    def __init__(self, access_key: str = "ak", secret_key: str = "sk"):
        self.access_key = access_key
        self.secret_key = secret_key
        self.buckets: dict[str, list[str]] = {}
        self.calls: list[tuple[str, str]] = []
        self.endpoints_seen: list[ResolvedEndpoints] = []
        self.failure: Optional[RemoteError] = None

    def add_bucket(self, name: str, domains: Optional[list[str]] = None) -> None:
        self.buckets[name] = list(domains or [])

    def fail_with(self, error: Optional[RemoteError]) -> None:
        """Make every following call raise the given error (None to stop)."""
        self.failure = error

    def service_factory(self, credentials: CredentialSet, endpoints: ResolvedEndpoints) -> "FakeBucketService":
        self.endpoints_seen.append(endpoints)
        return FakeBucketService(self, credentials, endpoints)

    def calls_to(self, operation: str) -> int:
        return sum(1 for name, _ in self.calls if name == operation)


class FakeBucketService(BucketService):
    """Bucket service answering from a FakeProvider."""

    def __init__(self, provider: FakeProvider, credentials: CredentialSet, endpoints: ResolvedEndpoints):
        super().__init__(credentials, endpoints)
        self.provider = provider
        self.closed = False

    def _authorize(self, operation: str, bucket_name: str) -> None:
        self.provider.calls.append((operation, bucket_name))
        if self.provider.failure is not None:
            raise self.provider.failure

        secret = reveal(self.credentials.secret_key, "fake provider check")
        if (self.credentials.access_key, secret) != (self.provider.access_key, self.provider.secret_key):
            raise RemoteAuthError("bad token", 401)
        if bucket_name not in self.provider.buckets:
            raise RemoteAuthError("no such bucket", 631)

    def get_bucket_info(self, bucket_name: str) -> dict:
        self._authorize("get_bucket_info", bucket_name)
        return {"region": "z0", "private": 0}

    def list_domains(self, bucket_name: str) -> list[str]:
        self._authorize("list_domains", bucket_name)
        return list(self.provider.buckets[bucket_name])

    def close(self) -> None:
        self.closed = True
