"""Testing utilities for the Qiniu artifact backend."""

from qiniu_artifacts.testing.fixtures import FakeBucketService, FakeProvider

__all__ = [
    "FakeBucketService",
    "FakeProvider",
]
