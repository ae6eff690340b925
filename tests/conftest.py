"""Shared fixtures for backend configuration tests."""

import pytest

from qiniu_artifacts.core.credentials import CredentialSet
from qiniu_artifacts.core.endpoints import EndpointContext, EndpointSet
from qiniu_artifacts.core.registry import BackendRegistry
from qiniu_artifacts.observability import disable_structured_logging
from qiniu_artifacts.testing import FakeProvider


@pytest.fixture
def provider():
    """Provider account 'ak'/'sk' with bucket 'ci' bound to two domains."""
    provider = FakeProvider(access_key="ak", secret_key="sk")
    provider.add_bucket("ci", domains=["a.example.com", "b.example.com"])
    provider.add_bucket("bare", domains=[])
    return provider


@pytest.fixture
def context():
    """Private endpoint context so tests never touch the process-wide one."""
    return EndpointContext()


@pytest.fixture
def credentials():
    return CredentialSet("ak", "sk", "ci")


@pytest.fixture
def endpoints():
    return EndpointSet()


@pytest.fixture
def extensions():
    """Stand-in for the host's artifact manager factory list."""
    return []


@pytest.fixture
def registry(extensions):
    return BackendRegistry(extensions)


@pytest.fixture(autouse=True)
def quiet_structured_logging():
    yield
    disable_structured_logging()
