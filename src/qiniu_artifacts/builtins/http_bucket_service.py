"""HTTP bucket service - talks to the provider's management API with requests."""

import logging
from typing import Any, Optional

import requests
from pydantic import TypeAdapter, ValidationError

from qiniu_artifacts.contracts.bucket_service import BucketService
from qiniu_artifacts.core.auth import FORM_CONTENT_TYPE, QBoxAuth
from qiniu_artifacts.core.credentials import CredentialSet
from qiniu_artifacts.core.endpoints import ResolvedEndpoints
from qiniu_artifacts.exceptions import RemoteAuthError, RemoteError, RemoteUnavailableError

logger = logging.getLogger(__name__)

USER_AGENT = "qiniu-artifacts"
DEFAULT_TIMEOUT = 30

_DOMAIN_LIST = TypeAdapter(list[str])
_BUCKET_INFO = TypeAdapter(dict[str, Any])


def _create_session(credentials: CredentialSet) -> requests.Session:
    session = requests.Session()
    session.auth = QBoxAuth(credentials)
    session.headers.update({"User-Agent": USER_AGENT})
    return session


def error_from_response(response: requests.Response) -> RemoteError:
    """Map a failed provider reply to RemoteAuthError or RemoteUnavailableError.

    The provider reports errors as ``{"error": "..."}``; that text is kept
    verbatim. 5xx replies mean the provider itself failed; every other
    status (4xx, and the provider's 6xx codes such as 631 "no such bucket")
    means the request was rejected.
    """
    try:
        message = response.json().get("error") or response.text
    except (ValueError, AttributeError):
        message = response.text or response.reason or "unknown error"

    if 500 <= response.status_code < 600:
        return RemoteUnavailableError(message, response.status_code)
    return RemoteAuthError(message, response.status_code)


class HttpBucketService(BucketService):
    """Bucket service backed by the provider's HTTP management API.

    - bucket info: ``POST {uc}/v2/bucketInfo?bucket=<name>``
    - bound domains: ``GET {api}/v6/domain/list?tbl=<name>``

    Example:
        >>> endpoints = resolve_endpoints(EndpointSet())
        >>> service = HttpBucketService(CredentialSet("ak", "sk", "b"), endpoints)
        >>> service.list_domains("b")
        ['cdn.example.com']
    """

    def __init__(
        self,
        credentials: CredentialSet,
        endpoints: ResolvedEndpoints,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        super().__init__(credentials, endpoints)
        self.timeout = timeout
        self._session = session or _create_session(credentials)

    def get_bucket_info(self, bucket_name: str) -> dict:
        """Fetch bucket information from the uc host."""
        response = self._request(
            "POST",
            self.endpoints.uc_url("/v2/bucketInfo"),
            params={"bucket": bucket_name},
            headers={"Content-Type": FORM_CONTENT_TYPE},
        )
        return self._parse(response, _BUCKET_INFO)

    def list_domains(self, bucket_name: str) -> list[str]:
        """List domains bound to the bucket from the api host."""
        response = self._request(
            "GET",
            self.endpoints.api_url("/v6/domain/list"),
            params={"tbl": bucket_name},
        )
        return self._parse(response, _DOMAIN_LIST)

    def close(self) -> None:
        self._session.close()

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        logger.debug(f"{method} {url} {kwargs.get('params')}")
        try:
            response = self._session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise RemoteUnavailableError(f"{method} {url} failed: {e}") from e

        if response.status_code >= 400:
            raise error_from_response(response)
        return response

    @staticmethod
    def _parse(response: requests.Response, adapter: TypeAdapter):
        try:
            return adapter.validate_python(response.json())
        except (ValueError, ValidationError) as e:
            raise RemoteUnavailableError(
                f"Unexpected reply from {response.url}: {e}", response.status_code
            ) from e
