"""Request signing for the provider's management API (QBox tokens)."""

import base64
import hashlib
import hmac

from requests.auth import AuthBase

from qiniu_artifacts.core.credentials import CredentialSet, reveal

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def sign(secret_key: bytes, data: bytes) -> str:
    """HMAC-SHA1 of data, urlsafe base64 encoded."""
    digest = hmac.new(secret_key, data, hashlib.sha1).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii")


def signing_data(path_url: str, body=None, content_type: str | None = None) -> bytes:
    """Build the string a QBox token signs.

    The request path and query are followed by a newline; a form-encoded
    body is appended after it. Other bodies are not signed.

    Args:
        path_url: Path plus query string (e.g. "/v2/bucketInfo?bucket=b")
        body: Request body (str or bytes)
        content_type: Request Content-Type header

    Returns:
        Bytes to sign
    """
    data = path_url.encode("utf-8") + b"\n"
    if body and content_type == FORM_CONTENT_TYPE:
        if isinstance(body, str):
            body = body.encode("utf-8")
        data += body
    return data


class QBoxAuth(AuthBase):
    """requests auth hook adding ``Authorization: QBox <ak>:<sign>``.

    The secret plaintext is extracted only while a request is being signed.
    """

    def __init__(self, credentials: CredentialSet):
        credentials.require_complete()
        self.credentials = credentials

    def token_for(self, path_url: str, body=None, content_type: str | None = None) -> str:
        secret = reveal(self.credentials.secret_key, "sign management request")
        data = signing_data(path_url, body, content_type)
        return f"{self.credentials.access_key}:{sign(secret.encode('utf-8'), data)}"

    def __call__(self, r):
        token = self.token_for(r.path_url, r.body, r.headers.get("Content-Type"))
        r.headers["Authorization"] = f"QBox {token}"
        return r

    def __repr__(self) -> str:
        return f"QBoxAuth(access_key={self.credentials.access_key!r})"
