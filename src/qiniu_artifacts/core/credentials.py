"""Credential set - access key, secret key and bucket name."""

import logging
from dataclasses import dataclass, field
from typing import Union

from pydantic import SecretStr

from qiniu_artifacts.exceptions import MissingFieldError

logger = logging.getLogger(__name__)

# Order in which missing fields are reported
REQUIRED_FIELDS = ("access_key", "secret_key", "bucket_name")


def reveal(secret: SecretStr, purpose: str) -> str:
    """Extract the plaintext of a secret.

    Every extraction is logged at DEBUG level with its purpose, never with
    the value. Request signing and draft checks call this.

    Args:
        secret: Opaque secret handle
        purpose: Short description of why the plaintext is needed

    Returns:
        Secret plaintext
    """
    logger.debug(f"Secret plaintext extracted for: {purpose}")
    return secret.get_secret_value()


def as_secret(value: Union[str, SecretStr, None]) -> SecretStr:
    """Wrap a plain string in a SecretStr (None becomes an empty secret)."""
    if isinstance(value, SecretStr):
        return value
    return SecretStr(value or "")


@dataclass(frozen=True)
class CredentialSet:
    """Access/secret key pair plus the bucket they are used against.

    An incomplete set is allowed so that drafts can be built field by field.
    Remote calls require ``is_complete()``.

    Example:
        >>> creds = CredentialSet("ak", "sk", "artifacts")
        >>> creds
        CredentialSet(access_key='ak', secret_key=SecretStr('**********'), bucket_name='artifacts')
    """

    access_key: str = ""
    secret_key: SecretStr = field(default_factory=lambda: SecretStr(""))
    bucket_name: str = ""

    def __post_init__(self):
        object.__setattr__(self, "access_key", (self.access_key or "").strip())
        object.__setattr__(self, "secret_key", as_secret(self.secret_key))
        object.__setattr__(self, "bucket_name", (self.bucket_name or "").strip())

    def missing_fields(self) -> list[str]:
        """Names of required fields that are empty, in reporting order."""
        missing = []
        if not self.access_key:
            missing.append("access_key")
        if len(self.secret_key) == 0:
            missing.append("secret_key")
        if not self.bucket_name:
            missing.append("bucket_name")
        return missing

    def is_complete(self) -> bool:
        return not self.missing_fields()

    def require_complete(self) -> None:
        """Raise MissingFieldError for the first empty required field."""
        missing = self.missing_fields()
        if missing:
            raise MissingFieldError(missing[0])
