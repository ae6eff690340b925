"""Secrets provider contract.

Secrets providers let stored settings refer to credentials kept elsewhere
(environment variables, a vault, ...) through ``{{ secret('KEY') }}``
instead of writing the secret key into the settings file.
"""

from abc import ABC, abstractmethod


class SecretsPlugin(ABC):
    """Abstract base class for secrets provider adapters.

    Example:
        >>> secrets = EnvSecretsProvider()
        >>> secret_key = secrets.get_secret("QINIU_SECRET_KEY")
    """

    @abstractmethod
    def get_secret(self, key: str) -> str:
        """Retrieve a secret value by key.

        Args:
            key: Secret key/name

        Returns:
            Secret value as string

        Raises:
            KeyError: If secret not found
            RuntimeError: If unable to access secrets backend
        """
        pass

    def get_secret_with_default(self, key: str, default: str) -> str:
        """Retrieve a secret value with a default fallback."""
        try:
            return self.get_secret(key)
        except KeyError:
            return default
