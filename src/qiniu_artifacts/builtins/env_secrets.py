"""Environment variable secrets provider.

Default secrets provider that reads secrets from environment variables.
"""

import os

from qiniu_artifacts.contracts.secrets import SecretsPlugin


class EnvSecretsProvider(SecretsPlugin):
    """Secrets provider that reads from environment variables.

    Example:
        >>> os.environ["QINIU_SECRET_KEY"] = "secret123"
        >>> EnvSecretsProvider().get_secret("QINIU_SECRET_KEY")
        'secret123'
    """

    def get_secret(self, key: str) -> str:
        """Read secret from environment variable.

        Raises:
            KeyError: If environment variable not set
        """
        value = os.environ.get(key)
        if value is None:
            raise KeyError(
                f"Secret '{key}' not found in environment variables. "
                f"Set it with: export {key}=<value>"
            )
        return value
