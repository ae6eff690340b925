"""Configuration loader with Jinja2 templating support.

Supports template functions in stored settings:
- {{ env_var('KEY') }} - Read from environment variable
- {{ env_var('KEY', 'default') }} - Same, with a fallback
- {{ secret('KEY') }} - Read from secrets provider
"""

import os
from typing import Any, Optional

from jinja2 import Environment, StrictUndefined

from qiniu_artifacts.builtins.env_secrets import EnvSecretsProvider
from qiniu_artifacts.contracts.secrets import SecretsPlugin


class ConfigLoader:
    """Renders settings values with Jinja2 templating."""

    def __init__(self, secrets_provider: Optional[SecretsPlugin] = None):
        """Initialize config loader.

        Args:
            secrets_provider: Secrets provider plugin (default: environment variables)
        """
        self.secrets_provider = secrets_provider or EnvSecretsProvider()

        self.jinja_env = Environment(
            undefined=StrictUndefined,  # Error on undefined variables
            autoescape=False,
        )

        self.jinja_env.globals['env_var'] = self._env_var
        self.jinja_env.globals['secret'] = self._secret

    def render_string(self, template_string: str) -> str:
        """Render a template string with Jinja2.

        Example:
            >>> os.environ["QINIU_BUCKET"] = "artifacts"
            >>> ConfigLoader().render_string("{{ env_var('QINIU_BUCKET') }}")
            'artifacts'
        """
        if "{{" not in template_string and "{%" not in template_string:
            return template_string
        template = self.jinja_env.from_string(template_string)
        return template.render()

    def render_dict(self, config_dict: dict) -> dict:
        """Recursively render all string values in a dictionary."""
        result: dict[str, Any] = {}
        for key, value in config_dict.items():
            if isinstance(value, str):
                result[key] = self.render_string(value)
            elif isinstance(value, dict):
                result[key] = self.render_dict(value)
            else:
                result[key] = value
        return result

    def _env_var(self, key: str, default: Optional[str] = None) -> str:
        """Template function: Read from environment variable.

        Raises:
            KeyError: If variable not set and no default provided
        """
        value = os.environ.get(key)
        if value is None:
            if default is not None:
                return default
            raise KeyError(f"Environment variable '{key}' not set and no default provided")
        return value

    def _secret(self, key: str) -> str:
        """Template function: Read from secrets provider.

        Raises:
            KeyError: If secret not found
        """
        try:
            return self.secrets_provider.get_secret(key)
        except KeyError:
            raise
        except Exception as e:
            raise KeyError(f"Failed to retrieve secret '{key}': {e}") from e
