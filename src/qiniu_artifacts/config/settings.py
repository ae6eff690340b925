"""Persisted backend settings.

The settings record is a flat YAML mapping:

    access_key: my-access-key
    secret_key: "{{ secret('QINIU_SECRET_KEY') }}"
    bucket_name: ci-artifacts
    object_name_prefix: builds/
    download_domain: ""          # discovered from the bucket when empty
    api_domain: ""               # provider defaults when empty
    rs_domain: ""
    uc_domain: ""
    use_https: false
    infrequent_storage: false

The file is located in this order:
1. QINIU_ARTIFACTS_CONFIG environment variable
2. ./qiniu-artifacts.yaml
3. ~/.qiniu-artifacts/config.yaml
"""

import os
import tempfile
from pathlib import Path
from typing import Any, Optional

import yaml
from jinja2 import TemplateError
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, SecretStr, field_validator

from qiniu_artifacts.config.loader import ConfigLoader
from qiniu_artifacts.core.credentials import CredentialSet
from qiniu_artifacts.core.endpoints import EndpointSet
from qiniu_artifacts.exceptions import ConfigurationError

CONFIG_ENV_VAR = "QINIU_ARTIFACTS_CONFIG"
PROJECT_CONFIG_NAME = "qiniu-artifacts.yaml"

# Record fields, in the order they are written back
RECORD_FIELDS = (
    "access_key",
    "secret_key",
    "bucket_name",
    "object_name_prefix",
    "download_domain",
    "api_domain",
    "rs_domain",
    "uc_domain",
    "use_https",
    "infrequent_storage",
)


def _field(default: Any, *aliases: str, description: str):
    return Field(default, validation_alias=AliasChoices(*aliases), description=description)


class StoreSettings(BaseModel):
    """Validated settings record. Accepts snake_case and the host form's camelCase keys."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    access_key: str = _field("", "access_key", "accessKey", description="Access key")
    secret_key: SecretStr = _field(SecretStr(""), "secret_key", "secretKey", description="Secret key")
    bucket_name: str = _field("", "bucket_name", "bucketName", description="Bucket name")
    object_name_prefix: str = _field(
        "", "object_name_prefix", "objectNamePrefix", description="Prefix for all artifact keys"
    )
    download_domain: str = _field(
        "", "download_domain", "downloadDomain", description="Public download domain"
    )
    api_domain: str = _field("", "api_domain", "apiDomain", description="API host")
    rs_domain: str = _field("", "rs_domain", "rsDomain", description="Resource management host")
    uc_domain: str = _field("", "uc_domain", "ucDomain", description="Bucket lookup host")
    use_https: bool = _field(False, "use_https", "useHTTPs", "useHTTPS", description="Use https for all hosts")
    infrequent_storage: bool = _field(
        False, "infrequent_storage", "infrequentStorage", description="Infrequent-access storage class"
    )

    @field_validator(
        "access_key", "bucket_name", "object_name_prefix",
        "download_domain", "api_domain", "rs_domain", "uc_domain",
        mode="before",
    )
    @classmethod
    def _none_as_empty(cls, value):
        if value is None:
            return ""
        return str(value).strip()

    @field_validator("secret_key", mode="before")
    @classmethod
    def _none_secret_as_empty(cls, value):
        return "" if value is None else value

    @classmethod
    def from_record(cls, record: dict, loader: Optional[ConfigLoader] = None) -> "StoreSettings":
        """Render templates in a raw record and validate it.

        Raises:
            ConfigurationError: If a template cannot be rendered or a value has the wrong type
        """
        loader = loader or ConfigLoader()
        try:
            rendered = loader.render_dict(record or {})
            return cls.model_validate(rendered)
        except (KeyError, TemplateError) as e:
            raise ConfigurationError(f"Cannot render settings: {e}") from e
        except ValueError as e:
            raise ConfigurationError(f"Invalid settings: {e}") from e

    def credentials(self) -> CredentialSet:
        return CredentialSet(self.access_key, self.secret_key, self.bucket_name)

    def endpoints(self) -> EndpointSet:
        """Endpoint set of this record.

        Raises:
            MalformedEndpointError: If a domain is not a valid host
        """
        return EndpointSet(
            api_domain=self.api_domain,
            rs_domain=self.rs_domain,
            uc_domain=self.uc_domain,
            download_domain=self.download_domain,
            use_https=self.use_https,
        )


def normalize_record(record: dict) -> dict:
    """Map a raw record's keys (either spelling) to the snake_case names."""
    aliases = {}
    for name, field in StoreSettings.model_fields.items():
        for alias in field.validation_alias.choices:
            aliases[alias] = name

    normalized: dict[str, Any] = {}
    for key, value in (record or {}).items():
        if key in aliases:
            normalized[aliases[key]] = value
    return {name: normalized[name] for name in RECORD_FIELDS if name in normalized}


class SettingsFile:
    """Loads and atomically saves the raw settings record.

    The raw record is kept as written (templates unrendered) so that
    ``{{ secret(...) }}`` references survive a save.
    """

    def __init__(self, path: Optional[Path] = None, project_root: Optional[Path] = None):
        """Initialize settings file.

        Args:
            path: Explicit settings file path (skips the search)
            project_root: Directory searched for qiniu-artifacts.yaml (default: cwd)
        """
        self.project_root = Path(project_root) if project_root else Path.cwd()
        self.path = Path(path) if path else self._find_settings_file()

    def _find_settings_file(self) -> Path:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        if env_path:
            return Path(env_path)

        project_settings = self.project_root / PROJECT_CONFIG_NAME
        if project_settings.exists():
            return project_settings

        home_settings = Path.home() / ".qiniu-artifacts" / "config.yaml"
        if home_settings.exists():
            return home_settings

        # Nothing stored yet - new settings go to the project root
        return project_settings

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> dict:
        """Load the raw record ({} if the file does not exist).

        Raises:
            ConfigurationError: If the file is not a YAML mapping
        """
        if not self.path.exists():
            return {}

        try:
            with open(self.path) as f:
                record = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Malformed settings file {self.path}: {e}") from e

        if record is None:
            return {}
        if not isinstance(record, dict):
            raise ConfigurationError(f"Settings file {self.path} must contain a mapping")
        return normalize_record(record)

    def save(self, record: dict) -> None:
        """Write the record atomically (temp file + rename)."""
        data = normalize_record(record)
        self.path.parent.mkdir(parents=True, exist_ok=True)

        tmp_fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(tmp_fd, "w") as tmp_file:
                yaml.safe_dump(data, tmp_file, sort_keys=False)
            os.replace(tmp_path, self.path)
        except Exception:
            os.unlink(tmp_path)
            raise
