"""Store configurator - the operator-facing side of backend configuration.

Holds the in-memory draft behind the host's configuration form:

- ``check_*`` methods back the per-field validation callbacks. Each one
  stores the submitted value in the draft, even when the check fails, so a
  partially valid draft stays editable.
- ``configure`` is the save action: validate, discover the download domain,
  persist, then register or update the single active backend.
- ``load`` runs at startup and registers the stored backend.
"""

import logging
import threading
from typing import Any, Optional

from pydantic import BaseModel, SecretStr

from qiniu_artifacts.config.loader import ConfigLoader
from qiniu_artifacts.config.settings import RECORD_FIELDS, SettingsFile, StoreSettings, normalize_record
from qiniu_artifacts.contracts.bucket_service import BucketServiceFactory
from qiniu_artifacts.core.credentials import CredentialSet, reveal
from qiniu_artifacts.core.discovery import DomainDiscovery
from qiniu_artifacts.core.endpoints import EndpointContext, EndpointSet, check_host, get_endpoint_context
from qiniu_artifacts.core.factory import QiniuArtifactManagerFactory, build_backend
from qiniu_artifacts.core.registry import BackendRegistry, get_registry
from qiniu_artifacts.core.validator import RemoteValidator
from qiniu_artifacts.exceptions import ConfigurationError, MalformedEndpointError, QiniuArtifactsError, RemoteError
from qiniu_artifacts.observability import get_logger

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid access key, secret key or bucket name"


class FieldCheck(BaseModel):
    """Outcome of a field-level check."""

    field: str
    ok: bool
    message: str = ""

    @classmethod
    def success(cls, field: str) -> "FieldCheck":
        return cls(field=field, ok=True)

    @classmethod
    def error(cls, field: str, message: str, cause: Optional[BaseException] = None) -> "FieldCheck":
        if cause is not None:
            message = f"{message}: {cause}"
        return cls(field=field, ok=False, message=message)


class StoreConfigurator:
    """Draft configuration plus the save and startup-load protocol.

    Example:
        >>> store = StoreConfigurator(SettingsFile(), registry=get_registry(host_factories))
        >>> store.check_access_key("my-ak").ok
        True
        >>> store.configure({"access_key": "my-ak", "secret_key": "sk", "bucket_name": "ci"})
        QiniuArtifactManagerFactory(access_key='my-ak', bucket_name='ci', download_domain='cdn.example.com')
    """

    def __init__(
        self,
        settings_file: Optional[SettingsFile] = None,
        registry: Optional[BackendRegistry] = None,
        bucket_service_factory: Optional[BucketServiceFactory] = None,
        context: Optional[EndpointContext] = None,
        loader: Optional[ConfigLoader] = None,
    ):
        self.settings_file = settings_file or SettingsFile()
        self.registry = registry or get_registry()
        self.bucket_service_factory = bucket_service_factory
        self.context = context or get_endpoint_context()
        self.loader = loader or ConfigLoader()

        self._lock = threading.RLock()
        self._draft: dict[str, Any] = {}
        self._validator = RemoteValidator(bucket_service_factory, self.context)
        self._discovery = DomainDiscovery(bucket_service_factory, self.context)

    # ----------------------------
    # Draft
    # ----------------------------

    @property
    def draft(self) -> StoreSettings:
        """Current draft as validated settings (unrendered values are rendered)."""
        with self._lock:
            return StoreSettings.from_record(self._draft, self.loader)

    def _set(self, name: str, value: Any) -> None:
        with self._lock:
            self._draft[name] = value

    def _draft_credentials(self) -> CredentialSet:
        return self.draft.credentials()

    def _draft_endpoints(self) -> EndpointSet:
        """Draft endpoints; malformed domains in the draft count as unset."""
        draft = self.draft
        values = {}
        for role in ("api_domain", "rs_domain", "uc_domain", "download_domain"):
            try:
                values[role] = check_host(role, getattr(draft, role))
            except MalformedEndpointError:
                values[role] = ""
        return EndpointSet(use_https=draft.use_https, **values)

    # ----------------------------
    # Field checks
    # ----------------------------

    def _check_required(self, field: str, value: str) -> FieldCheck:
        self._set(field, value)
        if not (value or "").strip():
            return FieldCheck.error(field, f"{field} must not be empty")

        try:
            credentials = self._draft_credentials()
            endpoints = self._draft_endpoints()
        except ConfigurationError as e:
            return FieldCheck.error(field, "Cannot read draft settings", e)

        try:
            self._validator.validate(credentials, endpoints)
        except RemoteError as e:
            return FieldCheck.error(field, INVALID_CREDENTIALS_MESSAGE, e)
        return FieldCheck.success(field)

    def check_access_key(self, access_key: str) -> FieldCheck:
        return self._check_required("access_key", access_key)

    def check_secret_key(self, secret_key: str | SecretStr) -> FieldCheck:
        if isinstance(secret_key, SecretStr):
            secret_key = reveal(secret_key, "store draft secret key")
        return self._check_required("secret_key", secret_key)

    def check_bucket_name(self, bucket_name: str) -> FieldCheck:
        return self._check_required("bucket_name", bucket_name)

    def _check_domain(self, field: str, value: str) -> FieldCheck:
        self._set(field, value)
        try:
            check_host(field, value)
        except MalformedEndpointError as e:
            return FieldCheck.error(field, str(e))
        return FieldCheck.success(field)

    def check_download_domain(self, download_domain: str) -> FieldCheck:
        """Syntax check, then make sure a download domain can be determined."""
        result = self._check_domain("download_domain", download_domain)
        if not result.ok:
            return result

        try:
            found = self._discovery.has_download_domain(
                self._draft_credentials(), self._draft_endpoints(), download_domain.strip(), strict=True
            )
        except ConfigurationError as e:
            return FieldCheck.error("download_domain", "Cannot read draft settings", e)
        except RemoteError as e:
            return FieldCheck.error("download_domain", "Cannot list the domains bound to the bucket", e)
        if not found:
            return FieldCheck.error(
                "download_domain",
                "download_domain is empty and the bucket is not bound with any domain",
            )
        return result

    def check_api_domain(self, api_domain: str) -> FieldCheck:
        return self._check_domain("api_domain", api_domain)

    def check_rs_domain(self, rs_domain: str) -> FieldCheck:
        return self._check_domain("rs_domain", rs_domain)

    def check_uc_domain(self, uc_domain: str) -> FieldCheck:
        return self._check_domain("uc_domain", uc_domain)

    def check_all(self, record: dict) -> list[FieldCheck]:
        """Run every field check for a record, in form order."""
        checks = {
            "access_key": self.check_access_key,
            "secret_key": self.check_secret_key,
            "bucket_name": self.check_bucket_name,
            "api_domain": self.check_api_domain,
            "rs_domain": self.check_rs_domain,
            "uc_domain": self.check_uc_domain,
            "download_domain": self.check_download_domain,
        }
        record = normalize_record(record)
        with self._lock:
            for name in ("object_name_prefix", "use_https", "infrequent_storage"):
                if name in record:
                    self._draft[name] = record[name]
            return [check(record.get(name) or "") for name, check in checks.items()]

    # ----------------------------
    # Save / load
    # ----------------------------

    def configure(self, record: dict) -> QiniuArtifactManagerFactory:
        """Save a submitted record and activate it.

        Nothing is persisted or registered unless every step succeeds.

        Args:
            record: Raw settings record (templates allowed)

        Returns:
            The registered backend

        Raises:
            ConfigurationError: Missing field, malformed domain, no download domain
            RemoteError: Provider rejected the credentials or was unreachable
        """
        raw = normalize_record(record)
        with self._lock:
            settings = StoreSettings.from_record(raw, self.loader)
            credentials = settings.credentials()
            endpoints = settings.endpoints()
            credentials.require_complete()

            self._validator.validate(credentials, endpoints)
            backend = build_backend(
                credentials,
                endpoints,
                object_name_prefix=settings.object_name_prefix,
                infrequent_storage=settings.infrequent_storage,
                bucket_service_factory=self.bucket_service_factory,
                context=self.context,
            )

            if not settings.download_domain:
                raw["download_domain"] = backend.download_domain

            self.settings_file.save(raw)
            self._draft = dict(raw)
            registered = self.registry.register_or_update(backend)

        logger.info(f"Settings saved to {self.settings_file.path}")
        return registered

    def load(self) -> Optional[QiniuArtifactManagerFactory]:
        """Load stored settings into the draft and register the backend.

        Incomplete settings register nothing. An unreadable settings file or
        a stored record that no longer builds (bad template, revoked key,
        unbound domain) is logged and skipped.

        Returns:
            The registered backend, or None
        """
        with self._lock:
            try:
                raw = self.settings_file.load()
                self._draft = dict(raw)
                settings = StoreSettings.from_record(raw, self.loader)
                credentials = settings.credentials()
                if not credentials.is_complete():
                    logger.info(f"Stored settings are incomplete, missing: {credentials.missing_fields()}")
                    return None

                backend = build_backend(
                    credentials,
                    settings.endpoints(),
                    object_name_prefix=settings.object_name_prefix,
                    infrequent_storage=settings.infrequent_storage,
                    bucket_service_factory=self.bucket_service_factory,
                    context=self.context,
                )
            except QiniuArtifactsError as e:
                logger.warning(f"Cannot set up backend from {self.settings_file.path}: {e}")
                get_logger().log_warning("stored settings not usable", path=str(self.settings_file.path), error=str(e))
                return None

            logger.info(f"Loaded settings from {self.settings_file.path}: access_key={credentials.access_key}")
            return self.registry.register_or_update(backend)

    def record(self) -> dict:
        """Copy of the raw draft record, in record field order."""
        with self._lock:
            return {name: self._draft[name] for name in RECORD_FIELDS if name in self._draft}
