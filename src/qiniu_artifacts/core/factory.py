"""Backend factory - builds the immutable backend configuration.

A backend is only built from complete credentials, and only once a download
domain is known (configured, or discovered from the bucket). The resulting
``QiniuArtifactManagerFactory`` is what gets registered with the host.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

from pydantic import SecretStr

from qiniu_artifacts.contracts.artifact_manager import ArtifactManager, ArtifactManagerFactory
from qiniu_artifacts.contracts.bucket_service import BucketServiceFactory
from qiniu_artifacts.core.credentials import CredentialSet
from qiniu_artifacts.core.discovery import DomainDiscovery
from qiniu_artifacts.core.endpoints import (
    EndpointContext,
    EndpointSet,
    ResolvedEndpoints,
    get_endpoint_context,
)
from qiniu_artifacts.observability import get_logger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BackendConfig:
    """Validated backend configuration. Never mutated; replaced wholesale."""

    credentials: CredentialSet
    endpoints: ResolvedEndpoints
    object_name_prefix: str = ""
    infrequent_storage: bool = False

    @property
    def access_key(self) -> str:
        return self.credentials.access_key

    @property
    def secret_key(self) -> SecretStr:
        return self.credentials.secret_key

    @property
    def bucket_name(self) -> str:
        return self.credentials.bucket_name

    @property
    def download_domain(self) -> str:
        return self.endpoints.download_domain

    @property
    def api_domain(self) -> str:
        return self.endpoints.api_host

    @property
    def rs_domain(self) -> str:
        return self.endpoints.rs_host

    @property
    def uc_domain(self) -> str:
        return self.endpoints.uc_host

    @property
    def use_https(self) -> bool:
        return self.endpoints.use_https


class QiniuArtifactManager(ArtifactManager):
    """Artifact handle for one build run.

    Binds the run identity to the backend configuration; the transfer
    operations themselves live in the host's archive/retrieve path.
    """

    def __init__(self, run_id: str, config: BackendConfig):
        super().__init__(run_id)
        self.config = config

    def object_key(self, path: str) -> str:
        """Key layout: <object_name_prefix><run_id>/<path>."""
        return f"{self.config.object_name_prefix}{self.run_id.strip('/')}/{path.lstrip('/')}"

    def artifact_url(self, path: str) -> str:
        return self.config.endpoints.download_url(quote(self.object_key(path)))


class QiniuArtifactManagerFactory(ArtifactManagerFactory):
    """Storage backend registered in the host's artifact manager list.

    The configuration can be swapped in place (see ``update_from``) so code
    holding a reference to the registered instance sees new settings.
    """

    def __init__(self, config: BackendConfig):
        self._config = config
        self._lock = threading.Lock()

    @property
    def config(self) -> BackendConfig:
        with self._lock:
            return self._config

    def update_from(self, other: "QiniuArtifactManagerFactory") -> None:
        """Replace this instance's configuration with another's."""
        new_config = other.config
        with self._lock:
            self._config = new_config

    def manager_for(self, run_id: str) -> QiniuArtifactManager:
        logger.info(f"Creating artifact manager for run {run_id}")
        return QiniuArtifactManager(run_id, self.config)

    @property
    def access_key(self) -> str:
        return self.config.access_key

    @property
    def secret_key(self) -> SecretStr:
        return self.config.secret_key

    @property
    def bucket_name(self) -> str:
        return self.config.bucket_name

    @property
    def object_name_prefix(self) -> str:
        return self.config.object_name_prefix

    @property
    def download_domain(self) -> str:
        return self.config.download_domain

    @property
    def api_domain(self) -> str:
        return self.config.api_domain

    @property
    def rs_domain(self) -> str:
        return self.config.rs_domain

    @property
    def uc_domain(self) -> str:
        return self.config.uc_domain

    @property
    def use_https(self) -> bool:
        return self.config.use_https

    @property
    def infrequent_storage(self) -> bool:
        return self.config.infrequent_storage

    def __repr__(self) -> str:
        config = self.config
        return (
            f"QiniuArtifactManagerFactory(access_key={config.access_key!r}, "
            f"bucket_name={config.bucket_name!r}, download_domain={config.download_domain!r})"
        )


def build_backend(
    credentials: CredentialSet,
    endpoints: EndpointSet,
    object_name_prefix: str = "",
    infrequent_storage: bool = False,
    bucket_service_factory: Optional[BucketServiceFactory] = None,
    context: Optional[EndpointContext] = None,
) -> QiniuArtifactManagerFactory:
    """Build a backend from validated inputs.

    Args:
        credentials: Access key, secret key and bucket
        endpoints: Operator endpoints; an empty download domain is discovered
        object_name_prefix: Prepended to every artifact key
        infrequent_storage: Use the infrequent-access storage class
        bucket_service_factory: Bucket service used for discovery
        context: Endpoint context (process-wide by default)

    Returns:
        QiniuArtifactManagerFactory wrapping an immutable BackendConfig

    Raises:
        MissingFieldError: If access_key, secret_key or bucket_name is empty
        NoDownloadDomainError: If no download domain can be determined
        RemoteError: If domain discovery fails
    """
    credentials.require_complete()
    context = context or get_endpoint_context()

    discovery = DomainDiscovery(bucket_service_factory, context)
    download_domain = discovery.resolve_download_domain(
        credentials, endpoints, endpoints.download_domain
    )

    resolved = context.resolve(endpoints).with_download_domain(download_domain)
    config = BackendConfig(
        credentials=credentials,
        endpoints=resolved,
        object_name_prefix=object_name_prefix or "",
        infrequent_storage=infrequent_storage,
    )

    logger.info(
        f"Backend is configured: access_key={config.access_key}, "
        f"bucket_name={config.bucket_name}, download_domain={config.download_domain}"
    )
    get_logger().log_backend_configured(config.access_key, config.bucket_name, config.download_domain)
    return QiniuArtifactManagerFactory(config)
