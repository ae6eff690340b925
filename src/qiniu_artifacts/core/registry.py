"""Backend registry - keeps exactly one active backend in the host's list.

Configuration is submitted repeatedly (once at startup, once per save, again
after a reload). Appending a new backend each time would leave several
active backends for the host to choose from per build run, so the registry
tracks a single instance and updates it in place instead.
"""

import logging
import threading
from typing import MutableSequence, Optional

from qiniu_artifacts.contracts.artifact_manager import ArtifactManagerFactory
from qiniu_artifacts.core.factory import QiniuArtifactManagerFactory
from qiniu_artifacts.observability import get_logger

logger = logging.getLogger(__name__)


class BackendRegistry:
    """Process-wide singleton slot over the host's extension list.

    All operations run under one lock, so concurrent saves and field checks
    cannot lose an update or insert twice.

    Example:
        >>> factories = []
        >>> registry = BackendRegistry(factories)
        >>> registry.register_or_update(build_backend(creds, endpoints))
        >>> registry.register_or_update(build_backend(other_creds, endpoints))
        >>> len(factories)
        1
    """

    def __init__(self, extensions: MutableSequence[ArtifactManagerFactory]):
        """Initialize registry.

        Args:
            extensions: The host's ordered list of artifact manager factories
        """
        self.extensions = extensions
        self._current: Optional[QiniuArtifactManagerFactory] = None
        self._lock = threading.RLock()

    def get(self) -> Optional[QiniuArtifactManagerFactory]:
        """Return the registered backend, or None if never configured.

        If the host's list no longer contains a backend of ours, the tracked
        instance is put back.
        """
        with self._lock:
            if self._current is not None:
                self._ensure_listed(self._current)
            return self._current

    def insert_if_absent(self, factory: QiniuArtifactManagerFactory) -> QiniuArtifactManagerFactory:
        """Track a backend if none is tracked yet.

        A backend instance already present in the host's list (e.g. left over
        from before a reload) is adopted instead of the given one.

        Returns:
            The tracked instance
        """
        with self._lock:
            if self._current is None:
                existing = self._find_listed()
                if existing is not None:
                    logger.info("Backend was already set up, reusing the registered instance")
                    get_logger().log_registration_skipped(existing.bucket_name)
                    self._current = existing
                    existing.update_from(factory)
                else:
                    self._current = factory
            self._ensure_listed(self._current)
            return self._current

    def update_in_place(self, factory: QiniuArtifactManagerFactory) -> None:
        """Overwrite the tracked backend's configuration with the given one.

        Raises:
            LookupError: If no backend is tracked yet
        """
        with self._lock:
            if self._current is None:
                raise LookupError("No backend registered; use insert_if_absent() first")
            if factory is not self._current:
                self._current.update_from(factory)
            logger.info(f"Backend updated in place: bucket_name={factory.bucket_name}")
            get_logger().log_backend_updated(factory.bucket_name)

    def register_or_update(self, factory: QiniuArtifactManagerFactory) -> QiniuArtifactManagerFactory:
        """Register the backend, or update the registered one in place.

        Safe to call any number of times.

        Returns:
            The registered instance (the first one ever registered)
        """
        with self._lock:
            if self._current is None:
                return self.insert_if_absent(factory)
            self.update_in_place(factory)
            self._ensure_listed(self._current)
            return self._current

    def reset(self) -> None:
        """Forget the tracked backend. Intended for tests."""
        with self._lock:
            self._current = None

    def _find_listed(self) -> Optional[QiniuArtifactManagerFactory]:
        for factory in self.extensions:
            if isinstance(factory, QiniuArtifactManagerFactory):
                return factory
        return None

    def _ensure_listed(self, factory: QiniuArtifactManagerFactory) -> None:
        if self._find_listed() is not None:
            logger.debug("Backend already present in the host's artifact manager list")
            return
        self.extensions.append(factory)
        logger.info("Backend was created and registered with the host")
        get_logger().log_backend_registered(factory.bucket_name)


_registry: Optional[BackendRegistry] = None
_registry_lock = threading.Lock()


def get_registry(extensions: Optional[MutableSequence[ArtifactManagerFactory]] = None) -> BackendRegistry:
    """Get the process-wide backend registry.

    The first call binds the registry to the host's extension list; later
    calls return the same registry.

    Args:
        extensions: Host's artifact manager list (first call only)
    """
    global _registry
    with _registry_lock:
        if _registry is None:
            _registry = BackendRegistry(extensions if extensions is not None else [])
        return _registry
