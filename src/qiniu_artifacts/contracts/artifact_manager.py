"""Artifact manager contract - what the host's artifact subsystem calls.

The host keeps an ordered list of artifact manager factories. For every
build run it asks a factory for a manager scoped to that run; the manager is
then used for the per-file archive and retrieve operations.
"""

from abc import ABC, abstractmethod


class ArtifactManager(ABC):
    """Artifact storage handle bound to one build run."""

    def __init__(self, run_id: str):
        self.run_id = run_id

    @abstractmethod
    def object_key(self, path: str) -> str:
        """Storage key of an artifact path within this run."""
        ...

    @abstractmethod
    def artifact_url(self, path: str) -> str:
        """URL the host links to for downloading an artifact."""
        ...


class ArtifactManagerFactory(ABC):
    """Interface for storage backends registered with the host.

    Example:
        >>> manager = factory.manager_for("my-job/42")
        >>> manager.artifact_url("target/app.jar")
        'http://cdn.example.com/builds/my-job/42/target/app.jar'
    """

    @abstractmethod
    def manager_for(self, run_id: str) -> ArtifactManager:
        """Create an artifact manager for a build run.

        Construction must not perform I/O.

        Args:
            run_id: Identity of the build run (e.g. "job-name/42")

        Returns:
            ArtifactManager bound to the run
        """
        ...
