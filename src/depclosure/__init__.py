"""depclosure - transitive Maven dependency resolution with a local artifact cache."""

from pathlib import Path
from typing import Iterable, List, Optional, Union

from .config import ResolverConfig, load_config
from .exceptions import (
    ArtifactNotFoundError,
    ConfigurationError,
    CorruptArtifactError,
    DependencyResolutionFailure,
    IncompleteDescriptorError,
    ResolutionCancelledError,
    TransientFetchError,
)
from .models import (
    ArtifactCoordinate,
    CancellationToken,
    Dependency,
    Exclusion,
    RemoteRepository,
    ResolutionRequest,
    ResolvedArtifact,
    Scope,
)
from .resolver.service import ResolutionService

__version__ = "0.1.0"


def resolve(
    group_id: str,
    artifact_id: str,
    version: str,
    classifier: str = "",
    repositories: Iterable[Union[str, RemoteRepository]] = (),
    cache_dir: Union[str, Path] = ".depclosure",
    config: Optional[ResolverConfig] = None,
    cancel: Optional[CancellationToken] = None,
) -> List[ResolvedArtifact]:
    """Resolve the compile and runtime closure of one artifact.

    Repositories are tried in the order given; plain URL strings are
    accepted. Raises a DependencyResolutionFailure subclass on failure.
    """
    root = ArtifactCoordinate(group_id, artifact_id, version, classifier or "")
    request = ResolutionRequest.create(root, repositories, cache_dir)
    return ResolutionService(config).resolve(request, cancel)


__all__ = [
    "ArtifactCoordinate",
    "ArtifactNotFoundError",
    "CancellationToken",
    "ConfigurationError",
    "CorruptArtifactError",
    "Dependency",
    "DependencyResolutionFailure",
    "Exclusion",
    "IncompleteDescriptorError",
    "RemoteRepository",
    "ResolutionCancelledError",
    "ResolutionRequest",
    "ResolutionService",
    "ResolvedArtifact",
    "ResolverConfig",
    "Scope",
    "TransientFetchError",
    "load_config",
    "resolve",
]
