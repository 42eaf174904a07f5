"""Artifact sources: the local cache and Maven-layout remote repositories."""

from .base import ArtifactSource, Descriptor, FetchResult, FetchStatus
from .local import LocalCache
from .maven import MavenRepositorySource

__all__ = [
    "ArtifactSource",
    "Descriptor",
    "FetchResult",
    "FetchStatus",
    "LocalCache",
    "MavenRepositorySource",
]
