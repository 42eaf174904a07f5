"""Failure taxonomy for dependency resolution.

Every resolution failure carries the offending coordinate and the
repositories that were attempted so callers can report it as-is.
"""

from __future__ import annotations

from typing import Iterable, Optional, Tuple

from .models import ArtifactCoordinate, RemoteRepository


class ConfigurationError(ValueError):
    """Invalid configuration value or unparsable coordinate."""


class DependencyResolutionFailure(Exception):
    """Base class for every failure surfaced by resolve()."""

    reason = "resolution failed"

    def __init__(
        self,
        coordinate: Optional[ArtifactCoordinate],
        repositories: Iterable[RemoteRepository] = (),
        detail: Optional[str] = None,
    ):
        self.coordinate = coordinate
        self.repositories: Tuple[RemoteRepository, ...] = tuple(repositories)
        self.detail = detail
        super().__init__(self._format())

    def _format(self) -> str:
        target = str(self.coordinate) if self.coordinate is not None else "<unknown>"
        message = f"{target}: {self.reason}"
        if self.repositories:
            message += " (tried " + ", ".join(r.url for r in self.repositories) + ")"
        if self.detail:
            message += f": {self.detail}"
        return message


class ArtifactNotFoundError(DependencyResolutionFailure):
    """Coordinate absent on every repository provided."""

    reason = "not found"


class TransientFetchError(DependencyResolutionFailure):
    """Network, timeout or server error that persisted through all retries."""

    reason = "transient fetch failure"


class CorruptArtifactError(ArtifactNotFoundError):
    """Fetched bytes failed an integrity check on every attempt."""

    reason = "corrupt artifact"


class ResolutionCancelledError(DependencyResolutionFailure):
    """The caller cancelled the resolution."""

    reason = "resolution cancelled"


class IncompleteDescriptorError(ArtifactNotFoundError):
    """The descriptor declares dependencies whose versions cannot be determined."""

    reason = "incomplete descriptor"
