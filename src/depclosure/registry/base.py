"""Common interface for places artifacts and descriptors can come from."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Tuple

from ..models import ArtifactCoordinate, Dependency, RemoteRepository


class FetchStatus(Enum):
    """Outcome of one fetch attempt against one source."""
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    TRANSIENT = "transient"
    CORRUPT = "corrupt"


@dataclass(frozen=True)
class FetchResult:
    """Tagged result of a fetch; ``value`` is set only on success."""
    status: FetchStatus
    value: Any = None
    repository: Optional[RemoteRepository] = None
    detail: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is FetchStatus.SUCCESS

    @property
    def retryable(self) -> bool:
        return self.status in (FetchStatus.TRANSIENT, FetchStatus.CORRUPT)

    @classmethod
    def success(cls, value: Any, repository: Optional[RemoteRepository] = None) -> "FetchResult":
        return cls(FetchStatus.SUCCESS, value=value, repository=repository)

    @classmethod
    def not_found(cls, detail: Optional[str] = None, repository: Optional[RemoteRepository] = None) -> "FetchResult":
        return cls(FetchStatus.NOT_FOUND, repository=repository, detail=detail)

    @classmethod
    def transient(cls, detail: Optional[str] = None, repository: Optional[RemoteRepository] = None) -> "FetchResult":
        return cls(FetchStatus.TRANSIENT, repository=repository, detail=detail)

    @classmethod
    def corrupt(cls, detail: Optional[str] = None, repository: Optional[RemoteRepository] = None) -> "FetchResult":
        return cls(FetchStatus.CORRUPT, repository=repository, detail=detail)


@dataclass(frozen=True)
class Descriptor:
    """Declared dependencies of one artifact, plus the raw bytes they were read from.

    ``parent`` and ``imports`` name the POMs it inherits settings from;
    ``unresolved`` lists ``group:artifact`` declarations left without a
    version.
    """
    dependencies: Tuple[Dependency, ...]
    raw: Optional[bytes] = None
    parent: Optional[ArtifactCoordinate] = None
    imports: Tuple[ArtifactCoordinate, ...] = ()
    unresolved: Tuple[str, ...] = ()

    @property
    def inherits(self) -> bool:
        return self.raw is not None and (self.parent is not None or bool(self.imports))


class ArtifactSource(ABC):
    """A local cache or a remote repository.

    Implementations return ``FetchResult`` values instead of raising for
    missing artifacts or network trouble.
    """

    repository: Optional[RemoteRepository] = None

    @abstractmethod
    def try_fetch_descriptor(self, coordinate: ArtifactCoordinate) -> FetchResult:
        """Fetch the declared dependencies of ``coordinate``; value is a ``Descriptor``."""

    @abstractmethod
    def try_fetch_binary(self, coordinate: ArtifactCoordinate) -> FetchResult:
        """Fetch the artifact file; value is ``bytes`` (remote) or a ``Path`` (local)."""

    def try_fetch_versions(self, group_id: str, artifact_id: str) -> FetchResult:
        """List published versions; value is a ``List[str]``. Optional capability."""
        return FetchResult.not_found("version listing not supported", self.repository)


def dependencies_of(result: FetchResult) -> List[Dependency]:
    """Dependencies carried by a successful descriptor fetch."""
    descriptor: Descriptor = result.value
    return list(descriptor.dependencies)
