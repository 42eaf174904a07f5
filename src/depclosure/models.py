"""Data models for coordinates, dependencies, repositories and resolution results."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional, Tuple
from urllib.parse import urlparse

from .constants import Constants


# Type alias for the conflict-resolution identity: (groupId, artifactId, classifier).
LibraryKey = Tuple[str, str, str]


class Scope(Enum):
    """Declared visibility of a dependency edge."""
    COMPILE = "compile"
    RUNTIME = "runtime"
    TEST = "test"
    PROVIDED = "provided"
    SYSTEM = "system"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Scope":
        """Parse descriptor scope text; a missing scope means compile."""
        if value is None or not value.strip():
            return cls.COMPILE
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f"Unsupported dependency scope '{value}'") from None


@dataclass(frozen=True)
class ArtifactCoordinate:
    """Identifies one artifact file."""
    group_id: str
    artifact_id: str
    version: str
    classifier: str = ""
    extension: str = Constants.DEFAULT_EXTENSION

    @property
    def key(self) -> LibraryKey:
        """Identity used for conflict resolution; version is not part of it."""
        return (self.group_id, self.artifact_id, self.classifier)

    def with_version(self, version: str) -> "ArtifactCoordinate":
        return ArtifactCoordinate(self.group_id, self.artifact_id, version, self.classifier, self.extension)

    def descriptor(self) -> "ArtifactCoordinate":
        """Coordinate of the POM describing this artifact."""
        return ArtifactCoordinate(
            self.group_id, self.artifact_id, self.version, "", Constants.DESCRIPTOR_EXTENSION
        )

    def file_name(self) -> str:
        suffix = f"-{self.classifier}" if self.classifier else ""
        return f"{self.artifact_id}-{self.version}{suffix}.{self.extension}"

    def relative_path(self) -> str:
        """Repository layout path, shared by remote repositories and the local cache."""
        group_path = self.group_id.replace(".", "/")
        return f"{group_path}/{self.artifact_id}/{self.version}/{self.file_name()}"

    def __str__(self) -> str:
        text = f"{self.group_id}:{self.artifact_id}:{self.version}"
        if self.classifier:
            text += f":{self.classifier}"
        if self.extension != Constants.DEFAULT_EXTENSION:
            text += f"@{self.extension}"
        return text


@dataclass(frozen=True)
class Exclusion:
    """groupId/artifactId pattern removed from a dependency's subtree; '*' matches anything."""
    group_id: str
    artifact_id: str = "*"

    def matches(self, coordinate: ArtifactCoordinate) -> bool:
        return (
            self.group_id in ("*", coordinate.group_id)
            and self.artifact_id in ("*", coordinate.artifact_id)
        )


@dataclass(frozen=True)
class Dependency:
    """A declared edge in the dependency graph."""
    coordinate: ArtifactCoordinate
    scope: Scope = Scope.COMPILE
    optional: bool = False
    exclusions: FrozenSet[Exclusion] = frozenset()

    def excludes(self, coordinate: ArtifactCoordinate) -> bool:
        return any(ex.matches(coordinate) for ex in self.exclusions)


@dataclass(frozen=True)
class RemoteRepository:
    """A remote repository; list order is the lookup priority."""
    url: str
    id: str = ""

    def __post_init__(self):
        url = self.url.rstrip("/")
        object.__setattr__(self, "url", url)
        if not self.id:
            object.__setattr__(self, "id", self.derive_id(url))

    @staticmethod
    def derive_id(url: str) -> str:
        """Stable identity taken from the URL itself."""
        parsed = urlparse(url)
        host = parsed.hostname or parsed.scheme or "local"
        path = parsed.path.strip("/").replace("/", "-")
        return f"{host}-{path}" if path else host

    def __str__(self) -> str:
        return f"{self.id} ({self.url})"


@dataclass(frozen=True)
class GraphNode:
    """A dependency reached through one specific path from the root.

    ``ordinal`` holds the declaration index of every edge on the path, so
    sorting ordinals reproduces a depth-first walk in declaration order no
    matter in which order the worklist finished.
    """
    dependency: Dependency
    depth: int
    effective_scope: Optional[Scope]
    path: Tuple[LibraryKey, ...]
    ordinal: Tuple[int, ...] = ()
    parent: Optional[ArtifactCoordinate] = None
    origin: Optional[RemoteRepository] = None
    exclusions: FrozenSet[Exclusion] = frozenset()

    @property
    def coordinate(self) -> ArtifactCoordinate:
        return self.dependency.coordinate

    @property
    def key(self) -> LibraryKey:
        return self.dependency.coordinate.key

    @property
    def optional(self) -> bool:
        return self.dependency.optional


@dataclass
class DependencyGraph:
    """Raw expansion result: every node reached plus failures collected on the way.

    ``failed`` pairs each node that could not be fully described with its
    failure. A node whose descriptor was missing appears only there; one
    whose descriptor was incomplete also appears in ``nodes``.
    """
    root: GraphNode
    nodes: List[GraphNode] = field(default_factory=list)
    failed: List[Tuple[GraphNode, Any]] = field(default_factory=list)

    @property
    def errors(self) -> List[Any]:
        return [error for _, error in self.failed]

    def sorted_nodes(self) -> List[GraphNode]:
        return sorted(self.nodes, key=lambda n: n.ordinal)


@dataclass(frozen=True)
class ResolvedArtifact:
    """Final output unit of a resolution."""
    coordinate: ArtifactCoordinate
    local_path: Path
    origin_url: Optional[str]
    scope: Scope = Scope.COMPILE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "group_id": self.coordinate.group_id,
            "artifact_id": self.coordinate.artifact_id,
            "version": self.coordinate.version,
            "classifier": self.coordinate.classifier,
            "extension": self.coordinate.extension,
            "scope": self.scope.value,
            "local_path": str(self.local_path),
            "origin_url": self.origin_url,
        }


@dataclass(frozen=True)
class ResolutionRequest:
    """Resolution input; created per resolve() call."""
    root: ArtifactCoordinate
    repositories: Tuple[RemoteRepository, ...]
    cache_dir: Path

    @classmethod
    def create(cls, root: ArtifactCoordinate, repositories, cache_dir) -> "ResolutionRequest":
        """Build a request accepting repository URL strings as well as RemoteRepository values."""
        repos = tuple(r if isinstance(r, RemoteRepository) else RemoteRepository(str(r)) for r in repositories)
        return cls(root=root, repositories=repos, cache_dir=Path(cache_dir))


class CancellationToken:
    """Thread-safe cancellation signal shared between a caller and one resolve() call."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds; returns True as soon as cancellation is requested."""
        return self._event.wait(timeout)
