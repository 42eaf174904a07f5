"""Shared fixtures: in-memory repositories implementing ArtifactSource."""

import threading
from collections import defaultdict, deque
from typing import Dict, Iterable, List, Optional, Tuple

import pytest

from depclosure.config import ResolverConfig
from depclosure.models import ArtifactCoordinate, Dependency, Exclusion, RemoteRepository, Scope
from depclosure.parser import parse_coordinate
from depclosure.registry.base import ArtifactSource, Descriptor, FetchResult, FetchStatus
from depclosure.registry.pom import read_descriptor
from depclosure.resolver.service import ResolutionService


def coord(token: str) -> ArtifactCoordinate:
    return parse_coordinate(token)


def dep(token: str, scope: str = "compile", optional: bool = False, exclusions: Iterable[str] = ()) -> Dependency:
    """Build a Dependency; exclusions are given as 'group:artifact' strings."""
    excl = frozenset(Exclusion(*e.split(":", 1)) for e in exclusions)
    return Dependency(coord(token), Scope.parse(scope), optional, excl)


class FakeRepository(ArtifactSource):
    """Thread-safe in-memory repository with call counting and failure injection."""

    def __init__(self, url: str):
        self.repository = RemoteRepository(url)
        self.descriptors: Dict[Tuple[str, str, str], List[Dependency]] = {}
        self.poms: Dict[Tuple[str, str, str], bytes] = {}
        self.binaries: Dict[ArtifactCoordinate, bytes] = {}
        self.version_lists: Dict[Tuple[str, str], List[str]] = {}
        self.injected: Dict[str, deque] = defaultdict(deque)
        self.calls: List[Tuple[str, str]] = []
        self._lock = threading.Lock()

    def publish(
        self,
        token: str,
        *deps: Dependency,
        content: Optional[bytes] = None,
        binary: bool = True,
        pom: Optional[bytes] = None,
    ):
        """Publish an artifact declaring ``deps``, or whatever ``pom`` declares when given."""
        coordinate = coord(token)
        gav = (coordinate.group_id, coordinate.artifact_id, coordinate.version)
        self.descriptors[gav] = list(deps)
        if pom is not None:
            self.poms[gav] = pom
        if binary:
            self.binaries[coordinate] = content if content is not None else f"bytes of {token}".encode()
        versions = self.version_lists.setdefault((coordinate.group_id, coordinate.artifact_id), [])
        if coordinate.version not in versions:
            versions.append(coordinate.version)
        return coordinate

    def fail(self, kind: str, token: str, *statuses: FetchStatus):
        """Queue failures returned before the real answer for ``kind`` ('descriptor' or 'binary')."""
        self.injected[f"{kind}:{coord(token)}"].extend(statuses)

    def _record(self, kind: str, coordinate: ArtifactCoordinate) -> Optional[FetchResult]:
        with self._lock:
            self.calls.append((kind, str(coordinate)))
            queue = self.injected.get(f"{kind}:{coordinate}")
            if queue:
                return FetchResult(queue.popleft(), repository=self.repository, detail="injected")
        return None

    def count(self, kind: str, token: str) -> int:
        return sum(1 for k, c in self.calls if k == kind and c == token)

    def try_fetch_descriptor(self, coordinate: ArtifactCoordinate) -> FetchResult:
        injected = self._record("descriptor", coordinate)
        if injected is not None:
            return injected
        gav = (coordinate.group_id, coordinate.artifact_id, coordinate.version)
        if gav in self.poms:
            return FetchResult.success(read_descriptor(self.poms[gav]), self.repository)
        deps = self.descriptors.get(gav)
        if deps is None:
            return FetchResult.not_found("HTTP 404", self.repository)
        return FetchResult.success(Descriptor(tuple(deps)), self.repository)

    def try_fetch_binary(self, coordinate: ArtifactCoordinate) -> FetchResult:
        injected = self._record("binary", coordinate)
        if injected is not None:
            return injected
        data = self.binaries.get(coordinate)
        if data is None:
            return FetchResult.not_found("HTTP 404", self.repository)
        return FetchResult.success(data, self.repository)

    def try_fetch_versions(self, group_id: str, artifact_id: str) -> FetchResult:
        versions = self.version_lists.get((group_id, artifact_id))
        if versions is None:
            return FetchResult.not_found("HTTP 404", self.repository)
        return FetchResult.success(list(versions), self.repository)


@pytest.fixture
def repo():
    return FakeRepository("https://repo.example.com/maven2")


@pytest.fixture
def mirror():
    return FakeRepository("https://mirror.example.com/releases")


@pytest.fixture
def config():
    return ResolverConfig(max_workers=4, retry_base_delay=0.0, retry_attempts=3)


@pytest.fixture
def make_service(config):
    """Build a ResolutionService whose repositories are the given fakes."""
    def _make(*repos: FakeRepository, **overrides) -> ResolutionService:
        by_url = {r.repository.url: r for r in repos}
        return ResolutionService(config.merged(overrides), source_factory=lambda rr: by_url[rr.url])
    return _make
