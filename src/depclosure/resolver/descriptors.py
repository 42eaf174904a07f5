"""Descriptor fetching with a per-resolution read-through memo."""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from dataclasses import replace
from typing import Any, Callable, Dict, FrozenSet, Hashable, List, Optional, Sequence, Tuple

from ..config import ResolverConfig
from ..models import ArtifactCoordinate, CancellationToken, RemoteRepository
from ..registry.base import ArtifactSource, Descriptor, FetchResult, FetchStatus
from ..registry.local import LocalCache
from ..registry.pom import ManagedVersions, PomModel, bom_imports, effective_dependencies, managed_versions, read_pom
from .retry import fetch_first

logger = logging.getLogger(__name__)

SourceFactory = Callable[[RemoteRepository], ArtifactSource]


class SourcePool:
    """Creates one ArtifactSource per repository and hands them out in list order."""

    def __init__(self, factory: SourceFactory):
        self._factory = factory
        self._sources: Dict[RemoteRepository, ArtifactSource] = {}
        self._lock = threading.Lock()

    def sources_for(self, repositories: Sequence[RemoteRepository]) -> List[ArtifactSource]:
        with self._lock:
            for repo in repositories:
                if repo not in self._sources:
                    self._sources[repo] = self._factory(repo)
            return [self._sources[repo] for repo in repositories]


def _inherited_failure(kind: str, coordinate: ArtifactCoordinate, failure: FetchResult) -> FetchResult:
    return FetchResult(
        failure.status,
        repository=failure.repository,
        detail=f"{kind} {coordinate} unavailable: {failure.detail or failure.status.value}",
    )


class DescriptorFetcher:
    """Fetches declared dependencies and version listings for one resolve() call.

    Results are memoised by coordinate. Concurrent callers asking for the
    same coordinate share a single in-flight fetch. A POM's own reading is
    memoised separately from its effective one, so parents and BOMs shared
    by many artifacts are fetched once.
    """

    def __init__(
        self,
        cache: LocalCache,
        sources: SourcePool,
        config: ResolverConfig,
        cancel: Optional[CancellationToken] = None,
    ):
        self._cache = cache
        self._sources = sources
        self._config = config
        self._cancel = cancel
        self._memo: Dict[Hashable, Future] = {}
        self._lock = threading.Lock()

    def _memoized(self, key: Hashable, compute: Callable[[], Any]) -> Any:
        with self._lock:
            future = self._memo.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._memo[key] = future
        if not owner:
            return future.result()
        try:
            value = compute()
        except BaseException as exc:
            future.set_exception(exc)
            raise
        future.set_result(value)
        return value

    def fetch(self, coordinate: ArtifactCoordinate, repositories: Sequence[RemoteRepository]) -> FetchResult:
        """Return the effective descriptor of ``coordinate``; the result's repository is the provisional origin."""
        return self._memoized(
            ("descriptor", coordinate.descriptor()),
            lambda: self._effective(coordinate, repositories),
        )

    def origin_of(self, coordinate: ArtifactCoordinate) -> Optional[RemoteRepository]:
        """Repository this call downloaded ``coordinate``'s POM from, or None."""
        with self._lock:
            future = self._memo.get(("pom", coordinate.descriptor()))
        if future is None or not future.done() or future.exception() is not None:
            return None
        result: FetchResult = future.result()
        return result.repository if result.ok else None

    def _standalone(self, coordinate: ArtifactCoordinate, repositories: Sequence[RemoteRepository]) -> FetchResult:
        return self._memoized(
            ("pom", coordinate.descriptor()),
            lambda: self._fetch_uncached(coordinate, repositories),
        )

    def _fetch_uncached(self, coordinate: ArtifactCoordinate, repositories: Sequence[RemoteRepository]) -> FetchResult:
        cached = self._cache.try_fetch_descriptor(coordinate)
        if cached.ok:
            logger.debug("Descriptor for %s served from cache", coordinate)
            return cached

        result = fetch_first(
            self._sources.sources_for(repositories),
            lambda source: source.try_fetch_descriptor(coordinate),
            coordinate,
            self._config,
            self._cancel,
        )
        if result.ok and result.value.raw:
            self._cache.store(
                coordinate.descriptor(),
                result.value.raw,
                replace_existing=cached.status is FetchStatus.CORRUPT,
            )
        if not result.ok:
            logger.debug("Descriptor for %s unavailable: %s", coordinate, result.detail)
        return result

    def _effective(self, coordinate: ArtifactCoordinate, repositories: Sequence[RemoteRepository]) -> FetchResult:
        result = self._standalone(coordinate, repositories)
        if not result.ok or not result.value.inherits:
            return result
        descriptor: Descriptor = result.value
        lineage, failure = self._lineage(coordinate, descriptor, repositories)
        if failure is not None:
            return failure
        imported, failure = self._imported(lineage, repositories, frozenset({coordinate.descriptor()}))
        if failure is not None:
            return failure
        dependencies, unresolved = effective_dependencies(lineage, imported)
        return replace(result, value=replace(descriptor, dependencies=tuple(dependencies), unresolved=tuple(unresolved)))

    def _lineage(
        self, coordinate: ArtifactCoordinate, descriptor: Descriptor, repositories: Sequence[RemoteRepository]
    ) -> Tuple[List[PomModel], Optional[FetchResult]]:
        """Models of a POM and its ancestors, nearest first."""
        lineage = [read_pom(descriptor.raw)]
        seen = {coordinate.descriptor()}
        parent = descriptor.parent
        while parent is not None:
            if parent in seen:
                logger.warning("Parent chain of %s loops back to %s", coordinate, parent)
                break
            seen.add(parent)
            result = self._standalone(parent, repositories)
            if not result.ok:
                return lineage, _inherited_failure("parent POM", parent, result)
            if result.value.raw is None:
                break
            lineage.append(read_pom(result.value.raw))
            parent = result.value.parent
        return lineage, None

    def _imported(
        self,
        lineage: List[PomModel],
        repositories: Sequence[RemoteRepository],
        seen: FrozenSet[ArtifactCoordinate],
    ) -> Tuple[ManagedVersions, Optional[FetchResult]]:
        """Managed versions contributed by imported BOMs; the first import declaring a library wins."""
        imported: ManagedVersions = {}
        for bom in bom_imports(lineage):
            if bom in seen:
                continue
            result = self._standalone(bom, repositories)
            if not result.ok:
                return imported, _inherited_failure("imported BOM", bom, result)
            if result.value.raw is None:
                continue
            bom_lineage, failure = self._lineage(bom, result.value, repositories)
            if failure is None:
                nested, failure = self._imported(bom_lineage, repositories, seen | {bom})
            if failure is not None:
                return imported, failure
            for key, version in managed_versions(bom_lineage, nested).items():
                imported.setdefault(key, version)
        return imported, None

    def versions(self, coordinate: ArtifactCoordinate, repositories: Sequence[RemoteRepository]) -> FetchResult:
        """Union of versions published for the coordinate's group/artifact, in repository order."""
        return self._memoized(
            ("versions", coordinate.group_id, coordinate.artifact_id),
            lambda: self._versions_uncached(coordinate, repositories),
        )

    def _versions_uncached(self, coordinate: ArtifactCoordinate, repositories: Sequence[RemoteRepository]) -> FetchResult:
        merged: List[str] = []
        found = False
        last_failure: Optional[FetchResult] = None
        for source in self._sources.sources_for(repositories):
            result = fetch_first(
                [source],
                lambda s: s.try_fetch_versions(coordinate.group_id, coordinate.artifact_id),
                coordinate,
                self._config,
                self._cancel,
            )
            if not result.ok:
                last_failure = result
                continue
            found = True
            merged.extend(v for v in result.value if v not in merged)
        if found:
            return FetchResult.success(merged)
        return last_failure or FetchResult.not_found("no repositories")
