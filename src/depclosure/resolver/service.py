"""Resolution entry point wiring graph expansion, filtering and materialization."""
from __future__ import annotations

import logging
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Dict, List, Optional, Tuple

from ..common.logging_utils import extra_context, Timer
from ..config import ResolverConfig
from ..constants import Constants
from ..exceptions import ArtifactNotFoundError, DependencyResolutionFailure, ResolutionCancelledError
from ..models import (
    CancellationToken,
    Dependency,
    DependencyGraph,
    GraphNode,
    RemoteRepository,
    ResolutionRequest,
    ResolvedArtifact,
    Scope,
)
from ..registry.base import ArtifactSource
from ..registry.local import LocalCache
from ..registry.maven import MavenRepositorySource
from .artifacts import ArtifactFetcher
from .conflicts import ConflictResolver
from .descriptors import DescriptorFetcher, SourceFactory, SourcePool
from .graph import GraphBuilder
from .retry import raise_if_cancelled
from .scopes import ScopeFilter

logger = logging.getLogger(__name__)


class ResolutionService:
    """Resolves the compile/runtime closure of one root artifact per call.

    The service holds only immutable configuration; each resolve() call
    builds its own fetchers and descriptor memo, so one instance may serve
    concurrent calls.
    """

    def __init__(
        self,
        config: Optional[ResolverConfig] = None,
        source_factory: Optional[SourceFactory] = None,
    ):
        self.config = config or ResolverConfig()
        self._source_factory = source_factory or self._maven_source
        self._scope_filter = ScopeFilter()
        self._conflict_resolver = ConflictResolver()

    def _maven_source(self, repository: RemoteRepository) -> ArtifactSource:
        return MavenRepositorySource(
            repository,
            timeout=self.config.request_timeout,
            user_agent=self.config.user_agent,
            verify_checksums=self.config.verify_checksums,
        )

    def resolve(
        self, request: ResolutionRequest, cancel: Optional[CancellationToken] = None
    ) -> List[ResolvedArtifact]:
        """Resolve and materialize the closure of ``request.root``.

        Returns one ResolvedArtifact per (groupId, artifactId, classifier),
        root first, then in depth-first declaration order. Raises a
        DependencyResolutionFailure subclass on the first fatal error.
        """
        repositories = request.repositories
        cache = LocalCache(request.cache_dir)
        sources = SourcePool(self._source_factory)
        descriptors = DescriptorFetcher(cache, sources, self.config, cancel)
        builder = GraphBuilder(descriptors, self.config, cancel)
        artifacts = ArtifactFetcher(cache, sources, self.config, cancel, descriptors)

        logger.info("Resolving %s against %d repositories", request.root, len(repositories))
        with Timer() as t:
            graph = builder.expand(
                Dependency(request.root, Scope.COMPILE),
                repositories,
                halt=self._has_fatal_failure if self.config.strict else None,
            )
            winners, errors = self._select(graph)
            if errors:
                if self.config.strict:
                    raise errors[0]
                for error in errors:
                    logger.warning("Continuing without part of the closure (lenient mode): %s", error)

            resolved = self._materialize_all(winners, artifacts, repositories, cancel)

        logger.info(
            "Resolved %s",
            request.root,
            extra=extra_context(
                event="resolve",
                component="service",
                outcome="success",
                raw_nodes=len(graph.nodes),
                artifacts=len(resolved),
                duration_ms=t.duration_ms(),
            )
        )
        return resolved

    def _select(self, graph: DependencyGraph) -> Tuple[List[GraphNode], List[DependencyResolutionFailure]]:
        """Winners to materialize, and the collected failures that still matter.

        Failed nodes take part in conflict resolution like any other node.
        A failure is only relevant when its node wins; one below a losing
        version is discarded along with that version.
        """
        candidates: Dict[Tuple[int, ...], GraphNode] = {n.ordinal: n for n in graph.nodes}
        for node, _ in graph.failed:
            candidates.setdefault(node.ordinal, node)
        winners = self._conflict_resolver.resolve(self._scope_filter.filter(candidates.values()))
        chosen = {w.ordinal for w in winners}
        described = {n.ordinal for n in graph.nodes}
        errors = [error for node, error in sorted(graph.failed, key=lambda f: f[0].ordinal) if node.ordinal in chosen]
        return [w for w in winners if w.ordinal in described], errors

    def _has_fatal_failure(self, graph: DependencyGraph) -> bool:
        return bool(graph.failed) and bool(self._select(graph)[1])

    def _materialize_all(
        self,
        winners: List[GraphNode],
        artifacts: ArtifactFetcher,
        repositories,
        cancel: Optional[CancellationToken],
    ) -> List[ResolvedArtifact]:
        results: Dict[int, ResolvedArtifact] = {}
        executor = ThreadPoolExecutor(
            max_workers=self.config.max_workers, thread_name_prefix="depclosure-fetch"
        )
        pending: Dict[Future, int] = {
            executor.submit(artifacts.materialize, node.coordinate, repositories): index
            for index, node in enumerate(winners)
        }
        try:
            while pending:
                raise_if_cancelled(cancel, winners[0].coordinate, repositories)
                done, _ = wait(list(pending), timeout=Constants.POLL_INTERVAL_SEC, return_when=FIRST_COMPLETED)
                failures: List[tuple] = []
                for future in done:
                    index = pending.pop(future)
                    try:
                        path, origin = future.result()
                    except DependencyResolutionFailure as exc:
                        failures.append((winners[index].ordinal, index, exc))
                        continue
                    node = winners[index]
                    results[index] = ResolvedArtifact(node.coordinate, path, origin, node.effective_scope)
                for _, index, exc in sorted(failures, key=lambda f: f[0]):
                    self._handle_failure(winners[index], exc)
        finally:
            for future in pending:
                future.cancel()
            executor.shutdown(wait=False, cancel_futures=True)
        return [results[i] for i in sorted(results)]

    def _handle_failure(self, node: GraphNode, exc: DependencyResolutionFailure) -> None:
        """Drop what may be dropped; raise everything else."""
        if node.depth == 0 or isinstance(exc, ResolutionCancelledError):
            raise exc
        if node.optional and isinstance(exc, ArtifactNotFoundError):
            logger.debug("Optional artifact %s unavailable, skipping", node.coordinate)
            return
        if self.config.strict:
            raise exc
        logger.warning("Skipping unresolvable artifact (lenient mode): %s", exc)
