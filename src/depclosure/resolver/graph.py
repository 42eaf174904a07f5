"""Expansion of a root dependency into the raw dependency graph.

Expansion proceeds one depth level at a time, each level fetched on a
bounded thread pool. Every node records the declaration index of each
edge on its path (``ordinal``), which keeps conflict resolution
deterministic however the pool schedules fetches. Duplicates across
branches are kept; choosing between them is left to ConflictResolver.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import replace
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from ..config import ResolverConfig
from ..constants import Constants
from ..exceptions import DependencyResolutionFailure, IncompleteDescriptorError, ResolutionCancelledError
from ..models import CancellationToken, Dependency, DependencyGraph, GraphNode, RemoteRepository
from ..registry.base import FetchResult, dependencies_of
from .descriptors import DescriptorFetcher
from .ranges import is_range, select_version
from .retry import failure_for, raise_if_cancelled
from .scopes import combine

logger = logging.getLogger(__name__)


class GraphBuilder:
    """Builds the raw, possibly conflicting, graph below one root dependency."""

    def __init__(
        self,
        fetcher: DescriptorFetcher,
        config: ResolverConfig,
        cancel: Optional[CancellationToken] = None,
    ):
        self._fetcher = fetcher
        self._config = config
        self._cancel = cancel

    def _pin_version(self, node: GraphNode, repositories: Sequence[RemoteRepository]) -> Tuple[GraphNode, Optional[FetchResult]]:
        """Replace a version range with the highest published match."""
        coordinate = node.coordinate
        if not is_range(coordinate.version):
            return node, None
        listing = self._fetcher.versions(coordinate, repositories)
        if not listing.ok:
            return node, listing
        try:
            chosen = select_version(coordinate.version, listing.value)
        except ValueError as exc:
            return node, FetchResult.not_found(str(exc))
        if chosen is None:
            return node, FetchResult.not_found(f"no published version matches {coordinate.version}")
        logger.debug("Range %s for %s resolved to %s", coordinate.version, coordinate, chosen)
        dependency = replace(node.dependency, coordinate=coordinate.with_version(chosen))
        return replace(node, dependency=dependency), None

    def _expand_one(self, node: GraphNode, repositories: Sequence[RemoteRepository]) -> Tuple[GraphNode, FetchResult]:
        raise_if_cancelled(self._cancel, node.coordinate, repositories)
        node, failure = self._pin_version(node, repositories)
        if failure is not None:
            return node, failure
        result = self._fetcher.fetch(node.coordinate, repositories)
        if result.ok:
            node = replace(node, origin=result.repository)
        return node, result

    def _child(self, parent: GraphNode, dependency: Dependency, index: int) -> Optional[GraphNode]:
        coordinate = dependency.coordinate
        if coordinate.key in parent.path:
            logger.debug("Dropping cyclic edge %s -> %s", parent.coordinate, coordinate)
            return None
        if any(ex.matches(coordinate) for ex in parent.exclusions):
            logger.debug("Excluded %s below %s", coordinate, parent.coordinate)
            return None
        if dependency.optional and parent.depth >= 1 and not self._config.follow_transitive_optionals:
            return None
        if parent.depth + 1 > self._config.max_depth:
            logger.warning("Not expanding %s: depth limit %d reached", coordinate, self._config.max_depth)
            return None
        return GraphNode(
            dependency=dependency,
            depth=parent.depth + 1,
            effective_scope=combine(parent.effective_scope, dependency.scope),
            path=parent.path + (coordinate.key,),
            ordinal=parent.ordinal + (index,),
            parent=parent.coordinate,
            exclusions=parent.exclusions | dependency.exclusions,
        )

    def _children(self, graph: DependencyGraph, parent: GraphNode, declared: Iterable[Dependency]) -> List[GraphNode]:
        """Nodes to expand next below ``parent``; pruned ones are only recorded."""
        children = []
        for index, dependency in enumerate(declared):
            child = self._child(parent, dependency, index)
            if child is None:
                continue
            if child.effective_scope is None:
                # Recorded for the scope filter; its subtree is never needed.
                graph.nodes.append(child)
                continue
            children.append(child)
        return children

    def _expand_level(
        self,
        executor: ThreadPoolExecutor,
        level: List[GraphNode],
        root: Dependency,
        repositories: Sequence[RemoteRepository],
    ) -> List[Tuple[GraphNode, FetchResult]]:
        futures = [executor.submit(self._expand_one, node, repositories) for node in level]
        pending = set(futures)
        try:
            while pending:
                raise_if_cancelled(self._cancel, root.coordinate, repositories)
                _, pending = wait(pending, timeout=Constants.POLL_INTERVAL_SEC)
        finally:
            for future in pending:
                future.cancel()
        return [future.result() for future in futures]

    def expand(
        self,
        root: Dependency,
        repositories: Sequence[RemoteRepository],
        halt: Optional[Callable[[DependencyGraph], bool]] = None,
    ) -> DependencyGraph:
        """Expand ``root`` into a DependencyGraph.

        Raises a DependencyResolutionFailure when the root itself cannot be
        described. Failures of transitive nodes are collected on the graph.
        Nodes are expanded one depth level at a time; ``halt`` is consulted
        after each level and stops expansion when it returns True.
        """
        root_node = GraphNode(
            dependency=root,
            depth=0,
            effective_scope=root.scope,
            path=(root.coordinate.key,),
            exclusions=root.exclusions,
        )
        root_node, result = self._expand_one(root_node, repositories)
        if not result.ok:
            raise failure_for(result, root_node.coordinate, repositories)

        graph = DependencyGraph(root=root_node, nodes=[root_node])
        self._check_versions(graph, root_node, result, repositories)
        level = self._children(graph, root_node, dependencies_of(result))
        executor = ThreadPoolExecutor(
            max_workers=self._config.max_workers, thread_name_prefix="depclosure-graph"
        )
        try:
            while level:
                if halt is not None and halt(graph):
                    logger.debug("Stopping expansion of %s at depth %d", root.coordinate, level[0].depth)
                    break
                next_level: List[GraphNode] = []
                for node, (expanded, outcome) in zip(level, self._expand_level(executor, level, root, repositories)):
                    if outcome.ok:
                        graph.nodes.append(expanded)
                        self._check_versions(graph, expanded, outcome, repositories)
                        next_level.extend(self._children(graph, expanded, dependencies_of(outcome)))
                    elif node.optional:
                        logger.debug("Optional dependency %s unavailable, dropping branch", node.coordinate)
                    else:
                        self._record_failure(graph, expanded, failure_for(outcome, expanded.coordinate, repositories))
                level = next_level
        except ResolutionCancelledError:
            logger.info("Graph expansion for %s cancelled", root.coordinate)
            raise
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        logger.debug("Expanded %s into %d nodes", root.coordinate, len(graph.nodes))
        return graph

    def _check_versions(
        self,
        graph: DependencyGraph,
        node: GraphNode,
        result: FetchResult,
        repositories: Sequence[RemoteRepository],
    ) -> None:
        unresolved = result.value.unresolved
        if unresolved:
            detail = "no version declared or managed for " + ", ".join(unresolved)
            self._record_failure(graph, node, IncompleteDescriptorError(node.coordinate, repositories, detail))

    def _record_failure(self, graph: DependencyGraph, node: GraphNode, failure: DependencyResolutionFailure) -> None:
        logger.debug("Collected failure for %s: %s", node.coordinate, failure)
        graph.failed.append((node, failure))
