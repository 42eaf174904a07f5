"""Materialization of resolved coordinates into the local cache."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence, Tuple

from ..common.logging_utils import extra_context, is_debug_enabled, Timer
from ..config import ResolverConfig
from ..models import ArtifactCoordinate, CancellationToken, RemoteRepository
from ..registry.local import LocalCache
from .descriptors import DescriptorFetcher, SourcePool
from .retry import failure_for, fetch_first, raise_if_cancelled

logger = logging.getLogger(__name__)


class ArtifactFetcher:
    """Ensures artifact files exist locally and reports where they came from."""

    def __init__(
        self,
        cache: LocalCache,
        sources: SourcePool,
        config: ResolverConfig,
        cancel: Optional[CancellationToken] = None,
        descriptors: Optional[DescriptorFetcher] = None,
    ):
        self._cache = cache
        self._sources = sources
        self._config = config
        self._cancel = cancel
        self._descriptors = descriptors

    def materialize(
        self, coordinate: ArtifactCoordinate, repositories: Sequence[RemoteRepository]
    ) -> Tuple[Path, Optional[str]]:
        """Return (local path, origin URL).

        The origin is None for files already cached before this call. A POM
        artifact stored by this call's descriptor fetch keeps the URL it
        was downloaded from.

        Raises ArtifactNotFoundError, TransientFetchError or
        CorruptArtifactError when no repository yields a valid file.
        """
        raise_if_cancelled(self._cancel, coordinate, repositories)
        cached = self._cache.try_fetch_binary(coordinate)
        if cached.ok:
            if is_debug_enabled(logger):
                logger.debug(
                    "Artifact served from cache",
                    extra=extra_context(
                        event="cache_hit", component="artifact_fetcher", target=str(coordinate)
                    )
                )
            return cached.value, self._descriptor_origin(coordinate)

        with Timer() as t:
            result = fetch_first(
                self._sources.sources_for(repositories),
                lambda source: source.try_fetch_binary(coordinate),
                coordinate,
                self._config,
                self._cancel,
            )
        if not result.ok:
            raise failure_for(result, coordinate, repositories)

        # Cancellation between download and rename leaves nothing in the cache.
        raise_if_cancelled(self._cancel, coordinate, repositories)
        path = self._cache.store(coordinate, result.value)
        origin = result.repository.url if result.repository is not None else None
        logger.info("Downloaded %s from %s (%d ms)", coordinate, origin, t.duration_ms())
        return path, origin

    def _descriptor_origin(self, coordinate: ArtifactCoordinate) -> Optional[str]:
        if self._descriptors is None or coordinate != coordinate.descriptor():
            return None
        repository = self._descriptors.origin_of(coordinate)
        return repository.url if repository is not None else None
