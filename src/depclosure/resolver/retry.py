"""Bounded retry with backoff and ordered repository fallback."""
from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Sequence

from ..config import ResolverConfig
from ..exceptions import (
    ArtifactNotFoundError,
    CorruptArtifactError,
    DependencyResolutionFailure,
    ResolutionCancelledError,
    TransientFetchError,
)
from ..models import ArtifactCoordinate, CancellationToken, RemoteRepository
from ..registry.base import ArtifactSource, FetchResult, FetchStatus

logger = logging.getLogger(__name__)


def raise_if_cancelled(
    cancel: Optional[CancellationToken],
    coordinate: Optional[ArtifactCoordinate] = None,
    repositories: Sequence[RemoteRepository] = (),
) -> None:
    if cancel is not None and cancel.cancelled:
        raise ResolutionCancelledError(coordinate, repositories)


def backoff_delay(attempt: int, config: ResolverConfig) -> float:
    """Exponential delay before retry number ``attempt`` (1-based)."""
    return min(config.retry_base_delay * (2 ** (attempt - 1)), config.retry_max_delay)


def attempt_with_retry(
    fetch_once: Callable[[], FetchResult],
    coordinate: ArtifactCoordinate,
    config: ResolverConfig,
    cancel: Optional[CancellationToken] = None,
) -> FetchResult:
    """Call ``fetch_once`` until it succeeds, reports absence, or retries run out."""
    result = FetchResult.transient("not attempted")
    for attempt in range(1, config.retry_attempts + 1):
        raise_if_cancelled(cancel, coordinate)
        result = fetch_once()
        if not result.retryable:
            return result
        if attempt == config.retry_attempts:
            break
        delay = backoff_delay(attempt, config)
        logger.debug(
            "Retrying %s in %.2fs after %s (attempt %d/%d)",
            coordinate, delay, result.status.value, attempt, config.retry_attempts,
        )
        if cancel is not None:
            if cancel.wait(delay):
                raise_if_cancelled(cancel, coordinate)
        else:
            time.sleep(delay)
    return result


def fetch_first(
    sources: Sequence[ArtifactSource],
    operation: Callable[[ArtifactSource], FetchResult],
    coordinate: ArtifactCoordinate,
    config: ResolverConfig,
    cancel: Optional[CancellationToken] = None,
) -> FetchResult:
    """Try ``sources`` in order; the first success wins.

    When every source fails, the combined status is CORRUPT or TRANSIENT if
    any source ended that way after retries, otherwise NOT_FOUND.
    """
    failures = []
    for source in sources:
        result = attempt_with_retry(lambda: operation(source), coordinate, config, cancel)
        if result.ok:
            return result
        failures.append(result)

    statuses = {r.status for r in failures}
    detail = "; ".join(
        f"{r.repository.id if r.repository else 'cache'}: {r.detail or r.status.value}" for r in failures
    ) or "no repositories"
    if FetchStatus.CORRUPT in statuses:
        return FetchResult.corrupt(detail)
    if FetchStatus.TRANSIENT in statuses:
        return FetchResult.transient(detail)
    return FetchResult.not_found(detail)


def failure_for(
    result: FetchResult,
    coordinate: ArtifactCoordinate,
    repositories: Sequence[RemoteRepository],
) -> DependencyResolutionFailure:
    """Turn an exhausted FetchResult into the matching exception."""
    if result.status is FetchStatus.CORRUPT:
        return CorruptArtifactError(coordinate, repositories, result.detail)
    if result.status is FetchStatus.TRANSIENT:
        return TransientFetchError(coordinate, repositories, result.detail)
    return ArtifactNotFoundError(coordinate, repositories, result.detail)
