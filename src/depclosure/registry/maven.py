"""HTTP source for Maven-layout remote repositories."""
from __future__ import annotations

import hashlib
import logging
from typing import Optional

from ..common import http_client
from ..common.logging_utils import extra_context, is_debug_enabled, safe_url
from ..constants import Constants
from ..models import ArtifactCoordinate, RemoteRepository
from .base import ArtifactSource, FetchResult
from .pom import PomParseError, parse_metadata_versions, read_descriptor

logger = logging.getLogger(__name__)


class MavenRepositorySource(ArtifactSource):
    """Reads descriptors, binaries and version listings from one remote repository.

    Each call is a single attempt; retry and fallback across repositories
    are handled by the resolver.
    """

    def __init__(
        self,
        repository: RemoteRepository,
        *,
        timeout: float = Constants.REQUEST_TIMEOUT,
        user_agent: str = Constants.USER_AGENT,
        verify_checksums: bool = True,
    ):
        self.repository = repository
        self._timeout = timeout
        self._user_agent = user_agent
        self._verify_checksums = verify_checksums

    def url_for(self, relative_path: str) -> str:
        return f"{self.repository.url}/{relative_path.lstrip('/')}"

    def _get(self, relative_path: str) -> FetchResult:
        """GET a repository path and classify the outcome; value is the body bytes."""
        url = self.url_for(relative_path)
        status, _, body = http_client.fetch(url, timeout=self._timeout, user_agent=self._user_agent)
        if status == 200:
            return FetchResult.success(body, self.repository)
        if http_client.is_transient_status(status):
            detail = body.decode("utf-8", "replace") if status == http_client.NETWORK_ERROR else f"HTTP {status}"
            logger.info("Transient failure fetching %s: %s", safe_url(url), detail)
            return FetchResult.transient(detail, self.repository)
        return FetchResult.not_found(f"HTTP {status}", self.repository)

    def try_fetch_descriptor(self, coordinate: ArtifactCoordinate) -> FetchResult:
        result = self._get(coordinate.descriptor().relative_path())
        if not result.ok:
            return result
        try:
            descriptor = read_descriptor(result.value)
        except PomParseError as exc:
            # A truncated download looks the same as a malformed file; both are retried.
            return FetchResult.corrupt(str(exc), self.repository)
        if is_debug_enabled(logger):
            logger.debug(
                "Descriptor parsed",
                extra=extra_context(
                    event="parse",
                    component="maven_source",
                    action="fetch_descriptor",
                    outcome="success",
                    target=str(coordinate),
                    repository=self.repository.id,
                    dependency_count=len(descriptor.dependencies),
                )
            )
        return FetchResult.success(descriptor, self.repository)

    def _expected_sha1(self, relative_path: str) -> Optional[str]:
        result = self._get(relative_path + Constants.CHECKSUM_SUFFIX)
        if not result.ok:
            return None
        text = result.value.decode("ascii", "replace").strip()
        # Some repositories publish "<hash>  <filename>".
        return text.split()[0].lower() if text else None

    def try_fetch_binary(self, coordinate: ArtifactCoordinate) -> FetchResult:
        relative = coordinate.relative_path()
        result = self._get(relative)
        if not result.ok or not self._verify_checksums:
            return result
        expected = self._expected_sha1(relative)
        if expected is not None:
            actual = hashlib.sha1(result.value).hexdigest()
            if actual != expected:
                logger.warning(
                    "Checksum mismatch for %s from %s", coordinate, safe_url(self.url_for(relative))
                )
                return FetchResult.corrupt(f"sha1 {actual} != {expected}", self.repository)
        return result

    def try_fetch_versions(self, group_id: str, artifact_id: str) -> FetchResult:
        group_path = group_id.replace(".", "/")
        result = self._get(f"{group_path}/{artifact_id}/{Constants.METADATA_FILE}")
        if not result.ok:
            return result
        try:
            return FetchResult.success(parse_metadata_versions(result.value), self.repository)
        except PomParseError as exc:
            return FetchResult.corrupt(str(exc), self.repository)
