"""On-disk artifact cache in Maven repository layout."""
from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Union

from ..models import ArtifactCoordinate
from .base import ArtifactSource, FetchResult
from .pom import PomParseError, read_descriptor

logger = logging.getLogger(__name__)


class LocalCache(ArtifactSource):
    """Append-only artifact store shared by every resolution using the same root.

    Files are written to a temporary sibling and renamed into place, so a
    reader sees either no file or a complete one. An existing non-empty
    file is never overwritten.
    """

    repository = None

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def path_for(self, coordinate: ArtifactCoordinate) -> Path:
        return self.root.joinpath(*coordinate.relative_path().split("/"))

    def contains(self, coordinate: ArtifactCoordinate) -> bool:
        path = self.path_for(coordinate)
        try:
            return path.is_file() and path.stat().st_size > 0
        except OSError:
            return False

    def try_fetch_binary(self, coordinate: ArtifactCoordinate) -> FetchResult:
        if self.contains(coordinate):
            return FetchResult.success(self.path_for(coordinate))
        return FetchResult.not_found("not cached")

    def try_fetch_descriptor(self, coordinate: ArtifactCoordinate) -> FetchResult:
        """Read the cached POM; an unreadable one is reported as CORRUPT so it can be replaced."""
        pom = coordinate.descriptor()
        if not self.contains(pom):
            return FetchResult.not_found("not cached")
        path = self.path_for(pom)
        try:
            return FetchResult.success(read_descriptor(path.read_bytes()))
        except (OSError, PomParseError) as exc:
            logger.warning("Ignoring unreadable cached descriptor %s: %s", path, exc)
            return FetchResult.corrupt(f"cached descriptor unreadable: {exc}")

    def store(self, coordinate: ArtifactCoordinate, data: bytes, *, replace_existing: bool = False) -> Path:
        """Atomically write ``data`` as the cached file for ``coordinate``.

        When another writer already completed the file, its copy is kept
        unless ``replace_existing`` marks the cached one as known-bad.
        """
        target = self.path_for(coordinate)
        if not replace_existing and self.contains(coordinate):
            return target
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=str(target.parent), prefix=f".{target.name}.", suffix=".part")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
                fh.flush()
                os.fsync(fh.fileno())
            if not replace_existing and self.contains(coordinate):
                # Lost the race; the winner's file is complete.
                os.unlink(tmp_name)
                return target
            os.replace(tmp_name, target)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise
        logger.debug("Cached %s at %s", coordinate, target)
        return target
