"""Tests for the on-disk artifact cache."""

import os
from unittest.mock import patch

import pytest

from depclosure.models import ArtifactCoordinate
from depclosure.registry.base import FetchStatus
from depclosure.registry.local import LocalCache

POM = b"""<project><dependencies><dependency>
<groupId>g</groupId><artifactId>dep</artifactId><version>2</version>
</dependency></dependencies></project>"""


@pytest.fixture
def cache(tmp_path):
    return LocalCache(tmp_path / "cache")


def test_layout_is_derived_from_coordinate(cache):
    c = ArtifactCoordinate("org.example.sub", "lib", "1.0", classifier="natives")
    assert cache.path_for(c) == cache.root / "org" / "example" / "sub" / "lib" / "1.0" / "lib-1.0-natives.jar"


def test_store_then_hit(cache):
    c = ArtifactCoordinate("g", "a", "1")
    assert not cache.try_fetch_binary(c).ok
    path = cache.store(c, b"payload")
    hit = cache.try_fetch_binary(c)
    assert hit.ok and hit.value == path
    assert path.read_bytes() == b"payload"
    assert [p.name for p in path.parent.iterdir()] == ["a-1.jar"]


def test_empty_file_is_not_a_hit(cache):
    c = ArtifactCoordinate("g", "a", "1")
    path = cache.path_for(c)
    path.parent.mkdir(parents=True)
    path.write_bytes(b"")
    assert not cache.contains(c)


def test_existing_file_is_not_overwritten(cache):
    c = ArtifactCoordinate("g", "a", "1")
    cache.store(c, b"first")
    cache.store(c, b"second")
    assert cache.path_for(c).read_bytes() == b"first"


def test_replace_existing(cache):
    c = ArtifactCoordinate("g", "a", "1")
    cache.store(c, b"first")
    cache.store(c, b"second", replace_existing=True)
    assert cache.path_for(c).read_bytes() == b"second"


def test_failed_write_leaves_no_file(cache):
    c = ArtifactCoordinate("g", "a", "1")
    with patch("depclosure.registry.local.os.replace", side_effect=OSError("disk full")):
        with pytest.raises(OSError):
            cache.store(c, b"payload")
    assert not cache.path_for(c).exists()
    assert os.listdir(cache.path_for(c).parent) == []


def test_descriptor_served_from_cached_pom(cache):
    c = ArtifactCoordinate("g", "a", "1")
    cache.store(c.descriptor(), POM)
    result = cache.try_fetch_descriptor(c)
    assert result.ok
    assert result.repository is None
    assert [str(d.coordinate) for d in result.value.dependencies] == ["g:dep:2"]


def test_unreadable_cached_pom_is_reported_corrupt(cache):
    c = ArtifactCoordinate("g", "a", "1")
    cache.store(c.descriptor(), b"<project><dependencies>")
    result = cache.try_fetch_descriptor(c)
    assert result.status is FetchStatus.CORRUPT
