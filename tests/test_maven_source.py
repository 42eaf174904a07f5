"""Tests for the HTTP Maven repository source."""

import hashlib
from unittest.mock import MagicMock, patch

import requests

from depclosure.models import ArtifactCoordinate, RemoteRepository
from depclosure.registry.base import FetchStatus
from depclosure.registry.maven import MavenRepositorySource

BASE = "https://repo.example.com/maven2"
COORD = ArtifactCoordinate("org.example", "lib", "1.0")
JAR_URL = f"{BASE}/org/example/lib/1.0/lib-1.0.jar"
POM_URL = f"{BASE}/org/example/lib/1.0/lib-1.0.pom"
POM = b"""<project xmlns="http://maven.apache.org/POM/4.0.0"><dependencies>
<dependency><groupId>g</groupId><artifactId>a</artifactId><version>2</version><scope>runtime</scope></dependency>
</dependencies></project>"""


def _response(status, content=b""):
    res = MagicMock()
    res.status_code = status
    res.content = content
    res.headers = {}
    return res


def _routes(table):
    """requests.get replacement answering from a url -> response/exception table."""
    def fake_get(url, **kwargs):
        outcome = table.get(url, _response(404))
        if isinstance(outcome, Exception):
            raise outcome
        return outcome
    return fake_get


def _source(**kwargs):
    return MavenRepositorySource(RemoteRepository(BASE + "/"), **kwargs)


@patch("depclosure.common.http_client.requests.get")
def test_descriptor_success(mock_get):
    mock_get.side_effect = _routes({POM_URL: _response(200, POM)})
    result = _source().try_fetch_descriptor(COORD)
    assert result.ok
    assert result.repository.url == BASE
    assert result.value.raw == POM
    assert [str(d.coordinate) for d in result.value.dependencies] == ["g:a:2"]
    _, kwargs = mock_get.call_args
    assert kwargs["headers"]["User-Agent"].startswith("depclosure")


@patch("depclosure.common.http_client.requests.get")
def test_descriptor_not_found(mock_get):
    mock_get.side_effect = _routes({})
    assert _source().try_fetch_descriptor(COORD).status is FetchStatus.NOT_FOUND


@patch("depclosure.common.http_client.requests.get")
def test_server_errors_and_timeouts_are_transient(mock_get):
    mock_get.side_effect = _routes({POM_URL: _response(503)})
    assert _source().try_fetch_descriptor(COORD).status is FetchStatus.TRANSIENT

    mock_get.side_effect = _routes({POM_URL: requests.Timeout()})
    result = _source().try_fetch_descriptor(COORD)
    assert result.status is FetchStatus.TRANSIENT
    assert "timed out" in result.detail

    mock_get.side_effect = _routes({POM_URL: requests.ConnectionError("refused")})
    assert _source().try_fetch_descriptor(COORD).status is FetchStatus.TRANSIENT


@patch("depclosure.common.http_client.requests.get")
def test_malformed_descriptor_is_corrupt(mock_get):
    mock_get.side_effect = _routes({POM_URL: _response(200, b"<project><depend")})
    assert _source().try_fetch_descriptor(COORD).status is FetchStatus.CORRUPT


@patch("depclosure.common.http_client.requests.get")
def test_binary_with_matching_checksum(mock_get):
    data = b"jar-bytes"
    sha1 = hashlib.sha1(data).hexdigest()
    mock_get.side_effect = _routes({
        JAR_URL: _response(200, data),
        JAR_URL + ".sha1": _response(200, f"{sha1}  lib-1.0.jar\n".encode()),
    })
    result = _source().try_fetch_binary(COORD)
    assert result.ok and result.value == data


@patch("depclosure.common.http_client.requests.get")
def test_binary_checksum_mismatch_is_corrupt(mock_get):
    mock_get.side_effect = _routes({
        JAR_URL: _response(200, b"truncated"),
        JAR_URL + ".sha1": _response(200, b"0" * 40),
    })
    assert _source().try_fetch_binary(COORD).status is FetchStatus.CORRUPT
    assert _source(verify_checksums=False).try_fetch_binary(COORD).ok


@patch("depclosure.common.http_client.requests.get")
def test_binary_without_checksum_sidecar(mock_get):
    mock_get.side_effect = _routes({JAR_URL: _response(200, b"jar")})
    assert _source().try_fetch_binary(COORD).ok


@patch("depclosure.common.http_client.requests.get")
def test_versions_from_metadata(mock_get):
    metadata = b"<metadata><versioning><versions><version>1.0</version><version>1.1</version></versions></versioning></metadata>"
    mock_get.side_effect = _routes({f"{BASE}/org/example/lib/maven-metadata.xml": _response(200, metadata)})
    result = _source().try_fetch_versions("org.example", "lib")
    assert result.ok and result.value == ["1.0", "1.1"]
