"""Tests for coordinate, repository and scope models."""

from pathlib import Path

import pytest

from depclosure.exceptions import ArtifactNotFoundError, ConfigurationError, CorruptArtifactError
from depclosure.models import (
    ArtifactCoordinate,
    Exclusion,
    RemoteRepository,
    ResolutionRequest,
    ResolvedArtifact,
    Scope,
)
from depclosure.parser import parse_coordinate


class TestArtifactCoordinate:
    """Coordinate identity and layout."""

    def test_key_ignores_version_and_extension(self):
        a = ArtifactCoordinate("org.example", "lib", "1.0")
        b = ArtifactCoordinate("org.example", "lib", "2.0", extension="pom")
        assert a.key == b.key == ("org.example", "lib", "")

    def test_classifier_is_part_of_key(self):
        a = ArtifactCoordinate("org.example", "lib", "1.0")
        b = ArtifactCoordinate("org.example", "lib", "1.0", classifier="linux-x86_64")
        assert a.key != b.key

    def test_relative_path_with_classifier(self):
        c = ArtifactCoordinate("io.netty", "netty-transport", "4.1.0", classifier="linux-x86_64")
        assert c.relative_path() == (
            "io/netty/netty-transport/4.1.0/netty-transport-4.1.0-linux-x86_64.jar"
        )

    def test_descriptor_drops_classifier(self):
        c = ArtifactCoordinate("org.example", "lib", "1.0", classifier="tests")
        assert c.descriptor().relative_path() == "org/example/lib/1.0/lib-1.0.pom"

    def test_str_form(self):
        assert str(ArtifactCoordinate("g", "a", "1")) == "g:a:1"
        assert str(ArtifactCoordinate("g", "a", "1", "cls", "zip")) == "g:a:1:cls@zip"


class TestParseCoordinate:
    """Coordinate token parsing."""

    def test_three_parts(self):
        c = parse_coordinate("com.google.guava:guava:31.1-jre")
        assert (c.group_id, c.artifact_id, c.version, c.classifier, c.extension) == (
            "com.google.guava", "guava", "31.1-jre", "", "jar"
        )

    def test_classifier_and_extension(self):
        c = parse_coordinate("g:a:1.0:natives@zip")
        assert c.classifier == "natives"
        assert c.extension == "zip"

    def test_explicit_classifier_wins(self):
        assert parse_coordinate("g:a:1.0:x", classifier="y").classifier == "y"

    @pytest.mark.parametrize("token", ["g:a", "g::1.0", "a:b:c:d:e", ""])
    def test_invalid(self, token):
        with pytest.raises(ConfigurationError):
            parse_coordinate(token)


class TestScope:
    """Scope parsing from descriptor text."""

    def test_missing_scope_is_compile(self):
        assert Scope.parse(None) is Scope.COMPILE
        assert Scope.parse("  ") is Scope.COMPILE

    def test_case_insensitive(self):
        assert Scope.parse("Runtime") is Scope.RUNTIME

    def test_import_rejected(self):
        with pytest.raises(ValueError):
            Scope.parse("import")


class TestRemoteRepository:
    """Repository identity comes from the URL."""

    def test_id_derived_from_url(self):
        repo = RemoteRepository("https://repo1.maven.org/maven2/")
        assert repo.url == "https://repo1.maven.org/maven2"
        assert repo.id == "repo1.maven.org-maven2"

    def test_same_url_same_identity(self):
        assert RemoteRepository("https://a.example/r") == RemoteRepository("https://a.example/r/")

    def test_explicit_id_kept(self):
        assert RemoteRepository("https://a.example/r", id="central").id == "central"


def test_exclusion_wildcards():
    c = ArtifactCoordinate("commons-logging", "commons-logging", "1.2")
    assert Exclusion("commons-logging", "commons-logging").matches(c)
    assert Exclusion("commons-logging").matches(c)
    assert Exclusion("*", "*").matches(c)
    assert not Exclusion("org.slf4j", "*").matches(c)


def test_request_accepts_url_strings(tmp_path):
    request = ResolutionRequest.create(
        ArtifactCoordinate("g", "a", "1"), ["https://one.example/m2", RemoteRepository("https://two.example")], tmp_path
    )
    assert [r.url for r in request.repositories] == ["https://one.example/m2", "https://two.example"]
    assert request.cache_dir == Path(tmp_path)


def test_resolved_artifact_to_dict():
    artifact = ResolvedArtifact(ArtifactCoordinate("g", "a", "1"), Path("/c/g/a/1/a-1.jar"), None, Scope.RUNTIME)
    data = artifact.to_dict()
    assert data["origin_url"] is None
    assert data["scope"] == "runtime"
    assert data["local_path"].endswith("a-1.jar")


def test_failure_message_names_coordinate_and_repositories():
    err = CorruptArtifactError(
        ArtifactCoordinate("g", "a", "1"), [RemoteRepository("https://r.example")], "sha1 mismatch"
    )
    assert isinstance(err, ArtifactNotFoundError)
    assert "g:a:1" in str(err)
    assert "https://r.example" in str(err)
    assert err.repositories[0].url == "https://r.example"
