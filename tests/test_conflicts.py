"""Tests for nearest-wins conflict resolution."""

import random

from depclosure.models import ArtifactCoordinate, Dependency, GraphNode, Scope
from depclosure.resolver.conflicts import ConflictResolver


def node(version, ordinal, artifact="x", scope=Scope.COMPILE):
    coordinate = ArtifactCoordinate("g", artifact, version)
    return GraphNode(Dependency(coordinate), len(ordinal), scope, (), ordinal)


def test_nearest_wins():
    winners = ConflictResolver().resolve([node("2.0", (1, 0)), node("1.0", (2,))])
    assert [w.coordinate.version for w in winners] == ["1.0"]


def test_tie_broken_by_declaration_order():
    winners = ConflictResolver().resolve([node("2.0", (1, 0)), node("3.0", (0, 4))])
    assert winners[0].coordinate.version == "3.0"


def test_winner_keeps_its_own_scope():
    winners = ConflictResolver().resolve([node("1.0", (0, 1), scope=Scope.RUNTIME), node("2.0", (1, 0, 0))])
    assert winners[0].effective_scope is Scope.RUNTIME


def test_one_winner_per_key_in_ordinal_order():
    nodes = [node("1", (), "root"), node("1", (0,), "a"), node("1", (1,), "b"), node("2", (0, 0), "b")]
    winners = ConflictResolver().resolve(nodes)
    assert [(w.coordinate.artifact_id, w.coordinate.version) for w in winners] == [
        ("root", "1"), ("a", "1"), ("b", "1"),
    ]


def test_independent_of_input_order():
    nodes = [node(str(i), o) for i, o in enumerate([(3,), (0, 2), (1, 1), (0, 1, 1), (2,)])]
    expected = ConflictResolver().resolve(nodes)
    rng = random.Random(7)
    for _ in range(20):
        shuffled = nodes[:]
        rng.shuffle(shuffled)
        assert ConflictResolver().resolve(shuffled) == expected
    assert expected[0].coordinate.version == "4"


def test_subtree_of_loser_is_discarded():
    nodes = [
        node("1", (), "root"),
        node("1", (0,), "x"),
        node("1", (1,), "y"),
        node("2", (1, 0), "x"),
        node("1", (1, 0, 0), "z"),
        node("1", (1, 0, 0, 0), "w"),
    ]
    winners = ConflictResolver().resolve(nodes)
    assert [(w.coordinate.artifact_id, w.coordinate.version) for w in winners] == [
        ("root", "1"), ("x", "1"), ("y", "1"),
    ]


def test_library_reachable_elsewhere_survives_loser_removal():
    nodes = [
        node("1", (0,), "x"),
        node("1", (1,), "y"),
        node("2", (1, 0), "x"),
        node("1", (1, 0, 0), "z"),
        node("2", (1, 1, 0), "z"),
    ]
    winners = ConflictResolver().resolve(nodes)
    assert [(w.coordinate.artifact_id, w.coordinate.version) for w in winners] == [
        ("x", "1"), ("y", "1"), ("z", "2"),
    ]
