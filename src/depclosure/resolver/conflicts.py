"""Nearest-wins conflict resolution."""

import logging
from typing import Dict, Iterable, List, Set, Tuple

from ..models import GraphNode, LibraryKey

logger = logging.getLogger(__name__)


def _rank(node: GraphNode):
    # Shallower first, then depth-first declaration order.
    return (node.depth, node.ordinal)


def _below(node: GraphNode, discarded: Set[Tuple[int, ...]]) -> bool:
    return any(node.ordinal[:i] in discarded for i in range(len(node.ordinal)))


class ConflictResolver:
    """Collapses nodes sharing (groupId, artifactId, classifier) into one winner.

    The node closest to the root wins; at equal depth the one declared
    first in a depth-first walk wins. Losers are dropped together with
    everything reached through them, so a library only a losing version
    asked for never makes it into the closure.
    """

    def resolve(self, nodes: Iterable[GraphNode]) -> List[GraphNode]:
        winners: Dict[LibraryKey, GraphNode] = {}
        discarded: Set[Tuple[int, ...]] = set()
        # Ancestors rank before their descendants, so a loser is known
        # before anything below it is considered.
        for node in sorted(nodes, key=_rank):
            if _below(node, discarded):
                discarded.add(node.ordinal)
                continue
            winner = winners.get(node.key)
            if winner is None:
                winners[node.key] = node
                continue
            discarded.add(node.ordinal)
            if node.coordinate.version != winner.coordinate.version:
                logger.debug(
                    "Conflict on %s: %s wins over %s (depth %d vs %d)",
                    ":".join(p for p in node.key if p),
                    winner.coordinate.version, node.coordinate.version,
                    winner.depth, node.depth,
                )
        return sorted(winners.values(), key=lambda n: n.ordinal)
