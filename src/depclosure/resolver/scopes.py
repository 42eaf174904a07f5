"""Scope propagation along dependency paths."""

from typing import Iterable, List, Optional

from ..models import GraphNode, Scope

# Scopes visible to consumers of an artifact.
PROPAGATED = frozenset({Scope.COMPILE, Scope.RUNTIME})


def combine(parent: Optional[Scope], declared: Scope) -> Optional[Scope]:
    """Effective scope of an edge declared with ``declared`` under a node with scope ``parent``.

    Returns None when the edge is not inherited by consumers. Test,
    provided and system dependencies of a dependency never leak, and a
    parent that is itself outside compile/runtime contributes nothing.
    """
    if parent not in PROPAGATED or declared not in PROPAGATED:
        return None
    if parent is Scope.RUNTIME or declared is Scope.RUNTIME:
        return Scope.RUNTIME
    return Scope.COMPILE


def effective_scope(path_scopes: Iterable[Scope]) -> Optional[Scope]:
    """Fold declared scopes from the root edge down to a node.

    The root edge keeps its own declared scope; every later edge goes
    through ``combine``.
    """
    current: Optional[Scope] = None
    for index, declared in enumerate(path_scopes):
        current = declared if index == 0 else combine(current, declared)
        if current is None:
            return None
    return current


class ScopeFilter:
    """Keeps only nodes a consumer needs at compile time or run time."""

    def eligible(self, node: GraphNode) -> bool:
        return node.effective_scope in PROPAGATED

    def filter(self, nodes: Iterable[GraphNode]) -> List[GraphNode]:
        return [n for n in nodes if self.eligible(n)]
