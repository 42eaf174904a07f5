"""Dependency graph resolution engine."""

from .conflicts import ConflictResolver
from .graph import GraphBuilder
from .scopes import ScopeFilter, combine, effective_scope
from .service import ResolutionService

__all__ = [
    "ConflictResolver",
    "GraphBuilder",
    "ResolutionService",
    "ScopeFilter",
    "combine",
    "effective_scope",
]
