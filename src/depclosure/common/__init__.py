"""Helpers shared across the resolver and repository sources."""
