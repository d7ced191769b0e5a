"""HTTP API route handlers."""

from . import graph, notes, search, system, vault

__all__ = ["graph", "notes", "search", "system", "vault"]
