"""Service layer for business logic and external integrations."""

from .autosave import AutoSaver, NoteAutoSaver
from .backlinks import BacklinkService, find_context_line
from .config import AppConfig, get_config, reload_config
from .github import GitHubNoteRepository
from .graph import (
    FULL_GRAPH_POLICY,
    NEIGHBOURHOOD_POLICY,
    GraphService,
    PhantomPolicy,
    TraversalPolicy,
    clamp_depth,
)
from .indexer import IndexerService
from .repository import (
    ConflictError,
    InMemoryNoteRepository,
    NoteRepository,
    NotFoundError,
    RepositoryError,
    RepositoryUnavailable,
)
from .resolver import PathResolver, ResolverMode, resolve_wikilink
from .vault import VaultService, sanitize_path, validate_note_path
from .wikilinks import WikiLink, extract_wikilinks, normalize_path_to_id, parse_note

__all__ = [
    "AppConfig",
    "get_config",
    "reload_config",
    "WikiLink",
    "extract_wikilinks",
    "normalize_path_to_id",
    "parse_note",
    "PathResolver",
    "ResolverMode",
    "resolve_wikilink",
    "NoteRepository",
    "InMemoryNoteRepository",
    "RepositoryError",
    "RepositoryUnavailable",
    "NotFoundError",
    "ConflictError",
    "GitHubNoteRepository",
    "VaultService",
    "sanitize_path",
    "validate_note_path",
    "GraphService",
    "TraversalPolicy",
    "PhantomPolicy",
    "FULL_GRAPH_POLICY",
    "NEIGHBOURHOOD_POLICY",
    "clamp_depth",
    "BacklinkService",
    "find_context_line",
    "IndexerService",
    "AutoSaver",
    "NoteAutoSaver",
]
