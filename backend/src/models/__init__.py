"""Pydantic models for data validation and serialization."""

from .graph import (
    PHANTOM_GROUP,
    BacklinkEntry,
    BacklinkList,
    GraphData,
    GraphLink,
    GraphNode,
    SearchHit,
    SearchResponse,
    SkippedNote,
    VaultIndex,
)
from .note import (
    NoteCreate,
    NoteFile,
    NoteUpdate,
    NoteWriteResult,
    ParsedNote,
    RepoSelection,
    VaultEntry,
    VaultTree,
)

__all__ = [
    "PHANTOM_GROUP",
    "GraphNode",
    "GraphLink",
    "GraphData",
    "SkippedNote",
    "BacklinkEntry",
    "BacklinkList",
    "SearchHit",
    "SearchResponse",
    "VaultIndex",
    "NoteFile",
    "ParsedNote",
    "NoteCreate",
    "NoteUpdate",
    "NoteWriteResult",
    "VaultEntry",
    "VaultTree",
    "RepoSelection",
]
