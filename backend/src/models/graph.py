"""Graph data models."""

from typing import Dict, List

from pydantic import BaseModel, Field

# Reserved for wikilink targets with no backing note; never produced by path classification.
PHANTOM_GROUP = -1


class GraphNode(BaseModel):
    """Represents a single note (or an unresolved reference) in the graph."""
    id: str = Field(..., description="Normalized note identity (lowercase, extension stripped)")
    name: str = Field(..., description="Display name (basename without extension)")
    path: str = Field(..., description="Storage path of the note")
    group: int = Field(default=0, description="Path-prefix classification")
    val: float = Field(default=1, description="Size hint used for visual weighting")
    exists: bool = Field(default=True, description="False for phantom nodes")


class GraphLink(BaseModel):
    """Represents a directed connection between two notes."""
    source: str = Field(..., description="ID of the source note")
    target: str = Field(..., description="ID of the target note")


class SkippedNote(BaseModel):
    """A note left out of a scan because it could not be fetched or parsed."""
    path: str
    error: str


class GraphData(BaseModel):
    """The top-level payload returned by the API."""
    nodes: List[GraphNode]
    links: List[GraphLink]
    skipped: List[SkippedNote] = Field(default_factory=list)


class BacklinkEntry(BaseModel):
    """A note that references the requested note, with a line of context."""
    path: str
    name: str
    context: str = ""


class BacklinkList(BaseModel):
    backlinks: List[BacklinkEntry]
    skipped: List[SkippedNote] = Field(default_factory=list)


class SearchHit(BaseModel):
    path: str
    name: str


class SearchResponse(BaseModel):
    results: List[SearchHit]


class VaultIndex(BaseModel):
    """Every note path plus the raw wikilink targets each one contains."""
    files: List[str]
    wikilinks: Dict[str, List[str]]
    all_wikilinks: List[str]
    timestamp: int = Field(..., description="Build time in epoch milliseconds")
    skipped: List[SkippedNote] = Field(default_factory=list)


__all__ = [
    "PHANTOM_GROUP",
    "GraphNode",
    "GraphLink",
    "SkippedNote",
    "GraphData",
    "BacklinkEntry",
    "BacklinkList",
    "SearchHit",
    "SearchResponse",
    "VaultIndex",
]
