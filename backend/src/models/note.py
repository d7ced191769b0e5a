"""Note-related Pydantic models."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _check_relative_path(value: str) -> str:
    if ".." in value.split("/"):
        raise ValueError("Note path must not contain '..'")
    if "\\" in value:
        raise ValueError("Note path must use Unix-style separators (/)")
    if value.startswith("/"):
        raise ValueError("Note path must be relative (no leading /)")
    return value


class NoteFile(BaseModel):
    """Raw note content together with its revision token."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "path": "projects/graph.md",
                "content": "# Graph\n\nSee [[design|the design]].",
                "revision": "3b18e512dba79e4c8300dd08aeb37f8e728b8dad",
                "size": 34,
            }
        }
    )

    path: str
    content: str
    revision: str = Field(..., description="Opaque token for optimistic-concurrency writes")
    size: int = Field(..., ge=0, description="Stored size in bytes")


class ParsedNote(BaseModel):
    """Note body with frontmatter split out and its wikilink targets listed."""

    path: str
    content: str
    frontmatter: dict[str, Any] = Field(default_factory=dict)
    wikilinks: list[str] = Field(default_factory=list)


class NoteCreate(BaseModel):
    """Request payload to create a note."""

    path: str = Field(..., min_length=1, max_length=256)
    content: str = Field(default="# New Note\n\n", max_length=1_048_576)

    @field_validator("path")
    @classmethod
    def validate_path(cls, value: str) -> str:
        return _check_relative_path(value)


class NoteUpdate(BaseModel):
    """Request payload to update a note."""

    path: str = Field(..., min_length=1, max_length=256)
    content: str = Field(..., min_length=1, max_length=1_048_576)
    revision: str = Field(..., min_length=1, description="Revision the edit was based on")

    @field_validator("path")
    @classmethod
    def validate_path(cls, value: str) -> str:
        return _check_relative_path(value)


class NoteWriteResult(BaseModel):
    """Outcome of a create or update."""

    success: bool = True
    path: str
    revision: str


class VaultEntry(BaseModel):
    """One entry of a directory listing."""

    path: str
    name: str
    type: Literal["file", "dir"]
    revision: Optional[str] = None
    size: Optional[int] = None


class VaultTree(BaseModel):
    """A single directory level split into files and subdirectories."""

    files: list[VaultEntry] = Field(default_factory=list)
    dirs: list[VaultEntry] = Field(default_factory=list)


class RepoSelection(BaseModel):
    """Which remote repository (and branch) holds the vault."""

    owner: str = Field(..., min_length=1)
    repo: str = Field(..., min_length=1)
    branch: str = Field(default="main", min_length=1)


__all__ = [
    "NoteFile",
    "ParsedNote",
    "NoteCreate",
    "NoteUpdate",
    "NoteWriteResult",
    "VaultEntry",
    "VaultTree",
    "RepoSelection",
]
