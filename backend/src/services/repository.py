"""Note repository contract, its error taxonomy, and an in-memory implementation."""

from __future__ import annotations

import hashlib
from typing import Any, Dict, List, Mapping, Optional, Protocol, runtime_checkable

from fastapi import status

from ..models.note import NoteFile, VaultEntry, VaultTree
from .wikilinks import DEFAULT_NOTE_EXTENSION


class RepositoryError(Exception):
    """Base error raised by note repositories."""

    default_error = "repository_error"
    default_status = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        *,
        error: Optional[str] = None,
        status_code: Optional[int] = None,
        detail: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.error = error or self.default_error
        self.message = message
        self.status_code = status_code or self.default_status
        self.detail = detail or {}


class RepositoryUnavailable(RepositoryError):
    """Transport or authorization failure talking to the backing store."""

    default_error = "repository_unavailable"
    default_status = status.HTTP_502_BAD_GATEWAY


class NotFoundError(RepositoryError):
    """The requested note (or repository) does not exist."""

    default_error = "not_found"
    default_status = status.HTTP_404_NOT_FOUND


class ConflictError(RepositoryError):
    """A write collided with existing state (path exists or stale revision)."""

    default_error = "version_conflict"
    default_status = status.HTTP_409_CONFLICT


@runtime_checkable
class NoteRepository(Protocol):
    """Narrow interface the graph engine uses to reach the backing store."""

    note_extension: str

    async def list_note_paths(self) -> List[str]:
        """Every note path under the vault root, in enumeration order."""
        ...

    async def list_directory(self, path: str = "") -> VaultTree:
        ...

    async def get_content(self, path: str) -> str:
        ...

    async def get_content_with_revision(self, path: str) -> NoteFile:
        ...

    async def create_note(self, path: str, content: str) -> str:
        """Create a note and return its new revision."""
        ...

    async def update_note(self, path: str, content: str, revision: str) -> str:
        """Replace a note's content if ``revision`` is current; return the new revision."""
        ...


def content_revision(data: bytes) -> str:
    """Git blob SHA-1 of ``data``, matching what GitHub reports for file contents."""
    header = f"blob {len(data)}\0".encode("utf-8")
    return hashlib.sha1(header + data).hexdigest()


class InMemoryNoteRepository:
    """Dict-backed repository; insertion order is enumeration order."""

    def __init__(
        self,
        notes: Optional[Mapping[str, str]] = None,
        *,
        note_extension: str = DEFAULT_NOTE_EXTENSION,
    ) -> None:
        self.note_extension = note_extension
        self._notes: Dict[str, str] = dict(notes or {})

    async def list_note_paths(self) -> List[str]:
        return [path for path in self._notes if path.endswith(self.note_extension)]

    async def list_directory(self, path: str = "") -> VaultTree:
        prefix = f"{path.strip('/')}/" if path.strip("/") else ""
        tree = VaultTree()
        seen_dirs: Dict[str, None] = {}
        for note_path, content in self._notes.items():
            if not note_path.startswith(prefix):
                continue
            head, sep, _ = note_path[len(prefix):].partition("/")
            if sep:
                if head not in seen_dirs:
                    seen_dirs[head] = None
                    tree.dirs.append(VaultEntry(path=prefix + head, name=head, type="dir"))
                continue
            data = content.encode("utf-8")
            tree.files.append(
                VaultEntry(
                    path=note_path,
                    name=head,
                    type="file",
                    revision=content_revision(data),
                    size=len(data),
                )
            )
        if prefix and not tree.files and not tree.dirs:
            raise NotFoundError(f"Directory not found: {path}")
        return tree

    async def get_content(self, path: str) -> str:
        try:
            return self._notes[path]
        except KeyError as exc:
            raise NotFoundError(f"Note not found: {path}") from exc

    async def get_content_with_revision(self, path: str) -> NoteFile:
        content = await self.get_content(path)
        data = content.encode("utf-8")
        return NoteFile(path=path, content=content, revision=content_revision(data), size=len(data))

    async def create_note(self, path: str, content: str) -> str:
        if path in self._notes:
            raise ConflictError(f"Note already exists: {path}", error="note_already_exists")
        self._notes[path] = content
        return content_revision(content.encode("utf-8"))

    async def update_note(self, path: str, content: str, revision: str) -> str:
        current = await self.get_content_with_revision(path)
        if current.revision != revision:
            raise ConflictError(
                f"Revision conflict: expected {revision}, got {current.revision}",
                detail={"current_revision": current.revision},
            )
        self._notes[path] = content
        return content_revision(content.encode("utf-8"))


__all__ = [
    "RepositoryError",
    "RepositoryUnavailable",
    "NotFoundError",
    "ConflictError",
    "NoteRepository",
    "InMemoryNoteRepository",
    "content_revision",
]
