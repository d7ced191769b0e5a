"""Filesystem vault management."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Tuple

from ..models.note import NoteFile, VaultEntry, VaultTree
from .config import AppConfig, get_config
from .repository import ConflictError, NotFoundError, content_revision

logger = logging.getLogger(__name__)

INVALID_PATH_CHARS = {'<', '>', ':', '"', '|', '?', '*'}
MAX_NOTE_BYTES = 1_048_576


def validate_note_path(note_path: str, extension: str = ".md") -> Tuple[bool, str]:
    """
    Validate a relative note path.

    Returns (is_valid, message). Message is empty when valid.
    """
    if not note_path or len(note_path) > 256:
        return False, "Path must be 1-256 characters"
    if not note_path.endswith(extension):
        return False, f"Path must end with {extension}"
    if ".." in note_path:
        return False, "Path must not contain '..'"
    if "\\" in note_path:
        return False, "Path must use Unix separators (/)"
    if note_path.startswith("/"):
        return False, "Path must be relative (no leading /)"
    if any(char in INVALID_PATH_CHARS for char in note_path):
        return False, "Path contains invalid characters"
    return True, ""


def sanitize_path(vault_root: Path, relative_path: str) -> Path:
    """
    Resolve a path within the vault.

    Raises ValueError if the resolved path escapes the vault root.
    """
    vault = vault_root.resolve()
    full_path = (vault / relative_path).resolve()
    if full_path != vault and not full_path.is_relative_to(vault):
        raise ValueError(f"Path escapes vault root: {relative_path}")
    return full_path


def _validate_note_body(body: str) -> bytes:
    body_bytes = body.encode("utf-8")
    if len(body_bytes) > MAX_NOTE_BYTES:
        raise ValueError("Note exceeds 1 MiB limit")
    return body_bytes


class VaultService:
    """Note repository over a directory of Markdown files."""

    def __init__(self, config: AppConfig | None = None, root: Path | None = None) -> None:
        self.config = config or get_config()
        self.vault_root = (root or self.config.vault_base_path).resolve()
        self.note_extension = self.config.note_extension
        self.vault_root.mkdir(parents=True, exist_ok=True)

    def resolve_note_path(self, note_path: str) -> Path:
        """
        Validate and resolve a note path inside the vault.

        Raises ValueError for invalid paths.
        """
        is_valid, message = validate_note_path(note_path, self.note_extension)
        if not is_valid:
            raise ValueError(message)
        return sanitize_path(self.vault_root, note_path)

    def _existing_note(self, note_path: str) -> Path:
        absolute_path = self.resolve_note_path(note_path)
        if not absolute_path.is_file():
            raise NotFoundError(f"Note not found: {note_path}")
        return absolute_path

    async def list_directory(self, path: str = "") -> VaultTree:
        cleaned = path.strip().strip("/")
        directory = sanitize_path(self.vault_root, cleaned) if cleaned else self.vault_root
        if not directory.exists():
            raise NotFoundError(f"Directory not found: {path}")
        if directory.is_file():
            return VaultTree(files=[self._entry(directory)], dirs=[])

        tree = VaultTree()
        for child in sorted(directory.iterdir(), key=lambda item: item.name.lower()):
            if child.name.startswith("."):
                continue
            if child.is_dir():
                relative = child.relative_to(self.vault_root).as_posix()
                tree.dirs.append(VaultEntry(path=relative, name=child.name, type="dir"))
            elif child.is_file():
                tree.files.append(self._entry(child))
        return tree

    async def list_note_paths(self) -> List[str]:
        paths: List[str] = []
        pending = [""]
        # Depth-first, files before subdirectories, same order as the GitHub walk.
        while pending:
            tree = await self.list_directory(pending.pop())
            paths.extend(
                entry.path for entry in tree.files if entry.path.endswith(self.note_extension)
            )
            pending.extend(entry.path for entry in reversed(tree.dirs))
        return paths

    async def get_content(self, path: str) -> str:
        return self._existing_note(path).read_text(encoding="utf-8")

    async def get_content_with_revision(self, path: str) -> NoteFile:
        data = self._existing_note(path).read_bytes()
        return NoteFile(
            path=path,
            content=data.decode("utf-8"),
            revision=content_revision(data),
            size=len(data),
        )

    async def create_note(self, path: str, content: str) -> str:
        absolute_path = self.resolve_note_path(path)
        data = _validate_note_body(content)
        if absolute_path.exists():
            raise ConflictError(f"Note already exists: {path}", error="note_already_exists")
        absolute_path.parent.mkdir(parents=True, exist_ok=True)
        absolute_path.write_bytes(data)
        logger.info("Note created", extra={"note_path": path})
        return content_revision(data)

    async def update_note(self, path: str, content: str, revision: str) -> str:
        absolute_path = self._existing_note(path)
        data = _validate_note_body(content)
        current = content_revision(absolute_path.read_bytes())
        if current != revision:
            raise ConflictError(
                f"Revision conflict: expected {revision}, got {current}",
                detail={"current_revision": current},
            )
        absolute_path.write_bytes(data)
        logger.info("Note updated", extra={"note_path": path})
        return content_revision(data)

    def _entry(self, absolute_path: Path) -> VaultEntry:
        data = absolute_path.read_bytes()
        return VaultEntry(
            path=absolute_path.relative_to(self.vault_root).as_posix(),
            name=absolute_path.name,
            type="file",
            revision=content_revision(data),
            size=len(data),
        )


__all__ = ["VaultService", "validate_note_path", "sanitize_path"]
