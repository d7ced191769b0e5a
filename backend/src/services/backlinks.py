"""Reverse-reference lookup."""

from __future__ import annotations

import logging
import time
from typing import List, Optional

from ..models.graph import BacklinkEntry, BacklinkList, SkippedNote
from .config import AppConfig, get_config
from .graph import fetch_contents
from .repository import NoteRepository
from .resolver import PathResolver, ResolverMode
from .wikilinks import extract_wikilinks, normalize_path_to_id, note_display_name

logger = logging.getLogger(__name__)


def find_context_line(content: str, display_name: str) -> str:
    """
    First line mentioning the note, trimmed; empty when none does.

    Best effort: aliased or path-qualified references may be missed or matched
    on an unrelated line.
    """
    bracketed = f"[[{display_name}]]"
    lowered = display_name.lower()
    for line in content.split("\n"):
        if bracketed in line or lowered in line.lower():
            return line.strip()
    return ""


class BacklinkService:
    """Scan the vault for notes that reference a given note."""

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        resolver_mode: ResolverMode = ResolverMode.PERMISSIVE,
    ) -> None:
        self.config = config or get_config()
        self.resolver_mode = resolver_mode

    async def find_backlinks(
        self,
        target_path: str,
        repository: NoteRepository,
    ) -> BacklinkList:
        start_time = time.time()
        extension = repository.note_extension
        target_id = normalize_path_to_id(target_path, extension)
        target_name = note_display_name(target_path, extension)

        paths = await repository.list_note_paths()
        resolver = PathResolver(paths, mode=self.resolver_mode, extension=extension)
        fetched = await fetch_contents(repository, paths, self.config.fetch_concurrency)

        backlinks: List[BacklinkEntry] = []
        skipped: List[SkippedNote] = []
        for source_path, content, error in fetched:
            if error is not None:
                skipped.append(SkippedNote(path=source_path, error=str(error)))
                continue
            try:
                entry = self._backlink_from(source_path, content or "", resolver, target_id, target_name)
            except Exception as exc:
                logger.exception("Failed to check backlinks", extra={"note_path": source_path})
                skipped.append(SkippedNote(path=source_path, error=str(exc)))
                continue
            if entry is not None:
                backlinks.append(entry)

        logger.info(
            "Backlinks collected",
            extra={
                "note_path": target_path,
                "backlinks": len(backlinks),
                "skipped": len(skipped),
                "duration_ms": f"{(time.time() - start_time) * 1000:.2f}",
            },
        )
        return BacklinkList(backlinks=backlinks, skipped=skipped)

    def _backlink_from(
        self,
        source_path: str,
        content: str,
        resolver: PathResolver,
        target_id: str,
        target_name: str,
    ) -> Optional[BacklinkEntry]:
        for link in extract_wikilinks(content):
            if not link.target:
                continue
            linked_path = resolver.resolve(link.target)
            if linked_path is not None and resolver.identity_of(linked_path) == target_id:
                return BacklinkEntry(
                    path=source_path,
                    name=note_display_name(source_path, resolver.extension),
                    context=find_context_line(content, target_name),
                )
        return None


__all__ = ["BacklinkService", "find_context_line"]
