"""Name/path search and the raw wikilink index of a vault."""

from __future__ import annotations

import logging
import time
from typing import Dict, List, Optional

from ..models.graph import SearchHit, SkippedNote, VaultIndex
from .config import AppConfig, get_config
from .graph import fetch_contents
from .repository import NoteRepository
from .wikilinks import extract_wikilinks, note_display_name

logger = logging.getLogger(__name__)

INDEX_PROGRESS_EVERY = 100


class IndexerService:
    """Lightweight, stateless lookups over the current vault listing."""

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config = config or get_config()

    async def search_notes(
        self,
        query: str,
        repository: NoteRepository,
        *,
        limit: Optional[int] = None,
    ) -> List[SearchHit]:
        """
        Case-insensitive substring match on path or basename.

        Results keep vault enumeration order and are capped at ``limit``.
        """
        needle = (query or "").strip().lower()
        if not needle:
            return []
        cap = limit if limit is not None else self.config.search_limit
        if cap <= 0:
            return []

        extension = repository.note_extension
        hits: List[SearchHit] = []
        for path in await repository.list_note_paths():
            name = note_display_name(path, extension)
            if needle in path.lower() or needle in name.lower():
                hits.append(SearchHit(path=path, name=name))
                if len(hits) >= cap:
                    break
        return hits

    async def build_index(self, repository: NoteRepository) -> VaultIndex:
        """Every note path with the wikilink targets it contains."""
        start_time = time.time()
        files = await repository.list_note_paths()
        logger.info("Starting vault indexing", extra={"files": len(files)})

        wikilinks: Dict[str, List[str]] = {}
        all_targets: Dict[str, None] = {}
        skipped: List[SkippedNote] = []

        fetched = await fetch_contents(repository, files, self.config.fetch_concurrency)
        for processed, (path, content, error) in enumerate(fetched, start=1):
            if error is not None:
                skipped.append(SkippedNote(path=path, error=str(error)))
                continue
            targets = [link.target for link in extract_wikilinks(content)]
            if targets:
                wikilinks[path] = targets
                for target in targets:
                    all_targets.setdefault(target, None)
            if processed % INDEX_PROGRESS_EVERY == 0:
                logger.info("Index progress", extra={"processed": processed, "total": len(files)})

        logger.info(
            "Indexing complete",
            extra={
                "files": len(files),
                "unique_wikilinks": len(all_targets),
                "skipped": len(skipped),
                "duration_ms": f"{(time.time() - start_time) * 1000:.2f}",
            },
        )
        return VaultIndex(
            files=files,
            wikilinks=wikilinks,
            all_wikilinks=list(all_targets),
            timestamp=int(time.time() * 1000),
            skipped=skipped,
        )


__all__ = ["IndexerService"]
