"""Debounced saving with an upper bound on how long an edit may stay unsaved."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Literal, Optional

from .config import AppConfig, get_config
from .repository import NoteRepository

logger = logging.getLogger(__name__)

SaveStatus = Literal["saved", "saving", "error"]
SaveCallable = Callable[[str], Awaitable[None]]


class AutoSaver:
    """
    Schedule saves of the latest content.

    Each ``touch`` re-arms the debounce timer. The first unsaved edit also arms a
    max-wait timer that is not re-armed. Whichever timer fires first saves the
    pending content once and disarms both. Saves never overlap. Content from a
    failed save stays pending until a later save succeeds.
    """

    def __init__(
        self,
        save: SaveCallable,
        *,
        debounce_seconds: float,
        max_wait_seconds: float,
    ) -> None:
        if debounce_seconds <= 0 or max_wait_seconds <= 0:
            raise ValueError("Autosave delays must be positive")
        self._save = save
        self.debounce_seconds = debounce_seconds
        self.max_wait_seconds = max_wait_seconds
        self.status: SaveStatus = "saved"
        self.last_error: Optional[BaseException] = None
        self._pending: Optional[str] = None
        self._debounce_handle: Optional[asyncio.TimerHandle] = None
        self._max_wait_handle: Optional[asyncio.TimerHandle] = None
        self._save_lock = asyncio.Lock()
        self._inflight: Optional[asyncio.Task] = None

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def touch(self, content: str) -> None:
        """Record an edit and (re)schedule the save."""
        loop = asyncio.get_running_loop()
        self._pending = content
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
        self._debounce_handle = loop.call_later(self.debounce_seconds, self._fire)
        if self._max_wait_handle is None:
            self._max_wait_handle = loop.call_later(self.max_wait_seconds, self._fire)

    def _disarm(self) -> None:
        for handle in (self._debounce_handle, self._max_wait_handle):
            if handle is not None:
                handle.cancel()
        self._debounce_handle = None
        self._max_wait_handle = None

    def _fire(self) -> None:
        self._disarm()
        if self._pending is None:
            return
        content, self._pending = self._pending, None
        self._inflight = asyncio.ensure_future(self._run_save(content))

    async def _run_save(self, content: str) -> None:
        async with self._save_lock:
            self.status = "saving"
            try:
                await self._save(content)
            except Exception as exc:
                self.status = "error"
                self.last_error = exc
                if self._pending is None:
                    # Newer edits supersede the failed content.
                    self._pending = content
                logger.exception("Autosave failed")
                return
            self.last_error = None
            self.status = "saved"

    async def flush(self) -> None:
        """Save pending content now and wait for any save in flight."""
        self._fire()
        if self._inflight is not None:
            await self._inflight

    def cancel(self) -> None:
        """Drop unsaved content and disarm timers."""
        self._disarm()
        self._pending = None


class NoteAutoSaver(AutoSaver):
    """AutoSaver that writes one note and carries its revision between saves."""

    def __init__(
        self,
        repository: NoteRepository,
        path: str,
        revision: str,
        *,
        config: AppConfig | None = None,
        debounce_seconds: Optional[float] = None,
        max_wait_seconds: Optional[float] = None,
    ) -> None:
        cfg = config or get_config()
        super().__init__(
            self._write,
            debounce_seconds=debounce_seconds or cfg.autosave_debounce_seconds,
            max_wait_seconds=max_wait_seconds or cfg.autosave_max_wait_seconds,
        )
        self.repository = repository
        self.path = path
        self.revision = revision

    async def _write(self, content: str) -> None:
        self.revision = await self.repository.update_note(self.path, content, self.revision)
        logger.info("Autosaved note", extra={"note_path": self.path, "revision": self.revision})


__all__ = ["AutoSaver", "NoteAutoSaver", "SaveStatus"]
