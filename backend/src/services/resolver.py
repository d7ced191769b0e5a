"""Resolve wikilink targets to concrete note paths."""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional, Sequence

from .wikilinks import DEFAULT_NOTE_EXTENSION, normalize_path_to_id, note_display_name


class ResolverMode(str, Enum):
    """
    Which last-resort tier to try after exact and basename matching.

    STRICT accepts a candidate whose path ends with ``target + extension``.
    PERMISSIVE accepts the first candidate whose identity merely contains the target.
    """

    STRICT = "strict"
    PERMISSIVE = "permissive"


class PathResolver:
    """
    Tiered matcher over a fixed, ordered list of note paths.

    Tiers are tried in order and the first hit wins; within a tier the first
    candidate in caller order wins. The candidate list is never re-sorted.
    """

    def __init__(
        self,
        paths: Sequence[str],
        *,
        mode: ResolverMode = ResolverMode.STRICT,
        extension: str = DEFAULT_NOTE_EXTENSION,
    ) -> None:
        self.paths: List[str] = list(paths)
        self.mode = mode
        self.extension = extension
        self._identities = [normalize_path_to_id(p, extension) for p in self.paths]
        self._basenames = [note_display_name(p, extension).lower() for p in self.paths]
        self._by_identity: Dict[str, str] = {}
        for path, identity in zip(self.paths, self._identities):
            self._by_identity.setdefault(identity, path)

    def resolve(self, target: str) -> Optional[str]:
        """Return the storage path ``target`` refers to, or None when nothing matches."""
        wanted = normalize_path_to_id(target.strip(), self.extension)
        if not wanted:
            return None

        exact = self._by_identity.get(wanted)
        if exact is not None:
            return exact

        for path, basename in zip(self.paths, self._basenames):
            if basename == wanted:
                return path

        if self.mode is ResolverMode.PERMISSIVE:
            for path, identity in zip(self.paths, self._identities):
                if wanted in identity:
                    return path
            return None

        suffix = wanted + self.extension.lower()
        for path in self.paths:
            if path.lower().endswith(suffix):
                return path
        return None

    def identity_of(self, path: str) -> str:
        return normalize_path_to_id(path, self.extension)


def resolve_wikilink(
    target: str,
    all_paths: Sequence[str],
    *,
    mode: ResolverMode = ResolverMode.STRICT,
    extension: str = DEFAULT_NOTE_EXTENSION,
) -> Optional[str]:
    """One-shot resolution; build a PathResolver instead when resolving many targets."""
    return PathResolver(all_paths, mode=mode, extension=extension).resolve(target)


__all__ = ["ResolverMode", "PathResolver", "resolve_wikilink"]
