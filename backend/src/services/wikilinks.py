"""Wikilink extraction and note identity helpers."""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Any, Dict, List, Optional, Tuple

import frontmatter

DEFAULT_NOTE_EXTENSION = ".md"

# [[target]] or [[target|alias]]; target excludes ']' and '|', alias excludes ']'.
WIKILINK_PATTERN = re.compile(r"\[\[([^\]|]+)(?:\|([^\]]+))?\]\]")

GROUP_PREFIXES: Tuple[Tuple[str, int], ...] = (
    ("log/", 1),
    ("diary/", 2),
    ("sketch/", 3),
    ("projects/", 4),
    ("database/", 5),
)
DEFAULT_GROUP = 0


@dataclass(frozen=True)
class WikiLink:
    """A single reference occurrence found in note text."""

    target: str
    alias: Optional[str] = None


def extract_wikilinks(text: str | None) -> List[WikiLink]:
    """Return every wikilink occurrence in ``text`` in order of appearance."""
    links: List[WikiLink] = []
    for match in WIKILINK_PATTERN.finditer(text or ""):
        alias = match.group(2)
        links.append(
            WikiLink(
                target=match.group(1).strip(),
                alias=alias.strip() if alias is not None else None,
            )
        )
    return links


def strip_extension(path: str, extension: str = DEFAULT_NOTE_EXTENSION) -> str:
    if extension and path.lower().endswith(extension.lower()):
        return path[: -len(extension)]
    return path


def normalize_path_to_id(path: str, extension: str = DEFAULT_NOTE_EXTENSION) -> str:
    """Map a storage path (or a reference target) to its case-insensitive note identity."""
    return strip_extension(path, extension).lower()


def note_display_name(path: str, extension: str = DEFAULT_NOTE_EXTENSION) -> str:
    """Final path segment without the note extension."""
    name = strip_extension(path.rsplit("/", 1)[-1], extension)
    return name or path


def classify_group(path: str) -> int:
    for prefix, group in GROUP_PREFIXES:
        if path.startswith(prefix):
            return group
    return DEFAULT_GROUP


def unique_targets(links: List[WikiLink]) -> List[str]:
    """Targets of ``links`` with duplicates dropped, first occurrence kept."""
    seen: Dict[str, None] = {}
    for link in links:
        if link.target not in seen:
            seen[link.target] = None
    return list(seen.keys())


def parse_note(text: str) -> Dict[str, Any]:
    """
    Split a note into frontmatter and body and list the wikilink targets of the body.

    Malformed frontmatter is treated as plain body text.
    """
    try:
        post = frontmatter.loads(text or "")
        metadata = dict(post.metadata or {})
        body = post.content or ""
    except Exception:
        metadata = {}
        body = text or ""
    return {
        "content": body,
        "frontmatter": metadata,
        "wikilinks": unique_targets(extract_wikilinks(body)),
    }


__all__ = [
    "DEFAULT_NOTE_EXTENSION",
    "WIKILINK_PATTERN",
    "WikiLink",
    "extract_wikilinks",
    "strip_extension",
    "normalize_path_to_id",
    "note_display_name",
    "classify_group",
    "unique_targets",
    "parse_note",
]
