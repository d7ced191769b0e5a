"""Link graph construction over a note repository."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from enum import Enum
import logging
import time
from typing import Dict, List, Optional, Sequence, Tuple

from ..models.graph import PHANTOM_GROUP, GraphData, GraphLink, GraphNode, SkippedNote
from .config import AppConfig, get_config
from .repository import NoteRepository, RepositoryUnavailable
from .resolver import PathResolver, ResolverMode
from .wikilinks import (
    classify_group,
    extract_wikilinks,
    normalize_path_to_id,
    note_display_name,
    strip_extension,
)

logger = logging.getLogger(__name__)

PROGRESS_EVERY = 50

FetchResult = Tuple[str, Optional[str], Optional[Exception]]


class PhantomPolicy(str, Enum):
    """What to do with a wikilink whose target matches no note."""

    CREATE = "create"
    DROP = "drop"


@dataclass(frozen=True)
class TraversalPolicy:
    """
    Knobs distinguishing the whole-vault graph from a neighbourhood graph.

    ``max_depth=None`` means every note is a seed and nothing is expanded.
    """

    phantoms: PhantomPolicy
    resolver_mode: ResolverMode
    max_depth: Optional[int] = None
    note_size: float = 1.0
    discovered_size: float = 1.0
    phantom_size: float = 1.0
    incoming_weight: float = 0.0


FULL_GRAPH_POLICY = TraversalPolicy(
    phantoms=PhantomPolicy.DROP,
    resolver_mode=ResolverMode.PERMISSIVE,
    max_depth=None,
    note_size=1.0,
    incoming_weight=0.5,
)

NEIGHBOURHOOD_POLICY = TraversalPolicy(
    phantoms=PhantomPolicy.CREATE,
    resolver_mode=ResolverMode.STRICT,
    max_depth=2,
    note_size=4.0,
    discovered_size=2.0,
    phantom_size=1.0,
)


async def fetch_contents(
    repository: NoteRepository,
    paths: Sequence[str],
    concurrency: int = 8,
) -> List[FetchResult]:
    """
    Fetch note bodies concurrently, returning ``(path, content, error)`` in input order.

    Per-note failures are captured in the tuple. RepositoryUnavailable aborts the
    whole batch and cancels outstanding fetches.
    """
    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def _fetch(path: str) -> FetchResult:
        async with semaphore:
            try:
                return path, await repository.get_content(path), None
            except RepositoryUnavailable:
                raise
            except Exception as exc:
                logger.warning(
                    "Failed to fetch note",
                    extra={"note_path": path, "error": str(exc)},
                )
                return path, None, exc

    tasks = [asyncio.ensure_future(_fetch(path)) for path in paths]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        # Let cancelled fetches unwind and collect sibling failures before propagating.
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


def clamp_depth(requested: Optional[int], config: AppConfig | None = None) -> int:
    """Bound a caller-supplied depth to ``[1, config.max_depth]``."""
    cfg = config or get_config()
    if requested is None:
        return cfg.default_depth
    return max(1, min(int(requested), cfg.max_depth))


class _GraphAccumulator:
    """Node map keyed by identity plus the ordered link list for one build."""

    def __init__(self, extension: str) -> None:
        self.extension = extension
        self.nodes: Dict[str, GraphNode] = {}
        self.links: List[GraphLink] = []

    def has_note(self, path: str) -> bool:
        return normalize_path_to_id(path, self.extension) in self.nodes

    def add_note(self, path: str, size: float) -> str:
        node_id = normalize_path_to_id(path, self.extension)
        node = self.nodes.get(node_id)
        if node is None:
            self.nodes[node_id] = GraphNode(
                id=node_id,
                name=note_display_name(path, self.extension),
                path=path,
                group=classify_group(path),
                val=size,
                exists=True,
            )
        else:
            node.val = max(node.val, size)
        return node_id

    def add_phantom(self, target: str, size: float) -> str:
        node_id = normalize_path_to_id(target, self.extension)
        if node_id not in self.nodes:
            self.nodes[node_id] = GraphNode(
                id=node_id,
                name=note_display_name(target, self.extension),
                path=strip_extension(target, self.extension) + self.extension,
                group=PHANTOM_GROUP,
                val=size,
                exists=False,
            )
        return node_id

    def add_link(self, source_id: str, target_id: str, weight: float) -> None:
        self.links.append(GraphLink(source=source_id, target=target_id))
        if weight:
            self.nodes[target_id].val += weight

    def to_graph_data(self, skipped: List[SkippedNote]) -> GraphData:
        return GraphData(nodes=list(self.nodes.values()), links=self.links, skipped=skipped)


class GraphService:
    """Build whole-vault and neighbourhood link graphs."""

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config = config or get_config()

    def _link_note(
        self,
        graph: _GraphAccumulator,
        resolver: PathResolver,
        source_id: str,
        content: str,
        policy: TraversalPolicy,
    ) -> List[str]:
        """Add edges for every wikilink in ``content``; return the resolved target paths."""
        resolved_paths: List[str] = []
        for link in extract_wikilinks(content):
            if not link.target:
                continue
            target_path = resolver.resolve(link.target)
            if target_path is not None:
                target_id = graph.add_note(target_path, policy.discovered_size)
                graph.add_link(source_id, target_id, policy.incoming_weight)
                resolved_paths.append(target_path)
            elif policy.phantoms is PhantomPolicy.CREATE:
                phantom_id = graph.add_phantom(link.target, policy.phantom_size)
                graph.add_link(source_id, phantom_id, 0)
        return resolved_paths

    async def build_full_graph(
        self,
        repository: NoteRepository,
        policy: TraversalPolicy = FULL_GRAPH_POLICY,
    ) -> GraphData:
        """Graph of every note in the vault and every resolvable link between them."""
        start_time = time.time()
        extension = repository.note_extension
        paths = await repository.list_note_paths()

        graph = _GraphAccumulator(extension)
        for path in paths:
            graph.add_note(path, policy.note_size)

        resolver = PathResolver(paths, mode=policy.resolver_mode, extension=extension)
        skipped: List[SkippedNote] = []
        fetched = await fetch_contents(repository, paths, self.config.fetch_concurrency)

        for processed, (path, content, error) in enumerate(fetched, start=1):
            if error is not None:
                skipped.append(SkippedNote(path=path, error=str(error)))
                continue
            try:
                source_id = normalize_path_to_id(path, extension)
                self._link_note(graph, resolver, source_id, content or "", policy)
            except Exception as exc:
                logger.exception("Failed to process note", extra={"note_path": path})
                skipped.append(SkippedNote(path=path, error=str(exc)))
            if processed % PROGRESS_EVERY == 0:
                logger.info(
                    "Graph progress",
                    extra={"processed": processed, "total": len(paths)},
                )

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Graph built",
            extra={
                "nodes": len(graph.nodes),
                "links": len(graph.links),
                "skipped": len(skipped),
                "duration_ms": f"{duration_ms:.2f}",
            },
        )
        return graph.to_graph_data(skipped)

    async def traverse_from_node(
        self,
        start: str,
        max_depth: int,
        repository: NoteRepository,
        policy: TraversalPolicy = NEIGHBOURHOOD_POLICY,
    ) -> GraphData:
        """
        Breadth-first neighbourhood of ``start`` up to ``max_depth`` hops.

        Levels are expanded in order; fetches within a level run concurrently.
        Nodes at the depth limit are registered when discovered but not expanded.
        """
        if max_depth < 0:
            raise ValueError("max_depth must be non-negative")
        policy = replace(policy, max_depth=max_depth)

        start_time = time.time()
        extension = repository.note_extension
        paths = await repository.list_note_paths()
        resolver = PathResolver(paths, mode=policy.resolver_mode, extension=extension)

        graph = _GraphAccumulator(extension)
        skipped: List[SkippedNote] = []
        visited: set[str] = set()
        frontier: List[str] = [start]
        depth = 0

        while frontier and depth <= max_depth:
            level: List[str] = []
            for path in frontier:
                if path not in visited:
                    visited.add(path)
                    level.append(path)

            to_fetch = [p for p in level if depth < max_depth or not graph.has_note(p)]
            fetched = await fetch_contents(repository, to_fetch, self.config.fetch_concurrency)

            next_frontier: List[str] = []
            for path, content, error in fetched:
                if error is not None:
                    skipped.append(SkippedNote(path=path, error=str(error)))
                    continue
                source_id = graph.add_note(path, policy.note_size)
                if depth >= max_depth:
                    continue
                for target_path in self._link_note(graph, resolver, source_id, content or "", policy):
                    if target_path not in visited:
                        next_frontier.append(target_path)

            frontier = next_frontier
            depth += 1

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Neighbourhood graph built",
            extra={
                "start": start,
                "max_depth": max_depth,
                "nodes": len(graph.nodes),
                "links": len(graph.links),
                "skipped": len(skipped),
                "duration_ms": f"{duration_ms:.2f}",
            },
        )
        return graph.to_graph_data(skipped)


__all__ = [
    "PhantomPolicy",
    "TraversalPolicy",
    "FULL_GRAPH_POLICY",
    "NEIGHBOURHOOD_POLICY",
    "GraphService",
    "clamp_depth",
    "fetch_contents",
]
