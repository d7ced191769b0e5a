import asyncio

import pytest

from backend.src.models.graph import PHANTOM_GROUP
from backend.src.services.config import AppConfig
from backend.src.services.graph import GraphService, clamp_depth, fetch_contents
from backend.src.services.repository import InMemoryNoteRepository, RepositoryUnavailable


class FlakyRepository(InMemoryNoteRepository):
    """Raises a chosen exception when a given note is fetched."""

    def __init__(self, notes, failures):
        super().__init__(notes)
        self.failures = failures

    async def get_content(self, path):
        if path in self.failures:
            raise self.failures[path]
        return await super().get_content(path)


class SlowRepository(InMemoryNoteRepository):
    """Earlier notes take longer so completion order is the reverse of listing order."""

    async def get_content(self, path):
        paths = list(self._notes)
        await asyncio.sleep(0.01 * (len(paths) - paths.index(path)))
        return await super().get_content(path)


@pytest.fixture()
def graph_service() -> GraphService:
    return GraphService(config=AppConfig(fetch_concurrency=4))


def _ids(graph):
    return [node.id for node in graph.nodes]


def _edges(graph):
    return [(link.source, link.target) for link in graph.links]


@pytest.mark.asyncio
async def test_full_graph_links_resolved_notes(graph_service: GraphService) -> None:
    repo = InMemoryNoteRepository({"a.md": "see [[b]]", "b.md": "hello"})

    graph = await graph_service.build_full_graph(repo)

    assert _ids(graph) == ["a", "b"]
    assert _edges(graph) == [("a", "b")]
    assert all(node.exists for node in graph.nodes)
    assert graph.skipped == []


@pytest.mark.asyncio
async def test_full_graph_grows_targets_per_incoming_link(graph_service: GraphService) -> None:
    repo = InMemoryNoteRepository(
        {"a.md": "[[hub]]", "b.md": "[[hub]] [[hub]]", "hub.md": "center"}
    )

    graph = await graph_service.build_full_graph(repo)
    sizes = {node.id: node.val for node in graph.nodes}

    assert sizes == {"a": 1.0, "b": 1.0, "hub": 2.5}


@pytest.mark.asyncio
async def test_full_graph_drops_unresolved_links(graph_service: GraphService) -> None:
    repo = InMemoryNoteRepository({"a.md": "[[nowhere]] [[b]]", "b.md": ""})

    graph = await graph_service.build_full_graph(repo)

    assert _ids(graph) == ["a", "b"]
    assert _edges(graph) == [("a", "b")]


@pytest.mark.asyncio
async def test_full_graph_has_no_dangling_edges(graph_service: GraphService) -> None:
    repo = InMemoryNoteRepository(
        {
            "log/day.md": "[[projects/plan]] [[ghost]] [[Day]]",
            "projects/plan.md": "[[day|Yesterday]] [[sketch/idea]]",
            "sketch/idea.md": "[[plan]]",
        }
    )

    graph = await graph_service.build_full_graph(repo)
    ids = set(_ids(graph))

    assert graph.links
    for source, target in _edges(graph):
        assert source in ids
        assert target in ids
    assert {node.id: node.group for node in graph.nodes} == {
        "log/day": 1,
        "projects/plan": 4,
        "sketch/idea": 3,
    }


@pytest.mark.asyncio
async def test_full_graph_records_skipped_notes(graph_service: GraphService) -> None:
    repo = FlakyRepository(
        {"a.md": "[[b]]", "b.md": "[[a]]", "bad.md": "[[a]]"},
        failures={"bad.md": RuntimeError("decode failed")},
    )

    graph = await graph_service.build_full_graph(repo)

    assert _ids(graph) == ["a", "b", "bad"]
    assert _edges(graph) == [("a", "b"), ("b", "a")]
    assert [(s.path, s.error) for s in graph.skipped] == [("bad.md", "decode failed")]


@pytest.mark.asyncio
async def test_full_graph_aborts_when_repository_unavailable(graph_service: GraphService) -> None:
    repo = FlakyRepository(
        {"a.md": "x", "b.md": "y"},
        failures={"b.md": RepositoryUnavailable("connection reset")},
    )

    with pytest.raises(RepositoryUnavailable):
        await graph_service.build_full_graph(repo)


@pytest.mark.asyncio
async def test_traversal_creates_phantom_nodes(graph_service: GraphService) -> None:
    repo = InMemoryNoteRepository({"a.md": "see [[missing]]"})

    graph = await graph_service.traverse_from_node("a.md", 2, repo)

    assert _ids(graph) == ["a", "missing"]
    assert _edges(graph) == [("a", "missing")]
    start, phantom = graph.nodes
    assert start.exists is True
    assert phantom.exists is False
    assert phantom.group == PHANTOM_GROUP
    assert phantom.path == "missing.md"


@pytest.mark.asyncio
async def test_traversal_respects_depth_bound(graph_service: GraphService) -> None:
    repo = InMemoryNoteRepository(
        {
            "a.md": "[[b]]",
            "b.md": "[[c]]",
            "c.md": "[[d]]",
            "d.md": "end",
        }
    )

    one = await graph_service.traverse_from_node("a.md", 1, repo)
    two = await graph_service.traverse_from_node("a.md", 2, repo)

    assert _ids(one) == ["a", "b"]
    assert _edges(one) == [("a", "b")]
    assert _ids(two) == ["a", "b", "c"]
    assert _edges(two) == [("a", "b"), ("b", "c")]


@pytest.mark.asyncio
async def test_traversal_depth_zero_returns_start_only(graph_service: GraphService) -> None:
    repo = InMemoryNoteRepository({"a.md": "[[b]]", "b.md": ""})

    graph = await graph_service.traverse_from_node("a.md", 0, repo)

    assert _ids(graph) == ["a"]
    assert graph.links == []


@pytest.mark.asyncio
async def test_traversal_rejects_negative_depth(graph_service: GraphService) -> None:
    repo = InMemoryNoteRepository({"a.md": ""})

    with pytest.raises(ValueError):
        await graph_service.traverse_from_node("a.md", -1, repo)


@pytest.mark.asyncio
async def test_traversal_handles_cycles(graph_service: GraphService) -> None:
    repo = InMemoryNoteRepository({"a.md": "[[b]]", "b.md": "[[a]]"})

    graph = await graph_service.traverse_from_node("a.md", 5, repo)

    assert _ids(graph) == ["a", "b"]
    assert _edges(graph) == [("a", "b"), ("b", "a")]


@pytest.mark.asyncio
async def test_traversal_sizes_start_above_leaves(graph_service: GraphService) -> None:
    repo = InMemoryNoteRepository({"a.md": "[[b]] [[ghost]]", "b.md": "[[c]]", "c.md": ""})

    graph = await graph_service.traverse_from_node("a.md", 1, repo)
    sizes = {node.id: node.val for node in graph.nodes}

    assert sizes == {"a": 4.0, "b": 2.0, "ghost": 1.0}


@pytest.mark.asyncio
async def test_traversal_skips_missing_start(graph_service: GraphService) -> None:
    repo = InMemoryNoteRepository({"a.md": ""})

    graph = await graph_service.traverse_from_node("nope.md", 2, repo)

    assert graph.nodes == []
    assert [s.path for s in graph.skipped] == ["nope.md"]


@pytest.mark.asyncio
async def test_fetch_contents_preserves_listing_order() -> None:
    repo = SlowRepository({"a.md": "1", "b.md": "2", "c.md": "3"})

    fetched = await fetch_contents(repo, ["a.md", "b.md", "c.md"], concurrency=3)

    assert [(path, content) for path, content, _ in fetched] == [
        ("a.md", "1"),
        ("b.md", "2"),
        ("c.md", "3"),
    ]


def test_clamp_depth_bounds_requests() -> None:
    cfg = AppConfig(default_depth=2, max_depth=5)

    assert clamp_depth(None, cfg) == 2
    assert clamp_depth(0, cfg) == 1
    assert clamp_depth(3, cfg) == 3
    assert clamp_depth(99, cfg) == 5


@pytest.mark.asyncio
async def test_fetch_contents_settles_siblings_before_raising() -> None:
    cancelled = []

    class HalfDownRepository(InMemoryNoteRepository):
        async def get_content(self, path):
            if path.startswith("down"):
                raise RepositoryUnavailable(f"{path} unreachable")
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.append(path)
                raise
            return await super().get_content(path)

    repo = HalfDownRepository({"slow.md": "", "down-1.md": "", "down-2.md": ""})

    with pytest.raises(RepositoryUnavailable):
        await fetch_contents(repo, ["slow.md", "down-1.md", "down-2.md"], concurrency=3)

    assert cancelled == ["slow.md"]


@pytest.mark.asyncio
async def test_targets_matching_a_note_identity_never_become_phantoms(graph_service) -> None:
    repo = InMemoryNoteRepository({"a.md": "[[B.MD]] [[b]] [[Notes/C]]", "b.md": "", "notes/c.md": ""})

    graph = await graph_service.traverse_from_node("a.md", 1, repo)

    assert _ids(graph) == ["a", "b", "notes/c"]
    assert all(node.exists for node in graph.nodes)
    assert _edges(graph) == [("a", "b"), ("a", "b"), ("a", "notes/c")]
