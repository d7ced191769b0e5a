import pytest

from backend.src.services.config import AppConfig
from backend.src.services.indexer import IndexerService
from backend.src.services.repository import InMemoryNoteRepository


@pytest.fixture()
def indexer() -> IndexerService:
    return IndexerService(config=AppConfig(search_limit=50))


def _large_corpus() -> InMemoryNoteRepository:
    notes = {}
    for i in range(100):
        notes[f"log/entry-{i:03d}.md"] = ""
        notes[f"sketch/Idea-{i:03d}.md"] = ""
    return InMemoryNoteRepository(notes)


@pytest.mark.asyncio
async def test_search_caps_results(indexer: IndexerService) -> None:
    results = await indexer.search_notes("log", _large_corpus())

    assert len(results) == 50
    for hit in results:
        assert "log" in hit.path.lower() or "log" in hit.name.lower()
    assert results[0].path == "log/entry-000.md"


@pytest.mark.asyncio
async def test_search_is_case_insensitive_on_name(indexer: IndexerService) -> None:
    results = await indexer.search_notes("IDEA-00", _large_corpus(), limit=20)

    assert [hit.name for hit in results] == [f"Idea-00{i}" for i in range(10)]


@pytest.mark.asyncio
async def test_blank_query_returns_nothing(indexer: IndexerService) -> None:
    assert await indexer.search_notes("   ", _large_corpus()) == []


@pytest.mark.asyncio
async def test_build_index_lists_raw_targets(indexer: IndexerService) -> None:
    repo = InMemoryNoteRepository(
        {
            "a.md": "[[b]] and [[c|See]] and [[b]]",
            "b.md": "no links",
            "c.md": "[[a]]",
        }
    )

    index = await indexer.build_index(repo)

    assert index.files == ["a.md", "b.md", "c.md"]
    assert index.wikilinks == {"a.md": ["b", "c", "b"], "c.md": ["a"]}
    assert index.all_wikilinks == ["b", "c", "a"]
    assert index.timestamp > 0
    assert index.skipped == []
