import pytest

from backend.src.services.backlinks import BacklinkService, find_context_line
from backend.src.services.config import AppConfig
from backend.src.services.repository import InMemoryNoteRepository, NotFoundError


class FlakyRepository(InMemoryNoteRepository):
    async def get_content(self, path):
        if path == "broken.md":
            raise NotFoundError("gone between listing and fetch")
        return await super().get_content(path)


@pytest.fixture()
def backlink_service() -> BacklinkService:
    return BacklinkService(config=AppConfig())


@pytest.mark.asyncio
async def test_backlinks_report_referencing_note_with_context(backlink_service) -> None:
    repo = InMemoryNoteRepository({"a.md": "[[b]] stuff", "b.md": "no refs"})

    result = await backlink_service.find_backlinks("b.md", repo)

    assert [(e.path, e.name, e.context) for e in result.backlinks] == [("a.md", "a", "[[b]] stuff")]
    assert result.skipped == []


@pytest.mark.asyncio
async def test_self_links_count_as_backlinks(backlink_service) -> None:
    repo = InMemoryNoteRepository({"a.md": "intro\nsee [[a]] again"})

    result = await backlink_service.find_backlinks("a.md", repo)

    assert [(e.path, e.context) for e in result.backlinks] == [("a.md", "see [[a]] again")]


@pytest.mark.asyncio
async def test_backlinks_follow_resolution_and_enumeration_order(backlink_service) -> None:
    repo = InMemoryNoteRepository(
        {
            "z.md": "Link to [[Topics/Graph|graphs]]",
            "topics/graph.md": "body",
            "m.md": "Also [[graph]]",
            "n.md": "Unrelated [[other]]",
        }
    )

    result = await backlink_service.find_backlinks("topics/graph.md", repo)

    assert [e.path for e in result.backlinks] == ["z.md", "m.md"]
    assert result.backlinks[0].context == "Link to [[Topics/Graph|graphs]]"


@pytest.mark.asyncio
async def test_backlinks_are_symmetric_with_resolvable_references(backlink_service) -> None:
    notes = {
        "a.md": "[[b]] [[c]]",
        "b.md": "[[c]]",
        "c.md": "[[a]]",
    }
    repo = InMemoryNoteRepository(notes)

    for target in notes:
        result = await backlink_service.find_backlinks(target, repo)
        sources = {e.path for e in result.backlinks}
        expected = {
            source
            for source, body in notes.items()
            if f"[[{target[:-3]}]]" in body
        }
        assert sources == expected


@pytest.mark.asyncio
async def test_backlinks_skip_unreadable_notes(backlink_service) -> None:
    repo = FlakyRepository({"broken.md": "[[b]]", "a.md": "[[b]]", "b.md": ""})

    result = await backlink_service.find_backlinks("b.md", repo)

    assert [e.path for e in result.backlinks] == ["a.md"]
    assert [s.path for s in result.skipped] == ["broken.md"]


def test_context_line_prefers_first_mention() -> None:
    content = "title\n  mentions Beta casually  \n[[Beta]] link"

    assert find_context_line(content, "Beta") == "mentions Beta casually"


def test_context_line_is_empty_when_name_absent() -> None:
    assert find_context_line("[[x|alias only]]", "target") == ""
