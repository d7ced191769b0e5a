"""HTTP API routes for note operations."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query

from ...models.note import NoteCreate, NoteFile, NoteUpdate, NoteWriteResult, ParsedNote
from ...services.repository import NoteRepository, RepositoryError
from ...services.wikilinks import parse_note
from ..middleware import get_corpus

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/api/notes/content", response_model=ParsedNote)
async def get_note_content(
    corpus: Annotated[NoteRepository, Depends(get_corpus)],
    path: str = Query(..., min_length=1),
) -> ParsedNote:
    """Note body with frontmatter split out and wikilink targets listed."""
    try:
        raw = await corpus.get_content(path)
        return ParsedNote(path=path, **parse_note(raw))
    except RepositoryError:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to read note: {str(e)}")


@router.get("/api/notes/file", response_model=NoteFile)
async def get_note_file(
    corpus: Annotated[NoteRepository, Depends(get_corpus)],
    path: str = Query(..., min_length=1),
) -> NoteFile:
    """Raw note content plus the revision needed to update it."""
    try:
        return await corpus.get_content_with_revision(path)
    except RepositoryError:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to read note: {str(e)}")


@router.post("/api/notes", response_model=NoteWriteResult, status_code=201)
async def create_note(
    create: NoteCreate,
    corpus: Annotated[NoteRepository, Depends(get_corpus)],
) -> NoteWriteResult:
    """Create a new note; 409 if the path is taken."""
    try:
        revision = await corpus.create_note(create.path, create.content)
    except RepositoryError:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Failed to create note", extra={"note_path": create.path})
        raise HTTPException(status_code=500, detail=f"Failed to create note: {str(e)}")
    return NoteWriteResult(path=create.path, revision=revision)


@router.put("/api/notes", response_model=NoteWriteResult)
async def update_note(
    update: NoteUpdate,
    corpus: Annotated[NoteRepository, Depends(get_corpus)],
) -> NoteWriteResult:
    """Update a note with optimistic concurrency control."""
    try:
        revision = await corpus.update_note(update.path, update.content, update.revision)
    except RepositoryError:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Failed to update note", extra={"note_path": update.path})
        raise HTTPException(status_code=500, detail=f"Failed to update note: {str(e)}")
    return NoteWriteResult(path=update.path, revision=revision)


__all__ = ["router"]
