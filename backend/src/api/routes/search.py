"""HTTP API routes for search and backlink lookups."""

from __future__ import annotations

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ...models.graph import BacklinkList, SearchResponse
from ...services.backlinks import BacklinkService
from ...services.indexer import IndexerService
from ...services.repository import NoteRepository, RepositoryError
from ..middleware import get_corpus, run_with_timeout

router = APIRouter()


def get_indexer_service() -> IndexerService:
    return IndexerService()


def get_backlink_service() -> BacklinkService:
    return BacklinkService()


@router.get("/api/graph/search", response_model=SearchResponse)
async def search_notes(
    corpus: Annotated[NoteRepository, Depends(get_corpus)],
    indexer_service: Annotated[IndexerService, Depends(get_indexer_service)],
    q: Optional[str] = Query(None, max_length=256),
) -> SearchResponse:
    """Find notes whose path or name contains the query."""
    if not q or not q.strip():
        return SearchResponse(results=[])
    try:
        results = await run_with_timeout(indexer_service.search_notes(q, corpus))
        return SearchResponse(results=results)
    except (HTTPException, RepositoryError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Search failed: {str(e)}")


@router.get("/api/backlinks", response_model=BacklinkList)
async def get_backlinks(
    corpus: Annotated[NoteRepository, Depends(get_corpus)],
    backlink_service: Annotated[BacklinkService, Depends(get_backlink_service)],
    path: str = Query(..., min_length=1, description="Note to find references to"),
) -> BacklinkList:
    """Get all notes that link to this note."""
    try:
        return await run_with_timeout(backlink_service.find_backlinks(path, corpus))
    except (HTTPException, RepositoryError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to get backlinks: {str(e)}")


__all__ = ["router", "get_indexer_service", "get_backlink_service"]
