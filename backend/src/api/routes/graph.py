"""HTTP API routes for link graph operations."""

from __future__ import annotations

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ...models.graph import GraphData, VaultIndex
from ...services.config import get_config
from ...services.graph import GraphService, clamp_depth
from ...services.indexer import IndexerService
from ...services.repository import NoteRepository, RepositoryError
from ..middleware import get_corpus, run_with_timeout

router = APIRouter()


def get_graph_service() -> GraphService:
    return GraphService()


def get_indexer_service() -> IndexerService:
    return IndexerService()


@router.get("/api/graph", response_model=GraphData)
async def get_graph_data(
    corpus: Annotated[NoteRepository, Depends(get_corpus)],
    graph_service: Annotated[GraphService, Depends(get_graph_service)],
) -> GraphData:
    """Graph of the whole vault."""
    try:
        return await run_with_timeout(graph_service.build_full_graph(corpus))
    except (HTTPException, RepositoryError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to build graph data: {str(e)}")


@router.get("/api/graph/node", response_model=GraphData)
async def get_node_graph(
    corpus: Annotated[NoteRepository, Depends(get_corpus)],
    graph_service: Annotated[GraphService, Depends(get_graph_service)],
    path: str = Query(..., min_length=1, description="Start note path"),
    depth: Optional[int] = Query(None, description="Hops to follow; clamped to the configured maximum"),
) -> GraphData:
    """Neighbourhood graph around one note, including unresolved references."""
    max_depth = clamp_depth(depth, get_config())
    try:
        return await run_with_timeout(graph_service.traverse_from_node(path, max_depth, corpus))
    except (HTTPException, RepositoryError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to build graph data: {str(e)}")


@router.get("/api/graph/index", response_model=VaultIndex)
async def get_vault_index(
    corpus: Annotated[NoteRepository, Depends(get_corpus)],
    indexer_service: Annotated[IndexerService, Depends(get_indexer_service)],
) -> VaultIndex:
    """All note paths with the wikilink targets found in each."""
    try:
        return await run_with_timeout(indexer_service.build_index(corpus))
    except (HTTPException, RepositoryError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to build index: {str(e)}")


__all__ = ["router", "get_graph_service", "get_indexer_service"]
