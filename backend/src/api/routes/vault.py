"""HTTP API routes for browsing the vault and choosing its repository."""

from __future__ import annotations

import json
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel

from ...models.note import RepoSelection, VaultTree
from ...services.config import get_config
from ...services.github import GitHubNoteRepository
from ...services.repository import NoteRepository, NotFoundError, RepositoryError
from ..middleware import (
    REPO_SELECTION_COOKIE,
    REPO_SELECTION_MAX_AGE,
    get_corpus,
    get_github_token,
    run_with_timeout,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class NoteListResponse(BaseModel):
    files: list[str]


class SelectResponse(BaseModel):
    success: bool
    selection: RepoSelection


@router.get("/api/vault/tree", response_model=VaultTree)
async def get_vault_tree(
    corpus: Annotated[NoteRepository, Depends(get_corpus)],
    path: str = Query("", description="Directory relative to the vault root"),
) -> VaultTree:
    """One directory level of the vault."""
    try:
        return await corpus.list_directory(path)
    except RepositoryError:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to fetch vault tree: {str(e)}")


@router.get("/api/vault/files", response_model=NoteListResponse)
async def list_vault_files(
    corpus: Annotated[NoteRepository, Depends(get_corpus)],
) -> NoteListResponse:
    """Every note path in the vault."""
    try:
        return NoteListResponse(files=await run_with_timeout(corpus.list_note_paths()))
    except (HTTPException, RepositoryError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to fetch files: {str(e)}")


@router.post("/api/repo/select", response_model=SelectResponse)
async def select_repository(
    selection: RepoSelection,
    response: Response,
    token: Annotated[str, Depends(get_github_token)],
) -> SelectResponse:
    """Check the repository is reachable and remember it in a cookie."""
    config = get_config()
    async with GitHubNoteRepository(
        selection.owner,
        selection.repo,
        branch=selection.branch,
        token=token,
        config=config,
    ) as repository:
        try:
            await repository.get_repo_info()
        except NotFoundError:
            raise HTTPException(
                status_code=404,
                detail={
                    "error": "repository_not_found",
                    "message": "Repository not found or you do not have access",
                },
            )

    response.set_cookie(
        REPO_SELECTION_COOKIE,
        json.dumps(selection.model_dump()),
        max_age=REPO_SELECTION_MAX_AGE,
        httponly=True,
        samesite="lax",
        secure=config.secure_cookies,
    )
    logger.info(
        "Repository selected",
        extra={"repository": f"{selection.owner}/{selection.repo}", "branch": selection.branch},
    )
    return SelectResponse(success=True, selection=selection)


__all__ = ["router"]
