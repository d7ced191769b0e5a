"""Per-request note repository (corpus) dependency."""

from __future__ import annotations

import json
import logging
from typing import Annotated, AsyncIterator, Optional

from fastapi import Cookie, Header, HTTPException, Query, status
from pydantic import ValidationError

from ...models.note import RepoSelection
from ...services.config import get_config
from ...services.github import GitHubNoteRepository
from ...services.repository import NoteRepository
from ...services.vault import VaultService

logger = logging.getLogger(__name__)

REPO_SELECTION_COOKIE = "repo-selection"
REPO_SELECTION_MAX_AGE = 60 * 60 * 24 * 30


def _unauthorized(message: str, error: str = "unauthorized") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "message": message},
    )


def parse_repo_selection(raw: Optional[str]) -> Optional[RepoSelection]:
    """Decode the selection cookie; anything malformed counts as no selection."""
    if not raw:
        return None
    try:
        return RepoSelection.model_validate(json.loads(raw))
    except (ValueError, ValidationError):
        logger.warning("Ignoring malformed repository selection cookie")
        return None


def get_github_token(
    authorization: Annotated[Optional[str], Header(alias="Authorization")] = None,
) -> str:
    """
    Return the bearer token of the request, or the configured fallback token.

    Raises HTTPException if neither is available.
    """
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() != "bearer" or not token:
            raise _unauthorized("Authorization header must be in format: Bearer <token>")
        return token
    fallback = get_config().github_token
    if fallback:
        return fallback
    raise _unauthorized("Authorization header required")


async def get_corpus(
    authorization: Annotated[Optional[str], Header(alias="Authorization")] = None,
    owner: Annotated[Optional[str], Query(description="Repository owner")] = None,
    repo: Annotated[Optional[str], Query(description="Repository name")] = None,
    branch: Annotated[Optional[str], Query(description="Branch to read")] = None,
    selection_cookie: Annotated[Optional[str], Cookie(alias=REPO_SELECTION_COOKIE)] = None,
) -> AsyncIterator[NoteRepository]:
    """Build the repository every core operation of this request reads from."""
    config = get_config()
    if config.vault_backend == "local":
        yield VaultService(config=config)
        return

    token = get_github_token(authorization)

    if owner and repo:
        selection = RepoSelection(owner=owner, repo=repo, branch=branch or config.default_branch)
    else:
        selection = parse_repo_selection(selection_cookie)
    if selection is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "no_repository_selected", "message": "No repository selected"},
        )

    repository = GitHubNoteRepository(
        selection.owner,
        selection.repo,
        branch=selection.branch,
        token=token,
        config=config,
    )
    try:
        yield repository
    finally:
        await repository.aclose()


__all__ = [
    "REPO_SELECTION_COOKIE",
    "REPO_SELECTION_MAX_AGE",
    "get_corpus",
    "get_github_token",
    "parse_repo_selection",
]
