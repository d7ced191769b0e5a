"""Note repository backed by the GitHub contents API."""

from __future__ import annotations

import base64
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from ..models.note import NoteFile, VaultEntry, VaultTree
from .config import AppConfig, get_config
from .repository import ConflictError, NotFoundError, RepositoryUnavailable

logger = logging.getLogger(__name__)

JSON_ACCEPT = "application/vnd.github.v3+json"
RAW_ACCEPT = "application/vnd.github.v3.raw"


def _parse_entry(item: Dict[str, Any]) -> VaultEntry:
    return VaultEntry(
        path=item["path"],
        name=item.get("name") or item["path"].rsplit("/", 1)[-1],
        type="dir" if item.get("type") == "dir" else "file",
        revision=item.get("sha"),
        size=item.get("size"),
    )


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return response.reason_phrase


class GitHubNoteRepository:
    """
    Read and write notes stored in a GitHub repository.

    The repository owns an ``httpx.AsyncClient`` unless one is injected; call
    ``aclose()`` (or use ``async with``) when done.
    """

    def __init__(
        self,
        owner: str,
        repo: str,
        *,
        branch: Optional[str] = None,
        token: Optional[str] = None,
        config: AppConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config or get_config()
        self.owner = owner
        self.repo = repo
        self.branch = branch or self.config.default_branch
        self.token = token or self.config.github_token
        self.note_extension = self.config.note_extension
        self.base_url = f"{self.config.github_api_url}/repos/{owner}/{repo}"
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self.config.http_timeout_seconds)

    async def __aenter__(self) -> "GitHubNoteRepository":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _headers(self, accept: str = JSON_ACCEPT) -> Dict[str, str]:
        headers = {"Accept": accept}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _contents_url(self, path: str) -> str:
        return f"{self.base_url}/contents/{quote(path.strip('/'))}"

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as exc:
            raise RepositoryUnavailable(f"GitHub request timed out: {url}") from exc
        except httpx.RequestError as exc:
            raise RepositoryUnavailable(f"Network error calling GitHub: {exc}") from exc

    def _raise_for_status(self, response: httpx.Response, path: str) -> None:
        if response.is_success:
            return
        message = _error_message(response)
        if response.status_code == 404:
            raise NotFoundError(f"Not found: {path}", detail={"github": message})
        if response.status_code in (401, 403):
            raise RepositoryUnavailable(
                f"GitHub rejected the request: {message}",
                error="repository_forbidden",
                detail={"status": response.status_code},
            )
        raise RepositoryUnavailable(
            f"GitHub API error ({response.status_code}): {message}",
            detail={"status": response.status_code},
        )

    async def get_repo_info(self) -> Dict[str, Any]:
        """Repository metadata; raises NotFoundError if it is missing or inaccessible."""
        response = await self._request("GET", self.base_url, headers=self._headers())
        self._raise_for_status(response, f"{self.owner}/{self.repo}")
        return response.json()

    async def list_directory(self, path: str = "") -> VaultTree:
        response = await self._request(
            "GET",
            self._contents_url(path),
            params={"ref": self.branch},
            headers=self._headers(),
        )
        self._raise_for_status(response, path or "/")
        data = response.json()

        if not isinstance(data, list):
            # Contents API answers a file path with a single object.
            return VaultTree(files=[_parse_entry(data)], dirs=[])

        tree = VaultTree()
        for item in data:
            entry = _parse_entry(item)
            if entry.type == "dir":
                tree.dirs.append(entry)
            else:
                tree.files.append(entry)
        return tree

    async def _collect_note_paths(self, base_path: str) -> List[str]:
        tree = await self.list_directory(base_path)
        paths = [entry.path for entry in tree.files if entry.path.endswith(self.note_extension)]
        for directory in tree.dirs:
            paths.extend(await self._collect_note_paths(directory.path))
        return paths

    async def _is_empty_repository(self, exc: NotFoundError) -> bool:
        """GitHub answers the root listing of a repository without commits with 404."""
        if "empty" not in str(exc.detail.get("github", "")).lower():
            return False
        try:
            await self.get_repo_info()
        except NotFoundError:
            return False
        return True

    async def list_note_paths(self) -> List[str]:
        """
        Every note path, depth-first with files before subdirectories.

        An empty repository lists as no notes. A missing repository or branch
        raises RepositoryUnavailable.
        """
        try:
            paths = await self._collect_note_paths("")
        except NotFoundError as exc:
            if await self._is_empty_repository(exc):
                logger.info(
                    "Repository has no commits yet",
                    extra={"repository": f"{self.owner}/{self.repo}", "branch": self.branch},
                )
                return []
            raise RepositoryUnavailable(
                f"Repository {self.owner}/{self.repo}@{self.branch} could not be listed",
                detail={"reason": exc.message},
            ) from exc
        logger.info(
            "Listed vault notes",
            extra={"repository": f"{self.owner}/{self.repo}", "branch": self.branch, "count": len(paths)},
        )
        return paths

    async def get_content(self, path: str) -> str:
        response = await self._request(
            "GET",
            self._contents_url(path),
            params={"ref": self.branch},
            headers=self._headers(RAW_ACCEPT),
        )
        self._raise_for_status(response, path)
        return response.text

    async def get_content_with_revision(self, path: str) -> NoteFile:
        response = await self._request(
            "GET",
            self._contents_url(path),
            params={"ref": self.branch},
            headers=self._headers(),
        )
        self._raise_for_status(response, path)
        data = response.json()
        if not isinstance(data, dict) or data.get("type", "file") != "file":
            raise NotFoundError(f"Not a file: {path}")
        content = base64.b64decode(data.get("content") or "").decode("utf-8")
        return NoteFile(path=path, content=content, revision=data["sha"], size=data.get("size", 0))

    async def _put_contents(self, path: str, payload: Dict[str, Any]) -> str:
        response = await self._request(
            "PUT",
            self._contents_url(path),
            json=payload,
            headers=self._headers(),
        )
        if response.status_code in (409, 422):
            raise ConflictError(
                f"Write rejected for {path}: {_error_message(response)}",
                detail={"status": response.status_code},
            )
        self._raise_for_status(response, path)
        return response.json()["content"]["sha"]

    async def create_note(self, path: str, content: str) -> str:
        payload = {
            "message": f"Create {path}",
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
            "branch": self.branch,
        }
        try:
            revision = await self._put_contents(path, payload)
        except ConflictError as exc:
            raise ConflictError(
                f"Note already exists: {path}", error="note_already_exists", detail=exc.detail
            ) from exc
        logger.info("Note created", extra={"note_path": path, "revision": revision})
        return revision

    async def update_note(self, path: str, content: str, revision: str) -> str:
        payload = {
            "message": f"Update {path}",
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
            "sha": revision,
            "branch": self.branch,
        }
        new_revision = await self._put_contents(path, payload)
        logger.info(
            "Note updated",
            extra={"note_path": path, "previous_revision": revision, "revision": new_revision},
        )
        return new_revision


__all__ = ["GitHubNoteRepository"]
