"""Application configuration helpers."""

from __future__ import annotations

from functools import lru_cache
import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_VAULT_BASE = PROJECT_ROOT / "data" / "vault"


class AppConfig(BaseModel):
    """Runtime configuration loaded from environment variables."""

    model_config = ConfigDict(frozen=True)

    vault_backend: Literal["github", "local"] = Field(
        default="github",
        description="Where notes live: a GitHub repository or a local directory",
    )
    vault_base_path: Path = Field(
        default=DEFAULT_VAULT_BASE,
        description="Root directory of the local vault (local backend only)",
    )
    github_api_url: str = Field(default="https://api.github.com")
    github_token: Optional[str] = Field(
        default=None,
        description="Fallback token used when a request carries no bearer token",
    )
    default_branch: str = Field(default="main")
    note_extension: str = Field(default=".md", description="Suffix identifying note files")
    default_depth: int = Field(default=2, ge=1, description="Traversal depth when none is given")
    max_depth: int = Field(default=5, ge=1, description="Upper clamp for requested traversal depth")
    search_limit: int = Field(default=50, ge=1)
    fetch_concurrency: int = Field(default=8, ge=1, description="Parallel note fetches per scan")
    request_timeout_seconds: float = Field(default=60.0, gt=0)
    http_timeout_seconds: float = Field(default=15.0, gt=0)
    autosave_debounce_seconds: float = Field(default=15.0, gt=0)
    autosave_max_wait_seconds: float = Field(default=300.0, gt=0)
    secure_cookies: bool = Field(default=True, description="Mark the repository selection cookie Secure")

    @field_validator("vault_base_path", mode="before")
    @classmethod
    def _normalize_vault_path(cls, value: str | Path | None) -> Path:
        if value is None or value == "":
            return DEFAULT_VAULT_BASE
        path = value if isinstance(value, Path) else Path(value)
        return path.expanduser().resolve()

    @field_validator("note_extension")
    @classmethod
    def _check_extension(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned.startswith(".") or len(cleaned) < 2:
            raise ValueError("NOTE_EXTENSION must look like '.md'")
        return cleaned

    @field_validator("github_token", mode="before")
    @classmethod
    def _blank_token_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = value.strip()
        return cleaned or None

    @field_validator("github_api_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @model_validator(mode="after")
    def _check_depths(self) -> "AppConfig":
        if self.default_depth > self.max_depth:
            raise ValueError("GRAPH_DEFAULT_DEPTH cannot exceed GRAPH_MAX_DEPTH")
        return self


def _read_env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(key, default)


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Load and cache application configuration."""
    return AppConfig(
        vault_backend=_read_env("VAULT_BACKEND", "github").strip().lower(),
        vault_base_path=_read_env("VAULT_BASE_PATH", str(DEFAULT_VAULT_BASE)),
        github_api_url=_read_env("GITHUB_API_URL", "https://api.github.com"),
        github_token=_read_env("GITHUB_TOKEN"),
        default_branch=_read_env("GITHUB_DEFAULT_BRANCH", "main"),
        note_extension=_read_env("NOTE_EXTENSION", ".md"),
        default_depth=_read_env("GRAPH_DEFAULT_DEPTH", "2"),
        max_depth=_read_env("GRAPH_MAX_DEPTH", "5"),
        search_limit=_read_env("SEARCH_RESULT_LIMIT", "50"),
        fetch_concurrency=_read_env("FETCH_CONCURRENCY", "8"),
        request_timeout_seconds=_read_env("REQUEST_TIMEOUT_SECONDS", "60"),
        http_timeout_seconds=_read_env("HTTP_TIMEOUT_SECONDS", "15"),
        autosave_debounce_seconds=_read_env("AUTOSAVE_DEBOUNCE_SECONDS", "15"),
        autosave_max_wait_seconds=_read_env("AUTOSAVE_MAX_WAIT_SECONDS", "300"),
        secure_cookies=_read_env("SECURE_COOKIES", "true").lower() not in {"0", "false", "no"},
    )


def reload_config() -> AppConfig:
    """Clear cached config (useful for tests) and reload."""
    get_config.cache_clear()
    return get_config()


__all__ = ["AppConfig", "get_config", "reload_config", "PROJECT_ROOT", "DEFAULT_VAULT_BASE"]
