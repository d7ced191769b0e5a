from pathlib import Path

import pytest

from backend.src.services import config as config_module


@pytest.fixture(autouse=True)
def restore_config_cache():
    """
    Ensure configuration cache is cleared between tests.
    """
    config_module.reload_config()
    yield
    config_module.reload_config()


def test_get_config_defaults(monkeypatch, tmp_path: Path) -> None:
    for key in (
        "VAULT_BACKEND",
        "GITHUB_TOKEN",
        "NOTE_EXTENSION",
        "GRAPH_DEFAULT_DEPTH",
        "GRAPH_MAX_DEPTH",
        "SEARCH_RESULT_LIMIT",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("VAULT_BASE_PATH", str(tmp_path))

    cfg = config_module.reload_config()

    assert cfg.vault_backend == "github"
    assert cfg.github_token is None
    assert cfg.note_extension == ".md"
    assert cfg.default_depth == 2
    assert cfg.max_depth == 5
    assert cfg.search_limit == 50
    assert cfg.vault_base_path == tmp_path.resolve()


def test_blank_github_token_is_treated_as_missing(monkeypatch) -> None:
    monkeypatch.setenv("GITHUB_TOKEN", "   ")

    cfg = config_module.reload_config()

    assert cfg.github_token is None


def test_api_url_trailing_slash_is_stripped(monkeypatch) -> None:
    monkeypatch.setenv("GITHUB_API_URL", "https://github.example.com/api/v3/")

    cfg = config_module.reload_config()

    assert cfg.github_api_url == "https://github.example.com/api/v3"


def test_get_config_rejects_extension_without_dot(monkeypatch) -> None:
    monkeypatch.setenv("NOTE_EXTENSION", "md")

    with pytest.raises(ValueError):
        config_module.reload_config()


def test_get_config_rejects_default_depth_above_max(monkeypatch) -> None:
    monkeypatch.setenv("GRAPH_DEFAULT_DEPTH", "4")
    monkeypatch.setenv("GRAPH_MAX_DEPTH", "3")

    with pytest.raises(ValueError):
        config_module.reload_config()


def test_secure_cookies_can_be_disabled(monkeypatch) -> None:
    monkeypatch.setenv("SECURE_COOKIES", "false")

    cfg = config_module.reload_config()

    assert cfg.secure_cookies is False
