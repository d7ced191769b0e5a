"""FastAPI middleware for corpus selection, deadlines and error handling."""

from .corpus import (
    REPO_SELECTION_COOKIE,
    REPO_SELECTION_MAX_AGE,
    get_corpus,
    get_github_token,
    parse_repo_selection,
)
from .error_handlers import (
    http_exception_handler,
    register_error_handlers,
    repository_exception_handler,
    validation_exception_handler,
)
from .timeout import run_with_timeout

__all__ = [
    "REPO_SELECTION_COOKIE",
    "REPO_SELECTION_MAX_AGE",
    "get_corpus",
    "get_github_token",
    "parse_repo_selection",
    "run_with_timeout",
    "register_error_handlers",
    "validation_exception_handler",
    "http_exception_handler",
    "repository_exception_handler",
]
