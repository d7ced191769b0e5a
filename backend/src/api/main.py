"""FastAPI application main entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

load_dotenv()

from .middleware import register_error_handlers
from .routes import graph, notes, search, system, vault
from .routes.system import install_log_buffer
from ..services.config import get_config

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan handler to run startup tasks."""
    install_log_buffer()
    config = get_config()
    if config.vault_backend == "local":
        config.vault_base_path.mkdir(parents=True, exist_ok=True)
    logger.info(
        "Startup complete",
        extra={
            "vault_backend": config.vault_backend,
            "note_extension": config.note_extension,
            "max_depth": config.max_depth,
        },
    )
    yield
    logger.info("Shutdown complete")


app = FastAPI(
    title="Vault Graph API",
    description="Wikilink graph, search and editing over a markdown vault",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://localhost:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(notes.router, tags=["notes"])
app.include_router(search.router, tags=["search"])
app.include_router(graph.router, tags=["graph"])
app.include_router(vault.router, tags=["vault"])
app.include_router(system.router, tags=["system"])


__all__ = ["app"]
