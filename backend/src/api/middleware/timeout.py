"""Whole-operation deadline for core calls."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Optional, TypeVar

from fastapi import HTTPException, status

from ...services.config import get_config

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_with_timeout(operation: Awaitable[T], seconds: Optional[float] = None) -> T:
    """Await ``operation``; past the deadline the whole request fails with 504."""
    limit = seconds or get_config().request_timeout_seconds
    try:
        return await asyncio.wait_for(operation, timeout=limit)
    except asyncio.TimeoutError as exc:
        logger.error("Operation exceeded request timeout", extra={"timeout_seconds": limit})
        raise HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail={"error": "timeout", "message": f"Operation exceeded {limit:g}s"},
        ) from exc


__all__ = ["run_with_timeout"]
