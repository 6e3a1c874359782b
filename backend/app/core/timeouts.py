import asyncio
import logging
from typing import Awaitable, Optional, TypeVar

from app.config import settings
from app.core.exceptions import UnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def resolve_timeout(requested: Optional[float]) -> float:
    """Caller-supplied timeout, clamped to the configured maximum."""
    if requested is None or requested <= 0:
        return settings.OPERATION_TIMEOUT_SECONDS
    return min(requested, settings.MAX_OPERATION_TIMEOUT_SECONDS)


async def with_timeout(awaitable: Awaitable[T], timeout: Optional[float], collaborator: str = "storage") -> T:
    """Run ``awaitable`` under a deadline; a timeout surfaces as UnavailableError."""
    seconds = resolve_timeout(timeout)
    try:
        return await asyncio.wait_for(awaitable, timeout=seconds)
    except asyncio.TimeoutError as exc:
        logger.warning(f"Operation on {collaborator} timed out after {seconds}s")
        raise UnavailableError(collaborator) from exc
