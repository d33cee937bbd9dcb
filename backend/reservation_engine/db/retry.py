"""Bounded retry of database units of work on transient failures."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sqlalchemy.exc import DBAPIError, DisconnectionError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from reservation_engine.core.config import get_settings
from reservation_engine.core.errors import StorageUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TRANSIENT_ERRORS = (OperationalError, InterfaceError, DisconnectionError)


def is_transient(exc: BaseException) -> bool:
    if isinstance(exc, _TRANSIENT_ERRORS):
        return True
    return isinstance(exc, DBAPIError) and exc.connection_invalidated


async def run_with_retry(
    session: AsyncSession,
    work: Callable[[], Awaitable[T]],
    *,
    label: str,
    attempts: int | None = None,
    backoff_seconds: float | None = None,
) -> T:
    """Run ``work`` (which commits its own transaction) with bounded retries.

    Any failure rolls the session back. Transient connection errors are
    retried with exponential backoff and surface as
    :class:`StorageUnavailableError` once ``attempts`` is exhausted; every
    other exception propagates unchanged after the rollback.
    """
    settings = get_settings()
    max_attempts = attempts or settings.storage_retry_attempts
    delay = (
        settings.storage_retry_backoff_seconds
        if backoff_seconds is None
        else backoff_seconds
    )

    attempt = 1
    while True:
        try:
            return await work()
        except Exception as exc:
            await session.rollback()
            if not is_transient(exc):
                raise
            if attempt >= max_attempts:
                logger.error(
                    "%s failed after %d attempt(s): %s", label, attempt, exc
                )
                raise StorageUnavailableError() from exc
            logger.warning(
                "%s hit a transient storage error (attempt %d/%d): %s",
                label,
                attempt,
                max_attempts,
                exc,
            )
            await asyncio.sleep(delay * (2 ** (attempt - 1)))
            attempt += 1


__all__ = ["is_transient", "run_with_retry"]
