"""Common API dependencies."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from reservation_engine.core.clock import Clock
from reservation_engine.core.clock import get_clock as _get_process_clock
from reservation_engine.core.errors import ForbiddenError
from reservation_engine.db.session import get_session

ADMIN_ROLE = "admin"


@dataclass(frozen=True, slots=True)
class Identity:
    """Caller identity forwarded by the upstream gateway."""

    user_id: int
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide an async database session."""
    async for session in get_session():
        yield session


def get_clock() -> Clock:
    """Time source for request handlers."""
    return _get_process_clock()


async def get_identity(
    x_user_id: Annotated[int | None, Header()] = None,
    x_user_role: Annotated[str | None, Header()] = None,
) -> Identity:
    """Resolve the caller from the ``X-User-ID``/``X-User-Role`` headers."""
    if x_user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-ID header",
        )
    return Identity(user_id=x_user_id, role=(x_user_role or "user").lower())


async def require_admin(
    identity: Annotated[Identity, Depends(get_identity)],
) -> Identity:
    if not identity.is_admin:
        raise ForbiddenError("Admin role required")
    return identity


SessionDep = Annotated[AsyncSession, Depends(get_db_session)]
IdentityDep = Annotated[Identity, Depends(get_identity)]
AdminDep = Annotated[Identity, Depends(require_admin)]
ClockDep = Annotated[Clock, Depends(get_clock)]
