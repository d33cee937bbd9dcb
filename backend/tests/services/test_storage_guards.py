from __future__ import annotations

import asyncio

import pytest
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError

from reservation_engine.core.errors import StorageUnavailableError
from reservation_engine.db.retry import is_transient, run_with_retry
from reservation_engine.services.area_locks import area_guard

pytestmark = pytest.mark.asyncio


class _RecordingSession:
    def __init__(self) -> None:
        self.rollbacks = 0

    async def rollback(self) -> None:
        self.rollbacks += 1


def _locked() -> OperationalError:
    return OperationalError("SELECT 1", {}, Exception("database is locked"))


async def test_retry_recovers_from_transient_errors() -> None:
    session = _RecordingSession()
    calls = 0

    async def work() -> str:
        nonlocal calls
        calls += 1
        if calls < 3:
            raise _locked()
        return "done"

    result = await run_with_retry(
        session, work, label="book", attempts=3, backoff_seconds=0
    )

    assert result == "done"
    assert calls == 3
    assert session.rollbacks == 2


async def test_retry_gives_up_with_storage_unavailable() -> None:
    session = _RecordingSession()
    calls = 0

    async def work() -> None:
        nonlocal calls
        calls += 1
        raise _locked()

    with pytest.raises(StorageUnavailableError) as excinfo:
        await run_with_retry(session, work, label="book", attempts=3, backoff_seconds=0)

    assert calls == 3
    assert session.rollbacks == 3
    assert isinstance(excinfo.value.__cause__, OperationalError)


async def test_retry_does_not_repeat_domain_errors() -> None:
    session = _RecordingSession()
    calls = 0

    async def work() -> None:
        nonlocal calls
        calls += 1
        raise ValueError("bad input")

    with pytest.raises(ValueError):
        await run_with_retry(session, work, label="book", attempts=3, backoff_seconds=0)

    assert calls == 1
    assert session.rollbacks == 1


async def test_integrity_errors_are_not_transient() -> None:
    assert not is_transient(IntegrityError("INSERT", {}, Exception("duplicate")))
    assert is_transient(_locked())
    assert is_transient(
        DBAPIError("SELECT 1", {}, Exception("gone"), connection_invalidated=True)
    )


async def test_area_guard_times_out_while_held() -> None:
    async with area_guard(7, timeout=1):
        with pytest.raises(StorageUnavailableError):
            async with area_guard(7, timeout=0.01):
                pytest.fail("lock should still be held")

    async with area_guard(7, timeout=0.1):
        pass


async def test_area_guard_is_per_area() -> None:
    async with area_guard(7, timeout=1):
        async with area_guard(8, timeout=0.01):
            pass


async def test_area_guard_releases_after_error() -> None:
    with pytest.raises(RuntimeError):
        async with area_guard(9, timeout=1):
            raise RuntimeError("insert failed")

    async with area_guard(9, timeout=0.01):
        pass


async def test_area_guard_orders_waiters() -> None:
    order: list[str] = []
    entered = asyncio.Event()

    async def first() -> None:
        async with area_guard(11, timeout=1):
            entered.set()
            await asyncio.sleep(0.05)
            order.append("first")

    async def second() -> None:
        await entered.wait()
        async with area_guard(11, timeout=1):
            order.append("second")

    await asyncio.gather(first(), second())

    assert order == ["first", "second"]
