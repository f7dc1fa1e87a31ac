# tests/conftest.py
from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from vote_reminders.client import VotingSDK
from vote_reminders.core.settings import Settings
from vote_reminders.services.events import EventEmitter
from vote_reminders.services.store import VoteStore

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
TEST_THRESHOLD_SECONDS = 30
WEBHOOK_SECRET = "webhook-secret"


class FakeClock:
    """Manually advanced clock handed to stores instead of ``utcnow``."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(EPOCH)


@pytest.fixture()
def make_store(clock: FakeClock) -> Callable[..., VoteStore]:
    """Return a factory for uninitialized in-memory stores sharing ``clock``."""

    def _make(
        location: str = ":memory:",
        threshold: int = TEST_THRESHOLD_SECONDS,
        opt_in_default: bool = False,
        name: str = "production",
    ) -> VoteStore:
        return VoteStore(location, threshold, opt_in_default, name=name, clock=clock)

    return _make


@pytest.fixture()
async def store(make_store: Callable[..., VoteStore]) -> AsyncIterator[VoteStore]:
    store = make_store()
    await store.init()
    try:
        yield store
    finally:
        await store.close()


@pytest.fixture()
async def test_store(make_store: Callable[..., VoteStore]) -> AsyncIterator[VoteStore]:
    store = make_store(name="test")
    await store.init()
    try:
        yield store
    finally:
        await store.close()


@pytest.fixture()
def emitter() -> EventEmitter:
    return EventEmitter()


@pytest.fixture()
def recorder() -> Callable[[EventEmitter, str], list[Any]]:
    """Subscribe a list to a signal and return it."""

    def _record(source: EventEmitter, signal: str) -> list[Any]:
        received: list[Any] = []
        source.on(signal, lambda *args: received.append(args[0] if len(args) == 1 else args))
        return received

    return _record


@pytest.fixture()
def test_settings() -> Settings:
    """Settings with both stores in memory and slow sweeps."""
    return Settings(
        db_path=":memory:",
        test_db_path=":memory:",
        interval=60_000,
        reminder_time=43200,
        test_reminder_time=TEST_THRESHOLD_SECONDS,
        authorization=WEBHOOK_SECRET,
    )


@pytest.fixture()
def sdk(test_settings: Settings) -> VotingSDK:
    return VotingSDK(settings=test_settings)


@pytest.fixture()
async def ready_sdk(sdk: VotingSDK) -> AsyncIterator[VotingSDK]:
    await sdk.init()
    try:
        yield sdk
    finally:
        await sdk.close()
