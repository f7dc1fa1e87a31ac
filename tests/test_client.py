# tests/test_client.py
"""Tests for the SDK query surface and lifecycle."""

import asyncio

import pytest

from vote_reminders.client import VotingSDK
from vote_reminders.core.settings import Settings
from vote_reminders.services.dispatcher import VoteEvent
from vote_reminders.services.store import StorageConnectionError


@pytest.mark.asyncio
async def test_query_surface_routes_by_environment(ready_sdk) -> None:
    await ready_sdk.dispatcher.dispatch(VoteEvent(subject_id="u1"))
    await ready_sdk.dispatcher.dispatch(VoteEvent(subject_id="u2", kind="test"))

    assert await ready_sdk.has_voted("u1") is True
    assert await ready_sdk.has_voted("u1", test=True) is False
    assert await ready_sdk.has_voted("u2", test=True) is True
    assert await ready_sdk.voted_at("u1") is not None
    assert await ready_sdk.voted_at("u2") is None


@pytest.mark.asyncio
async def test_preferences_are_per_environment(ready_sdk) -> None:
    assert await ready_sdk.get_opt("u1") is False
    assert await ready_sdk.opt_in("u1") is True
    assert await ready_sdk.get_opt("u1") is True
    assert await ready_sdk.get_opt("u1", test=True) is False

    assert await ready_sdk.set_opt("u1", True, test=True) is True
    assert await ready_sdk.opt_out("u1") is False
    assert await ready_sdk.get_opt("u1") is False
    assert await ready_sdk.get_opt("u1", test=True) is True


@pytest.mark.asyncio
async def test_opt_in_default_comes_from_settings(test_settings) -> None:
    test_settings.reminders_opt_in_default = True
    sdk = VotingSDK(settings=test_settings)
    await sdk.init()
    try:
        assert await sdk.get_opt("anyone") is True
        assert await sdk.get_opt("anyone", test=True) is True
    finally:
        await sdk.close()


@pytest.mark.asyncio
async def test_test_votes_trigger_test_reminders(test_settings) -> None:
    test_settings.test_reminder_time = 0
    test_settings.test_interval = 10
    sdk = VotingSDK(settings=test_settings)
    reminded = asyncio.Event()
    received = []

    @sdk.on(VotingSDK.ON_TEST_REMINDER)
    def on_test_reminder(record):
        received.append(record)
        reminded.set()

    production = []
    sdk.on(VotingSDK.ON_REMINDER, production.append)

    await sdk.init()
    try:
        await sdk.opt_in("u2", test=True)
        await sdk.dispatcher.dispatch(VoteEvent(subject_id="u2", kind="test"))
        await asyncio.wait_for(reminded.wait(), timeout=5)
    finally:
        await sdk.close()

    assert [record.subject_id for record in received] == ["u2"]
    assert production == []


@pytest.mark.asyncio
async def test_init_failure_starts_nothing(test_settings, tmp_path) -> None:
    test_settings.test_db_path = str(tmp_path / "missing" / "test.db")
    sdk = VotingSDK(settings=test_settings)

    with pytest.raises(StorageConnectionError):
        await sdk.init()

    assert not sdk.store.ready
    assert not sdk.test_store.ready
    assert not sdk.scheduler.running
    assert not sdk.test_scheduler.running


@pytest.mark.asyncio
async def test_close_waits_for_async_listeners(ready_sdk) -> None:
    release = asyncio.Event()
    finished = []

    @ready_sdk.on(VotingSDK.ON_VOTE)
    async def slow_listener(payload):
        await release.wait()
        finished.append(payload)

    ready_sdk.dispatcher.dispatch(VoteEvent(subject_id="u1", raw={"user": "u1"}))
    closing = asyncio.create_task(ready_sdk.close())
    await asyncio.sleep(0.05)
    assert not closing.done()

    release.set()
    await closing
    assert finished == [{"user": "u1"}]


@pytest.mark.asyncio
async def test_close_is_idempotent(ready_sdk) -> None:
    await ready_sdk.close()
    await ready_sdk.close()
    assert not ready_sdk.store.ready


def test_authorization_argument_overrides_settings(test_settings) -> None:
    sdk = VotingSDK("explicit", settings=test_settings)
    assert sdk.authorization == "explicit"
    assert sdk.app.state.authorization == "explicit"


def test_schedulers_use_configured_periods() -> None:
    settings = Settings(interval=2500, test_interval=500, reminder_time=60, test_reminder_time=5)
    sdk = VotingSDK(settings=settings)

    assert sdk.scheduler.interval_seconds == 2.5
    assert sdk.scheduler.threshold_seconds == 60
    assert sdk.test_scheduler.interval_seconds == 0.5
    assert sdk.test_scheduler.threshold_seconds == 5
