# tests/test_events.py
"""Tests for the signal emitter."""

import logging

import pytest

from vote_reminders.services.events import REMINDER, VOTE, EventEmitter


def test_emit_calls_listeners_in_order() -> None:
    emitter = EventEmitter()
    calls = []
    emitter.on(VOTE, lambda payload: calls.append(("first", payload)))
    emitter.on(VOTE, lambda payload: calls.append(("second", payload)))

    assert emitter.emit(VOTE, {"user": "u1"}) is True
    assert calls == [("first", {"user": "u1"}), ("second", {"user": "u1"})]


def test_emit_without_listeners_returns_false() -> None:
    assert EventEmitter().emit(REMINDER, object()) is False


def test_on_as_decorator_and_off() -> None:
    emitter = EventEmitter()
    calls = []

    @emitter.on(VOTE)
    def listener(payload):
        calls.append(payload)

    emitter.emit(VOTE, 1)
    emitter.off(VOTE, listener)
    emitter.off(VOTE, listener)
    emitter.emit(VOTE, 2)

    assert calls == [1]
    assert emitter.listener_count(VOTE) == 0


def test_once_fires_a_single_time() -> None:
    emitter = EventEmitter()
    calls = []
    emitter.once(VOTE, calls.append)

    emitter.emit(VOTE, 1)
    emitter.emit(VOTE, 2)

    assert calls == [1]


def test_off_removes_once_listener_by_original_function() -> None:
    emitter = EventEmitter()
    calls = []
    emitter.once(VOTE, calls.append)

    emitter.off(VOTE, calls.append)
    emitter.emit(VOTE, 1)

    assert calls == []
    assert emitter.listener_count(VOTE) == 0


def test_failing_listener_is_logged_and_others_still_run(caplog) -> None:
    emitter = EventEmitter()
    calls = []

    def broken(payload):
        raise ValueError("bad listener")

    emitter.on(VOTE, broken)
    emitter.on(VOTE, calls.append)

    with caplog.at_level(logging.ERROR, logger="vote_reminders.services.events"):
        emitter.emit(VOTE, "payload")

    assert calls == ["payload"]
    assert "bad listener" in caplog.text


@pytest.mark.asyncio
async def test_coroutine_listeners_are_scheduled() -> None:
    emitter = EventEmitter()
    calls = []

    async def listener(payload):
        calls.append(payload)

    emitter.on(REMINDER, listener)
    emitter.emit(REMINDER, "record")
    assert calls == []

    await emitter.wait_for_listeners()
    assert calls == ["record"]


@pytest.mark.asyncio
async def test_coroutine_listener_errors_are_logged(caplog) -> None:
    emitter = EventEmitter()

    async def listener(payload):
        raise RuntimeError("async listener failed")

    emitter.on(REMINDER, listener)
    with caplog.at_level(logging.ERROR, logger="vote_reminders.services.events"):
        emitter.emit(REMINDER, "record")
        await emitter.wait_for_listeners()

    assert "async listener failed" in caplog.text
