"""Routing of inbound vote events to the production or test store."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

from vote_reminders.services.events import TEST_VOTE, VOTE, EventEmitter
from vote_reminders.services.store import NotReadyError, VoteStore

logger = logging.getLogger(__name__)

EventKind = Literal["production", "test"]


@dataclass(frozen=True)
class VoteEvent:
    """A validated vote reported by the webhook transport."""

    subject_id: str
    kind: EventKind = "production"
    raw: dict[str, Any] = field(default_factory=dict)
    voted_at: datetime | None = None


class WebhookDispatcher:
    """Records votes and emits the matching vote signal.

    Writes are started in the background and not awaited, so the webhook
    response never waits on storage. Failed writes are logged and not
    retried; a later vote from the same subject overwrites the record anyway.
    """

    def __init__(self, store: VoteStore, test_store: VoteStore, emitter: EventEmitter) -> None:
        self.store = store
        self.test_store = test_store
        self.emitter = emitter
        self._pending: set[asyncio.Task[None]] = set()

    def dispatch(self, event: VoteEvent) -> asyncio.Task[None]:
        """Route ``event`` to its store and emit ``vote`` or ``testVote``.

        Must be called from a running event loop. Returns the background write
        task for callers that want to await it.

        Raises:
            NotReadyError: The target store is not initialized.
        """
        if event.kind == "test":
            store, signal = self.test_store, TEST_VOTE
        else:
            store, signal = self.store, VOTE

        if not store.ready:
            raise NotReadyError(f"vote store {store.name!r} is not initialized")

        task = asyncio.create_task(store.record_vote(event.subject_id, event.voted_at))
        self._pending.add(task)
        task.add_done_callback(self._write_done)
        logger.info("Vote from %s routed to %s store", event.subject_id, store.name)

        self.emitter.emit(signal, event.raw)
        return task

    def _write_done(self, task: asyncio.Task[None]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Failed to record vote: %s", exc, exc_info=exc)

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait until every write started so far has finished."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
