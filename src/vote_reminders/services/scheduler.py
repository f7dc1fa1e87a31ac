"""Periodic reminder sweeps over a vote store.

This module provides the ReminderScheduler class. Each scheduler owns one
background task that repeatedly sweeps a single store: expired votes are
turned into reminder signals for opted-in subjects and then removed.
"""

from __future__ import annotations

import asyncio
import logging

from vote_reminders.services.events import EventEmitter
from vote_reminders.services.store import (
    NotReadyError,
    RowResult,
    StorageQueryError,
    VoteStore,
)

# Configure logger for this module
logger = logging.getLogger(__name__)

MIN_INTERVAL_SECONDS = 0.01


class ReminderScheduler:
    """Sweeps a vote store on a fixed period and emits reminders.

    A record is removed after it has been processed whether or not a reminder
    was emitted, so a subject who opts in after their vote expired is not
    reminded for that vote. Rows that fail to load or process stay in the
    store and are retried on the next sweep. A vote recorded while its old
    row is being processed is not removed.
    """

    def __init__(
        self,
        store: VoteStore,
        emitter: EventEmitter,
        signal: str,
        interval_seconds: float,
        threshold_seconds: int | None = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            store: Store to sweep.
            emitter: Emitter receiving reminder signals.
            signal: Name of the reminder signal to emit.
            interval_seconds: Delay between the end of one sweep and the next.
            threshold_seconds: Expiry age; defaults to the store's threshold.
        """
        self.store = store
        self.emitter = emitter
        self.signal = signal
        self.interval_seconds = interval_seconds
        self.threshold_seconds = (
            store.reminder_threshold if threshold_seconds is None else threshold_seconds
        )
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()
        self._sweeping = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the background sweep loop."""
        if self.running:
            return

        self._stopping.clear()
        self._task = asyncio.create_task(self._run(), name=f"reminders-{self.store.name}")
        logger.info(
            "Reminder scheduler for %s store started (every %.2fs, threshold %ss)",
            self.store.name,
            self.interval_seconds,
            self.threshold_seconds,
        )

    async def stop(self) -> None:
        """Stop the loop and wait for an in-flight sweep to finish."""
        if self._task is None:
            return

        self._stopping.set()
        await self._task
        self._task = None
        logger.info("Reminder scheduler for %s store stopped", self.store.name)

    async def _run(self) -> None:
        interval = max(MIN_INTERVAL_SECONDS, float(self.interval_seconds))

        while not self._stopping.is_set():
            try:
                await self.sweep()
            except NotReadyError as e:
                logger.warning("Reminder sweep skipped for %s store: %s", self.store.name, e)
            except Exception:
                logger.exception("Reminder sweep failed for %s store", self.store.name)

            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=interval)
            except TimeoutError:
                continue

    async def sweep(self) -> int | None:
        """Process every expired vote once.

        Returns:
            The number of reminders emitted, or None when another sweep of
            this scheduler was still running and this one was skipped.
        """
        if self._sweeping:
            logger.debug("Sweep of %s store already running; skipping", self.store.name)
            return None

        self._sweeping = True
        try:
            return await self._sweep()
        finally:
            self._sweeping = False

    async def _sweep(self) -> int:
        try:
            rows = await self.store.list_expired_votes(self.threshold_seconds)
        except StorageQueryError as e:
            logger.warning("Could not list expired votes in %s store: %s", self.store.name, e)
            return 0

        reminded = 0
        async for row in rows:
            if await self._process_row(row):
                reminded += 1

        if reminded:
            logger.info("Sent %d %s signals", reminded, self.signal)
        return reminded

    async def _process_row(self, row: RowResult) -> bool:
        if not row.ok:
            logger.warning(
                "Skipping expired vote of %s in %s store: %s",
                row.subject_id,
                self.store.name,
                row.error,
            )
            return False

        record = row.record
        assert record is not None
        try:
            opted_in = await self.store.get_opt(record.subject_id)
        except StorageQueryError as e:
            logger.warning("Could not read opt-in of %s: %s", record.subject_id, e)
            return False

        if opted_in:
            self.emitter.emit(self.signal, record)
        else:
            logger.debug("%s opted out of reminders; clearing expired vote", record.subject_id)

        try:
            await self.store.remove_vote(record.subject_id, record.voted_at)
        except StorageQueryError as e:
            logger.warning("Could not remove expired vote of %s: %s", record.subject_id, e)
        return opted_in
