"""Vote reminder SDK.

The VotingSDK class wires together the two vote stores, their reminder
schedulers, the webhook dispatcher and a FastAPI application, and exposes
the query surface used by the host application. The SDK is itself the event
emitter: subscribe with ``on``.

Example:
    sdk = VotingSDK("webhook-secret")

    @sdk.on(VotingSDK.ON_REMINDER)
    async def remind(record):
        await send_reminder(record.subject_id)

    await sdk.serve()
"""

from __future__ import annotations

import logging
from datetime import datetime

import uvicorn
from fastapi import FastAPI

from vote_reminders.api.webhook import register_webhook_route
from vote_reminders.core.settings import Settings
from vote_reminders.core.settings import settings as default_settings
from vote_reminders.services.dispatcher import WebhookDispatcher
from vote_reminders.services.events import (
    REMINDER,
    TEST_REMINDER,
    TEST_VOTE,
    VOTE,
    EventEmitter,
)
from vote_reminders.services.scheduler import ReminderScheduler
from vote_reminders.services.store import StorageConnectionError, VoteStore

logger = logging.getLogger(__name__)


class VotingSDK(EventEmitter):
    """Tracks votes and emits reminders once the reminder time has passed."""

    ON_VOTE = VOTE
    ON_TEST_VOTE = TEST_VOTE
    ON_REMINDER = REMINDER
    ON_TEST_REMINDER = TEST_REMINDER

    def __init__(self, authorization: str | None = None, settings: Settings | None = None) -> None:
        """Create the SDK; nothing is opened until ``init``.

        Args:
            authorization: Shared secret expected in the webhook Authorization
                header. Falls back to the configured value.
            settings: Configuration; defaults to the environment settings.
        """
        super().__init__()
        self.settings = settings or default_settings
        self.authorization = authorization or self.settings.authorization
        opt_in_default = self.settings.reminders_opt_in_default

        self.store = VoteStore(
            self.settings.db_path,
            self.settings.reminder_time,
            opt_in_default,
            name="production",
            echo=self.settings.sql_debug,
        )
        self.test_store = VoteStore(
            self.settings.test_db_path,
            self.settings.test_reminder_time,
            opt_in_default,
            name="test",
            echo=self.settings.sql_debug,
        )
        self.scheduler = ReminderScheduler(
            self.store, self, REMINDER, self.settings.interval_seconds
        )
        self.test_scheduler = ReminderScheduler(
            self.test_store, self, TEST_REMINDER, self.settings.test_interval_seconds
        )
        self.dispatcher = WebhookDispatcher(self.store, self.test_store, self)
        self.app = self._build_app()

    def _build_app(self) -> FastAPI:
        app = FastAPI(title="Vote reminders", description="Vote webhook receiver")
        app.state.dispatcher = self.dispatcher
        app.state.authorization = self.authorization
        register_webhook_route(app, self.settings.webhook_path)

        @app.on_event("startup")
        async def on_startup() -> None:
            await self.init()

        @app.on_event("shutdown")
        async def on_shutdown() -> None:
            await self.close()

        return app

    async def init(self) -> None:
        """Open both stores and start both reminder schedulers.

        Raises:
            StorageConnectionError: A store could not be opened. No scheduler
                is started in that case.
        """
        if self.authorization is None:
            logger.warning("No webhook authorization configured; accepting every request")
        await self.store.init()
        try:
            await self.test_store.init()
        except StorageConnectionError:
            await self.store.close()
            raise
        await self.scheduler.start()
        await self.test_scheduler.start()

    async def close(self) -> None:
        """Stop the schedulers, finish pending writes and listeners, close the stores."""
        await self.scheduler.stop()
        await self.test_scheduler.stop()
        await self.dispatcher.drain()
        await self.wait_for_listeners()
        await self.store.close()
        await self.test_store.close()

    async def serve(self) -> None:
        """Serve the webhook until the process is interrupted."""
        config = uvicorn.Config(
            self.app,
            host=self.settings.host,
            port=self.settings.port,
            log_level=self.settings.log_level.lower(),
        )
        await uvicorn.Server(config).serve()

    def _store_for(self, test: bool) -> VoteStore:
        return self.test_store if test else self.store

    async def has_voted(self, subject_id: str, test: bool = False) -> bool:
        """Return True if ``subject_id`` has a vote that has not been swept yet."""
        return await self._store_for(test).get_vote(subject_id) is not None

    async def voted_at(self, subject_id: str, test: bool = False) -> datetime | None:
        """Return when ``subject_id`` last voted, or None if no vote is on record."""
        record = await self._store_for(test).get_vote(subject_id)
        return None if record is None else record.voted_at

    async def opt_in(self, subject_id: str, test: bool = False) -> bool:
        """Opt ``subject_id`` in to reminders; returns True."""
        return await self._store_for(test).opt_in(subject_id)

    async def opt_out(self, subject_id: str, test: bool = False) -> bool:
        """Opt ``subject_id`` out of reminders; returns False."""
        return await self._store_for(test).opt_out(subject_id)

    async def set_opt(self, subject_id: str, value: bool, test: bool = False) -> bool:
        """Set the reminder preference of ``subject_id``; returns the stored value."""
        return await self._store_for(test).set_opt(subject_id, value)

    async def get_opt(self, subject_id: str, test: bool = False) -> bool:
        """Return whether ``subject_id`` wants reminders."""
        return await self._store_for(test).get_opt(subject_id)
