"""Durable storage of vote timestamps and reminder preferences.

This module provides the VoteStore class. One store is created per
environment (production votes and test votes); both use the same code with
different configuration and never share tables or connections.

Storage I/O runs on a single worker thread owned by the store. Calls against
one store are therefore executed one at a time and in submission order, which
also lets an in-memory SQLite database be shared safely.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, TypeVar

from sqlalchemy import delete, select, text
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from vote_reminders.db.session import Base, build_engine
from vote_reminders.db.time import as_utc, utcnow
from vote_reminders.models import Voter, VoterOption

logger = logging.getLogger(__name__)

T = TypeVar("T")

VOTERS = Voter.__table__
VOTER_OPTIONS = VoterOption.__table__

MILLISECONDS_PER_SECOND = 1000


class VoteStoreError(RuntimeError):
    """Base exception raised for vote store failures."""


class NotReadyError(VoteStoreError):
    """Raised when a store operation runs before ``init`` or after ``close``."""


class StorageConnectionError(VoteStoreError):
    """Raised when the storage backend cannot be opened or its schema created."""


class StorageQueryError(VoteStoreError):
    """Raised when a single read or write against an open store fails."""


@dataclass(frozen=True)
class VoteRecord:
    """Latest vote of a subject."""

    subject_id: str
    voted_at: datetime

    @property
    def timestamp(self) -> int:
        """Return ``voted_at`` as milliseconds since the epoch."""
        return int(self.voted_at.timestamp() * MILLISECONDS_PER_SECOND)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.subject_id, "votedAt": self.timestamp}


@dataclass(frozen=True)
class RowResult:
    """Outcome of loading one expired row: a record or the error that prevented it."""

    subject_id: str
    record: VoteRecord | None = None
    error: StorageQueryError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.record is not None


class VoteStore:
    """Keyed storage of vote records and opt-in preferences for one environment.

    The store carries its configuration: storage location, the number of
    seconds after which a vote counts as expired, and the opt-in value used
    for subjects with no stored preference.
    """

    def __init__(
        self,
        location: str,
        reminder_threshold: int,
        opt_in_default: bool = False,
        *,
        name: str = "production",
        clock: Callable[[], datetime] = utcnow,
        echo: bool = False,
    ) -> None:
        """Configure a store; no storage is touched until ``init``.

        Args:
            location: Filesystem path, ``:memory:``, or SQLAlchemy URL.
            reminder_threshold: Seconds after a vote at which it expires.
            opt_in_default: Preference for subjects that never chose one.
            name: Label used in log messages.
            clock: Source of the current time; returns aware datetimes.
            echo: Log every SQL statement.
        """
        self.location = location
        self.reminder_threshold = reminder_threshold
        self.opt_in_default = opt_in_default
        self.name = name
        self.ready = False
        self._clock = clock
        self._echo = echo
        self._engine: Engine | None = None
        self._executor: ThreadPoolExecutor | None = None

    def __repr__(self) -> str:
        return f"VoteStore(name={self.name!r}, location={self.location!r}, ready={self.ready})"

    async def init(self) -> None:
        """Open the storage backend and create the tables if absent.

        Calling ``init`` on a ready store does nothing.

        Raises:
            StorageConnectionError: The backend could not be opened or the
                schema could not be created. The store stays not ready.
        """
        if self.ready:
            return

        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"vote-store-{self.name}")
        loop = asyncio.get_running_loop()
        try:
            engine = await loop.run_in_executor(executor, self._open)
        except BaseException:
            executor.shutdown(wait=False)
            raise

        self._engine = engine
        self._executor = executor
        self.ready = True
        logger.info("Vote store %s ready at %s", self.name, self.location)

    def _open(self) -> Engine:
        try:
            engine = build_engine(self.location, echo=self._echo)
            with engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            logger.error("Could not open vote store %s at %s: %s", self.name, self.location, exc)
            raise StorageConnectionError(
                f"could not open vote store {self.name!r} at {self.location!r}"
            ) from exc

        try:
            Base.metadata.create_all(bind=engine)
        except SQLAlchemyError as exc:
            engine.dispose()
            logger.error("Could not create schema for vote store %s: %s", self.name, exc)
            raise StorageConnectionError(
                f"could not create tables for vote store {self.name!r}"
            ) from exc
        return engine

    async def close(self) -> None:
        """Release the engine and the worker thread; safe to call repeatedly."""
        if self._executor is None:
            return

        self.ready = False
        executor, engine = self._executor, self._engine
        self._executor = None
        self._engine = None
        if engine is not None:
            await asyncio.get_running_loop().run_in_executor(executor, engine.dispose)
        executor.shutdown(wait=True)
        logger.info("Vote store %s closed", self.name)

    def _ensure_ready(self) -> None:
        if not self.ready:
            raise NotReadyError(f"vote store {self.name!r} is not initialized")

    async def _run(self, func: Callable[[Session], T]) -> T:
        """Run ``func`` with a fresh session on the store's worker thread."""
        self._ensure_ready()
        assert self._executor is not None and self._engine is not None
        engine = self._engine

        def unit_of_work() -> T:
            with Session(engine, expire_on_commit=False) as session:
                try:
                    return func(session)
                except SQLAlchemyError as exc:
                    session.rollback()
                    raise StorageQueryError(
                        f"vote store {self.name!r} query failed: {exc}"
                    ) from exc

        return await asyncio.get_running_loop().run_in_executor(self._executor, unit_of_work)

    # Votes

    async def record_vote(self, subject_id: str, voted_at: datetime | None = None) -> None:
        """Store ``voted_at`` (default: now) as the latest vote of ``subject_id``."""
        timestamp = as_utc(voted_at if voted_at is not None else self._clock())

        def upsert(session: Session) -> None:
            stmt = sqlite_insert(VOTERS).values({"id": subject_id, "votedAt": timestamp})
            stmt = stmt.on_conflict_do_update(
                index_elements=[VOTERS.c.id],
                set_={"votedAt": stmt.excluded.votedAt},
            )
            session.execute(stmt)
            session.commit()

        await self._run(upsert)
        logger.debug("Recorded vote for %s in %s store", subject_id, self.name)

    async def remove_vote(self, subject_id: str, voted_at: datetime | None = None) -> None:
        """Delete the vote record of ``subject_id`` if there is one.

        With ``voted_at``, the record is only deleted while it still holds that
        vote; a newer vote recorded in the meantime is kept.
        """
        stmt = delete(Voter).where(Voter.id == subject_id)
        if voted_at is not None:
            stmt = stmt.where(Voter.voted_at == as_utc(voted_at))

        def remove(session: Session) -> None:
            session.execute(stmt)
            session.commit()

        await self._run(remove)

    async def get_vote(self, subject_id: str) -> VoteRecord | None:
        """Return the vote record of ``subject_id`` or None."""

        def load(session: Session) -> VoteRecord | None:
            voter = session.get(Voter, subject_id)
            if voter is None:
                return None
            return VoteRecord(subject_id=voter.id, voted_at=as_utc(voter.voted_at))

        return await self._run(load)

    async def list_expired_votes(self, older_than_seconds: int) -> AsyncIterator[RowResult]:
        """Return an iterator over votes cast at or before ``now - older_than_seconds``.

        The set of expired subjects is fixed when this coroutine is awaited.
        Rows are then loaded one at a time; a failure on one row is yielded
        as an error result and the remaining rows are still produced. Rows
        that were re-voted or removed in the meantime are skipped.

        Raises:
            NotReadyError: The store is not initialized.
            StorageQueryError: The expired subjects could not be listed.
        """
        cutoff = as_utc(self._clock()) - timedelta(seconds=older_than_seconds)

        def expired_ids(session: Session) -> list[str]:
            rows = session.execute(
                select(Voter.id).where(Voter.voted_at <= cutoff).order_by(Voter.voted_at, Voter.id)
            )
            return list(rows.scalars())

        subject_ids = await self._run(expired_ids)
        logger.debug("%d expired votes in %s store", len(subject_ids), self.name)
        return self._expired_rows(subject_ids, cutoff)

    async def _expired_rows(
        self, subject_ids: list[str], cutoff: datetime
    ) -> AsyncIterator[RowResult]:
        for subject_id in subject_ids:
            try:
                record = await self.get_vote(subject_id)
            except StorageQueryError as exc:
                yield RowResult(subject_id=subject_id, error=exc)
                continue

            if record is None or record.voted_at > cutoff:
                continue
            yield RowResult(subject_id=subject_id, record=record)

    # Preferences

    async def set_opt(self, subject_id: str, value: bool) -> bool:
        """Store ``value`` as the reminder preference of ``subject_id`` and return it."""
        value = bool(value)

        def upsert(session: Session) -> None:
            stmt = sqlite_insert(VOTER_OPTIONS).values({"id": subject_id, "optIn": value})
            stmt = stmt.on_conflict_do_update(
                index_elements=[VOTER_OPTIONS.c.id],
                set_={"optIn": stmt.excluded.optIn},
            )
            session.execute(stmt)
            session.commit()

        await self._run(upsert)
        return value

    async def opt_in(self, subject_id: str) -> bool:
        return await self.set_opt(subject_id, True)

    async def opt_out(self, subject_id: str) -> bool:
        return await self.set_opt(subject_id, False)

    async def get_opt(self, subject_id: str) -> bool:
        """Return the stored preference of ``subject_id`` or the store default."""

        def load(session: Session) -> bool | None:
            option = session.get(VoterOption, subject_id)
            return None if option is None else option.opt_in

        stored = await self._run(load)
        if stored is None:
            return self.opt_in_default
        return bool(stored)
