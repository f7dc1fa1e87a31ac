"""Vote storage, reminder scheduling and dispatch services."""

from .dispatcher import VoteEvent, WebhookDispatcher
from .events import REMINDER, TEST_REMINDER, TEST_VOTE, VOTE, EventEmitter
from .scheduler import ReminderScheduler
from .store import (
    NotReadyError,
    RowResult,
    StorageConnectionError,
    StorageQueryError,
    VoteRecord,
    VoteStore,
    VoteStoreError,
)

__all__ = [
    "EventEmitter",
    "NotReadyError",
    "REMINDER",
    "ReminderScheduler",
    "RowResult",
    "StorageConnectionError",
    "StorageQueryError",
    "TEST_REMINDER",
    "TEST_VOTE",
    "VOTE",
    "VoteEvent",
    "VoteRecord",
    "VoteStore",
    "VoteStoreError",
    "WebhookDispatcher",
]
