"""Vote tracking and vote reminders for webhook-driven voting sites."""

from .client import VotingSDK
from .core.settings import Settings
from .services import (
    NotReadyError,
    StorageConnectionError,
    StorageQueryError,
    VoteEvent,
    VoteRecord,
    VoteStoreError,
)

__all__ = [
    "NotReadyError",
    "Settings",
    "StorageConnectionError",
    "StorageQueryError",
    "VoteEvent",
    "VoteRecord",
    "VoteStoreError",
    "VotingSDK",
]
