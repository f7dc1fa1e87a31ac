# src/vote_reminders/main.py
"""Main entry point for the vote reminders service."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from vote_reminders.client import VotingSDK
from vote_reminders.core.settings import settings
from vote_reminders.services.store import VoteRecord

logger = logging.getLogger("vote_reminders")


def create_sdk() -> VotingSDK:
    """Build an SDK from the environment that logs every signal it emits."""
    sdk = VotingSDK(settings=settings)

    @sdk.on(VotingSDK.ON_VOTE)
    def log_vote(payload: dict[str, Any]) -> None:
        logger.info("Vote event: %s", payload)

    @sdk.on(VotingSDK.ON_TEST_VOTE)
    def log_test_vote(payload: dict[str, Any]) -> None:
        logger.info("Test vote event: %s", payload)

    @sdk.on(VotingSDK.ON_REMINDER)
    def log_reminder(record: VoteRecord) -> None:
        logger.info("Reminder event: %s", record.to_dict())

    @sdk.on(VotingSDK.ON_TEST_REMINDER)
    def log_test_reminder(record: VoteRecord) -> None:
        logger.info("Test reminder event: %s", record.to_dict())

    return sdk


def main() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    asyncio.run(create_sdk().serve())


if __name__ == "__main__":
    main()
