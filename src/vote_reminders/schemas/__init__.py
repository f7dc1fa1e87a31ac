"""Pydantic schemas for the webhook surface."""

from .vote import VOTE_TYPE_TEST, VOTE_TYPE_UPVOTE, WebhookPayload

__all__ = ["VOTE_TYPE_TEST", "VOTE_TYPE_UPVOTE", "WebhookPayload"]
