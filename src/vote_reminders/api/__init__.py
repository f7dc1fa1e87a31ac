"""HTTP surface of the vote reminders service."""

from .webhook import get_dispatcher, register_webhook_route

__all__ = ["get_dispatcher", "register_webhook_route"]
