"""Core configuration for the vote reminders service."""
