"""SQLAlchemy models for the vote reminders service."""

from .voter import Voter, VoterOption

__all__ = ["Voter", "VoterOption"]
