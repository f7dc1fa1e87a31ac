"""Models capturing the latest vote and reminder preference per subject."""

from datetime import datetime

from sqlalchemy import TIMESTAMP, Boolean, Text
from sqlalchemy.orm import Mapped, mapped_column

from vote_reminders.db.session import Base


class Voter(Base):
    """Most recent vote of a subject.

    One row per subject; a new vote overwrites ``voted_at``.
    """

    __tablename__ = "voters"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    voted_at: Mapped[datetime] = mapped_column("votedAt", TIMESTAMP, nullable=False)


class VoterOption(Base):
    """Explicit reminder opt-in choice of a subject."""

    __tablename__ = "voterOptions"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    opt_in: Mapped[bool] = mapped_column("optIn", Boolean, nullable=False)
