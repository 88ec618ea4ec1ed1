# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""SubmittedFlag ORM model – one row per flag submission attempt."""

from sqlalchemy import Column, Integer, Text, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.sql import func

from database import Base


class SubmittedFlag(Base):
    __tablename__ = "submitted_flags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    challenge_id = Column(
        Integer,
        ForeignKey("challenges.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    flag = Column(Text, nullable=False)
    is_correct = Column(Boolean, nullable=False, default=False)
    submitted_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    # "has this user already solved this challenge?"
    __table_args__ = (
        Index("ix_submitted_flags_user_challenge_correct", "user_id", "challenge_id", "is_correct"),
    )
