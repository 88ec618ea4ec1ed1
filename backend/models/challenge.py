# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""Challenge ORM model."""

from sqlalchemy import Column, Integer, String, Text, DateTime, Enum, ForeignKey, JSON
from sqlalchemy.sql import func

from database import Base


class Challenge(Base):
    __tablename__ = "challenges"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    # Free-form; matched by name against the categories table
    category = Column(String(100), nullable=False, index=True)
    difficulty = Column(Enum("Easy", "Medium", "Hard", name="challenge_difficulty"), nullable=False)
    points = Column(Integer, nullable=False, default=0)
    # hex( SHA-256( trimmed flag ) ) – the plaintext flag is never stored
    flag_hash = Column(String(64), nullable=False)
    # [{"name": ..., "downloadUrl": ...}, ...]
    files = Column(JSON, nullable=False, default=list)
    challenge_link = Column(String(2048), nullable=True)
    # NULL = general pool.  Archiving an event nulls this explicitly.
    event_id = Column(
        Integer,
        ForeignKey("events.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    status = Column(Enum("active", "disabled", name="challenge_status"), nullable=False, default="active")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
