# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Event lifecycle helpers shared by the API, the HTML pages and
``bin/archive_events.py``.

Archiving is an explicit two-step write done by the application, not by a
database cascade: the event's status becomes ``archived`` and every
challenge that referenced it moves back to the general pool
(``event_id = NULL``).  Both statements run in the caller's transaction.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from core.logger import logger
from models.challenge import Challenge
from models.event import Event


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def active_event(db: Session, now: Optional[datetime] = None) -> Optional[Event]:
    """The most recently started event that is active and running right now."""
    now = now or utcnow()
    return (
        db.query(Event)
        .filter(
            Event.status == "active",
            Event.start_date <= now,
            Event.end_date >= now,
        )
        .order_by(Event.start_date.desc())
        .first()
    )


def archive_event(db: Session, event: Event) -> int:
    """
    Mark *event* archived and detach its challenges.  Returns how many
    challenges moved to the general pool.  Does not commit.
    """
    event.status = "archived"
    moved = (
        db.query(Challenge)
        .filter(Challenge.event_id == event.id)
        .update({Challenge.event_id: None}, synchronize_session=False)
    )
    return moved


def archive_expired_events(db: Session, now: Optional[datetime] = None) -> list[Event]:
    """
    Archive every ``active`` event whose end date has passed.  Commits.
    Returns the archived events.
    """
    now = now or utcnow()
    expired = (
        db.query(Event)
        .filter(Event.status == "active", Event.end_date.is_not(None), Event.end_date < now)
        .all()
    )
    for event in expired:
        moved = archive_event(db, event)
        logger.info(
            "Event '%s' (ID: %s) automatically archived, %d challenge(s) moved",
            event.name, event.id, moved,
        )
    db.commit()

    if expired:
        logger.info("Archived %d expired event(s)", len(expired))
    else:
        logger.info("No events to archive")
    return expired
