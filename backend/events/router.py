# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Event endpoints – ``/api/events`` dispatched on method + ``action``:

    GET     list | active | get&id= | scoreboard&id=
    POST    create | archive&id=       (admin)
    PUT     update&id=                 (admin)
    DELETE  delete&id=                 (admin)

Deleting an event is refused while challenges still reference it; archive
it first to move them to the general pool.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import get_db
from core.logger import logger
from core.security import csrf_protected_body, get_client_ip, require_admin
from models.audit_log import AuditLog
from models.challenge import Challenge
from models.event import Event
from models.user import User
from events.schemas import (
    EventCreate,
    EventDetailResponse,
    EventListResponse,
    EventScoreboardResponse,
    EventUpdate,
)
from events.service import active_event, archive_event
from submissions.scoring import event_leaderboard

router = APIRouter(prefix="/api/events", tags=["events"])


def _require_id(event_id: Optional[int]) -> int:
    if not event_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Event ID required")
    return event_id


def _get_or_404(event_id: int, db: Session) -> Event:
    event = db.query(Event).filter(Event.id == event_id).first()
    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return event


def _check_dates(event: Event) -> None:
    start, end = event.start_date, event.end_date
    if start is not None and end is not None:
        # SQLite hands back naive values; compare on the naive wall clock (UTC)
        if end.replace(tzinfo=None) < start.replace(tzinfo=None):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="End date must not precede start date",
            )


def _audit(db: Session, admin: User, request: Request, action: str, detail: str) -> None:
    db.add(AuditLog(
        admin_id=admin.id,
        action=action,
        detail=detail,
        request_ip=get_client_ip(request),
    ))


# ---------------------------------------------------------------------------
# GET /api/events
# ---------------------------------------------------------------------------


@router.get("")
def read_events(
    action: str = Query(""),
    event_id: Optional[int] = Query(None, alias="id"),
    db: Session = Depends(get_db),
):
    if action == "list":
        events = db.query(Event).order_by(Event.start_date.desc(), Event.id.desc()).all()
        return EventListResponse(events=events)

    if action == "active":
        return EventDetailResponse(event=active_event(db))

    if action == "get":
        return EventDetailResponse(event=_get_or_404(_require_id(event_id), db))

    if action == "scoreboard":
        event = _get_or_404(_require_id(event_id), db)
        return EventScoreboardResponse(event_id=event.id, leaderboard=event_leaderboard(db, event.id))

    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid action")


# ---------------------------------------------------------------------------
# POST /api/events?action=create|archive
# ---------------------------------------------------------------------------


@router.post("")
def write_events(
    request: Request,
    action: str = Query(""),
    event_id: Optional[int] = Query(None, alias="id"),
    admin: User = Depends(require_admin),
    body: dict = Depends(csrf_protected_body),
    db: Session = Depends(get_db),
):
    if action == "create":
        data = EventCreate.model_validate(body)
        event = Event(
            name=data.name.strip(),
            description=data.description,
            banner_url=data.banner_url or None,
            start_date=data.start_date,
            end_date=data.end_date,
            status=data.status,
        )
        _check_dates(event)
        db.add(event)
        db.flush()  # get event.id before commit
        _audit(db, admin, request, "event_create", f"id={event.id}, name={event.name}")
        db.commit()
        logger.info("Event %s created by admin_id=%s", event.id, admin.id)
        return {"success": True, "id": event.id}

    if action == "archive":
        event = _get_or_404(_require_id(event_id), db)
        moved = archive_event(db, event)
        _audit(db, admin, request, "event_archive", f"id={event.id}, challenges_moved={moved}")
        db.commit()
        logger.info("Event %s archived by admin_id=%s, %d challenge(s) moved", event.id, admin.id, moved)
        return {"success": True, "challenges_moved": moved}

    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid action")


# ---------------------------------------------------------------------------
# PUT /api/events?action=update&id=
# ---------------------------------------------------------------------------


@router.put("")
def update_event(
    request: Request,
    action: str = Query(""),
    event_id: Optional[int] = Query(None, alias="id"),
    admin: User = Depends(require_admin),
    body: dict = Depends(csrf_protected_body),
    db: Session = Depends(get_db),
):
    """
    Partial update.  Setting ``status`` to ``archived`` here performs the
    same challenge detachment as the archive action.
    """
    if action != "update":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid action")

    event = _get_or_404(_require_id(event_id), db)
    data = EventUpdate.model_validate(body)
    fields = data.model_fields_set

    if data.name is not None:
        event.name = data.name.strip()
    if data.description is not None:
        event.description = data.description
    if "banner_url" in fields:
        event.banner_url = data.banner_url or None
    if "start_date" in fields:
        event.start_date = data.start_date
    if "end_date" in fields:
        event.end_date = data.end_date
    _check_dates(event)

    if data.status == "archived" and event.status != "archived":
        archive_event(db, event)
    elif data.status is not None:
        event.status = data.status

    _audit(db, admin, request, "event_update", f"id={event.id}, " + ", ".join(sorted(fields)))
    db.commit()
    return {"success": True}


# ---------------------------------------------------------------------------
# DELETE /api/events?action=delete&id=
# ---------------------------------------------------------------------------


@router.delete("")
def delete_event(
    request: Request,
    action: str = Query(""),
    event_id: Optional[int] = Query(None, alias="id"),
    admin: User = Depends(require_admin),
    body: dict = Depends(csrf_protected_body),
    db: Session = Depends(get_db),
):
    if action != "delete":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid action")

    event = _get_or_404(_require_id(event_id), db)

    in_use = db.query(func.count(Challenge.id)).filter(Challenge.event_id == event.id).scalar()
    if in_use:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete event: it still has challenges. Archive it first.",
        )

    _audit(db, admin, request, "event_delete", f"id={event.id}, name={event.name}")
    db.delete(event)
    db.commit()
    return {"success": True}
