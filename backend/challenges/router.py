# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Challenge endpoints – public listing / detail and admin CRUD.

All requests go to ``/api/challenges`` and are dispatched on the HTTP method
plus the ``action`` query parameter:

    GET     list | get
    POST    add                (admin)
    PUT     update&id=         (admin)
    DELETE  delete&id=         (admin)

Mutating actions check the admin gate first, then the CSRF token, then the
body.  Responses never include ``flag_hash``.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from database import get_db
from core.config import settings
from core.logger import logger
from core.security import csrf_protected_body, get_client_ip, hash_flag, require_admin
from models.audit_log import AuditLog
from models.challenge import Challenge
from models.event import Event
from models.submitted_flag import SubmittedFlag
from models.user import User
from submissions.scoring import recalculate_user_scores, solver_ids
from challenges.schemas import (
    VALID_LIST_STATUSES,
    ChallengeCreate,
    ChallengeDetailResponse,
    ChallengeListResponse,
    ChallengeUpdate,
)

router = APIRouter(prefix="/api/challenges", tags=["challenges"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _require_id(challenge_id: Optional[int]) -> int:
    if not challenge_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Challenge ID required")
    return challenge_id


def _get_or_404(challenge_id: int, db: Session) -> Challenge:
    challenge = db.query(Challenge).filter(Challenge.id == challenge_id).first()
    if not challenge:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Challenge not found")
    return challenge


def _check_event(event_id: Optional[int], db: Session) -> None:
    if event_id is not None and not db.query(Event.id).filter(Event.id == event_id).first():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")


def _check_flag_format(flag: str) -> str:
    flag = flag.strip()
    if not flag:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Flag is required")
    if settings.flag_prefix and not flag.startswith(settings.flag_prefix):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Flag must start with {settings.flag_prefix}",
        )
    return flag


def list_challenges(
    db: Session,
    event_id: Optional[int] = None,
    category: Optional[str] = None,
    difficulty: Optional[str] = None,
    status_filter: str = "active",
    general_pool: bool = False,
) -> list[Challenge]:
    """
    Filtered listing, newest first.  ``general_pool`` restricts to
    challenges that belong to no event.  Shared with the HTML pages.
    """
    q = db.query(Challenge)
    if event_id is not None:
        q = q.filter(Challenge.event_id == event_id)
    elif general_pool:
        q = q.filter(Challenge.event_id.is_(None))
    if category:
        q = q.filter(Challenge.category == category)
    if difficulty:
        q = q.filter(Challenge.difficulty == difficulty)
    if status_filter != "all":
        q = q.filter(Challenge.status == status_filter)
    return q.order_by(Challenge.created_at.desc(), Challenge.id.desc()).all()


# ---------------------------------------------------------------------------
# GET /api/challenges?action=list|get
# ---------------------------------------------------------------------------


@router.get("")
def read_challenges(
    action: str = Query(""),
    challenge_id: Optional[int] = Query(None, alias="id"),
    event_id: Optional[int] = Query(None),
    category: Optional[str] = Query(None),
    difficulty: Optional[str] = Query(None),
    status_filter: str = Query("active", alias="status"),
    db: Session = Depends(get_db),
):
    if action == "list":
        if status_filter not in VALID_LIST_STATUSES:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid status filter")
        rows = list_challenges(db, event_id, category, difficulty, status_filter)
        return ChallengeListResponse(challenges=rows)

    if action == "get":
        challenge = _get_or_404(_require_id(challenge_id), db)
        return ChallengeDetailResponse(challenge=challenge)

    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid action")


# ---------------------------------------------------------------------------
# POST /api/challenges?action=add
# ---------------------------------------------------------------------------


@router.post("")
def create_challenge(
    request: Request,
    action: str = Query(""),
    admin: User = Depends(require_admin),
    body: dict = Depends(csrf_protected_body),
    db: Session = Depends(get_db),
):
    """Hash the supplied flag and persist the challenge."""
    if action != "add":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid action")

    data = ChallengeCreate.model_validate(body)
    flag = _check_flag_format(data.flag)
    _check_event(data.event_id, db)

    challenge = Challenge(
        title=data.title.strip(),
        description=data.description,
        category=data.category.strip(),
        difficulty=data.difficulty,
        points=data.points,
        flag_hash=hash_flag(flag),
        files=data.files,
        challenge_link=data.challenge_link or None,
        event_id=data.event_id,
        status=data.status,
    )
    db.add(challenge)
    db.flush()  # get challenge.id before commit
    db.add(AuditLog(
        admin_id=admin.id,
        action="challenge_create",
        detail=f"id={challenge.id}, title={challenge.title}, points={challenge.points}, flag=******",
        request_ip=get_client_ip(request),
    ))
    db.commit()

    logger.info("Challenge %s created by admin_id=%s", challenge.id, admin.id)
    return {"success": True, "id": challenge.id}


# ---------------------------------------------------------------------------
# PUT /api/challenges?action=update&id=
# ---------------------------------------------------------------------------


@router.put("")
def update_challenge(
    request: Request,
    action: str = Query(""),
    challenge_id: Optional[int] = Query(None, alias="id"),
    admin: User = Depends(require_admin),
    body: dict = Depends(csrf_protected_body),
    db: Session = Depends(get_db),
):
    """
    Partial update.  Only fields present in the body are changed.  A new
    ``flag`` is re-hashed; a points change re-derives every solver's score.
    """
    if action != "update":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid action")

    challenge = _get_or_404(_require_id(challenge_id), db)
    data = ChallengeUpdate.model_validate(body)
    fields = data.model_fields_set

    if data.title is not None:
        challenge.title = data.title.strip()
    if data.description is not None:
        challenge.description = data.description
    if data.category is not None:
        challenge.category = data.category.strip()
    if data.difficulty is not None:
        challenge.difficulty = data.difficulty
    if data.files is not None:
        challenge.files = data.files
    if data.status is not None:
        challenge.status = data.status
    if "challenge_link" in fields:
        challenge.challenge_link = data.challenge_link or None
    if "event_id" in fields:
        _check_event(data.event_id, db)
        challenge.event_id = data.event_id
    if data.flag is not None:
        challenge.flag_hash = hash_flag(_check_flag_format(data.flag))

    points_changed = data.points is not None and data.points != challenge.points
    if data.points is not None:
        challenge.points = data.points
    if points_changed:
        recalculate_user_scores(db, solver_ids(db, [challenge.id]))

    changes = sorted(f for f in fields if f != "flag")
    if data.flag is not None:
        changes.append("flag=******")
    db.add(AuditLog(
        admin_id=admin.id,
        action="challenge_update",
        detail=f"id={challenge.id}, " + ", ".join(changes) if changes else f"id={challenge.id}",
        request_ip=get_client_ip(request),
    ))
    db.commit()

    return {"success": True}


# ---------------------------------------------------------------------------
# DELETE /api/challenges?action=delete&id=
# ---------------------------------------------------------------------------


@router.delete("")
def delete_challenge(
    request: Request,
    action: str = Query(""),
    challenge_id: Optional[int] = Query(None, alias="id"),
    admin: User = Depends(require_admin),
    body: dict = Depends(csrf_protected_body),
    db: Session = Depends(get_db),
):
    """Delete the challenge with its submissions, then re-derive solvers' scores."""
    if action != "delete":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid action")

    challenge = _get_or_404(_require_id(challenge_id), db)
    affected = solver_ids(db, [challenge.id])
    detail = f"id={challenge.id}, title={challenge.title}"

    db.query(SubmittedFlag).filter(SubmittedFlag.challenge_id == challenge.id).delete(
        synchronize_session=False
    )
    db.delete(challenge)
    recalculate_user_scores(db, affected)
    db.add(AuditLog(
        admin_id=admin.id,
        action="challenge_delete",
        detail=detail,
        request_ip=get_client_ip(request),
    ))
    db.commit()

    return {"success": True}
