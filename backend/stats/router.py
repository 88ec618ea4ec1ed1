"""Admin dashboard counters – ``GET /api/stats``."""

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import get_db
from core.security import require_admin
from models.challenge import Challenge
from models.event import Event
from models.submitted_flag import SubmittedFlag
from models.user import User

router = APIRouter(prefix="/api/stats", tags=["stats"])


def _count(db: Session, model, *criteria) -> int:
    q = db.query(func.count(model.id))
    if criteria:
        q = q.filter(*criteria)
    return int(q.scalar() or 0)


def collect_stats(db: Session) -> dict:
    return {
        "users": {
            "total": _count(db, User),
            "active": _count(db, User, User.is_banned.is_(False)),
            "banned": _count(db, User, User.is_banned.is_(True)),
            "admins": _count(db, User, User.role == "admin"),
        },
        "challenges": {
            "total": _count(db, Challenge),
            "active": _count(db, Challenge, Challenge.status == "active"),
            "disabled": _count(db, Challenge, Challenge.status == "disabled"),
        },
        "events": {
            "total": _count(db, Event),
            "active": _count(db, Event, Event.status == "active"),
            "archived": _count(db, Event, Event.status == "archived"),
        },
        "flags": {
            "total": _count(db, SubmittedFlag),
            "correct": _count(db, SubmittedFlag, SubmittedFlag.is_correct.is_(True)),
        },
    }


@router.get("")
def read_stats(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return collect_stats(db)
