# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Flag checking and score bookkeeping.

``users.total_points`` and ``users.challenges_solved`` are a cache of what
``submitted_flags`` says.  They are never incremented in place: every write
that can change them calls :func:`recalculate_user_scores`, which derives
both numbers from the distinct (user, challenge) pairs with a correct
submission, inside the caller's transaction.  A duplicate correct row
therefore cannot award points twice.
"""

from typing import Iterable, Optional

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from core.logger import logger
from core.security import verify_flag
from models.challenge import Challenge
from models.submitted_flag import SubmittedFlag
from models.user import User
from submissions.schemas import SubmitFlagResponse


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------


def _solved_pairs(db: Session, event_id: Optional[int] = None):
    """Subquery of distinct (user_id, challenge_id) pairs with a correct submission."""
    q = db.query(
        SubmittedFlag.user_id.label("user_id"),
        SubmittedFlag.challenge_id.label("challenge_id"),
    ).filter(SubmittedFlag.is_correct.is_(True))
    if event_id is not None:
        q = q.join(Challenge, Challenge.id == SubmittedFlag.challenge_id).filter(
            Challenge.event_id == event_id
        )
    return q.distinct().subquery()


def recalculate_user_scores(db: Session, user_ids: Iterable[int]) -> None:
    """
    Rewrite total_points / challenges_solved for *user_ids* from the
    submissions table.  Does not commit.
    """
    ids = {uid for uid in user_ids if uid is not None}
    if not ids:
        return

    db.flush()
    solved = _solved_pairs(db)
    rows = (
        db.query(
            solved.c.user_id,
            func.count(solved.c.challenge_id).label("solved"),
            func.coalesce(func.sum(Challenge.points), 0).label("points"),
        )
        .select_from(solved)
        .join(Challenge, Challenge.id == solved.c.challenge_id)
        .filter(solved.c.user_id.in_(ids))
        .group_by(solved.c.user_id)
        .all()
    )
    totals = {row.user_id: (int(row.solved), int(row.points)) for row in rows}

    for user in db.query(User).filter(User.id.in_(ids)).all():
        user.challenges_solved, user.total_points = totals.get(user.id, (0, 0))


def solver_ids(db: Session, challenge_ids: Iterable[int]) -> set[int]:
    """Users holding at least one correct submission on any of *challenge_ids*."""
    ids = list(challenge_ids)
    if not ids:
        return set()
    rows = (
        db.query(SubmittedFlag.user_id)
        .filter(SubmittedFlag.challenge_id.in_(ids), SubmittedFlag.is_correct.is_(True))
        .distinct()
        .all()
    )
    return {r.user_id for r in rows}


# ---------------------------------------------------------------------------
# Leaderboards
# ---------------------------------------------------------------------------


def _ranked(rows) -> list[dict]:
    return [
        {
            "rank": idx,
            "user_id": row.id,
            "username": row.name,
            "points": int(row.points or 0),
            "solved": int(row.solved or 0),
        }
        for idx, row in enumerate(rows, start=1)
    ]


def global_leaderboard(db: Session) -> list[dict]:
    """Non-banned users with points, by points then solves."""
    rows = (
        db.query(
            User.id,
            User.name,
            User.total_points.label("points"),
            User.challenges_solved.label("solved"),
        )
        .filter(User.is_banned.is_(False), User.total_points > 0)
        .order_by(User.total_points.desc(), User.challenges_solved.desc(), User.id.asc())
        .all()
    )
    return _ranked(rows)


def event_leaderboard(db: Session, event_id: int) -> list[dict]:
    """Ranking computed only from correct submissions on the event's challenges."""
    solved = _solved_pairs(db, event_id=event_id)
    points = func.coalesce(func.sum(Challenge.points), 0)
    count = func.count(solved.c.challenge_id)
    rows = (
        db.query(
            User.id,
            User.name,
            points.label("points"),
            count.label("solved"),
        )
        .select_from(solved)
        .join(User, User.id == solved.c.user_id)
        .join(Challenge, Challenge.id == solved.c.challenge_id)
        .filter(User.is_banned.is_(False))
        .group_by(User.id, User.name)
        .order_by(points.desc(), count.desc(), User.id.asc())
        .all()
    )
    return _ranked(rows)


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------


def submit_flag(db: Session, challenge_id: int, user_id: int, flag: str) -> SubmitFlagResponse:
    """
    Record one submission attempt and score it.

    The user row is locked first (``SELECT … FOR UPDATE`` where the backend
    supports it) so concurrent submissions by the same user run one after
    the other.  Commits on success.
    """
    user = db.query(User).filter(User.id == user_id).with_for_update().first()
    challenge = db.query(Challenge).filter(Challenge.id == challenge_id).first()

    if not challenge:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Challenge not found")
    if challenge.status != "active":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Challenge is not active")
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if user.is_banned:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is banned")

    is_correct = verify_flag(flag, challenge.flag_hash)

    already_solved = (
        db.query(SubmittedFlag.id)
        .filter(
            SubmittedFlag.user_id == user.id,
            SubmittedFlag.challenge_id == challenge.id,
            SubmittedFlag.is_correct.is_(True),
        )
        .first()
        is not None
    )

    db.add(SubmittedFlag(
        user_id=user.id,
        challenge_id=challenge.id,
        flag=flag.strip(),
        is_correct=is_correct,
    ))

    if is_correct and not already_solved:
        recalculate_user_scores(db, [user.id])
    db.commit()

    if not is_correct:
        return SubmitFlagResponse(correct=False, message="Incorrect flag")

    if already_solved:
        return SubmitFlagResponse(correct=True, already_solved=True, message="Already solved", points=0)

    logger.info(
        "Solve | user_id=%s challenge_id=%s points=%s",
        user.id, challenge.id, challenge.points,
    )
    return SubmitFlagResponse(correct=True, message="Correct flag!", points=challenge.points)
