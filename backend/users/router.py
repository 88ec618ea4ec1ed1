# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
User endpoints – ``/api/users``.

Public reads:
    GET     scoreboard | profile&id=

Admin (``X-Admin-Email`` must name an admin row):
    GET     list | flags[&challenge_id=] | exportFlags | audit
    POST    add | ban | makeAdmin | reset[&event_id=]
    DELETE  delete&id=

Guards: an admin cannot ban, demote or delete themselves, and nobody can
ban, demote or delete the configured admin.
"""

import io
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status
from fastapi.responses import StreamingResponse
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment, Border, Side
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, aliased

from database import get_db
from core.config import settings
from core.logger import logger
from core.sanitize import is_valid_email, sanitize_input
from core.security import csrf_protected_body, get_client_ip, hash_password, require_admin
from models.audit_log import AuditLog
from models.challenge import Challenge
from models.submitted_flag import SubmittedFlag
from models.user import User
from submissions.scoring import global_leaderboard, recalculate_user_scores
from users.schemas import (
    AuditLogListResponse,
    AuditLogRow,
    BanRequest,
    CreateUserRequest,
    MakeAdminRequest,
    ProfileResponse,
    PublicProfile,
    ResetRequest,
    ScoreboardResponse,
    SubmittedFlagListResponse,
    SubmittedFlagRow,
    UserListResponse,
)

router = APIRouter(prefix="/api/users", tags=["users"])

_VALID_ROLES = {"admin", "user"}
_ADMIN_READS = {"list", "flags", "exportFlags", "audit"}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _get_target(user_id: Optional[int], db: Session) -> User:
    if not user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User ID required")
    target = db.query(User).filter(User.id == user_id).first()
    if not target:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return target


def _guard_target(target: User, admin: User, verb: str) -> None:
    """Refuse self-modification and modification of the configured admin."""
    if target.id == admin.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Cannot {verb} yourself")
    if settings.admin_email and target.email == settings.admin_email:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot {verb} the configured admin",
        )


def _audit(
    db: Session,
    admin: User,
    request: Request,
    action: str,
    target_user_id: Optional[int] = None,
    detail: Optional[str] = None,
) -> None:
    db.add(AuditLog(
        admin_id=admin.id,
        target_user_id=target_user_id,
        action=action,
        detail=detail,
        request_ip=get_client_ip(request),
    ))


def public_profile(user: User, db: Session) -> PublicProfile:
    """Public view of *user* plus the ids of the challenges they solved."""
    solved = (
        db.query(SubmittedFlag.challenge_id)
        .filter(SubmittedFlag.user_id == user.id, SubmittedFlag.is_correct.is_(True))
        .distinct()
        .all()
    )
    return PublicProfile(
        id=user.id,
        name=user.name,
        total_points=user.total_points,
        challenges_solved=user.challenges_solved,
        created_at=user.created_at,
        solved_challenge_ids=sorted(r.challenge_id for r in solved),
    )


def _submitted_flags(db: Session, challenge_id: Optional[int] = None) -> list[SubmittedFlagRow]:
    q = (
        db.query(
            SubmittedFlag,
            User.name.label("user_name"),
            Challenge.title.label("challenge_title"),
        )
        .join(User, SubmittedFlag.user_id == User.id)
        .join(Challenge, SubmittedFlag.challenge_id == Challenge.id)
    )
    if challenge_id:
        q = q.filter(SubmittedFlag.challenge_id == challenge_id)
    rows = q.order_by(SubmittedFlag.submitted_at.desc(), SubmittedFlag.id.desc()).all()

    return [
        SubmittedFlagRow(
            id=sub.id,
            user_id=sub.user_id,
            user_name=user_name,
            challenge_id=sub.challenge_id,
            challenge_title=challenge_title,
            flag=sub.flag,
            is_correct=sub.is_correct,
            submitted_at=sub.submitted_at,
        )
        for sub, user_name, challenge_title in rows
    ]


# ---------------------------------------------------------------------------
# GET /api/users
# ---------------------------------------------------------------------------


def _gate_admin_reads(
    action: str = Query(""),
    x_admin_email: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """
    Admin gate for the admin-only reads.  Runs as a dependency so it answers
    before the endpoint's own query parameters are validated.
    """
    if action in _ADMIN_READS:
        return require_admin(x_admin_email=x_admin_email, db=db)
    return None


@router.get("")
def read_users(
    admin: Optional[User] = Depends(_gate_admin_reads),
    action: str = Query(""),
    user_id: Optional[int] = Query(None, alias="id"),
    challenge_id: Optional[int] = Query(None),
    emails: list[str] | None = Query(None, description="Audit filter: exact email(s) – repeated param"),
    since: datetime | None = Query(None, description="Audit filter: ISO-8601 start of time window"),
    until: datetime | None = Query(None, description="Audit filter: ISO-8601 end of time window"),
    limit: int = Query(200, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    if action == "scoreboard":
        return ScoreboardResponse(leaderboard=global_leaderboard(db))

    if action == "profile":
        return ProfileResponse(user=public_profile(_get_target(user_id, db), db))

    if action not in _ADMIN_READS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid action")

    if action == "list":
        users = (
            db.query(User)
            .order_by(User.total_points.desc(), User.challenges_solved.desc(), User.id.asc())
            .all()
        )
        return UserListResponse(users=users)

    if action == "flags":
        return SubmittedFlagListResponse(flags=_submitted_flags(db, challenge_id))

    if action == "exportFlags":
        return _export_flags(db, challenge_id)

    return _audit_logs(db, emails, since, until, limit)


# ---------------------------------------------------------------------------
# POST /api/users?action=add|ban|makeAdmin|reset
# ---------------------------------------------------------------------------


@router.post("")
def write_users(
    request: Request,
    action: str = Query(""),
    event_id: Optional[int] = Query(None),
    admin: User = Depends(require_admin),
    body: dict = Depends(csrf_protected_body),
    db: Session = Depends(get_db),
):
    if action == "add":
        return _create_user(CreateUserRequest.model_validate(body), admin, request, db)
    if action == "ban":
        return _ban_user(BanRequest.model_validate(body), admin, request, db)
    if action == "makeAdmin":
        return _make_admin(MakeAdminRequest.model_validate(body), admin, request, db)
    if action == "reset":
        data = ResetRequest.model_validate(body)
        return _reset_scores(event_id or data.event_id, admin, request, db)
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid action")


def _create_user(body: CreateUserRequest, admin: User, request: Request, db: Session) -> dict:
    name = sanitize_input(body.name)
    email = body.email.strip()
    if not name or not email or not body.password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Name, email, and password are required",
        )
    if not is_valid_email(email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid email format")

    role = body.role if body.role in _VALID_ROLES else "user"

    # Uniqueness check
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already exists")

    user = User(
        name=name,
        email=email,
        password_hash=hash_password(body.password),
        role=role,
        is_banned=False,
        total_points=0,
        challenges_solved=0,
    )
    db.add(user)
    try:
        db.flush()  # get user.id before commit
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already exists")
    _audit(db, admin, request, "create_user", user.id, f"role={role}")
    db.commit()

    logger.info("User %s created by admin_id=%s (role=%s)", user.id, admin.id, role)
    return {"success": True, "user_id": user.id}


def _ban_user(body: BanRequest, admin: User, request: Request, db: Session) -> dict:
    """Set or clear ``is_banned``; ``banned_at`` records when the ban started."""
    target = _get_target(body.id, db)
    _guard_target(target, admin, "ban")

    target.is_banned = body.is_banned
    target.banned_at = datetime.now(timezone.utc) if body.is_banned else None
    _audit(db, admin, request, "ban_user" if body.is_banned else "unban_user", target.id)
    db.commit()

    logger.info("User %s %s by admin_id=%s", target.id, "banned" if body.is_banned else "unbanned", admin.id)
    return {"success": True}


def _make_admin(body: MakeAdminRequest, admin: User, request: Request, db: Session) -> dict:
    target = _get_target(body.id, db)
    _guard_target(target, admin, "change the role of")

    target.role = "admin" if body.make_admin else "user"
    _audit(db, admin, request, "change_role", target.id, f"new_role={target.role}")
    db.commit()

    logger.info("User %s role -> %s by admin_id=%s", target.id, target.role, admin.id)
    return {"success": True}


def _reset_scores(event_id: Optional[int], admin: User, request: Request, db: Session) -> dict:
    """
    Without ``event_id``: wipe every submission and zero every score.
    With ``event_id``: wipe submissions on that event's challenges and
    re-derive the scores of the users who had any.
    """
    if event_id:
        challenge_ids = [
            row.id for row in db.query(Challenge.id).filter(Challenge.event_id == event_id).all()
        ]
        affected = set()
        if challenge_ids:
            affected = {
                row.user_id
                for row in db.query(SubmittedFlag.user_id)
                .filter(SubmittedFlag.challenge_id.in_(challenge_ids))
                .distinct()
                .all()
            }
            db.query(SubmittedFlag).filter(SubmittedFlag.challenge_id.in_(challenge_ids)).delete(
                synchronize_session=False
            )
        recalculate_user_scores(db, affected)
        detail = f"event_id={event_id}, users_affected={len(affected)}"
    else:
        db.query(SubmittedFlag).delete(synchronize_session=False)
        db.query(User).update(
            {User.total_points: 0, User.challenges_solved: 0}, synchronize_session=False
        )
        detail = "all submissions"

    _audit(db, admin, request, "reset_scores", detail=detail)
    db.commit()

    logger.info("Scores reset by admin_id=%s (%s)", admin.id, detail)
    return {"success": True}


# ---------------------------------------------------------------------------
# DELETE /api/users?action=delete&id=
# ---------------------------------------------------------------------------


@router.delete("")
def delete_user(
    request: Request,
    action: str = Query(""),
    user_id: Optional[int] = Query(None, alias="id"),
    admin: User = Depends(require_admin),
    body: dict = Depends(csrf_protected_body),
    db: Session = Depends(get_db),
):
    """Remove the user together with their submissions."""
    if action != "delete":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid action")

    target = _get_target(user_id, db)
    _guard_target(target, admin, "delete")

    detail = f"email={target.email}"
    db.query(SubmittedFlag).filter(SubmittedFlag.user_id == target.id).delete(synchronize_session=False)
    db.delete(target)
    _audit(db, admin, request, "delete_user", detail=detail)
    db.commit()

    logger.info("User %s deleted by admin_id=%s", user_id, admin.id)
    return {"success": True}


# ---------------------------------------------------------------------------
# GET /api/users?action=audit  – audit trail with optional filters
# ---------------------------------------------------------------------------


def _audit_logs(db: Session, emails, since, until, limit: int) -> AuditLogListResponse:
    """
    Return audit log rows newest-first.  Supports optional filters:

    * ``emails`` – one or more exact email addresses; match rows where
                   *either* admin_id or target_user_id belongs to one of them.
    * ``since`` / ``until`` – ISO-8601 bounds on ``created_at``.
    * ``limit`` – max rows returned (default 200, cap 1000).
    """
    AdminUser  = aliased(User)
    TargetUser = aliased(User)

    q = (
        db.query(AuditLog, AdminUser.email, TargetUser.email)
        .outerjoin(AdminUser,  AuditLog.admin_id       == AdminUser.id)
        .outerjoin(TargetUser, AuditLog.target_user_id == TargetUser.id)
    )

    if emails:
        q = q.filter(
            AdminUser.email.in_(emails) | TargetUser.email.in_(emails)
        )
    if since:
        q = q.filter(AuditLog.created_at >= since)
    if until:
        q = q.filter(AuditLog.created_at <= until)

    rows = q.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit).all()

    return AuditLogListResponse(logs=[
        AuditLogRow(
            id=row.id,
            admin_email=admin_email,
            target_email=target_email,
            action=row.action,
            detail=row.detail,
            request_ip=row.request_ip,
            created_at=row.created_at,
        )
        for row, admin_email, target_email in rows
    ])


# ---------------------------------------------------------------------------
# GET /api/users?action=exportFlags  – download submitted flags as Excel
# ---------------------------------------------------------------------------

_HEADER_FONT  = Font(name="Calibri", size=11, bold=True, color="FFFFFF")
_HEADER_FILL  = PatternFill(start_color="6C63FF", end_color="6C63FF", fill_type="solid")
_HEADER_ALIGN = Alignment(horizontal="center", vertical="center")
_THIN_BORDER  = Border(
    left=Side(style="thin", color="CCCCCC"),
    right=Side(style="thin", color="CCCCCC"),
    top=Side(style="thin", color="CCCCCC"),
    bottom=Side(style="thin", color="CCCCCC"),
)

_EXPORT_HEADERS = ["ID", "Time", "User", "Challenge", "Flag", "Correct"]
_EXPORT_COL_MIN = [8, 20, 24, 30, 40, 10]


def _export_flags(db: Session, challenge_id: Optional[int]) -> StreamingResponse:
    """Stream every submitted flag (optionally for one challenge) as .xlsx."""
    rows = _submitted_flags(db, challenge_id)

    wb = Workbook()
    ws = wb.active
    ws.title = "Submitted Flags"

    # Header row
    ws.append(_EXPORT_HEADERS)
    for cell in ws[1]:
        cell.font = _HEADER_FONT
        cell.fill = _HEADER_FILL
        cell.alignment = _HEADER_ALIGN
        cell.border = _THIN_BORDER

    # Data rows
    for row in rows:
        ws.append([
            row.id,
            row.submitted_at.strftime("%Y-%m-%d %H:%M:%S") if row.submitted_at else "",
            row.user_name,
            row.challenge_title,
            row.flag,
            "yes" if row.is_correct else "no",
        ])
        row_idx = ws.max_row
        for col_idx in range(1, len(_EXPORT_HEADERS) + 1):
            ws.cell(row=row_idx, column=col_idx).border = _THIN_BORDER

    for col_idx, min_w in enumerate(_EXPORT_COL_MIN, start=1):
        ws.column_dimensions[chr(64 + col_idx)].width = min_w

    # Stream without touching the filesystem
    buf = io.BytesIO()
    wb.save(buf)
    buf.seek(0)
    wb.close()

    return StreamingResponse(
        buf,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": 'attachment; filename="submitted-flags.xlsx"'},
    )
