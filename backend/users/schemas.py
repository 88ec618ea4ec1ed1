# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the user-management endpoints."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from submissions.schemas import LeaderboardEntry


# -- Requests --------------------------------------------------------------


class CreateUserRequest(BaseModel):
    name: str = ""
    email: str = ""
    password: str = ""
    role: str = "user"  # "admin" or "user"; anything else falls back to "user"


class BanRequest(BaseModel):
    id: Optional[int] = None
    is_banned: bool = True


class MakeAdminRequest(BaseModel):
    id: Optional[int] = None
    make_admin: bool = True


class ResetRequest(BaseModel):
    event_id: Optional[int] = None  # omitted: reset everything


# -- Responses -------------------------------------------------------------


class UserRow(BaseModel):
    id: int
    name: str
    email: str
    role: str
    is_banned: bool
    banned_at: Optional[datetime] = None
    total_points: int
    challenges_solved: int
    created_at: datetime

    model_config = {"from_attributes": True}


class UserListResponse(BaseModel):
    users: List[UserRow]


class PublicProfile(BaseModel):
    """What anyone may see about a player – no email, no role."""

    id: int
    name: str
    total_points: int
    challenges_solved: int
    created_at: datetime
    solved_challenge_ids: List[int] = []

    model_config = {"from_attributes": True}


class ProfileResponse(BaseModel):
    user: PublicProfile


class ScoreboardResponse(BaseModel):
    leaderboard: List[LeaderboardEntry]


# -- Submitted flags -------------------------------------------------------


class SubmittedFlagRow(BaseModel):
    id: int
    user_id: int
    user_name: str
    challenge_id: int
    challenge_title: str
    flag: str
    is_correct: bool
    submitted_at: datetime


class SubmittedFlagListResponse(BaseModel):
    flags: List[SubmittedFlagRow]


# -- Audit log responses ---------------------------------------------------


class AuditLogRow(BaseModel):
    id: int
    admin_email: Optional[str] = None       # resolved from admin_id join
    target_email: Optional[str] = None      # resolved from target_user_id join
    action: str
    detail: Optional[str] = None
    request_ip: Optional[str] = None
    created_at: datetime


class AuditLogListResponse(BaseModel):
    logs: List[AuditLogRow]
