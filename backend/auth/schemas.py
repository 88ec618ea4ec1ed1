# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the auth endpoints."""

from datetime import datetime

from pydantic import BaseModel, Field


# -- Requests --------------------------------------------------------------
# Fields default to "" so that a missing field reaches the handler's own
# "required" check and its specific error message.


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""


class RegisterRequest(BaseModel):
    name: str = ""
    email: str = ""
    password: str = ""


# -- Responses -------------------------------------------------------------


class UserInfoResponse(BaseModel):
    """Public profile – never includes the password hash."""

    id: int
    name: str
    email: str
    role: str
    is_banned: bool
    total_points: int
    challenges_solved: int
    created_at: datetime

    model_config = {"from_attributes": True}


class LoginResponse(BaseModel):
    success: bool = True
    is_admin: bool = Field(serialization_alias="isAdmin")
    user: UserInfoResponse


class RegisterResponse(BaseModel):
    success: bool = True
    user: UserInfoResponse


class CsrfTokenResponse(BaseModel):
    token: str
