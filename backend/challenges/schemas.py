# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the challenge endpoints."""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


# -- Requests --------------------------------------------------------------
# The client sends the *plaintext* flag; the server hashes it before
# persisting.  flag_hash is never accepted from, or returned to, the client.

Difficulty = Literal["Easy", "Medium", "Hard"]
ChallengeStatus = Literal["active", "disabled"]

VALID_LIST_STATUSES = {"active", "disabled", "all"}


class ChallengeCreate(BaseModel):
    title: str
    description: str = ""
    category: str
    difficulty: Difficulty
    points: int = Field(0, ge=0)
    flag: str
    files: List[Dict[str, Any]] = []
    challenge_link: Optional[str] = None
    event_id: Optional[int] = None
    status: ChallengeStatus = "active"


class ChallengeUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    difficulty: Optional[Difficulty] = None
    points: Optional[int] = Field(None, ge=0)
    flag: Optional[str] = None  # if provided the server re-hashes
    files: Optional[List[Dict[str, Any]]] = None
    challenge_link: Optional[str] = None
    event_id: Optional[int] = None
    status: Optional[ChallengeStatus] = None


# -- Responses -------------------------------------------------------------


class ChallengeResponse(BaseModel):
    id: int
    title: str
    description: str
    category: str
    difficulty: str
    points: int
    files: List[Dict[str, Any]]
    challenge_link: Optional[str]
    event_id: Optional[int]
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}


class ChallengeListResponse(BaseModel):
    challenges: List[ChallengeResponse]


class ChallengeDetailResponse(BaseModel):
    challenge: ChallengeResponse
