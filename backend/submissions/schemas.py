"""Pydantic request / response models for flag submission."""

from typing import Optional

from pydantic import BaseModel


class SubmitFlagRequest(BaseModel):
    challenge_id: Optional[int] = None
    flag: str = ""
    user_id: Optional[int] = None


class SubmitFlagResponse(BaseModel):
    correct: bool
    message: str
    points: Optional[int] = None
    already_solved: Optional[bool] = None


class LeaderboardEntry(BaseModel):
    rank: int
    user_id: int
    username: str
    points: int
    solved: int
