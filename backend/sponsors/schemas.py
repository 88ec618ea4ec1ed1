"""Pydantic request / response models for the sponsor endpoints."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class SponsorCreate(BaseModel):
    name: str
    logo_url: str = ""
    website_url: Optional[str] = None
    display_order: int = 0


class SponsorUpdate(BaseModel):
    name: Optional[str] = None
    logo_url: Optional[str] = None
    website_url: Optional[str] = None
    display_order: Optional[int] = None


class SponsorResponse(BaseModel):
    id: int
    name: str
    logo_url: str
    website_url: Optional[str]
    display_order: int
    created_at: datetime

    model_config = {"from_attributes": True}


class SponsorListResponse(BaseModel):
    sponsors: List[SponsorResponse]
