from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from ..core.enums import UserRole


class ProfileCreate(BaseModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    role: UserRole
    avatar_url: Optional[str] = None


class ProfileOut(ProfileCreate):
    class Config:
        from_attributes = True
