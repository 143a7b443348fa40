# edtech/schemas/user.py
from typing import Optional

from pydantic import BaseModel, HttpUrl, field_validator


class ProfileUpdate(BaseModel):
    name: str
    avatar: Optional[HttpUrl] = None

    @field_validator("name", mode="before")
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("avatar", mode="before")
    def empty_avatar_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v
