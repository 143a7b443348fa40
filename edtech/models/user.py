# edtech/models/user.py
from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class UserRole(str, Enum):
    ADMIN = "admin"
    STUDENT = "student"


class Principal(BaseModel):
    """The authenticated identity handed over by the auth service."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str


class User(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    name: str
    role: UserRole = UserRole.STUDENT
    avatar: Optional[str] = None
    created_at: Optional[date] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class StudentProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str
    avatar: Optional[str] = None
