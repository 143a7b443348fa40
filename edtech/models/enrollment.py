# edtech/models/enrollment.py
from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class EnrollmentStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    PAUSED = "paused"


class Enrollment(BaseModel):
    """
    One user's enrollment in one course.
    Unique per (course_id, user_id); the remote store enforces it.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    course_id: str
    user_id: str
    status: EnrollmentStatus = EnrollmentStatus.ACTIVE
    progress: int = Field(0, ge=0, le=100)
    enrolled_at: date
    completed_at: Optional[date] = None

    @property
    def is_completed(self) -> bool:
        return self.status == EnrollmentStatus.COMPLETED
