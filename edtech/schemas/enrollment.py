# edtech/schemas/enrollment.py
from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from edtech.models.enrollment import EnrollmentStatus


class EnrollmentPatch(BaseModel):
    """Partial enrollment write. Out-of-range `progress` is rejected, not clamped."""

    status: Optional[EnrollmentStatus] = None
    progress: Optional[int] = Field(None, ge=0, le=100)
    completed_at: Optional[date] = None
