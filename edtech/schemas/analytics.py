# edtech/schemas/analytics.py
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from edtech.models.course import CourseCategory

AVG_TICKET_PLACEHOLDER = "-"


class StudentSummary(BaseModel):
    user_id: str
    total_enrollments: int
    completed: int
    active: int
    average_progress: int


class CategoryStats(BaseModel):
    category: CourseCategory
    courses: int
    students: int
    revenue: Decimal
    avg_ticket: Optional[Decimal] = None

    @property
    def avg_ticket_display(self) -> str:
        if self.avg_ticket is None:
            return AVG_TICKET_PLACEHOLDER
        return f"{self.avg_ticket:.2f}"


class DashboardKPIs(BaseModel):
    total_courses: int
    published_courses: int
    active_students: int
    total_revenue: Decimal
    average_rating: float
