# edtech/models/course.py
from datetime import date
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class CourseCategory(str, Enum):
    PROGRAMMING = "programming"
    DESIGN = "design"
    BUSINESS = "business"
    MARKETING = "marketing"
    DATA_SCIENCE = "data-science"


class CourseStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class Course(BaseModel):
    """
    A course as seen by the client.
    `rating` and `students_count` are maintained remotely and only read here.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str = ""
    category: CourseCategory
    instructor: str
    thumbnail: str = ""
    duration: str = ""
    lessons: int = Field(0, ge=0)
    status: CourseStatus
    price: Decimal = Field(Decimal("0"), ge=0)
    rating: float = Field(0.0, ge=0, le=5)
    students_count: int = Field(0, ge=0)
    created_at: date
