# edtech/schemas/course.py
from decimal import Decimal
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field

from edtech.models.course import CourseCategory, CourseStatus

# ==================== Course Schemas ====================


class CourseBase(BaseModel):
    title: str = Field(..., max_length=255)
    description: str = ""
    category: CourseCategory
    instructor: str = Field(..., max_length=255)
    thumbnail: str = ""
    duration: str = ""
    lessons: int = Field(0, ge=0)
    status: CourseStatus = CourseStatus.DRAFT
    price: Decimal = Field(Decimal("0"), ge=0)


class CourseCreate(CourseBase):
    pass


class CourseUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    category: Optional[CourseCategory] = None
    instructor: Optional[str] = Field(None, max_length=255)
    thumbnail: Optional[str] = None
    duration: Optional[str] = None
    lessons: Optional[int] = Field(None, ge=0)
    status: Optional[CourseStatus] = None
    price: Optional[Decimal] = Field(None, ge=0)


class CourseFilters(BaseModel):
    category: Union[CourseCategory, Literal["all"]] = "all"
    status: Union[CourseStatus, Literal["all"]] = "all"
    search: str = ""
