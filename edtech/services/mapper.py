# edtech/services/mapper.py
"""
Translation between remote rows and domain entities.

Rows are parsed through row schemas: numbers that arrive as strings are
coerced, timestamps are cut down to calendar dates, and anything that cannot
be parsed raises DataIntegrityError instead of leaking half-built entities
into the snapshot.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any, Dict, Mapping, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from edtech.core.config import settings
from edtech.core.exceptions import DataIntegrityError
from edtech.models.course import Course, CourseCategory, CourseStatus
from edtech.models.enrollment import Enrollment, EnrollmentStatus
from edtech.models.review import Review
from edtech.schemas.course import CourseCreate, CourseUpdate
from edtech.schemas.enrollment import EnrollmentPatch
from edtech.schemas.review import ReviewCreate

ProfileIndex = Mapping[str, Mapping[str, Any]]


def to_calendar_date(value: Any) -> Any:
    """Truncate ISO date-times (or datetime objects) to a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and len(value) >= 10:
        return value[:10]
    return value


def _id_as_text(value: Any) -> Any:
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


CalendarDate = Annotated[date, BeforeValidator(to_calendar_date)]
RowId = Annotated[str, BeforeValidator(_id_as_text)]


# ==================== Row Schemas ====================


class CourseRow(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: RowId
    title: str
    description: Optional[str] = None
    category: CourseCategory
    instructor: str
    thumbnail: Optional[str] = None
    duration: Optional[str] = None
    lessons: int = Field(0, ge=0)
    status: CourseStatus
    price: Decimal = Field(Decimal("0"), ge=0)
    rating: Optional[float] = Field(None, ge=0, le=5)
    students_count: Optional[int] = Field(None, ge=0)
    created_at: Optional[CalendarDate] = None


class EnrollmentRow(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: RowId
    course_id: RowId
    user_id: RowId
    status: EnrollmentStatus
    progress: int = Field(0, ge=0, le=100)
    enrolled_at: CalendarDate
    completed_at: Optional[CalendarDate] = None


class ReviewRow(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: RowId
    course_id: RowId
    user_id: RowId
    rating: int = Field(..., ge=1, le=5)
    comment: str
    created_at: CalendarDate
    helpful: Optional[int] = Field(None, ge=0)


def _parse(schema, table: str, raw: Mapping[str, Any]):
    try:
        return schema.model_validate(dict(raw))
    except PydanticValidationError as e:
        raise DataIntegrityError(table, e.errors(include_url=False)) from e


# ==================== Remote -> Domain ====================


def to_course(raw: Mapping[str, Any]) -> Course:
    row = _parse(CourseRow, "courses", raw)
    return Course(
        id=row.id,
        title=row.title,
        description=row.description or "",
        category=row.category,
        instructor=row.instructor,
        thumbnail=row.thumbnail or "",
        duration=row.duration or "",
        lessons=row.lessons,
        status=row.status,
        price=row.price,
        rating=row.rating or 0.0,
        students_count=row.students_count or 0,
        created_at=row.created_at or date.today(),
    )


def to_enrollment(raw: Mapping[str, Any]) -> Enrollment:
    row = _parse(EnrollmentRow, "enrollments", raw)
    return Enrollment(**row.model_dump())


def to_review(raw: Mapping[str, Any], profile_index: ProfileIndex) -> Review:
    row = _parse(ReviewRow, "reviews", raw)
    profile = profile_index.get(row.user_id) or {}
    return Review(
        id=row.id,
        course_id=row.course_id,
        user_id=row.user_id,
        user_name=profile.get("name") or settings.fallback_user_name,
        user_avatar=profile.get("avatar") or None,
        rating=row.rating,
        comment=row.comment,
        created_at=row.created_at,
        helpful=row.helpful or 0,
    )


# ==================== Domain -> Remote ====================
# JSON mode keeps decimals as strings; the read side coerces them back.


def from_course_input(course_in: CourseCreate) -> Dict[str, Any]:
    """Insert payload for a new course; id, rating and counters are remote-assigned."""
    return course_in.model_dump(mode="json")


def from_course_patch(patch: CourseUpdate) -> Dict[str, Any]:
    # An explicit None means "leave as is"; course columns are not nullable
    return patch.model_dump(mode="json", exclude_unset=True, exclude_none=True)


def from_enrollment_patch(patch: EnrollmentPatch) -> Dict[str, Any]:
    return patch.model_dump(mode="json", exclude_unset=True)


def from_review_input(review_in: ReviewCreate) -> Dict[str, Any]:
    # Author name/avatar are resolved from profiles on read, never stored here
    payload = review_in.model_dump(mode="json")
    payload["helpful"] = 0
    return payload
