# edtech/services/analytics.py
"""
Derived views over a snapshot.

Everything here is a pure function of its arguments: nothing is cached and
the snapshot is never modified. Callers recompute after every refresh.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from edtech.models.course import Course, CourseStatus
from edtech.models.enrollment import Enrollment, EnrollmentStatus
from edtech.models.review import Review
from edtech.models.snapshot import Snapshot
from edtech.schemas.analytics import CategoryStats, DashboardKPIs, StudentSummary

CENTS = Decimal("0.01")


def round_half_up(value: float, places: int = 0) -> float:
    """Round like a person would (2.25 -> 2.3), not banker's rounding."""
    exponent = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP))


def mean_rating(ratings: Iterable[float]) -> float:
    """Mean rounded to one decimal; 0 for an empty input."""
    ratings = list(ratings)
    if not ratings:
        return 0.0
    return round_half_up(sum(ratings) / len(ratings), 1)


def course_average_rating(reviews: Iterable[Review], course_id: str) -> float:
    return mean_rating(r.rating for r in reviews if r.course_id == course_id)


# ==================== Students ====================


def student_summary(enrollments: Iterable[Enrollment], user_id: str) -> StudentSummary:
    mine = [e for e in enrollments if e.user_id == user_id]
    completed = sum(1 for e in mine if e.status == EnrollmentStatus.COMPLETED)
    active = sum(1 for e in mine if e.status == EnrollmentStatus.ACTIVE)

    # Paused enrollments count towards the total only
    tracked = [
        e.progress
        for e in mine
        if e.status in (EnrollmentStatus.ACTIVE, EnrollmentStatus.COMPLETED)
    ]
    average_progress = (
        int(round_half_up(sum(tracked) / len(tracked))) if tracked else 0
    )

    return StudentSummary(
        user_id=user_id,
        total_enrollments=len(mine),
        completed=completed,
        active=active,
        average_progress=average_progress,
    )


def summarize_students(
    enrollments: Sequence[Enrollment],
    user_ids: Optional[Iterable[str]] = None,
) -> Dict[str, StudentSummary]:
    """
    Per-student summaries for the admin roster.
    Without `user_ids`, every user appearing in `enrollments` is summarized.
    """
    if user_ids is None:
        user_ids = dict.fromkeys(e.user_id for e in enrollments)
    return {uid: student_summary(enrollments, uid) for uid in user_ids}


# ==================== Courses ====================


def category_rollup(courses: Iterable[Course]) -> List[CategoryStats]:
    totals: Dict = {}
    for course in courses:
        bucket = totals.setdefault(
            course.category, {"courses": 0, "students": 0, "revenue": Decimal("0")}
        )
        bucket["courses"] += 1
        bucket["students"] += course.students_count
        bucket["revenue"] += course.price * course.students_count

    stats = []
    for category, bucket in totals.items():
        avg_ticket = None
        if bucket["students"]:
            avg_ticket = (bucket["revenue"] / bucket["students"]).quantize(
                CENTS, rounding=ROUND_HALF_UP
            )
        stats.append(
            CategoryStats(
                category=category,
                courses=bucket["courses"],
                students=bucket["students"],
                revenue=bucket["revenue"],
                avg_ticket=avg_ticket,
            )
        )
    return stats


def estimated_revenue(courses: Iterable[Course]) -> Decimal:
    return sum((c.price * c.students_count for c in courses), Decimal("0"))


def recent_courses(courses: Iterable[Course], limit: int = 5) -> List[Course]:
    return sorted(courses, key=lambda c: c.created_at, reverse=True)[:limit]


def dashboard_kpis(snapshot: Snapshot) -> DashboardKPIs:
    published = [c for c in snapshot.courses if c.status == CourseStatus.PUBLISHED]
    return DashboardKPIs(
        total_courses=len(snapshot.courses),
        published_courses=len(published),
        active_students=len({e.user_id for e in snapshot.enrollments}),
        total_revenue=estimated_revenue(snapshot.courses),
        average_rating=mean_rating(c.rating for c in published),
    )
