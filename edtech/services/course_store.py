# edtech/services/course_store.py
import logging
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from edtech.core.config import Settings, settings as default_settings
from edtech.core.decorator import translate_remote_errors
from edtech.core.exceptions import (
    DataIntegrityError,
    DuplicateEnrollmentError,
    DuplicateReviewError,
    NotFoundError,
    RemoteUnavailableError,
    ValidationError,
)
from edtech.core.gateway import RemoteGateway
from edtech.core.validation import parse_input, require_text
from edtech.models.course import Course, CourseStatus
from edtech.models.enrollment import Enrollment, EnrollmentStatus
from edtech.models.review import Review
from edtech.models.snapshot import Snapshot
from edtech.models.user import Principal
from edtech.schemas.course import CourseCreate, CourseFilters, CourseUpdate
from edtech.schemas.enrollment import EnrollmentPatch
from edtech.schemas.review import ReviewCreate
from edtech.services import analytics
from edtech.services.identity import IdentityContext
from edtech.services.mapper import (
    from_course_input,
    from_course_patch,
    from_enrollment_patch,
    from_review_input,
    to_course,
    to_enrollment,
    to_review,
)

logger = logging.getLogger(__name__)


class StoreState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"


class CourseStore:
    """
    Client-side owner of the course/enrollment/review snapshot.

    Every successful write is followed by a full refresh; the snapshot is
    only ever replaced as a whole. A failed refresh keeps the previous
    snapshot. Sign-out clears it, sign-in reloads it.
    """

    def __init__(
        self,
        gateway: RemoteGateway,
        identity: IdentityContext,
        settings: Settings = default_settings,
    ):
        self.gateway = gateway
        self.identity = identity
        self.settings = settings
        self.state = StoreState.UNINITIALIZED
        self.filters = CourseFilters()
        self._snapshot = Snapshot.empty()
        self._closed = False
        self._unsubscribe = identity.subscribe(self._on_principal_change)

    # ==================== Snapshot ====================

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    @property
    def courses(self) -> Tuple[Course, ...]:
        return self._snapshot.courses

    @property
    def enrollments(self) -> Tuple[Enrollment, ...]:
        return self._snapshot.enrollments

    @property
    def reviews(self) -> Tuple[Review, ...]:
        return self._snapshot.reviews

    @property
    def is_loading(self) -> bool:
        return self.state == StoreState.LOADING

    def clear(self) -> None:
        self._snapshot = Snapshot.empty()
        self.state = StoreState.READY

    def close(self) -> None:
        """Detach from the identity context; late refresh results are dropped."""
        self._closed = True
        self._unsubscribe()

    async def _on_principal_change(self, principal: Optional[Principal]) -> None:
        if self._closed:
            return
        if principal is None:
            self.clear()
        else:
            await self.refresh()

    async def refresh(self) -> None:
        """
        Reload all three collections. Failures are logged and the previous
        snapshot stays in place.
        """
        if self._closed:
            return

        principal = self.identity.principal
        if principal is None:
            self.clear()
            return

        self.state = StoreState.LOADING
        try:
            snapshot = await self._fetch_snapshot(principal)
        except (RemoteUnavailableError, DataIntegrityError) as e:
            logger.error(f"Failed to refresh course data: {e}", exc_info=True)
        else:
            # Drop results for a principal that is no longer signed in
            if not self._closed and self.identity.principal == principal:
                self._snapshot = snapshot
                logger.debug(
                    f"Snapshot refreshed: {len(snapshot.courses)} courses, "
                    f"{len(snapshot.enrollments)} enrollments, "
                    f"{len(snapshot.reviews)} reviews"
                )
        finally:
            if not self._closed:
                self.state = StoreState.READY

    async def _fetch_snapshot(self, principal: Principal) -> Snapshot:
        course_rows = await self.gateway.select(
            "courses", order_by="created_at", descending=True
        )

        # Admin rows are unrestricted by row-level security
        user = self.identity.user
        scope = None if user is not None and user.is_admin else {"user_id": principal.id}
        enrollment_rows = await self.gateway.select("enrollments", eq=scope)

        review_rows = await self.gateway.select(
            "reviews", order_by="created_at", descending=True
        )

        author_ids = sorted(
            {str(r["user_id"]) for r in review_rows if r.get("user_id") is not None}
        )
        profile_rows = []
        if author_ids:
            profile_rows = await self.gateway.select(
                "profiles", columns="id,name,avatar", in_={"id": author_ids}
            )
        profile_index = {str(p["id"]): p for p in profile_rows if p.get("id")}

        return Snapshot(
            courses=tuple(to_course(row) for row in course_rows),
            enrollments=tuple(to_enrollment(row) for row in enrollment_rows),
            reviews=tuple(to_review(row, profile_index) for row in review_rows),
        )

    # ==================== Reads ====================

    def set_filters(self, filters: Union[CourseFilters, Dict[str, Any]]) -> None:
        self.filters = parse_input(CourseFilters, filters)

    def get_filtered_courses(
        self, filters: Optional[Union[CourseFilters, Dict[str, Any]]] = None
    ) -> List[Course]:
        filters = self.filters if filters is None else parse_input(CourseFilters, filters)
        search = filters.search.lower()

        result = []
        for course in self._snapshot.courses:
            if filters.category != "all" and course.category != filters.category:
                continue
            if filters.status != "all" and course.status != filters.status:
                continue
            if search and search not in course.title.lower():
                continue
            result.append(course)
        return result

    def get_course_by_id(self, course_id: str) -> Optional[Course]:
        return next((c for c in self._snapshot.courses if c.id == course_id), None)

    def get_enrollment_by_course_id(
        self, course_id: str, user_id: str
    ) -> Optional[Enrollment]:
        return next(
            (
                e
                for e in self._snapshot.enrollments
                if e.course_id == course_id and e.user_id == user_id
            ),
            None,
        )

    def get_enrolled_courses(self, user_id: str) -> List[Course]:
        course_ids = {e.course_id for e in self._snapshot.enrollments if e.user_id == user_id}
        return [c for c in self._snapshot.courses if c.id in course_ids]

    def get_reviews_by_course_id(self, course_id: str) -> List[Review]:
        reviews = [r for r in self._snapshot.reviews if r.course_id == course_id]
        return sorted(reviews, key=lambda r: r.created_at, reverse=True)

    def get_course_average_rating(self, course_id: str) -> float:
        return analytics.course_average_rating(self._snapshot.reviews, course_id)

    def has_reviewed(self, course_id: str, user_id: str) -> bool:
        return any(
            r.course_id == course_id and r.user_id == user_id
            for r in self._snapshot.reviews
        )

    def get_recent_courses(self, limit: Optional[int] = None) -> List[Course]:
        if limit is None:
            limit = self.settings.recent_courses_limit
        return analytics.recent_courses(self._snapshot.courses, limit)

    def _find_enrollment(self, enrollment_id: str) -> Optional[Enrollment]:
        return next((e for e in self._snapshot.enrollments if e.id == enrollment_id), None)

    def _find_review(self, review_id: str) -> Optional[Review]:
        return next((r for r in self._snapshot.reviews if r.id == review_id), None)

    # ==================== Enrollments ====================

    async def enroll_in_course(self, course_id: str, user_id: str) -> None:
        self.identity.require_principal()
        await self._insert_enrollment(
            {
                "course_id": course_id,
                "user_id": user_id,
                "status": EnrollmentStatus.ACTIVE.value,
                "progress": 0,
                "enrolled_at": date.today().isoformat(),
            }
        )
        logger.info(f"User {user_id} enrolled in course {course_id}")
        await self.refresh()

    async def mark_course_complete(self, enrollment_id: str) -> None:
        self.identity.require_principal()

        # Deliberate departure from overwriting: an already completed enrollment
        # keeps its first completion date until product confirms otherwise
        existing = self._find_enrollment(enrollment_id)
        completed_at = date.today()
        if existing is not None and existing.is_completed and existing.completed_at:
            completed_at = existing.completed_at

        patch = EnrollmentPatch(
            status=EnrollmentStatus.COMPLETED, progress=100, completed_at=completed_at
        )
        await self._update_row("enrollments", enrollment_id, from_enrollment_patch(patch))
        logger.info(f"Enrollment {enrollment_id} marked as completed")
        await self.refresh()

    async def update_enrollment_progress(self, enrollment_id: str, progress: int) -> None:
        self.identity.require_principal()
        patch = parse_input(EnrollmentPatch, {"progress": progress})
        await self._update_row("enrollments", enrollment_id, from_enrollment_patch(patch))
        await self.refresh()

    # ==================== Courses ====================

    async def add_course(self, course_in: Union[CourseCreate, Dict[str, Any]]) -> None:
        self.identity.require_principal()
        course_in = parse_input(CourseCreate, course_in)

        require_text(course_in.title, "title", "Title")
        require_text(course_in.instructor, "instructor", "Instructor")
        self._ensure_publishable(course_in.status, course_in.description)

        await self._insert_row("courses", from_course_input(course_in))
        logger.info(f"Course created: {course_in.title}")
        await self.refresh()

    async def update_course(
        self, course_id: str, patch: Union[CourseUpdate, Dict[str, Any]]
    ) -> None:
        self.identity.require_principal()
        patch = parse_input(CourseUpdate, patch)
        fields = patch.model_fields_set

        if "title" in fields:
            require_text(patch.title, "title", "Title")
        if "instructor" in fields:
            require_text(patch.instructor, "instructor", "Instructor")

        existing = self.get_course_by_id(course_id)
        status = patch.status if "status" in fields else None
        if status is None and existing is not None:
            status = existing.status
        description = patch.description if "description" in fields else None
        if description is None and existing is not None:
            description = existing.description
        self._ensure_publishable(status, description)

        payload = from_course_patch(patch)
        if not payload:
            return
        await self._update_row("courses", course_id, payload)
        logger.info(f"Course updated: {course_id} ({', '.join(sorted(payload))})")
        await self.refresh()

    async def update_course_status(self, course_id: str, status: CourseStatus) -> None:
        await self.update_course(course_id, CourseUpdate(status=status))

    async def delete_course(self, course_id: str) -> None:
        self.identity.require_principal()
        await self._delete_row("courses", course_id)
        logger.info(f"Course deleted: {course_id}")
        await self.refresh()

    @staticmethod
    def _ensure_publishable(
        status: Optional[CourseStatus], description: Optional[str]
    ) -> None:
        if status == CourseStatus.PUBLISHED and not (description or "").strip():
            raise ValidationError(
                "A published course must have a description", "description"
            )

    # ==================== Reviews ====================

    async def add_review(self, review_in: Union[ReviewCreate, Dict[str, Any]]) -> None:
        self.identity.require_principal()
        review_in = parse_input(ReviewCreate, review_in)
        require_text(review_in.comment, "comment", "Comment")

        await self._insert_review(from_review_input(review_in))
        logger.info(f"Review added: course={review_in.course_id} user={review_in.user_id}")
        await self.refresh()

    async def mark_review_helpful(self, review_id: str) -> None:
        """
        Read-modify-write on the counter. Concurrent increments from other
        sessions can be lost (last write wins).
        """
        self.identity.require_principal()
        review = self._find_review(review_id)
        if review is None:
            raise NotFoundError("Review not found")

        await self._update_row("reviews", review_id, {"helpful": review.helpful + 1})
        await self.refresh()

    # ==================== Remote Writes ====================

    @translate_remote_errors(conflict=DuplicateEnrollmentError)
    async def _insert_enrollment(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self.gateway.insert("enrollments", payload)

    @translate_remote_errors(conflict=DuplicateReviewError)
    async def _insert_review(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self.gateway.insert("reviews", payload)

    @translate_remote_errors()
    async def _insert_row(self, table: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self.gateway.insert(table, payload)

    @translate_remote_errors()
    async def _update_row(
        self, table: str, row_id: str, payload: Dict[str, Any]
    ) -> Dict[str, Any]:
        return await self.gateway.update(table, row_id, payload)

    @translate_remote_errors()
    async def _delete_row(self, table: str, row_id: str) -> None:
        await self.gateway.delete(table, row_id)
