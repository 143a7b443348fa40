# edtech/models/snapshot.py
from typing import Tuple

from pydantic import BaseModel, ConfigDict

from .course import Course
from .enrollment import Enrollment
from .review import Review


class Snapshot(BaseModel):
    """
    Point-in-time copy of the three collections.
    Replaced as a whole, never edited in place.
    """

    model_config = ConfigDict(frozen=True)

    courses: Tuple[Course, ...] = ()
    enrollments: Tuple[Enrollment, ...] = ()
    reviews: Tuple[Review, ...] = ()

    @classmethod
    def empty(cls) -> "Snapshot":
        return cls()
