"""
Models package initialization
Domain entities held in the client-side snapshot
"""

from .course import Course, CourseCategory, CourseStatus
from .enrollment import Enrollment, EnrollmentStatus
from .review import Review
from .snapshot import Snapshot
from .user import Principal, StudentProfile, User, UserRole
