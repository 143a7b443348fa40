# edtech/services/students.py
import logging
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError

from edtech.core.exceptions import RemoteUnavailableError
from edtech.core.gateway import RemoteGateway
from edtech.models.user import StudentProfile, UserRole

logger = logging.getLogger(__name__)


class StudentDirectory:
    """Student roster for the admin screens (user_roles joined to profiles)."""

    def __init__(self, gateway: RemoteGateway):
        self.gateway = gateway

    async def list_students(self, search: Optional[str] = None) -> List[StudentProfile]:
        """
        All profiles holding the student role, optionally narrowed by a
        case-insensitive match on name or e-mail. Read failures are logged
        and yield an empty roster.
        """
        try:
            role_rows = await self.gateway.select(
                "user_roles", columns="user_id", eq={"role": UserRole.STUDENT.value}
            )
            user_ids = [str(r["user_id"]) for r in role_rows if r.get("user_id")]
            if not user_ids:
                return []

            profile_rows = await self.gateway.select(
                "profiles", columns="id,name,email,avatar", in_={"id": user_ids}
            )
            students = [StudentProfile.model_validate(row) for row in profile_rows]
        except (RemoteUnavailableError, PydanticValidationError) as e:
            logger.error(f"Error fetching students: {e}", exc_info=True)
            return []

        if search:
            needle = search.lower()
            students = [
                s
                for s in students
                if needle in s.name.lower() or needle in s.email.lower()
            ]
        return students
