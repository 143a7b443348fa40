from typing import Any, Optional


class EdTechException(Exception):
    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ValidationError(EdTechException):
    """A local invariant was violated; the write never reached the remote store."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message, 400)


class NotAuthenticatedError(EdTechException):
    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, 401)


class NotFoundError(EdTechException):
    def __init__(self, message: str):
        super().__init__(message, 404)


class DuplicateEntryError(EdTechException):
    def __init__(self, message: str = "Duplicate entry: already exists"):
        super().__init__(message, 409)


class DuplicateEnrollmentError(DuplicateEntryError):
    def __init__(self, message: str = "Already enrolled in this course"):
        super().__init__(message)


class DuplicateReviewError(DuplicateEntryError):
    def __init__(self, message: str = "You have already reviewed this course"):
        super().__init__(message)


# Postgres unique_violation, forwarded verbatim by PostgREST
UNIQUE_VIOLATION = "23505"


class RemoteUnavailableError(EdTechException):
    """
    Generic remote store failure (network, permission, server error).
    `code` is the backend error code when one was returned, `status` the
    HTTP status (None for transport errors).
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status: Optional[int] = None,
    ):
        self.code = code
        self.status = status
        super().__init__(message, 503)

    @property
    def is_conflict(self) -> bool:
        return self.code == UNIQUE_VIOLATION or self.status == 409


class DataIntegrityError(EdTechException):
    """A remote row did not match the expected shape."""

    def __init__(self, table: str, detail: Any):
        self.table = table
        self.detail = detail
        super().__init__(f"Malformed row in '{table}': {detail}", 500)
