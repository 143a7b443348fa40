from functools import wraps
from typing import Optional, Type

from edtech.core.exceptions import DuplicateEntryError, RemoteUnavailableError


def translate_remote_errors(conflict: Optional[Type[DuplicateEntryError]] = None):
    """
    Re-raise remote uniqueness violations as `conflict`. Any other remote
    failure propagates unchanged.
    """

    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except RemoteUnavailableError as e:
                if conflict is not None and e.is_conflict:
                    raise conflict() from e
                raise

        return wrapper

    return decorator
