# edtech/services/identity.py
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from edtech.core.config import Settings, settings as default_settings
from edtech.core.decorator import translate_remote_errors
from edtech.core.exceptions import (
    DataIntegrityError,
    NotAuthenticatedError,
    RemoteUnavailableError,
    ValidationError,
)
from edtech.core.gateway import RemoteGateway
from edtech.core.validation import parse_input
from edtech.models.user import Principal, User, UserRole
from edtech.schemas.user import ProfileUpdate
from edtech.services.mapper import to_calendar_date

logger = logging.getLogger(__name__)

PrincipalListener = Callable[[Optional[Principal]], Awaitable[None]]


def fallback_name(email: str) -> str:
    """Display name used until the profile row exists."""
    return email.split("@", 1)[0] or email


class IdentityContext:
    """
    Holds the authenticated principal and the user resolved for it.

    Session handling belongs to the auth service; this class is told about
    sign-in/sign-out and tells its listeners (the course store) in turn.
    """

    def __init__(self, gateway: RemoteGateway, settings: Settings = default_settings):
        self.gateway = gateway
        self.settings = settings
        self._principal: Optional[Principal] = None
        self._user: Optional[User] = None
        self._listeners: List[PrincipalListener] = []

    @property
    def principal(self) -> Optional[Principal]:
        return self._principal

    @property
    def user(self) -> Optional[User]:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._principal is not None

    def require_principal(self) -> Principal:
        if self._principal is None:
            raise NotAuthenticatedError()
        return self._principal

    def subscribe(self, listener: PrincipalListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def sign_in(self, principal: Principal) -> Optional[User]:
        changed = principal != self._principal
        self._principal = principal
        await self.refresh_user()
        logger.info(f"Principal signed in: {principal.id}")
        if changed:
            await self._notify()
        return self._user

    async def sign_out(self) -> None:
        if self._principal is None:
            return
        logger.info(f"Principal signed out: {self._principal.id}")
        self._principal = None
        self._user = None
        await self._notify()

    async def refresh_user(self) -> Optional[User]:
        """
        Resolve name, avatar and role for the current principal.
        Falls back to role=student and the e-mail local part when the
        profile trigger has not created the rows yet.
        """
        principal = self._principal
        if principal is None:
            self._user = None
            return None

        profile: Dict[str, Any] = {}
        role = UserRole.STUDENT
        try:
            profiles = await self.gateway.select(
                "profiles", columns="*", eq={"id": principal.id}
            )
            if profiles:
                profile = profiles[0]

            roles = await self.gateway.select(
                "user_roles", columns="role", eq={"user_id": principal.id}
            )
            if roles:
                role = UserRole(roles[0]["role"])
        except (RemoteUnavailableError, KeyError, ValueError) as e:
            logger.error(f"Failed to resolve user {principal.id}: {e}", exc_info=True)

        # Principal may have changed while we were waiting
        if self._principal != principal:
            return self._user

        fields = dict(
            id=principal.id,
            email=principal.email,
            name=profile.get("name") or fallback_name(principal.email),
            role=role,
            avatar=profile.get("avatar") or None,
        )
        try:
            self._user = User(
                **fields, created_at=to_calendar_date(profile.get("created_at"))
            )
        except PydanticValidationError as e:
            logger.warning(f"Unreadable profile created_at for {principal.id}: {e}")
            self._user = User(**fields)
        return self._user

    async def update_profile(self, data: Union[ProfileUpdate, Dict[str, Any]]) -> User:
        principal = self.require_principal()
        update = self._validate_profile(data)

        await self._write_profile(
            principal.id,
            {
                "name": update.name,
                "avatar": str(update.avatar) if update.avatar else None,
            },
        )
        logger.info(f"Profile updated: {principal.id}")

        user = await self.refresh_user()
        if user is None:
            raise DataIntegrityError("profiles", "profile vanished after update")
        return user

    def _validate_profile(self, data: Union[ProfileUpdate, Dict[str, Any]]) -> ProfileUpdate:
        update = parse_input(ProfileUpdate, data)

        min_length = self.settings.profile_name_min_length
        max_length = self.settings.profile_name_max_length
        if len(update.name) < min_length:
            raise ValidationError(
                f"Name must have at least {min_length} characters", "name"
            )
        if len(update.name) > max_length:
            raise ValidationError("Name is too long", "name")
        return update

    @translate_remote_errors()
    async def _write_profile(self, user_id: str, payload: Dict[str, Any]) -> None:
        await self.gateway.update("profiles", user_id, payload)

    async def _notify(self) -> None:
        principal = self._principal
        for listener in list(self._listeners):
            await listener(principal)
