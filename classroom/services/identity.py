"""
Identity collaborator.

Authenticates a credential against the users table and keeps interested parties
(the attempt registry) informed about sign-in and sign-out. Tokens are
stateless JWTs; the current identity of a request is resolved from its bearer
token by ``classroom.api.v1.routes.auth.auth.get_current_identity``.
"""

from typing import Callable, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from classroom.core.errors import AuthenticationError
from classroom.core.logging_config import get_logger
from classroom.core.security import verify_password
from classroom.models.user import User
from classroom.services.attempts.definitions import Identity

logger = get_logger("identity")

SIGNED_IN = "signed_in"
SIGNED_OUT = "signed_out"

IdentityListener = Callable[[str, Identity], None]


def identity_of(user: User) -> Identity:
    return Identity(id=str(user.id), role=user.role)


async def get_user_by_email(db: AsyncSession, email: str):
    q = await db.execute(select(User).where(User.email == email))
    return q.scalars().first()


class IdentityService:
    def __init__(self):
        self._listeners: List[IdentityListener] = []

    def add_listener(self, listener: IdentityListener) -> Callable[[], None]:
        """Register a change listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def sign_in(self, db: AsyncSession, email: str, password: str) -> Identity:
        user = await get_user_by_email(db, email)
        if not user or not verify_password(password, user.password_hash):
            raise AuthenticationError("Incorrect email or password.")
        if not user.is_active:
            raise AuthenticationError("This account has been deactivated.")
        identity = identity_of(user)
        self._notify(SIGNED_IN, identity)
        return identity

    def sign_out(self, identity: Identity) -> None:
        self._notify(SIGNED_OUT, identity)

    def _notify(self, event: str, identity: Identity) -> None:
        logger.info(f"Identity {identity.id} ({identity.role.value}) {event}")
        for listener in list(self._listeners):
            try:
                listener(event, identity)
            except Exception as e:
                logger.exception(f"Identity listener failed on {event}: {e}")


identity_service = IdentityService()
