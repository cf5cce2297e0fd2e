import enum
import logging
from typing import Awaitable, Callable, List, Optional, Protocol
from uuid import UUID

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class Role(str, enum.Enum):
    SUPER_ADMIN = "super_admin"
    CASHIER = "kasir"


class AuthSession(BaseModel):
    authenticated: bool = False
    user_id: Optional[str] = None
    role: Role = Role.SUPER_ADMIN
    branch_id: Optional[UUID] = None


SessionListener = Callable[[AuthSession], Awaitable[None]]


class AuthSubscription:
    def __init__(self, listeners: List[SessionListener], listener: SessionListener):
        self._listeners = listeners
        self._listener = listener

    def unsubscribe(self) -> None:
        if self._listener in self._listeners:
            self._listeners.remove(self._listener)


class AuthService(Protocol):
    async def get_session(self) -> AuthSession: ...

    def on_change(self, listener: SessionListener) -> AuthSubscription: ...


class InMemoryAuthService:
    """Session holder for a single terminal.

    Sign-in itself happens elsewhere; this only keeps the resulting claims
    and tells listeners when they change.
    """

    def __init__(self, session: Optional[AuthSession] = None):
        self._session = session or AuthSession()
        self._listeners: List[SessionListener] = []

    async def get_session(self) -> AuthSession:
        return self._session

    def on_change(self, listener: SessionListener) -> AuthSubscription:
        self._listeners.append(listener)
        return AuthSubscription(self._listeners, listener)

    async def sign_in(
        self,
        user_id: str,
        role: Role = Role.SUPER_ADMIN,
        branch_id: Optional[UUID] = None,
    ) -> AuthSession:
        self._session = AuthSession(authenticated=True, user_id=user_id, role=role, branch_id=branch_id)
        logger.info("Signed in %s as %s", user_id, role.value)
        await self._notify()
        return self._session

    async def sign_out(self) -> None:
        self._session = AuthSession()
        logger.info("Signed out")
        await self._notify()

    async def _notify(self) -> None:
        for listener in list(self._listeners):
            await listener(self._session)
