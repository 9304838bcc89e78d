"""
Session Context

The per-request session object handed to handlers. Its state is one of two
variants (AnonymousSession / AuthenticatedSession); revocation is terminal for
the request and is tracked on the context itself.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field

from session_engine.app.services.token_codec import constant_time_equals
from session_engine.domain.entities import SessionKind
from session_engine.domain.errors import AuthenticationError, NotAuthorizedError

if TYPE_CHECKING:
    from session_engine.app.services.session_store import SessionStore


def anonymous_public_data() -> Dict[str, Any]:
    return {"userId": None}


class AnonymousSession(BaseModel):
    """Visitor without a login; public data lives in the client token"""

    kind: Literal["anonymous"] = "anonymous"
    handle: str
    anti_csrf_token: str
    public_data: Dict[str, Any] = Field(default_factory=anonymous_public_data)


class AuthenticatedSession(BaseModel):
    """Session backed by a persisted SessionRecord"""

    kind: Literal["authenticated"] = "authenticated"
    handle: str
    user_id: Any
    anti_csrf_token: str
    expires_at: datetime
    public_data: Dict[str, Any]


SessionState = Union[AnonymousSession, AuthenticatedSession]


class SessionContext:
    """
    Request-scoped session.

    Never shared across requests. The flags below are read by the request
    middleware to decide which cookies and headers to write.
    """

    def __init__(
        self,
        store: "SessionStore",
        state: SessionState,
        access_token: Optional[str] = None,
        anti_csrf_matches: bool = False,
    ):
        self._store = store
        self.state = state
        # Raw access token, only known when issued or presented this request
        self.access_token = access_token
        self.anti_csrf_matches = anti_csrf_matches

        self.created = False
        self.refreshed = False
        self.public_data_changed = False
        self.anonymous_changed = False
        self.stale_access_token = False
        self._revoked = False

    def __repr__(self) -> str:
        return f"<SessionContext kind={self.kind.value} user_id={self.user_id!r}>"

    @property
    def kind(self) -> SessionKind:
        if self._revoked:
            return SessionKind.revoked
        return SessionKind(self.state.kind)

    @property
    def handle(self) -> str:
        return self.state.handle

    @property
    def user_id(self) -> Any:
        if isinstance(self.state, AuthenticatedSession):
            return self.state.user_id
        return None

    @property
    def public_data(self) -> Dict[str, Any]:
        return dict(self.state.public_data)

    @property
    def anti_csrf_token(self) -> str:
        return self.state.anti_csrf_token

    @property
    def is_authenticated(self) -> bool:
        return self.kind == SessionKind.authenticated

    @property
    def is_anonymous(self) -> bool:
        return self.kind == SessionKind.anonymous

    @property
    def is_revoked(self) -> bool:
        return self._revoked

    def verify_anti_csrf(self, supplied: Optional[str]) -> bool:
        return constant_time_equals(self.state.anti_csrf_token, supplied)

    def require_authenticated(self) -> AuthenticatedSession:
        """
        Narrow to the authenticated variant.

        Raises:
            AuthenticationError: if the context is anonymous or revoked
        """
        if not self.is_authenticated:
            raise AuthenticationError()
        return self.state

    def is_authorized(self, *args: Any) -> bool:
        if not self.is_authenticated:
            return False
        return self._store.settings.is_authorized(self, *args)

    def authorize(self, *args: Any) -> None:
        """
        Raises:
            AuthenticationError: no authenticated session
            NotAuthorizedError: predicate rejected the session
        """
        self.require_authenticated()
        if not self._store.settings.is_authorized(self, *args):
            raise NotAuthorizedError()

    async def create(
        self, public_data: Dict[str, Any], private_data: Dict[str, Any] = None
    ) -> None:
        await self._store.create(self, public_data, private_data)

    async def set_public_data(self, partial: Dict[str, Any]) -> None:
        await self._store.set_public_data(self, partial)

    async def set_private_data(self, partial: Dict[str, Any]) -> None:
        await self._store.set_private_data(self, partial)

    async def get_private_data(self) -> Dict[str, Any]:
        return await self._store.get_private_data(self)

    async def revoke(self) -> None:
        await self._store.revoke(self)

    async def revoke_all(self, user_id: Any = None) -> int:
        return await self._store.revoke_all(self, user_id)

    def _become(self, state: SessionState) -> None:
        self.state = state
        self._revoked = False

    def _mark_revoked(self, state: AnonymousSession) -> None:
        self.state = state
        self.access_token = None
        self.created = False
        self.refreshed = False
        self.public_data_changed = False
        self.anonymous_changed = False
        self._revoked = True
