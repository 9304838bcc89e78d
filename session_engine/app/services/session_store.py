"""
Session Store

Lifecycle state machine for request sessions:
anonymous -> authenticated -> revoked.

One SessionStore is built per request around that request's UnitOfWork.
Every write commits before the method returns, so cookies written
afterwards always point at persisted state.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from session_engine.api.utils.jwt import create_anonymous_token, verify_anonymous_token
from session_engine.app.services.session_context import (
    AnonymousSession,
    AuthenticatedSession,
    SessionContext,
)
from session_engine.app.services.settings import SessionSettings
from session_engine.app.services.token_codec import (
    constant_time_equals,
    decode_access_token,
    encode_access_token,
    generate_token,
    hash_token,
)
from session_engine.app.services.unit_of_work import UnitOfWork
from session_engine.domain.base import utcnow
from session_engine.domain.entities import SessionRecord, serialize_data
from session_engine.domain.errors import (
    AuthenticationError,
    InvalidTokenError,
    SessionExpiredError,
    SessionNotFoundError,
)

logger = logging.getLogger(__name__)

USER_ID_KEY = "userId"


def _short(handle: str) -> str:
    return f"{handle[:6]}..."


class SessionStore:
    """
    Business Rules:
    - Raw access tokens are never stored, only their SHA-256 hash
    - Unknown, mismatched and expired tokens all fall back to a fresh
      anonymous context, indistinguishably
    - Every successful verification slides expires_at forward
    - Creating a session never revokes the user's other sessions
    - userId in public data is immutable once authenticated
    """

    def __init__(
        self,
        uow: UnitOfWork,
        settings: SessionSettings,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.settings = settings
        self.clock = clock

    @property
    def expiry(self) -> timedelta:
        return timedelta(minutes=self.settings.session_expiry_minutes)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def create_anonymous(self) -> SessionContext:
        """Fresh anonymous context. Nothing is persisted."""
        ctx = SessionContext(self, self._new_anonymous_state())
        ctx.anonymous_changed = True
        return ctx

    def load_anonymous(self, raw_token: str) -> SessionContext:
        """Restore an anonymous context from its signed token, or start a new one"""
        claims = verify_anonymous_token(
            raw_token,
            self.settings.secret_key,
            self.settings.token_issuer,
            self.settings.token_audience,
        )
        if claims is None:
            logger.debug("Discarding unverifiable anonymous session token")
            return self.create_anonymous()

        public_data = dict(claims["publicData"])
        public_data[USER_ID_KEY] = None
        state = AnonymousSession(
            handle=claims["handle"],
            anti_csrf_token=claims["antiCSRFToken"],
            public_data=public_data,
        )
        return SessionContext(self, state)

    async def load_from_token(
        self, raw_access_token: str, raw_anti_csrf_token: Optional[str] = None
    ) -> SessionContext:
        """
        Verify a raw access token and return the authenticated context.

        Falls back to a fresh anonymous context (flagged stale_access_token)
        if the token is malformed, unknown, mismatched or expired. Does not
        enforce CSRF; anti_csrf_matches is exposed for the CSRF guard.
        """
        async with self.uow:
            try:
                record = await self._verify_access_token(raw_access_token)
            except InvalidTokenError as e:
                logger.debug(f"Access token rejected: {e.__class__.__name__}")
                ctx = self.create_anonymous()
                ctx.stale_access_token = True
                return ctx

            try:
                record = await self.uow.sessions.update_session(
                    record.handle, {"expires_at": self.clock() + self.expiry}
                )
            except SessionNotFoundError:
                logger.debug(f"Session revoked during refresh ({_short(record.handle)})")
                ctx = self.create_anonymous()
                ctx.stale_access_token = True
                return ctx
            await self.uow.commit()

        ctx = SessionContext(
            self,
            self._authenticated_state(record),
            access_token=raw_access_token,
            anti_csrf_matches=constant_time_equals(
                record.anti_csrf_token, raw_anti_csrf_token
            ),
        )
        ctx.refreshed = True
        return ctx

    async def load(
        self,
        access_token: Optional[str],
        anonymous_token: Optional[str],
        anti_csrf_token: Optional[str] = None,
    ) -> SessionContext:
        """Request entry point: access token first, then anonymous token"""
        if access_token:
            ctx = await self.load_from_token(access_token, anti_csrf_token)
            if ctx.is_authenticated or not anonymous_token:
                return ctx
            ctx = self.load_anonymous(anonymous_token)
            await self._slide_anonymous_record(ctx)
            ctx.stale_access_token = True
        elif anonymous_token:
            ctx = self.load_anonymous(anonymous_token)
            await self._slide_anonymous_record(ctx)
        else:
            ctx = self.create_anonymous()

        ctx.anti_csrf_matches = ctx.verify_anti_csrf(anti_csrf_token)
        return ctx

    async def _slide_anonymous_record(self, ctx: SessionContext) -> None:
        """Extend a persisted anonymous record while its visitor stays active"""
        now = self.clock()
        async with self.uow:
            record = await self.uow.sessions.get_session(ctx.handle)
            if record is None or record.user_id is not None or record.is_expired(now):
                return
            try:
                await self.uow.sessions.update_session(
                    ctx.handle, {"expires_at": now + self.expiry}
                )
            except SessionNotFoundError:
                return
            await self.uow.commit()

    async def _verify_access_token(self, raw_access_token: str) -> SessionRecord:
        handle, token = decode_access_token(raw_access_token)

        record = await self.uow.sessions.get_session(handle)
        if record is None or record.user_id is None:
            raise InvalidTokenError()
        if not constant_time_equals(record.hashed_session_token, hash_token(token)):
            raise InvalidTokenError()
        if record.is_expired(self.clock()):
            raise SessionExpiredError()
        return record

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def create(
        self,
        ctx: SessionContext,
        public_data: Dict[str, Any],
        private_data: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Promote the context to an authenticated session.

        Anonymous public data and any persisted anonymous private data are
        carried over underneath the explicit values (explicit values win).
        """
        if public_data.get(USER_ID_KEY) is None:
            raise ValueError("publicData.userId is required to create a session")

        merged_public: Dict[str, Any] = {}
        merged_private: Dict[str, Any] = {}
        prior = ctx.state

        async with self.uow:
            if isinstance(prior, AnonymousSession):
                merged_public.update(prior.public_data)
                anonymous_record = await self.uow.sessions.get_session(prior.handle)
                if anonymous_record is not None and anonymous_record.user_id is None:
                    merged_private.update(anonymous_record.get_private_data())
                    await self.uow.sessions.delete_session(prior.handle)

            merged_public.update(public_data)
            merged_private.update(private_data or {})

            handle = generate_token()
            session_token = generate_token()
            record = SessionRecord(
                handle=handle,
                user_id=str(merged_public[USER_ID_KEY]),
                expires_at=self.clock() + self.expiry,
                hashed_session_token=hash_token(session_token),
                anti_csrf_token=generate_token(),
                public_data=serialize_data(merged_public),
                private_data=serialize_data(merged_private) if merged_private else None,
            )
            record = await self.uow.sessions.create_session(record)
            await self.uow.commit()

        ctx._become(self._authenticated_state(record))
        ctx.access_token = encode_access_token(handle, session_token)
        ctx.created = True
        ctx.anonymous_changed = False
        ctx.stale_access_token = False
        logger.info(f"Session created for user {record.user_id} ({_short(handle)})")

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    async def set_public_data(self, ctx: SessionContext, partial: Dict[str, Any]) -> None:
        """
        Shallow-merge into public data. userId is ignored.

        For authenticated sessions, changed keys listed in
        public_data_keys_to_sync are copied to the user's other live sessions.
        """
        updates = {k: v for k, v in partial.items() if k != USER_ID_KEY}
        current = ctx.state.public_data
        changed = {k: v for k, v in updates.items() if k not in current or current[k] != v}
        merged = {**current, **updates}

        if not isinstance(ctx.state, AuthenticatedSession) or ctx.is_revoked:
            ctx.state.public_data = merged
            if changed:
                ctx.anonymous_changed = True
            return

        async with self.uow:
            await self._update_live(ctx.handle, {"public_data": serialize_data(merged)})

            to_sync = {
                k: v for k, v in changed.items()
                if k in self.settings.public_data_keys_to_sync
            }
            if to_sync:
                synced = await self._sync_public_data(
                    ctx.user_id, to_sync, exclude_handle=ctx.handle
                )
                logger.info(
                    f"Synced {sorted(to_sync)} to {synced} other session(s) of user {ctx.user_id}"
                )
            await self.uow.commit()

        ctx.state.public_data = merged
        ctx.public_data_changed = True

    async def set_private_data(self, ctx: SessionContext, partial: Dict[str, Any]) -> None:
        """
        Shallow-merge into server-only private data.

        An anonymous context gets a persisted record (no user, no access
        token hash) on its first private write.
        """
        if ctx.is_revoked:
            raise AuthenticationError("Session has been revoked")

        now = self.clock()
        async with self.uow:
            record = await self.uow.sessions.get_session(ctx.handle)

            if isinstance(ctx.state, AuthenticatedSession):
                if record is None or record.is_expired(now):
                    raise AuthenticationError("Session is no longer valid")
                data = {**record.get_private_data(), **partial}
                await self._update_live(ctx.handle, {"private_data": serialize_data(data)})
            elif record is None or record.is_expired(now):
                if record is not None:
                    await self.uow.sessions.delete_session(ctx.handle)
                await self.uow.sessions.create_session(
                    SessionRecord(
                        handle=ctx.handle,
                        user_id=None,
                        expires_at=now + self.expiry,
                        hashed_session_token=None,
                        anti_csrf_token=ctx.anti_csrf_token,
                        public_data=serialize_data(ctx.state.public_data),
                        private_data=serialize_data(dict(partial)),
                    )
                )
            else:
                data = {**record.get_private_data(), **partial}
                await self.uow.sessions.update_session(
                    ctx.handle,
                    {"private_data": serialize_data(data), "expires_at": now + self.expiry},
                )
            await self.uow.commit()

    async def get_private_data(self, ctx: SessionContext) -> Dict[str, Any]:
        if ctx.is_revoked:
            return {}
        async with self.uow:
            record = await self.uow.sessions.get_session(ctx.handle)
            if record is None or record.is_expired(self.clock()):
                return {}
            if isinstance(ctx.state, AnonymousSession) and record.user_id is not None:
                return {}
            return record.get_private_data()

    async def set_public_data_for_user(self, user_id: Any, partial: Dict[str, Any]) -> int:
        """Apply a public data partial to every live session of a user"""
        updates = {k: v for k, v in partial.items() if k != USER_ID_KEY}
        if not updates:
            return 0
        async with self.uow:
            count = await self._sync_public_data(user_id, updates)
            await self.uow.commit()
        return count

    async def _sync_public_data(
        self, user_id: Any, partial: Dict[str, Any], exclude_handle: str = None
    ) -> int:
        now = self.clock()
        count = 0
        for record in await self.uow.sessions.get_sessions(str(user_id)):
            if record.handle == exclude_handle or record.is_expired(now):
                continue
            data = {**record.get_public_data(), **partial}
            try:
                await self.uow.sessions.update_session(
                    record.handle, {"public_data": serialize_data(data)}
                )
            except SessionNotFoundError:
                # revoked since listing
                continue
            count += 1
        return count

    async def _update_live(self, handle: str, partial: Dict[str, Any]) -> SessionRecord:
        record = await self.uow.sessions.get_session(handle)
        if record is None or record.is_expired(self.clock()):
            raise AuthenticationError("Session is no longer valid")
        try:
            return await self.uow.sessions.update_session(handle, partial)
        except SessionNotFoundError as e:
            raise AuthenticationError("Session is no longer valid") from e

    # ------------------------------------------------------------------
    # Revocation
    # ------------------------------------------------------------------

    async def revoke(self, ctx: SessionContext) -> None:
        """Delete the current handle's record and mark the context revoked"""
        if ctx.is_revoked:
            return
        async with self.uow:
            await self.uow.sessions.delete_session(ctx.handle)
            await self.uow.commit()
        logger.info(f"Session revoked ({_short(ctx.handle)})")
        ctx._mark_revoked(self._new_anonymous_state())

    async def revoke_all(self, ctx: SessionContext, user_id: Any = None) -> int:
        """
        Delete every session of a user (the current user by default).

        The context is marked revoked when it belongs to that user.
        """
        target = user_id if user_id is not None else ctx.user_id
        if target is None:
            raise AuthenticationError()

        count = await self.revoke_all_for_user(target)
        if ctx.is_authenticated and str(ctx.user_id) == str(target):
            ctx._mark_revoked(self._new_anonymous_state())
        return count

    async def revoke_all_for_user(self, user_id: Any) -> int:
        async with self.uow:
            count = await self.uow.sessions.delete_sessions(str(user_id))
            await self.uow.commit()
        logger.info(f"Revoked {count} session(s) for user {user_id}")
        return count

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_session_handles(self, user_id: Any) -> List[str]:
        now = self.clock()
        async with self.uow:
            records = await self.uow.sessions.get_sessions(str(user_id))
            return [r.handle for r in records if not r.is_expired(now)]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def encode_anonymous(self, ctx: SessionContext) -> str:
        """Signed token carrying an anonymous context's public data"""
        return create_anonymous_token(
            ctx.handle,
            ctx.public_data,
            ctx.anti_csrf_token,
            self.settings.secret_key,
            self.settings.token_issuer,
            self.settings.token_audience,
        )

    def _new_anonymous_state(self) -> AnonymousSession:
        return AnonymousSession(handle=generate_token(), anti_csrf_token=generate_token())

    def _authenticated_state(self, record: SessionRecord) -> AuthenticatedSession:
        public_data = record.get_public_data()
        return AuthenticatedSession(
            handle=record.handle,
            user_id=public_data.get(USER_ID_KEY),
            anti_csrf_token=record.anti_csrf_token,
            expires_at=record.expires_at,
            public_data=public_data,
        )
