"""
Session cookie and header writer

Applies a SessionContext's outcome to an outgoing response.
"""

from datetime import UTC, datetime, timedelta
from typing import Optional

from starlette.responses import Response

from session_engine.app.services.session_context import SessionContext
from session_engine.app.services.session_store import SessionStore
from session_engine.app.services.settings import SessionSettings
from session_engine.app.services.token_codec import encode_public_data

HEADER_CSRF = "anti-csrf"
HEADER_CSRF_ERROR = "csrf-error"
HEADER_SESSION_CREATED = "session-created"
HEADER_SESSION_REVOKED = "session-revoked"
HEADER_PUBLIC_DATA_TOKEN = "public-data-token"

# "Non-expiring" cookies still need a date for browsers to persist them
DURABLE_COOKIE_LIFETIME = timedelta(days=365 * 20)


class SessionCookieWriter:
    def __init__(self, settings: SessionSettings):
        self.settings = settings

    def _set(
        self,
        response: Response,
        name: str,
        value: str,
        expires: datetime,
        httponly: bool,
    ) -> None:
        response.set_cookie(
            key=name,
            value=value,
            expires=expires,
            path="/",
            domain=self.settings.domain,
            secure=self.settings.use_secure_cookies,
            httponly=httponly,
            samesite=self.settings.same_site.value,
        )

    def _delete(self, response: Response, name: str, httponly: bool) -> None:
        response.delete_cookie(
            key=name,
            path="/",
            domain=self.settings.domain,
            secure=self.settings.use_secure_cookies,
            httponly=httponly,
            samesite=self.settings.same_site.value,
        )

    def clear_all(self, response: Response) -> None:
        self._delete(response, self.settings.access_token_cookie, httponly=True)
        self._delete(response, self.settings.anonymous_cookie, httponly=True)
        self._delete(response, self.settings.anti_csrf_cookie, httponly=False)
        self._delete(response, self.settings.public_data_cookie, httponly=False)

    def write(self, response: Response, ctx: SessionContext, store: SessionStore) -> None:
        """
        Write cookies and signal headers for the request's final session state.

        Only called after the handler returned, i.e. after every persistence
        write of the request was committed.
        """
        if ctx.is_revoked:
            self.clear_all(response)
            response.headers[HEADER_SESSION_REVOKED] = "true"
            return

        if ctx.is_authenticated:
            self._write_authenticated(response, ctx)
        else:
            self._write_anonymous(response, ctx, store)

    def _write_authenticated(self, response: Response, ctx: SessionContext) -> None:
        state = ctx.require_authenticated()
        expires = state.expires_at.replace(tzinfo=UTC)

        if ctx.created or ctx.refreshed:
            self._set(
                response,
                self.settings.access_token_cookie,
                ctx.access_token,
                expires,
                httponly=True,
            )
            self._set(
                response,
                self.settings.anti_csrf_cookie,
                ctx.anti_csrf_token,
                expires,
                httponly=False,
            )

        if ctx.created or ctx.refreshed or ctx.public_data_changed:
            self._set(
                response,
                self.settings.public_data_cookie,
                encode_public_data(ctx.public_data),
                expires,
                httponly=False,
            )

        if ctx.created:
            self._delete(response, self.settings.anonymous_cookie, httponly=True)
            response.headers[HEADER_SESSION_CREATED] = "true"
        if ctx.public_data_changed:
            response.headers[HEADER_PUBLIC_DATA_TOKEN] = "updated"

    def _write_anonymous(
        self, response: Response, ctx: SessionContext, store: SessionStore
    ) -> None:
        if ctx.stale_access_token:
            self._delete(response, self.settings.access_token_cookie, httponly=True)

        if not ctx.anonymous_changed:
            return

        expires = datetime.now(UTC) + DURABLE_COOKIE_LIFETIME
        self._set(
            response,
            self.settings.anonymous_cookie,
            store.encode_anonymous(ctx),
            expires,
            httponly=True,
        )
        self._set(
            response,
            self.settings.anti_csrf_cookie,
            ctx.anti_csrf_token,
            expires,
            httponly=False,
        )
        self._set(
            response,
            self.settings.public_data_cookie,
            encode_public_data(ctx.public_data),
            expires,
            httponly=False,
        )


def read_cookie(cookies: dict, name: str) -> Optional[str]:
    value = cookies.get(name)
    return value or None
