"""
Session Middleware

Per-request integration point: loads or creates the session, applies the
CSRF guard to state-changing requests, and writes cookies once the handler
(and every persistence write it made) has completed.
"""

import logging
from typing import AsyncContextManager, Callable, Iterable

from fastapi import Request, status
from starlette.middleware.base import BaseHTTPMiddleware

from session_engine.api.error import error_response
from session_engine.api.utils.cookies import (
    HEADER_CSRF,
    HEADER_CSRF_ERROR,
    SessionCookieWriter,
    read_cookie,
)
from session_engine.app.services.csrf_guard import CsrfGuard, is_state_changing
from session_engine.app.services.session_store import SessionStore
from session_engine.app.services.settings import SessionSettings
from session_engine.app.services.unit_of_work import UnitOfWork
from session_engine.domain.errors import PersistenceError

logger = logging.getLogger(__name__)

UnitOfWorkFactory = Callable[[], AsyncContextManager[UnitOfWork]]


class SessionMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app,
        settings: SessionSettings,
        uow_factory: UnitOfWorkFactory,
        csrf_exempt_prefixes: Iterable[str] = (),
    ):
        super().__init__(app)
        # Paths authenticated by other means (e.g. admin API key)
        self.csrf_exempt_prefixes = tuple(csrf_exempt_prefixes)
        self.settings = settings
        self.uow_factory = uow_factory
        self.csrf_guard = CsrfGuard(settings)
        self.cookie_writer = SessionCookieWriter(settings)

    async def dispatch(self, request: Request, call_next):
        async with self.uow_factory() as uow:
            store = SessionStore(uow, self.settings)
            anti_csrf_token = request.headers.get(HEADER_CSRF)

            try:
                ctx = await store.load(
                    read_cookie(request.cookies, self.settings.access_token_cookie),
                    read_cookie(request.cookies, self.settings.anonymous_cookie),
                    anti_csrf_token,
                )
            except PersistenceError as e:
                logger.error(f"Session load failed for {request.method} {request.url.path}: {e}")
                return error_response(e.base_error, status.HTTP_500_INTERNAL_SERVER_ERROR)

            request.state.session = ctx
            request.state.session_store = store

            if is_state_changing(request.method) and not self._is_csrf_exempt(request):
                result = self.csrf_guard.check(ctx)
                if result.is_err():
                    logger.warning(
                        f"CSRF token validation failed for {request.method} {request.url.path}"
                    )
                    response = error_response(
                        result.error,
                        status.HTTP_403_FORBIDDEN,
                        headers={HEADER_CSRF_ERROR: "true"},
                    )
                    self.cookie_writer.write(response, ctx, store)
                    return response

            response = await call_next(request)
            self.cookie_writer.write(response, ctx, store)
            return response

    def _is_csrf_exempt(self, request: Request) -> bool:
        return request.url.path.startswith(self.csrf_exempt_prefixes)
