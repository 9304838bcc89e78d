"""
CSRF Guard

Validates the anti-CSRF header against the session's bound token.
Read-only requests are exempt by the caller, not here.
"""

from typing import Optional

from session_engine.app.services.session_context import SessionContext
from session_engine.app.services.settings import SessionSettings
from session_engine.app.services.token_codec import constant_time_equals
from session_engine.domain.entities import CsrfMethod
from session_engine.domain.errors import CSRFError
from session_engine.result import Result, Return

STATE_CHANGING_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


def is_state_changing(method: str) -> bool:
    return method.upper() in STATE_CHANGING_METHODS


class CsrfGuard:
    """
    Business Rules:
    - Authenticated sessions are always protected
    - Anonymous sessions are protected only with method=advanced
      (double-submit of the token from the anonymous cookie)
    - Tokens are compared in constant time
    """

    def __init__(self, settings: SessionSettings):
        self.settings = settings

    def is_protected(self, ctx: SessionContext) -> bool:
        if ctx.is_authenticated:
            return True
        return ctx.is_anonymous and self.settings.method == CsrfMethod.advanced

    def check(self, ctx: SessionContext, supplied: Optional[str] = None) -> Result[None]:
        """
        Without a supplied token, consults ctx.anti_csrf_matches as computed
        when the context was loaded from the request headers.
        """
        if not self.is_protected(ctx):
            return Return.ok(None)
        if supplied is None:
            matches = ctx.anti_csrf_matches
        else:
            matches = bool(supplied) and constant_time_equals(ctx.anti_csrf_token, supplied)
        if not matches:
            return Return.err(CSRFError().base_error)
        return Return.ok(None)

    def enforce(self, ctx: SessionContext, supplied: Optional[str] = None) -> None:
        """
        Raises:
            CSRFError: protected context without a matching token
        """
        result = self.check(ctx, supplied)
        if result.is_err():
            raise CSRFError(result.error.message)
