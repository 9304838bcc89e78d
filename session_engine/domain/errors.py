"""
Session Engine Error Taxonomy

Every error carries a base_error (code + message) so the API layer can
render it the same way as use case errors.
"""

from session_engine.result import Error


class SessionError(Exception):
    """Base class for all session engine errors"""

    code = "SESSION_ERROR"
    default_message = "Session error"

    def __init__(self, message: str = None):
        self.base_error = Error(self.code, message or self.default_message)
        super().__init__(self.base_error.message)


class InvalidTokenError(SessionError):
    """Raw token is malformed, unknown or does not verify"""

    code = "INVALID_TOKEN"
    default_message = "Invalid session token"


class SessionExpiredError(InvalidTokenError):
    """
    Session record exists but expired.

    Internal only: shares the INVALID_TOKEN code and message so that expiry
    is never distinguishable from an unknown token.
    """


class CSRFError(SessionError):
    """Anti-CSRF token missing or mismatched on a protected request"""

    code = "CSRF_TOKEN_MISMATCH"
    default_message = "Anti-CSRF token missing or invalid"


class AuthenticationError(SessionError):
    """Operation requires an authenticated session"""

    code = "UNAUTHENTICATED"
    default_message = "You must be logged in to access this"


class NotAuthorizedError(SessionError):
    """The injected authorization predicate returned false"""

    code = "FORBIDDEN"
    default_message = "You are not authorized to access this"


class PersistenceError(SessionError):
    """Backing store unreachable or returned an unexpected result"""

    code = "PERSISTENCE_ERROR"
    default_message = "Session store failure"


class SessionNotFoundError(PersistenceError):
    """Record vanished between read and write, e.g. revoked by another request"""

    code = "SESSION_NOT_FOUND"
    default_message = "Session not found"


class ConfigurationError(SessionError):
    """Fatal start-up misconfiguration"""

    code = "CONFIGURATION_ERROR"
    default_message = "Invalid session configuration"
