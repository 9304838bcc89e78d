"""
Admin API Key Authentication

Guards the session maintenance endpoints (janitor sweep, forced logout).
"""

from fastapi import Header, Request, status

from session_engine.api.error import ClientError
from session_engine.app.services.token_codec import constant_time_equals
from session_engine.result import Error


async def verify_admin_api_key(request: Request, x_admin_api_key: str = Header(None)):
    """
    Check the X-Admin-API-Key header against the key the app was built with.

    Used by schedulers and incident tooling; these callers carry no session
    cookie, so the session CSRF check does not apply to them.

    Raises:
        ClientError: 401 if key is missing or invalid
    """
    if not x_admin_api_key:
        raise ClientError(
            Error("UNAUTHORIZED", "Admin API key required"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    expected = getattr(request.app.state, "admin_api_key", None)
    if not constant_time_equals(x_admin_api_key, expected):
        raise ClientError(
            Error("INVALID_API_KEY", "Invalid admin API key"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    return True
