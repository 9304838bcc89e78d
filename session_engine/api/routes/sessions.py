from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from session_engine.api.error import ClientError, ServerError
from session_engine.app.services.session_context import SessionContext
from session_engine.app.services.unit_of_work import UnitOfWork
from session_engine.app.use_cases.sessions import (
    ListSessionsResponse,
    ListSessionsUseCase,
    RevokeSessionsResponse,
    RevokeSessionsUseCase,
    RevokeSpecificSessionResponse,
)
from session_engine.depends import get_session_context, get_unit_of_work, require_authenticated

router = APIRouter(prefix="/sessions", tags=["Sessions"])


class CurrentSessionResponse(BaseModel):
    """The caller's session as seen by the client"""

    kind: str
    user_id: Any = None
    public_data: Dict[str, Any]


class LogoutResponse(BaseModel):
    message: str


@router.get(
    "/current",
    status_code=status.HTTP_200_OK,
    response_model=CurrentSessionResponse,
)
async def get_current_session(ctx: SessionContext = Depends(get_session_context)):
    """
    Current Session

    Returns kind (anonymous/authenticated), userId and public data.
    Private data is never returned.
    """
    return CurrentSessionResponse(
        kind=ctx.kind.value, user_id=ctx.user_id, public_data=ctx.public_data
    )


@router.post(
    "/logout",
    status_code=status.HTTP_200_OK,
    response_model=LogoutResponse,
)
async def logout(ctx: SessionContext = Depends(get_session_context)):
    """
    Logout

    Revokes the current session. Cookies are cleared and the client is told
    to drop its cached anti-CSRF token.
    """
    await ctx.revoke()
    return LogoutResponse(message="Logged out")


@router.post(
    "/logout-all",
    status_code=status.HTTP_200_OK,
    response_model=RevokeSessionsResponse,
)
async def logout_everywhere(ctx: SessionContext = Depends(require_authenticated)):
    """
    Logout Everywhere

    Revokes every session of the current user, including this one.

    Raises:
        - 401 Unauthorized: No authenticated session
        - 403 Forbidden: Missing or invalid anti-CSRF token
    """
    count = await ctx.revoke_all()
    return RevokeSessionsResponse(
        message=f"Successfully revoked {count} session(s)", revoked_count=count
    )


@router.get(
    "",
    status_code=status.HTTP_200_OK,
    response_model=ListSessionsResponse,
)
async def list_sessions(
    ctx: SessionContext = Depends(require_authenticated),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    List Sessions

    Live sessions of the current user, oldest first.
    """
    use_case = ListSessionsUseCase(uow)
    result = await use_case.execute(ctx.user_id, ctx.handle)

    if result.is_err():
        raise ServerError(result.error)
    return result.value


@router.post(
    "/revoke-others",
    status_code=status.HTTP_200_OK,
    response_model=RevokeSessionsResponse,
)
async def revoke_all_except_current(
    ctx: SessionContext = Depends(require_authenticated),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Revoke All Other Sessions

    Logs out every other device of the current user.

    Raises:
        - 401 Unauthorized: No authenticated session
        - 404 Not Found: Current session vanished concurrently
        - 500 Internal Server Error: Server error
    """
    use_case = RevokeSessionsUseCase(uow)
    result = await use_case.revoke_all_except_current(ctx.handle, ctx.user_id)

    if result.is_err():
        error = result.error
        if error.code == "SESSION_NOT_FOUND":
            raise ClientError(error, status_code=status.HTTP_404_NOT_FOUND)
        raise ServerError(error)

    data = result.value
    return RevokeSessionsResponse(
        message=f"Successfully revoked {data['revoked_count']} other session(s)",
        revoked_count=data["revoked_count"],
    )


@router.delete(
    "/{handle}",
    status_code=status.HTTP_200_OK,
    response_model=RevokeSpecificSessionResponse,
)
async def revoke_specific_session(
    handle: str,
    ctx: SessionContext = Depends(require_authenticated),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Revoke Specific Session

    Revokes one session of the current user by handle. Revoking the current
    handle is a logout.

    Raises:
        - 401 Unauthorized: No authenticated session
        - 404 Not Found: Unknown handle or not owned by the caller
        - 500 Internal Server Error: Server error
    """
    if handle == ctx.handle:
        await ctx.revoke()
        return RevokeSpecificSessionResponse(
            message="Session revoked successfully", handle=handle, revoked=True
        )

    use_case = RevokeSessionsUseCase(uow)
    result = await use_case.revoke_specific_session(handle, ctx.user_id)

    if result.is_err():
        error = result.error
        if error.code == "SESSION_NOT_FOUND":
            raise ClientError(error, status_code=status.HTTP_404_NOT_FOUND)
        raise ServerError(error)

    data = result.value
    return RevokeSpecificSessionResponse(
        message="Session revoked successfully",
        handle=data["handle"],
        revoked=data["revoked"],
    )
