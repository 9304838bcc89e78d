"""
Admin API Routes - Session Maintenance Endpoints

These endpoints are for operators and internal jobs (janitor sweeps,
incident response). Authentication is via Admin API Key, not user sessions.
"""

from fastapi import APIRouter, Depends, status

from session_engine.api.error import ServerError
from session_engine.api.utils.admin_auth import verify_admin_api_key
from session_engine.app.services.unit_of_work import UnitOfWork
from session_engine.app.use_cases.sessions import (
    PurgeExpiredSessionsResponse,
    PurgeExpiredSessionsUseCase,
    RevokeSessionsResponse,
    RevokeSessionsUseCase,
)
from session_engine.depends import get_unit_of_work

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post(
    "/sessions/purge-expired",
    status_code=status.HTTP_200_OK,
    response_model=PurgeExpiredSessionsResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def purge_expired_sessions(uow: UnitOfWork = Depends(get_unit_of_work)):
    """
    Purge Expired Sessions

    Janitor endpoint, meant to be called on a schedule.

    Requires: X-Admin-API-Key header

    Raises:
        - 401 Unauthorized: Missing or invalid admin API key
        - 500 Internal Server Error: Server error
    """
    use_case = PurgeExpiredSessionsUseCase(uow)
    result = await use_case.execute()

    if result.is_err():
        raise ServerError(result.error)

    return result.value


@router.post(
    "/users/{user_id}/sessions/revoke",
    status_code=status.HTTP_200_OK,
    response_model=RevokeSessionsResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def revoke_user_sessions(user_id: str, uow: UnitOfWork = Depends(get_unit_of_work)):
    """
    Revoke All Sessions Of A User

    Log a user out everywhere, e.g. after an account compromise.

    Requires: X-Admin-API-Key header

    Raises:
        - 401 Unauthorized: Missing or invalid admin API key
        - 500 Internal Server Error: Server error
    """
    use_case = RevokeSessionsUseCase(uow)
    result = await use_case.revoke_all_sessions(user_id)

    if result.is_err():
        raise ServerError(result.error)

    data = result.value
    return RevokeSessionsResponse(
        message=f"Successfully revoked {data['revoked_count']} session(s)",
        revoked_count=data["revoked_count"],
    )
