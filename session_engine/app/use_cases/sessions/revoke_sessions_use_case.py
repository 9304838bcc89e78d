"""
Revoke Sessions Use Case

Handles session revocation that does not go through the caller's own
SessionContext: another device's session, all other devices, or every
session of a user (admin).
"""

import logging
from datetime import datetime
from typing import Any, Callable

from session_engine.app.services.unit_of_work import UnitOfWork
from session_engine.domain.base import utcnow
from session_engine.result import Error, Result, Return

logger = logging.getLogger(__name__)


class RevokeSessionsUseCase:
    """
    Use case for revoking user sessions.

    Business Rules:
    - Users can only revoke their own sessions by handle
    - A handle that is unknown, expired or owned by someone else is
      reported as not found, never distinguished
    - Admin revocation removes every session of the target user
    """

    def __init__(self, uow: UnitOfWork, clock: Callable[[], datetime] = utcnow):
        self.uow = uow
        self.clock = clock

    async def revoke_specific_session(
        self, handle: str, requesting_user_id: Any
    ) -> Result[dict]:
        """
        Revoke one session of the requesting user.

        Args:
            handle: Session to revoke
            requesting_user_id: Owner of the requesting session

        Returns:
            Result with revoked handle, or Error
        """
        async with self.uow:
            record = await self.uow.sessions.get_session(handle)
            if (
                record is None
                or record.is_expired(self.clock())
                or record.user_id != str(requesting_user_id)
            ):
                return Return.err(Error("SESSION_NOT_FOUND", "Session not found"))

            await self.uow.sessions.delete_session(handle)
            await self.uow.commit()

        logger.info(f"User {requesting_user_id} revoked one of their sessions")
        return Return.ok({"handle": handle, "revoked": True})

    async def revoke_all_except_current(
        self, current_handle: str, requesting_user_id: Any
    ) -> Result[dict]:
        """
        Revoke all sessions of the user except the current one
        (logout other devices).
        """
        async with self.uow:
            current = await self.uow.sessions.get_session(current_handle)
            if current is None or current.user_id != str(requesting_user_id):
                return Return.err(Error("SESSION_NOT_FOUND", "Current session not found"))

            count = 0
            for record in await self.uow.sessions.get_sessions(str(requesting_user_id)):
                if record.handle == current_handle:
                    continue
                await self.uow.sessions.delete_session(record.handle)
                count += 1
            await self.uow.commit()

        logger.info(f"User {requesting_user_id} revoked {count} other session(s)")
        return Return.ok({"revoked_count": count, "kept_handle": current_handle})

    async def revoke_all_sessions(self, target_user_id: Any) -> Result[dict]:
        """Revoke every session of a user (admin)"""
        async with self.uow:
            count = await self.uow.sessions.delete_sessions(str(target_user_id))
            await self.uow.commit()

        logger.info(f"Admin revoked {count} session(s) of user {target_user_id}")
        return Return.ok({"revoked_count": count, "target_user_id": str(target_user_id)})
