"""
List Sessions Use Case

Lists the live sessions of a user, flagging the caller's own session.
"""

from datetime import datetime
from typing import Any, Callable

from session_engine.app.services.unit_of_work import UnitOfWork
from session_engine.domain.base import utcnow
from session_engine.result import Result, Return
from .dtos import ListSessionsResponse, SessionInfo


class ListSessionsUseCase:
    def __init__(self, uow: UnitOfWork, clock: Callable[[], datetime] = utcnow):
        self.uow = uow
        self.clock = clock

    async def execute(self, user_id: Any, current_handle: str) -> Result[ListSessionsResponse]:
        now = self.clock()
        async with self.uow:
            records = await self.uow.sessions.get_sessions(str(user_id))
            sessions = [
                SessionInfo(
                    handle=r.handle,
                    created_at=r.created_at,
                    expires_at=r.expires_at,
                    current=r.handle == current_handle,
                )
                for r in sorted(records, key=lambda r: r.created_at)
                if not r.is_expired(now)
            ]

        return Return.ok(ListSessionsResponse(sessions=sessions))
