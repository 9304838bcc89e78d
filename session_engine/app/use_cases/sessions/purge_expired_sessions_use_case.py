"""
Use Case: Purge Expired Sessions

Janitor sweep removing every session record at or past its expiry.
"""

import logging
from datetime import datetime
from typing import Callable

from session_engine.app.services.unit_of_work import UnitOfWork
from session_engine.domain.base import utcnow
from session_engine.result import Result, Return
from .dtos import PurgeExpiredSessionsResponse

logger = logging.getLogger(__name__)


class PurgeExpiredSessionsUseCase:
    """
    Delete expired session records.

    Expired records are already rejected on load, so the sweep only
    reclaims storage. Safe to run concurrently with request traffic.
    """

    def __init__(self, uow: UnitOfWork, clock: Callable[[], datetime] = utcnow):
        self.uow = uow
        self.clock = clock

    async def execute(self) -> Result[PurgeExpiredSessionsResponse]:
        async with self.uow:
            count = await self.uow.sessions.delete_expired(self.clock())
            await self.uow.commit()

        logger.info(f"Purged {count} expired session(s)")
        return Return.ok(PurgeExpiredSessionsResponse(status="ok", purged_count=count))
