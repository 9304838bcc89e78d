import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from session_engine.app.repositories.session_repository import ISessionRepository
from session_engine.domain.entities import SessionRecord
from session_engine.domain.errors import PersistenceError, SessionNotFoundError

logger = logging.getLogger(__name__)

UPDATABLE_COLUMNS = {"user_id", "expires_at", "public_data", "private_data"}


class SessionRepository(ISessionRepository):
    """Session repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_session(self, handle: str) -> Optional[SessionRecord]:
        """Get session record by handle"""
        stmt = select(SessionRecord).where(SessionRecord.handle == handle)
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Session lookup failed: {e.__class__.__name__}")
            raise PersistenceError("Session lookup failed") from e
        return result.scalar_one_or_none()

    async def get_sessions(self, user_id: str) -> List[SessionRecord]:
        """Get all session records for a user"""
        stmt = select(SessionRecord).where(SessionRecord.user_id == user_id)
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Session listing failed: {e.__class__.__name__}")
            raise PersistenceError("Session listing failed") from e
        return list(result.scalars().all())

    async def create_session(self, record: SessionRecord) -> SessionRecord:
        """Create a new session record"""
        self.session.add(record)
        try:
            await self.session.flush()
        except IntegrityError as e:
            # handle or hashed token already present
            raise PersistenceError("Session handle or token collision") from e
        except SQLAlchemyError as e:
            logger.error(f"Session create failed: {e.__class__.__name__}")
            raise PersistenceError("Session create failed") from e
        await self.session.refresh(record)
        return record

    async def update_session(
        self, handle: str, partial: Dict[str, Any]
    ) -> SessionRecord:
        """Update columns of an existing session record"""
        unknown = set(partial) - UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Cannot update session columns: {sorted(unknown)}")

        record = await self.get_session(handle)
        if record is None:
            raise SessionNotFoundError()

        for column, value in partial.items():
            setattr(record, column, value)

        self.session.add(record)
        try:
            await self.session.flush()
        except SQLAlchemyError as e:
            logger.error(f"Session update failed: {e.__class__.__name__}")
            raise PersistenceError("Session update failed") from e
        await self.session.refresh(record)
        return record

    async def delete_session(self, handle: str) -> Optional[SessionRecord]:
        """Delete a session record by handle"""
        record = await self.get_session(handle)
        if record is None:
            return None
        try:
            await self.session.delete(record)
            await self.session.flush()
        except SQLAlchemyError as e:
            logger.error(f"Session delete failed: {e.__class__.__name__}")
            raise PersistenceError("Session delete failed") from e
        return record

    async def delete_sessions(self, user_id: str) -> int:
        """Delete all session records for a user"""
        stmt = delete(SessionRecord).where(SessionRecord.user_id == user_id)
        return await self._execute_delete(stmt)

    async def delete_expired(self, now: datetime) -> int:
        """Delete all session records expired at `now`"""
        stmt = delete(SessionRecord).where(SessionRecord.expires_at <= now)
        return await self._execute_delete(stmt)

    async def _execute_delete(self, stmt) -> int:
        try:
            result = await self.session.execute(
                stmt.execution_options(synchronize_session="fetch")
            )
            await self.session.flush()
        except SQLAlchemyError as e:
            logger.error(f"Session bulk delete failed: {e.__class__.__name__}")
            raise PersistenceError("Session bulk delete failed") from e
        return result.rowcount
