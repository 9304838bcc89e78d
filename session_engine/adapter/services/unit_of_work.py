from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from session_engine.adapter.repositories.session_repository import SessionRepository
from session_engine.app.services.unit_of_work import UnitOfWork
from session_engine.domain.errors import PersistenceError


class SqlAlchemyUnitOfWork(UnitOfWork):
    """SQLAlchemy implementation of UnitOfWork pattern"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def __aenter__(self):
        self.sessions = SessionRepository(self.session)
        return self

    async def __aexit__(self, *args):
        # Anything not committed by now is discarded
        await self.rollback()

    async def commit(self):
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError("Session commit failed") from e

    async def rollback(self):
        await self.session.rollback()
