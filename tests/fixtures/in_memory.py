"""
In-memory doubles for the persistence port.

Writes apply immediately; commit and rollback only count calls.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from session_engine.app.repositories.session_repository import ISessionRepository
from session_engine.app.services.unit_of_work import UnitOfWork
from session_engine.domain.entities import SessionRecord
from session_engine.domain.errors import PersistenceError, SessionNotFoundError


class InMemorySessionRepository(ISessionRepository):
    def __init__(self):
        self.records: Dict[str, SessionRecord] = {}
        self.fail_with: Optional[Exception] = None

    def _check(self):
        if self.fail_with is not None:
            raise self.fail_with

    async def get_session(self, handle: str) -> Optional[SessionRecord]:
        self._check()
        return self.records.get(handle)

    async def get_sessions(self, user_id: str) -> List[SessionRecord]:
        self._check()
        return [r for r in self.records.values() if r.user_id == user_id]

    async def create_session(self, record: SessionRecord) -> SessionRecord:
        self._check()
        if record.handle in self.records:
            raise PersistenceError("Session handle or token collision")
        if record.hashed_session_token is not None and any(
            r.hashed_session_token == record.hashed_session_token
            for r in self.records.values()
        ):
            raise PersistenceError("Session handle or token collision")
        self.records[record.handle] = record
        return record

    async def update_session(self, handle: str, partial: Dict[str, Any]) -> SessionRecord:
        self._check()
        record = self.records.get(handle)
        if record is None:
            raise SessionNotFoundError()
        for column, value in partial.items():
            setattr(record, column, value)
        return record

    async def delete_session(self, handle: str) -> Optional[SessionRecord]:
        self._check()
        return self.records.pop(handle, None)

    async def delete_sessions(self, user_id: str) -> int:
        self._check()
        handles = [h for h, r in self.records.items() if r.user_id == user_id]
        for handle in handles:
            del self.records[handle]
        return len(handles)

    async def delete_expired(self, now: datetime) -> int:
        self._check()
        handles = [h for h, r in self.records.items() if r.is_expired(now)]
        for handle in handles:
            del self.records[handle]
        return len(handles)


class InMemoryUnitOfWork(UnitOfWork):
    def __init__(self, repository: InMemorySessionRepository = None):
        self.sessions = repository or InMemorySessionRepository()
        self.commits = 0
        self.rollbacks = 0

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.rollback()

    async def commit(self):
        self.commits += 1

    async def rollback(self):
        self.rollbacks += 1


class FakeClock:
    """Callable clock that only moves when told to"""

    def __init__(self, now: datetime = None):
        self.now = now or datetime(2024, 1, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now
