from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from session_engine.domain.entities import SessionRecord


class ISessionRepository(ABC):
    """Session repository interface - application layer"""

    @abstractmethod
    async def get_session(self, handle: str) -> Optional[SessionRecord]:
        """Get session record by handle"""
        pass

    @abstractmethod
    async def get_sessions(self, user_id: str) -> List[SessionRecord]:
        """Get all session records for a user"""
        pass

    @abstractmethod
    async def create_session(self, record: SessionRecord) -> SessionRecord:
        """Create a new record. Raises PersistenceError on handle/hash collision."""
        pass

    @abstractmethod
    async def update_session(
        self, handle: str, partial: Dict[str, Any]
    ) -> SessionRecord:
        """Apply column values to a record. Raises SessionNotFoundError if absent."""
        pass

    @abstractmethod
    async def delete_session(self, handle: str) -> Optional[SessionRecord]:
        """Delete a record. Returns the deleted record, or None if absent."""
        pass

    @abstractmethod
    async def delete_sessions(self, user_id: str) -> int:
        """Delete all records for a user. Returns count of deleted records."""
        pass

    @abstractmethod
    async def delete_expired(self, now: datetime) -> int:
        """Delete records with expires_at <= now. Returns count."""
        pass
