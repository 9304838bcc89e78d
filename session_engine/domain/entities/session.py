"""
Session Entity

Persisted session records. Authenticated sessions always have one;
anonymous sessions only once private data has been written.
"""

import json
from datetime import datetime
from typing import Any, Dict, Optional

from sqlmodel import Column, DateTime, Field, Index, SQLModel, Text

from session_engine.domain.base import utcnow


class SessionRecord(SQLModel, table=True):
    """
    SessionRecord entity - one row per live session handle.

    Business Rules:
    - Access tokens are stored as SHA-256 hashes, never raw
    - Anti-CSRF token is fixed for the life of the handle
    - public_data always contains userId, mirroring user_id
    - Records at or past expires_at are treated as absent
    """

    __tablename__ = "sessions"

    handle: str = Field(primary_key=True, max_length=64)

    user_id: Optional[str] = Field(default=None, index=True, max_length=255)
    expires_at: datetime = Field(sa_column=Column(DateTime, nullable=False))

    # SHA-256 hex output; null for anonymous records
    hashed_session_token: Optional[str] = Field(
        default=None, max_length=64, unique=True
    )
    anti_csrf_token: str = Field(max_length=64)

    public_data: str = Field(default="{}", sa_column=Column(Text, nullable=False))
    private_data: Optional[str] = Field(
        default=None, sa_column=Column(Text, nullable=True)
    )

    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    __table_args__ = (Index("idx_session_expires_at", "expires_at"),)

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now

    def get_public_data(self) -> Dict[str, Any]:
        return json.loads(self.public_data) if self.public_data else {}

    def get_private_data(self) -> Dict[str, Any]:
        return json.loads(self.private_data) if self.private_data else {}


def serialize_data(data: Dict[str, Any]) -> str:
    return json.dumps(data, separators=(",", ":"))
