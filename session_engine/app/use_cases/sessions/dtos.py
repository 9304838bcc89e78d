"""
Session Use Case DTOs (Data Transfer Objects)
"""

from datetime import datetime
from typing import List

from pydantic import BaseModel


class SessionInfo(BaseModel):
    """One live session of the current user"""

    handle: str
    created_at: datetime
    expires_at: datetime
    current: bool


class ListSessionsResponse(BaseModel):
    """Response for list sessions use case"""

    sessions: List[SessionInfo]


class RevokeSessionsResponse(BaseModel):
    """Response for bulk revocation use cases"""

    message: str
    revoked_count: int


class RevokeSpecificSessionResponse(BaseModel):
    """Response for specific session revocation"""

    message: str
    handle: str
    revoked: bool


class PurgeExpiredSessionsResponse(BaseModel):
    """Response for janitor sweep"""

    status: str
    purged_count: int
