"""
Session Management Use Cases
"""

from .dtos import (
    ListSessionsResponse,
    PurgeExpiredSessionsResponse,
    RevokeSessionsResponse,
    RevokeSpecificSessionResponse,
    SessionInfo,
)
from .list_sessions_use_case import ListSessionsUseCase
from .purge_expired_sessions_use_case import PurgeExpiredSessionsUseCase
from .revoke_sessions_use_case import RevokeSessionsUseCase

__all__ = [
    "ListSessionsUseCase",
    "RevokeSessionsUseCase",
    "PurgeExpiredSessionsUseCase",
    "SessionInfo",
    "ListSessionsResponse",
    "RevokeSessionsResponse",
    "RevokeSpecificSessionResponse",
    "PurgeExpiredSessionsResponse",
]
