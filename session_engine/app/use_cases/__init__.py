"""
Use Cases

Organized into domain folders:
- sessions/: Session listing, revocation and janitor sweeps
"""

from .sessions import (
    ListSessionsUseCase,
    PurgeExpiredSessionsUseCase,
    RevokeSessionsUseCase,
)

__all__ = [
    "ListSessionsUseCase",
    "PurgeExpiredSessionsUseCase",
    "RevokeSessionsUseCase",
]
