"""
Session Engine Domain Entities
"""

from .enums import CsrfMethod, SameSite, SessionKind
from .session import SessionRecord, serialize_data

__all__ = [
    # Enums
    "SessionKind",
    "CsrfMethod",
    "SameSite",
    # Entities
    "SessionRecord",
    "serialize_data",
]
