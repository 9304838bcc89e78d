"""
Session Engine Domain Enums

All enumeration types used by the session engine.
"""

from enum import Enum


class SessionKind(str, Enum):
    """Lifecycle state of a request's session context"""

    anonymous = "anonymous"
    authenticated = "authenticated"
    revoked = "revoked"


class CsrfMethod(str, Enum):
    """Which contexts the anti-CSRF check applies to"""

    essential = "essential"
    advanced = "advanced"


class SameSite(str, Enum):
    """SameSite attribute for session cookies"""

    strict = "strict"
    lax = "lax"
    none = "none"
