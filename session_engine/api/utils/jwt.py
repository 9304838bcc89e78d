from datetime import UTC, datetime
from typing import Any, Dict, Optional

from jose import JWTError, jwt

ALGORITHM = "HS256"
ANONYMOUS_SUBJECT = "anonymous"


def create_anonymous_token(
    handle: str,
    public_data: Dict[str, Any],
    anti_csrf_token: str,
    secret_key: str,
    issuer: str,
    audience: str,
) -> str:
    """
    Create the signed anonymous session token

    Args:
        handle: Anonymous session handle
        public_data: Client-visible data, always with userId = None
        anti_csrf_token: Anti-CSRF token bound to this anonymous session
        secret_key: Signing secret
        issuer: iss claim
        audience: aud claim

    Returns:
        JWT token string (HS256, no expiry - the cookie is durable)
    """
    payload = {
        "sub": ANONYMOUS_SUBJECT,
        "iss": issuer,
        "aud": audience,
        "iat": datetime.now(UTC),
        "session": {
            "isAnonymous": True,
            "handle": handle,
            "publicData": public_data,
            "antiCSRFToken": anti_csrf_token,
        },
    }
    return jwt.encode(payload, secret_key, algorithm=ALGORITHM)


def verify_anonymous_token(
    token: str, secret_key: str, issuer: str, audience: str
) -> Optional[dict]:
    """
    Verify and decode an anonymous session token

    Args:
        token: JWT token string
        secret_key: Signing secret
        issuer: Expected iss claim
        audience: Expected aud claim

    Returns:
        The "session" claim dict, or None if invalid
    """
    try:
        payload = jwt.decode(
            token,
            secret_key,
            algorithms=[ALGORITHM],
            audience=audience,
            issuer=issuer,
        )
    except JWTError:
        return None

    if payload.get("sub") != ANONYMOUS_SUBJECT:
        return None
    claims = payload.get("session")
    if not isinstance(claims, dict) or claims.get("isAnonymous") is not True:
        return None
    if not claims.get("handle") or not claims.get("antiCSRFToken"):
        return None
    if not isinstance(claims.get("publicData"), dict):
        return None
    return claims
