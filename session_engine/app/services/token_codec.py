"""
Token Codec

Opaque token generation, at-rest hashing and constant-time comparison.
"""

import base64
import binascii
import hashlib
import json
import os
import secrets
import string
from typing import Any, Dict, Optional, Tuple

from session_engine.domain.errors import ConfigurationError, InvalidTokenError

TOKEN_ALPHABET = string.ascii_letters + string.digits
TOKEN_LENGTH = 32
TOKEN_SEPARATOR = ";"
ACCESS_TOKEN_VERSION = "v0"


def ensure_secure_random() -> None:
    """
    Fail start-up when the OS has no secure random source.

    Raises:
        ConfigurationError: if os.urandom is unavailable
    """
    try:
        os.urandom(16)
    except NotImplementedError as e:
        raise ConfigurationError("No secure random source available") from e


def generate_token(length: int = TOKEN_LENGTH) -> str:
    """
    Generate an alphanumeric token from the secrets module.

    32 characters over a 62-symbol alphabet is ~190 bits of entropy.
    """
    if length < TOKEN_LENGTH:
        raise ValueError(f"Token length must be at least {TOKEN_LENGTH}")
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))


def hash_token(token: str) -> str:
    """SHA-256 hex digest used as the stored lookup value"""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def constant_time_equals(a: Optional[str], b: Optional[str]) -> bool:
    if a is None or b is None:
        return False
    return secrets.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _b64decode(value: str) -> bytes:
    padding = "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode(value + padding)


def encode_access_token(handle: str, token: str) -> str:
    """
    Build the raw access token handed to the client.

    Format: base64url("{handle};{token};{version}") without padding. The
    handle allows a primary-key lookup; the token part is only ever compared
    against its stored hash.
    """
    payload = TOKEN_SEPARATOR.join([handle, token, ACCESS_TOKEN_VERSION])
    return _b64encode(payload.encode("utf-8"))


def decode_access_token(raw: str) -> Tuple[str, str]:
    """
    Split a raw access token into (handle, token).

    Raises:
        InvalidTokenError: if the token is malformed or has an unknown version
    """
    if not raw:
        raise InvalidTokenError()
    try:
        decoded = _b64decode(raw).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError) as e:
        raise InvalidTokenError() from e

    parts = decoded.split(TOKEN_SEPARATOR)
    if len(parts) != 3 or parts[2] != ACCESS_TOKEN_VERSION:
        raise InvalidTokenError()
    handle, token, _ = parts
    if not handle or not token:
        raise InvalidTokenError()
    return handle, token


def encode_public_data(data: Dict[str, Any]) -> str:
    """Script-readable public data token (base64url JSON)"""
    return _b64encode(json.dumps(data, separators=(",", ":")).encode("utf-8"))


def decode_public_data(value: str) -> Dict[str, Any]:
    return json.loads(_b64decode(value).decode("utf-8"))
