"""
Unit tests for Token Codec
"""

import base64
import string

import pytest

from session_engine.app.services.token_codec import (
    TOKEN_LENGTH,
    constant_time_equals,
    decode_access_token,
    decode_public_data,
    encode_access_token,
    encode_public_data,
    generate_token,
    hash_token,
)
from session_engine.domain.errors import InvalidTokenError


def _b64(raw: str) -> str:
    return base64.urlsafe_b64encode(raw.encode()).decode().rstrip("=")


def test_generate_token_length_and_alphabet():
    """Test generated tokens are 32 alphanumeric characters"""
    token = generate_token()

    assert len(token) == TOKEN_LENGTH
    assert set(token) <= set(string.ascii_letters + string.digits)


def test_generate_token_is_unique():
    """Test no collisions across many generated tokens"""
    tokens = {generate_token() for _ in range(1000)}
    assert len(tokens) == 1000


def test_generate_token_longer_length():
    """Test a longer token can be requested"""
    assert len(generate_token(48)) == 48


def test_generate_token_rejects_short_length():
    """Test tokens shorter than 32 characters are refused"""
    with pytest.raises(ValueError):
        generate_token(16)


def test_hash_token_is_deterministic_sha256():
    """Test hashing is stable and yields 64 hex characters"""
    assert hash_token("abc") == hash_token("abc")
    assert hash_token("abc") != hash_token("abd")
    assert hash_token("abc") == (
        "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
    )


def test_constant_time_equals():
    """Test equality semantics, including missing values"""
    assert constant_time_equals("token", "token") is True
    assert constant_time_equals("token", "tokem") is False
    assert constant_time_equals("token", "token-longer") is False
    assert constant_time_equals(None, "token") is False
    assert constant_time_equals("token", None) is False
    assert constant_time_equals(None, None) is False


def test_access_token_round_trip():
    """Test decoding an encoded access token yields handle and token"""
    handle, token = generate_token(), generate_token()

    raw = encode_access_token(handle, token)

    assert decode_access_token(raw) == (handle, token)
    assert "=" not in raw
    assert handle not in raw


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "not base64 at all!",
        _b64("handle;token"),
        _b64("handle;token;v9"),
        _b64(";token;v0"),
        _b64("handle;;v0"),
        _b64("a;b;c;v0"),
    ],
)
def test_decode_access_token_malformed(raw):
    """Test malformed access tokens raise InvalidTokenError"""
    with pytest.raises(InvalidTokenError):
        decode_access_token(raw)


def test_public_data_token_round_trip():
    """Test the public data cookie value is readable base64url JSON"""
    data = {"userId": 42, "role": "USER"}

    value = encode_public_data(data)

    assert decode_public_data(value) == data
    assert ";" not in value and "=" not in value
