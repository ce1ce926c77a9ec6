"""
Utility functions for the auth module.

Token signing and password hashing are delegated to PyJWT and bcrypt.
"""

import time
from typing import Any, Dict

import bcrypt
import jwt

from chat_platform.utils import generate_dummy_password

JWT_ALGORITHM = "HS256"

# Compared against when the user does not exist so both paths cost a bcrypt check.
DUMMY_PASSWORD = generate_dummy_password()


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode(), password_hash.encode())
    except ValueError:
        # Malformed stored hash
        return False


def encode_token(claims: Dict[str, Any], secret: str, max_age: int) -> str:
    """Sign `claims` with an issued-at and an expiry `max_age` seconds ahead."""
    now = int(time.time())
    payload = dict(claims, iat=now, exp=now + max_age)
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def decode_token(token: str, secret: str) -> Dict[str, Any]:
    """
    Verify and decode a session token.

    Raises:
        jwt.InvalidTokenError: On bad signature, malformed token, missing or
            past expiry.
    """
    return jwt.decode(token, secret, algorithms=[JWT_ALGORITHM], options={"require": ["exp"]})
