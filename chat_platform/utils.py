"""
Small helpers shared by the query layer and the auth package.
"""

import uuid

import bcrypt


def generate_uuid() -> str:
    return str(uuid.uuid4())


def generate_hashed_password(password: str) -> str:
    """Return a bcrypt hash (utf-8 text) for the given password."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def generate_dummy_password() -> str:
    """Random password whose hash is used to equalize login timing."""
    return generate_hashed_password(generate_uuid())
