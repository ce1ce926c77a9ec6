"""
Credentials providers.

A provider pairs an id with an `authorize(credentials)` callable that
returns an `AuthUser` or None. Two providers are configured:

    - "credentials": email/password sign-in against stored users
    - "guest":       issues an ephemeral guest identity, nothing is stored
"""

import logging
import time
import uuid
from typing import Callable, Dict, List, Optional

from chat_platform.queries import ChatQueries

from .schemas import AuthUser
from .utils import DUMMY_PASSWORD, verify_password

log = logging.getLogger("chat.auth")

Authorize = Callable[[Dict[str, str]], Optional[AuthUser]]


class CredentialsProvider:
    def __init__(self, id: str, authorize: Authorize):
        self.id = id
        self.authorize = authorize


def regular_provider(queries: ChatQueries) -> CredentialsProvider:
    def authorize(credentials: Dict[str, str]) -> Optional[AuthUser]:
        email = credentials.get("email") or ""
        password = credentials.get("password") or ""

        users = queries.get_user(email)
        if not users or not users[0].password:
            verify_password(password, DUMMY_PASSWORD)
            log.info("Sign-in rejected: unknown user")
            return None

        user = users[0]
        if not verify_password(password, user.password):
            log.info("Sign-in rejected: bad password for %s", user.id)
            return None

        return AuthUser(id=user.id, email=user.email, type="regular")

    return CredentialsProvider("credentials", authorize)


def guest_provider() -> CredentialsProvider:
    def authorize(credentials: Dict[str, str]) -> AuthUser:
        guest = AuthUser(
            id=f"guest_user_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}",
            email=None,
            type="guest",
        )
        log.info("Guest user created: %s", guest.id)
        return guest

    return CredentialsProvider("guest", authorize)


def default_providers(queries: ChatQueries) -> List[CredentialsProvider]:
    return [regular_provider(queries), guest_provider()]
