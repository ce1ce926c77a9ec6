"""
Core authentication logic.

`AuthService` runs a provider's authorize step, turns the resulting user
into a signed JWT session token, and turns tokens back into sessions.
Signing and verification are done by PyJWT; this module only decides which
claims travel in the token and how they surface on the session.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional, Tuple

import jwt

from chat_platform.errors import ChatSDKError

from .config import AuthConfig
from .providers import CredentialsProvider
from .schemas import AuthUser, Session, SessionUser
from .utils import decode_token, encode_token

log = logging.getLogger("chat.auth")


class AuthService:
    def __init__(self, config: AuthConfig, providers: Iterable[CredentialsProvider]):
        self.config = config
        self.providers: Dict[str, CredentialsProvider] = {p.id: p for p in providers}

    # ---------------------------------------------------------------------
    # Callbacks
    # ---------------------------------------------------------------------
    @staticmethod
    def jwt_callback(token: Dict[str, Any], user: Optional[AuthUser] = None) -> Dict[str, Any]:
        """Copy the signed-in user's id and type onto the token."""
        if user:
            token["id"] = user.id
            token["type"] = user.type
            if user.email:
                token["email"] = user.email
        return token

    @staticmethod
    def session_callback(session: Dict[str, Any], token: Dict[str, Any]) -> Dict[str, Any]:
        """Expose id and type from the token on `session["user"]`."""
        if session.get("user") is not None:
            session["user"]["id"] = token.get("id")
            session["user"]["type"] = token.get("type")
        return session

    # ---------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------
    def sign_in(self, provider_id: str, credentials: Optional[Dict[str, str]] = None) -> Optional[Tuple[str, Session]]:
        """
        Authenticate through a provider and issue a session token.

        Returns:
            Optional[Tuple[str, Session]]: (token, session), or None when the
            provider rejected the credentials.

        Raises:
            ChatSDKError: If the provider id is not configured.
        """
        provider = self.providers.get(provider_id)
        if provider is None:
            raise ChatSDKError("bad_request:auth", f"Unknown provider: {provider_id}")

        user = provider.authorize(credentials or {})
        if user is None or not user.id:
            return None

        claims = self.jwt_callback({"sub": user.id}, user)
        token = encode_token(claims, self.config.secret, self.config.session_max_age)
        session = self.get_session(token)
        assert session is not None  # freshly signed token must decode
        return token, session

    def get_session(self, token: Optional[str]) -> Optional[Session]:
        """Decode a session token; invalid or expired tokens yield None."""
        if not token:
            return None
        try:
            claims = decode_token(token, self.config.secret)
        except jwt.InvalidTokenError as error:
            log.debug("Rejected session token: %s", error)
            return None

        session = {
            "user": {"email": claims.get("email")},
            "expires": datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
        }
        session = self.session_callback(session, claims)
        if not session["user"].get("id") or session["user"].get("type") not in ("guest", "regular"):
            return None
        return Session(user=SessionUser(**session["user"]), expires=session["expires"])

    def sign_out(self) -> None:
        # JWT sessions are stateless; signing out only drops the cookie.
        log.info("Session signed out")
