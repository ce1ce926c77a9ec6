"""
FastAPI dependency functions for authentication.

These can be used in routes with Depends() to read or require a session.
The token is taken from the session cookie, or from an
`Authorization: Bearer <token>` header for API clients.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from chat_platform.errors import ChatSDKError

from .schemas import Session, SessionUser
from .service import AuthService

# Bearer scheme; optional so cookie sessions still work
security = HTTPBearer(auto_error=False)


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth


def get_session(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth: AuthService = Depends(get_auth_service),
) -> Optional[Session]:
    """
    Dependency that resolves the current session, if any.

    Returns:
        Optional[Session]: The decoded session, or None when absent/invalid.
    """
    token = request.cookies.get(auth.config.cookie_name)
    if credentials is not None:
        token = credentials.credentials
    return auth.get_session(token)


def get_current_user(
    request: Request,
    session: Optional[Session] = Depends(get_session),
    auth: AuthService = Depends(get_auth_service),
) -> SessionUser:
    """
    Dependency that requires a signed-in user.

    Raises:
        ChatSDKError: "unauthorized:auth" without a valid session.
    """
    if session is None or not auth.config.authorized(session, request.url.path):
        raise ChatSDKError("unauthorized:auth")
    return session.user
