"""
Main API module for Chat Platform.

Responsibilities:
    - Guest and credentials sign-in with JWT session cookies
    - Chat, message, vote, document, suggestion and stream endpoints backed by
      the query layer
    - Per-user-type daily message entitlements

Architecture:
    - App Factory pattern (create_app) for test isolation and DI.
    - In-memory local cache by default; swappable through the storage factory.
    - Routes only talk to `ChatQueries`; every storage failure surfaces as a
      `ChatSDKError`, rendered by a single exception handler.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from urllib.parse import urlparse

from fastapi import Depends, FastAPI, Query, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel, Field

from auth.config import AuthConfig
from auth.dependencies import get_current_user, get_session
from auth.providers import default_providers
from auth.schemas import Session, SessionUser, UserLogin
from auth.service import AuthService
from chat_platform.config import settings
from chat_platform.entitlements import ENTITLEMENT_WINDOW_HOURS, max_messages_per_day
from chat_platform.errors import ChatSDKError
from chat_platform.models import (
    ArtifactKind,
    Chat,
    DBMessage,
    Document,
    Suggestion,
    VisibilityType,
    Vote,
    VoteType,
    utcnow,
)
from chat_platform.queries import ChatQueries
from chat_platform.storage.base import BaseStorage
from chat_platform.storage.storage_factory import get_storage
from chat_platform.utils import generate_uuid


class MessageIn(BaseModel):
    """Message posted by the signed-in user; the server stamps the time."""
    id: str = Field(default_factory=generate_uuid)
    role: Literal["user"] = "user"
    parts: List[Any] = Field(default_factory=list)
    attachments: List[Any] = Field(default_factory=list)


class ChatRequest(BaseModel):
    """Request payload for posting a message to a (possibly new) chat."""
    id: str
    message: MessageIn
    selected_visibility: VisibilityType = "private"


class VisibilityRequest(BaseModel):
    visibility: VisibilityType


class VoteRequest(BaseModel):
    chat_id: str
    message_id: str
    type: VoteType


class DocumentRequest(BaseModel):
    title: str
    content: Optional[str] = None
    kind: ArtifactKind = "text"


class SuggestionRequest(BaseModel):
    document_id: str
    original_text: str
    suggested_text: str
    description: Optional[str] = None


TITLE_MAX_LENGTH = 80


def _title_from_message(message: MessageIn) -> str:
    for part in message.parts:
        if isinstance(part, dict) and part.get("type") == "text" and part.get("text"):
            return str(part["text"]).strip()[:TITLE_MAX_LENGTH]
        if isinstance(part, str) and part.strip():
            return part.strip()[:TITLE_MAX_LENGTH]
    return "New chat"


def _safe_redirect_target(target: str, request: Request) -> str:
    """
    Keep redirects on this origin.

    Relative paths ("/chat/1") and absolute URLs on the request's own host
    pass through; anything else collapses to "/".
    """
    if target.startswith("/") and not target.startswith(("//", "/\\")):
        return target
    parsed = urlparse(target)
    if parsed.scheme in {"http", "https"} and parsed.netloc == request.url.netloc:
        return target
    return "/"


def create_app(storage: Optional[BaseStorage] = None, auth_config: Optional[AuthConfig] = None) -> FastAPI:
    """
    Factory function to build and configure a new FastAPI app instance.

    Args:
        storage (Optional[BaseStorage]): Backend to use; defaults to the one
            selected by CHAT_STORAGE_BACKEND.
        auth_config (Optional[AuthConfig]): Session settings; defaults to env.

    Returns:
        FastAPI: A fully configured application with its own storage, query
                 layer and auth service.
    """
    app = FastAPI(
        title="Chat Platform",
        description="Chat backend with guest sessions and an in-memory data layer",
        docs_url="/docs",
    )
    log = logging.getLogger("chat")

    # basic console logging (optional)
    if not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO)

    # ----------------------------------------------------------------
    # Per-app instances (isolated for tests, swappable for production)
    # ----------------------------------------------------------------
    storage = storage or get_storage()
    queries = ChatQueries(storage)
    auth = AuthService(auth_config or AuthConfig(), default_providers(queries))

    app.state.storage = storage
    app.state.queries = queries
    app.state.auth = auth

    log.info("Chat storage backend: %s (%s)", settings.STORAGE_BACKEND, type(storage).__name__)

    @app.exception_handler(ChatSDKError)
    def handle_chat_sdk_error(request: Request, exc: ChatSDKError) -> JSONResponse:
        return exc.to_response()

    # ----------------------------------------------------------------
    # Utilities
    # ----------------------------------------------------------------
    def _set_session_cookie(response: Response, token: str, request: Request) -> None:
        response.set_cookie(
            auth.config.cookie_name,
            token,
            max_age=auth.config.session_max_age,
            httponly=True,
            samesite="lax",
            secure=request.url.scheme == "https",
        )

    def _get_owned_chat(chat_id: str, user: SessionUser) -> Chat:
        chat = queries.get_chat_by_id(chat_id)
        if chat is None:
            raise ChatSDKError("not_found:chat")
        if chat.user_id != user.id:
            raise ChatSDKError("forbidden:chat")
        return chat

    def _get_readable_chat(chat_id: str, user: SessionUser) -> Chat:
        chat = queries.get_chat_by_id(chat_id)
        if chat is None:
            raise ChatSDKError("not_found:chat")
        if chat.visibility == "private" and chat.user_id != user.id:
            raise ChatSDKError("forbidden:chat")
        return chat

    def _get_owned_document(document_id: str, user: SessionUser) -> List[Document]:
        versions = queries.get_documents_by_id(document_id)
        if not versions:
            raise ChatSDKError("not_found:document")
        if versions[-1].user_id != user.id:
            raise ChatSDKError("forbidden:document")
        return versions

    # Health check
    @app.get("/health")
    def health():
        return {"status": "ok"}

    # ----------------------------------------------------------------
    # Auth routes
    # ----------------------------------------------------------------
    @app.get("/api/auth/guest")
    def guest_sign_in(
        request: Request,
        redirect_url: Optional[str] = Query(None, alias="redirectUrl"),
        session: Optional[Session] = Depends(get_session),
    ) -> Response:
        """
        Sign in as a guest and redirect.

        An existing valid session is kept as is; otherwise a fresh guest
        identity is issued and stored in the session cookie.
        """
        target = _safe_redirect_target(redirect_url or auth.config.pages["new_user"], request)
        response = RedirectResponse(url=target, status_code=302)
        if session is not None:
            return response

        result = auth.sign_in("guest")
        if result is None:
            raise ChatSDKError("unauthorized:auth", "Guest sign-in failed")
        token, _ = result
        _set_session_cookie(response, token, request)
        return response

    @app.post("/api/auth/callback/credentials")
    def credentials_sign_in(body: UserLogin, request: Request, response: Response) -> Session:
        result = auth.sign_in("credentials", body.model_dump())
        if result is None:
            raise ChatSDKError("unauthorized:auth", "Invalid email or password")
        token, session = result
        _set_session_cookie(response, token, request)
        return session

    @app.post("/api/auth/register")
    def register(body: UserLogin, request: Request, response: Response) -> Session:
        if queries.get_user(body.email):
            raise ChatSDKError("bad_request:auth", "User already exists")
        queries.create_user(body.email, body.password)

        result = auth.sign_in("credentials", body.model_dump())
        if result is None:
            raise ChatSDKError("unauthorized:auth", "Sign-in after registration failed")
        token, session = result
        _set_session_cookie(response, token, request)
        return session

    @app.get("/api/auth/session")
    def read_session(session: Optional[Session] = Depends(get_session)) -> Optional[Session]:
        return session

    @app.post("/api/auth/signout")
    def sign_out(response: Response) -> Dict[str, Any]:
        auth.sign_out()
        response.delete_cookie(auth.config.cookie_name)
        return {"url": auth.config.pages["sign_in"]}

    # ----------------------------------------------------------------
    # History
    # ----------------------------------------------------------------
    @app.get("/api/history")
    def history(
        limit: int = Query(settings.HISTORY_PAGE_SIZE, ge=1, le=100),
        starting_after: Optional[str] = Query(None),
        ending_before: Optional[str] = Query(None),
        user: SessionUser = Depends(get_current_user),
    ) -> Dict[str, Any]:
        if starting_after and ending_before:
            raise ChatSDKError(
                "bad_request:api", "Only one of starting_after or ending_before can be provided."
            )
        return queries.get_chats_by_user_id(
            user.id, limit, starting_after=starting_after, ending_before=ending_before
        )

    # ----------------------------------------------------------------
    # Chats & messages
    # ----------------------------------------------------------------
    @app.post("/api/chat")
    def post_chat(body: ChatRequest, user: SessionUser = Depends(get_current_user)) -> Dict[str, Any]:
        """
        Record a user message, creating the chat on first use.

        Raises:
            ChatSDKError: "rate_limit:chat" once the daily entitlement is used,
                "forbidden:chat" when the chat belongs to someone else.
        """
        message_count = queries.get_message_count_by_user_id(
            user.id, difference_in_hours=ENTITLEMENT_WINDOW_HOURS
        )
        if message_count >= max_messages_per_day(user.type):
            raise ChatSDKError("rate_limit:chat")

        chat = queries.get_chat_by_id(body.id)
        if chat is None:
            chat = queries.save_chat(
                id=body.id,
                user_id=user.id,
                title=_title_from_message(body.message),
                visibility=body.selected_visibility,
            )
        elif chat.user_id != user.id:
            raise ChatSDKError("forbidden:chat")

        message = DBMessage(
            id=body.message.id,
            chat_id=chat.id,
            role="user",
            parts=body.message.parts,
            attachments=body.message.attachments,
            created_at=utcnow(),
        )
        queries.save_messages([message])

        stream_id = generate_uuid()
        queries.create_stream_id(stream_id, chat.id)
        return {"chat": chat, "message": message, "stream_id": stream_id}

    @app.get("/api/chat/{chat_id}")
    def get_chat(chat_id: str, user: SessionUser = Depends(get_current_user)) -> Chat:
        return _get_readable_chat(chat_id, user)

    @app.delete("/api/chat/{chat_id}")
    def delete_chat(chat_id: str, user: SessionUser = Depends(get_current_user)) -> Optional[Chat]:
        _get_owned_chat(chat_id, user)
        return queries.delete_chat_by_id(chat_id)

    @app.patch("/api/chat/{chat_id}/visibility")
    def update_visibility(
        chat_id: str, body: VisibilityRequest, user: SessionUser = Depends(get_current_user)
    ) -> Chat:
        _get_owned_chat(chat_id, user)
        queries.update_chat_visibility_by_id(chat_id, body.visibility)
        return queries.get_chat_by_id(chat_id)

    @app.get("/api/chat/{chat_id}/messages")
    def list_messages(chat_id: str, user: SessionUser = Depends(get_current_user)) -> List[DBMessage]:
        _get_readable_chat(chat_id, user)
        return queries.get_messages_by_chat_id(chat_id)

    @app.delete("/api/chat/{chat_id}/messages")
    def delete_trailing_messages(
        chat_id: str,
        message_id: str = Query(..., alias="messageId"),
        user: SessionUser = Depends(get_current_user),
    ) -> List[DBMessage]:
        """Drop every message newer than `messageId` (edit/regenerate flow)."""
        _get_owned_chat(chat_id, user)
        found = queries.get_message_by_id(message_id)
        if not found or found[0].chat_id != chat_id:
            raise ChatSDKError("not_found:chat", "Message not found")
        queries.delete_messages_by_chat_id_after_timestamp(chat_id, found[0].created_at)
        return queries.get_messages_by_chat_id(chat_id)

    @app.get("/api/chat/{chat_id}/stream")
    def list_streams(chat_id: str, user: SessionUser = Depends(get_current_user)) -> List[str]:
        _get_readable_chat(chat_id, user)
        return queries.get_stream_ids_by_chat_id(chat_id)

    @app.post("/api/chat/{chat_id}/stream")
    def create_stream(chat_id: str, user: SessionUser = Depends(get_current_user)) -> Dict[str, Any]:
        _get_owned_chat(chat_id, user)
        stream_id = generate_uuid()
        queries.create_stream_id(stream_id, chat_id)
        return {"stream_id": stream_id}

    # ----------------------------------------------------------------
    # Votes
    # ----------------------------------------------------------------
    @app.get("/api/vote")
    def get_votes(
        chat_id: str = Query(..., alias="chatId"),
        user: SessionUser = Depends(get_current_user),
    ) -> List[Vote]:
        _get_owned_chat(chat_id, user)
        return queries.get_votes_by_chat_id(chat_id)

    @app.patch("/api/vote")
    def vote(body: VoteRequest, user: SessionUser = Depends(get_current_user)) -> Dict[str, Any]:
        _get_owned_chat(body.chat_id, user)
        queries.vote_message(body.chat_id, body.message_id, body.type)
        return {"message": "Message voted"}

    # ----------------------------------------------------------------
    # Documents & suggestions
    # ----------------------------------------------------------------
    @app.get("/api/document")
    def get_document(
        id: str = Query(...),
        user: SessionUser = Depends(get_current_user),
    ) -> List[Document]:
        return _get_owned_document(id, user)

    @app.post("/api/document")
    def save_document(
        body: DocumentRequest,
        id: str = Query(...),
        user: SessionUser = Depends(get_current_user),
    ) -> Document:
        latest = queries.get_document_by_id(id)
        if latest is not None and latest.user_id != user.id:
            raise ChatSDKError("forbidden:document")
        return queries.save_document(
            id=id, title=body.title, kind=body.kind, content=body.content, user_id=user.id
        )

    @app.delete("/api/document")
    def delete_document_versions(
        id: str = Query(...),
        timestamp: datetime = Query(...),
        user: SessionUser = Depends(get_current_user),
    ) -> List[Document]:
        _get_owned_document(id, user)
        return queries.delete_documents_by_id_after_timestamp(id, timestamp)

    @app.get("/api/suggestions")
    def get_suggestions(
        document_id: str = Query(..., alias="documentId"),
        user: SessionUser = Depends(get_current_user),
    ) -> List[Suggestion]:
        suggestions = queries.get_suggestions_by_document_id(document_id)
        if suggestions and suggestions[0].user_id != user.id:
            raise ChatSDKError("forbidden:suggestions")
        return suggestions

    @app.post("/api/suggestions")
    def add_suggestion(
        body: SuggestionRequest, user: SessionUser = Depends(get_current_user)
    ) -> Suggestion:
        document = _get_owned_document(body.document_id, user)[-1]
        suggestion = Suggestion(
            id=generate_uuid(),
            document_id=document.id,
            document_created_at=document.created_at,
            original_text=body.original_text,
            suggested_text=body.suggested_text,
            description=body.description,
            user_id=user.id,
        )
        queries.save_suggestions([suggestion])
        return suggestion

    return app


# `uvicorn main:app --reload` and `from main import app` continue to work.
app = create_app()
