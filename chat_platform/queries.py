"""
Query layer for Chat Platform.

Responsibilities:
    - Give routes and auth one uniform entry point for every data access
    - Hide which storage backend is in use (local cache today)
    - Turn any storage failure into a typed `ChatSDKError` with the
      "bad_request:database" code so HTTP handlers render it consistently

Design notes:
    - Errors are rethrown, never compensated: a failed write leaves whatever
      partial state the backend produced.
    - The original exception is chained (`raise ... from error`) and its text
      is only logged, never returned to clients.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, TypeVar

from .errors import ChatSDKError
from .models import Chat, DBMessage, Document, Suggestion, User, Vote
from .storage.base import BaseStorage
from .utils import generate_hashed_password

log = logging.getLogger("chat.queries")

T = TypeVar("T")


class ChatQueries:
    """Facade over a storage backend; one method per query."""

    def __init__(self, storage: BaseStorage):
        self.storage = storage

    def _call(self, cause: str, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        try:
            return func(*args, **kwargs)
        except Exception as error:
            log.debug("%s: %r", cause, error)
            raise ChatSDKError("bad_request:database", cause) from error

    # ---------------------------------------------------------------------
    # Users
    # ---------------------------------------------------------------------
    def get_user(self, email: str) -> List[User]:
        return self._call("Failed to get user by email", self.storage.get_user, email)

    def create_user(self, email: str, password: str) -> List[User]:
        return self._call(
            "Failed to create user",
            lambda: self.storage.create_user(email, generate_hashed_password(password)),
        )

    def create_guest_user(self) -> Optional[List[User]]:
        """Create a guest user; failures are logged and reported as None."""
        try:
            return self.storage.create_guest_user()
        except Exception:
            log.exception("Failed to create guest user")
            return None

    # ---------------------------------------------------------------------
    # Chats
    # ---------------------------------------------------------------------
    def save_chat(self, id: str, user_id: str, title: str, visibility: str) -> Chat:
        return self._call(
            "Failed to save chat",
            self.storage.save_chat,
            id=id,
            user_id=user_id,
            title=title,
            visibility=visibility,
        )

    def delete_chat_by_id(self, id: str) -> Optional[Chat]:
        return self._call("Failed to delete chat by id", self.storage.delete_chat_by_id, id)

    def get_chats_by_user_id(
        self,
        id: str,
        limit: int,
        starting_after: Optional[str] = None,
        ending_before: Optional[str] = None,
    ) -> Dict[str, Any]:
        return self._call(
            "Failed to get chats by user id",
            self.storage.get_chats_by_user_id,
            id,
            limit,
            starting_after=starting_after,
            ending_before=ending_before,
        )

    def get_chat_by_id(self, id: str) -> Optional[Chat]:
        return self._call("Failed to get chat by id", self.storage.get_chat_by_id, id)

    def update_chat_visibility_by_id(self, chat_id: str, visibility: str) -> None:
        return self._call(
            "Failed to update chat visibility by id",
            self.storage.update_chat_visibility_by_id,
            chat_id,
            visibility,
        )

    # ---------------------------------------------------------------------
    # Messages
    # ---------------------------------------------------------------------
    def save_messages(self, messages: List[DBMessage]) -> None:
        return self._call("Failed to save messages", self.storage.save_messages, messages)

    def get_messages_by_chat_id(self, id: str) -> List[DBMessage]:
        return self._call(
            "Failed to get messages by chat id", self.storage.get_messages_by_chat_id, id
        )

    def get_message_by_id(self, id: str) -> List[DBMessage]:
        return self._call("Failed to get message by id", self.storage.get_message_by_id, id)

    def delete_messages_by_chat_id_after_timestamp(self, chat_id: str, timestamp: datetime) -> None:
        return self._call(
            "Failed to delete messages by chat id after timestamp",
            self.storage.delete_messages_by_chat_id_after_timestamp,
            chat_id,
            timestamp,
        )

    def get_message_count_by_user_id(
        self, user_id: str, difference_in_hours: Optional[int] = None
    ) -> int:
        return self._call(
            "Failed to get message count by user id",
            self.storage.get_message_count_by_user_id,
            user_id,
            difference_in_hours=difference_in_hours,
        )

    # ---------------------------------------------------------------------
    # Votes
    # ---------------------------------------------------------------------
    def vote_message(self, chat_id: str, message_id: str, type: str) -> None:
        return self._call(
            "Failed to vote message", self.storage.vote_message, chat_id, message_id, type
        )

    def get_votes_by_chat_id(self, id: str) -> List[Vote]:
        return self._call("Failed to get votes by chat id", self.storage.get_votes_by_chat_id, id)

    # ---------------------------------------------------------------------
    # Documents
    # ---------------------------------------------------------------------
    def save_document(
        self, id: str, title: str, kind: str, content: Optional[str], user_id: str
    ) -> Document:
        return self._call(
            "Failed to save document",
            self.storage.save_document,
            id=id,
            title=title,
            kind=kind,
            content=content,
            user_id=user_id,
        )

    def get_documents_by_id(self, id: str) -> List[Document]:
        return self._call("Failed to get documents by id", self.storage.get_documents_by_id, id)

    def get_document_by_id(self, id: str) -> Optional[Document]:
        return self._call("Failed to get document by id", self.storage.get_document_by_id, id)

    def delete_documents_by_id_after_timestamp(self, id: str, timestamp: datetime) -> List[Document]:
        return self._call(
            "Failed to delete documents by id after timestamp",
            self.storage.delete_documents_by_id_after_timestamp,
            id,
            timestamp,
        )

    # ---------------------------------------------------------------------
    # Suggestions
    # ---------------------------------------------------------------------
    def save_suggestions(self, suggestions: List[Suggestion]) -> None:
        return self._call("Failed to save suggestions", self.storage.save_suggestions, suggestions)

    def get_suggestions_by_document_id(self, document_id: str) -> List[Suggestion]:
        return self._call(
            "Failed to get suggestions by document id",
            self.storage.get_suggestions_by_document_id,
            document_id,
        )

    def get_suggestions_by_chat_id(self, chat_id: str) -> List[Suggestion]:
        # Suggestions hang off documents, not chats.
        return []

    # ---------------------------------------------------------------------
    # Streams
    # ---------------------------------------------------------------------
    def create_stream_id(self, stream_id: str, chat_id: str) -> None:
        return self._call(
            "Failed to create stream id", self.storage.create_stream_id, stream_id, chat_id
        )

    def get_stream_ids_by_chat_id(self, chat_id: str) -> List[str]:
        return self._call(
            "Failed to get stream ids by chat id", self.storage.get_stream_ids_by_chat_id, chat_id
        )
