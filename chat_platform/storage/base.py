"""
Base storage interface for Chat Platform.

Purpose:
    Define a small, stable contract that storage backends (the in-memory
    local cache today, a relational database later) implement without
    requiring changes to the query layer or the routes.

Testing & Coverage:
    These are abstract methods and are not executed directly in tests.
    We annotate them with `# pragma: no cover` so coverage tools don't
    penalize the project for un-runnable abstract declarations.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional

from ..models import Chat, DBMessage, Document, Suggestion, User, Vote


class BaseStorage(ABC):
    """Abstract base class for storage backends."""

    # ---- Users ------------------------------------------------------------

    @abstractmethod  # pragma: no cover
    def get_user(self, email: str) -> List[User]:
        """Return `[user]` for the email, or an empty list."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def create_user(self, email: str, password_hash: Optional[str]) -> List[User]:
        """Store a regular user. The password must already be hashed."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def create_guest_user(self) -> List[User]:
        """Store a guest user with a generated email."""
        raise NotImplementedError

    # ---- Chats ------------------------------------------------------------

    @abstractmethod  # pragma: no cover
    def save_chat(self, id: str, user_id: str, title: str, visibility: str) -> Chat:
        """Create (or overwrite) a chat stamped with the current time."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def get_chat_by_id(self, id: str) -> Optional[Chat]:
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def get_chats_by_user_id(
        self,
        id: str,
        limit: int,
        starting_after: Optional[str] = None,
        ending_before: Optional[str] = None,
    ) -> Dict[str, object]:
        """
        Page through a user's chats, newest first.

        Returns:
            dict: {"chats": List[Chat], "has_more": bool}
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def delete_chat_by_id(self, id: str) -> Optional[Chat]:
        """Remove a chat with its messages, votes and streams."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def update_chat_visibility_by_id(self, chat_id: str, visibility: str) -> None:
        raise NotImplementedError

    # ---- Messages ---------------------------------------------------------

    @abstractmethod  # pragma: no cover
    def save_messages(self, messages: List[DBMessage]) -> None:
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def get_messages_by_chat_id(self, id: str) -> List[DBMessage]:
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def get_message_by_id(self, id: str) -> List[DBMessage]:
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def delete_messages_by_chat_id_after_timestamp(self, chat_id: str, timestamp: datetime) -> None:
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def get_message_count_by_user_id(
        self, user_id: str, difference_in_hours: Optional[int] = None
    ) -> int:
        raise NotImplementedError

    # ---- Votes ------------------------------------------------------------

    @abstractmethod  # pragma: no cover
    def vote_message(self, chat_id: str, message_id: str, type: str) -> None:
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def get_votes_by_chat_id(self, id: str) -> List[Vote]:
        raise NotImplementedError

    # ---- Documents & suggestions -----------------------------------------

    @abstractmethod  # pragma: no cover
    def save_document(
        self, id: str, title: str, kind: str, content: Optional[str], user_id: str
    ) -> Document:
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def get_documents_by_id(self, id: str) -> List[Document]:
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def get_document_by_id(self, id: str) -> Optional[Document]:
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def delete_documents_by_id_after_timestamp(self, id: str, timestamp: datetime) -> List[Document]:
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def save_suggestions(self, suggestions: List[Suggestion]) -> None:
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def get_suggestions_by_document_id(self, document_id: str) -> List[Suggestion]:
        raise NotImplementedError

    # ---- Streams ----------------------------------------------------------

    @abstractmethod  # pragma: no cover
    def create_stream_id(self, stream_id: str, chat_id: str) -> None:
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def get_stream_ids_by_chat_id(self, chat_id: str) -> List[str]:
        raise NotImplementedError

    # ---- Maintenance ------------------------------------------------------

    @abstractmethod  # pragma: no cover
    def clear(self) -> None:
        """Drop every record (development and tests)."""
        raise NotImplementedError
