"""
Local in-memory cache standing in for the chat database.

Responsibilities:
    - Store chats, messages, votes, document versions, suggestions and
      resumable stream ids
    - Store regular and guest users
    - Provide the lookup, pagination and cleanup queries the routes need

Design:
    - Plain dictionaries keyed by id; list values are scanned linearly.
    - No locking, eviction or persistence: state lives as long as the process.
    - Timestamps come from an injectable clock so tests can control ordering.
"""

import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from ..models import Chat, DBMessage, Document, Suggestion, User, Vote, utcnow
from .base import BaseStorage


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class LocalCache(BaseStorage):
    def __init__(self, clock: Callable[[], datetime] = utcnow):
        """
        Initialize empty maps.

        Internal schema:
            chats:       {chat_id: Chat}
            messages:    {chat_id: [DBMessage, ...]}    sorted by created_at
            votes:       {chat_id: [Vote, ...]}         one per message_id
            documents:   {document_id: [Document, ...]} versions, oldest first
            suggestions: {document_id: [Suggestion, ...]}
            streams:     {chat_id: [stream_id, ...]}    unique per chat
            users:       {email: User}
        """
        self.clock = clock
        self.chats: Dict[str, Chat] = {}
        self.messages: Dict[str, List[DBMessage]] = {}
        self.votes: Dict[str, List[Vote]] = {}
        self.documents: Dict[str, List[Document]] = {}
        self.suggestions: Dict[str, List[Suggestion]] = {}
        self.streams: Dict[str, List[str]] = {}
        self.users: Dict[str, User] = {}

    # ---------------------------------------------------------------------
    # Users
    # ---------------------------------------------------------------------
    def get_user(self, email: str) -> List[User]:
        user = self.users.get(email)
        return [user] if user else []

    def create_user(self, email: str, password_hash: Optional[str]) -> List[User]:
        user = User(id=str(uuid.uuid4()), email=email, password=password_hash)
        self.users[email] = user
        return [user]

    def create_guest_user(self) -> List[User]:
        email = f"guest-{int(time.time() * 1000)}"
        # Two guests in the same millisecond would share an email.
        while email in self.users:
            email = f"{email}-{uuid.uuid4().hex[:4]}"
        return self.create_user(email, None)

    # ---------------------------------------------------------------------
    # Chats
    # ---------------------------------------------------------------------
    def save_chat(self, id: str, user_id: str, title: str, visibility: str) -> Chat:
        chat = Chat(
            id=id,
            created_at=self.clock(),
            user_id=user_id,
            title=title,
            visibility=visibility,
        )
        self.chats[id] = chat
        return chat

    def get_chat_by_id(self, id: str) -> Optional[Chat]:
        return self.chats.get(id)

    def get_chats_by_user_id(
        self,
        id: str,
        limit: int,
        starting_after: Optional[str] = None,
        ending_before: Optional[str] = None,
    ) -> Dict[str, object]:
        """
        Page through a user's chats, newest first.

        Rules:
            - `starting_after`: only chats strictly older than the cursor chat.
            - `ending_before`: only chats strictly newer than the cursor chat.
            - `starting_after` wins when both are given.
            - A cursor id that is not stored leaves the list unfiltered.

        Returns:
            dict: {"chats": at most `limit` chats, "has_more": bool}
        """
        all_chats = sorted(
            (chat for chat in self.chats.values() if chat.user_id == id),
            key=lambda chat: chat.created_at,
            reverse=True,
        )

        filtered = all_chats
        if starting_after:
            start = self.chats.get(starting_after)
            if start:
                filtered = [c for c in all_chats if c.created_at < start.created_at]
        elif ending_before:
            end = self.chats.get(ending_before)
            if end:
                filtered = [c for c in all_chats if c.created_at > end.created_at]

        has_more = len(filtered) > limit
        return {"chats": filtered[:limit], "has_more": has_more}

    def delete_chat_by_id(self, id: str) -> Optional[Chat]:
        chat = self.chats.pop(id, None)
        if chat is None:
            return None

        self.messages.pop(id, None)
        self.votes.pop(id, None)
        for key in [k for k in self.streams if k.startswith(id)]:
            del self.streams[key]
        return chat

    def update_chat_visibility_by_id(self, chat_id: str, visibility: str) -> None:
        chat = self.chats.get(chat_id)
        if chat:
            chat.visibility = visibility

    # ---------------------------------------------------------------------
    # Messages
    # ---------------------------------------------------------------------
    def save_messages(self, messages: List[DBMessage]) -> None:
        """
        Upsert messages by id into their chat's list.

        The list is re-sorted by creation time after every write so readers
        always see conversation order.
        """
        for message in messages:
            message.created_at = _as_utc(message.created_at)
            chat_messages = self.messages.setdefault(message.chat_id, [])
            for index, existing in enumerate(chat_messages):
                if existing.id == message.id:
                    chat_messages[index] = message
                    break
            else:
                chat_messages.append(message)
            chat_messages.sort(key=lambda m: m.created_at)

    def get_messages_by_chat_id(self, id: str) -> List[DBMessage]:
        return list(self.messages.get(id, []))

    def get_message_by_id(self, id: str) -> List[DBMessage]:
        for chat_messages in self.messages.values():
            for message in chat_messages:
                if message.id == id:
                    return [message]
        return []

    def delete_messages_by_chat_id_after_timestamp(self, chat_id: str, timestamp: datetime) -> None:
        if chat_id not in self.messages:
            return
        timestamp = _as_utc(timestamp)
        chat_messages = self.messages[chat_id]
        kept = [m for m in chat_messages if m.created_at <= timestamp]
        removed_ids = {m.id for m in chat_messages} - {m.id for m in kept}
        self.messages[chat_id] = kept

        if removed_ids and chat_id in self.votes:
            self.votes[chat_id] = [v for v in self.votes[chat_id] if v.message_id not in removed_ids]

    def get_message_count_by_user_id(
        self, user_id: str, difference_in_hours: Optional[int] = None
    ) -> int:
        """
        Count messages in chats owned by `user_id`.

        With `difference_in_hours`, only messages sent by the user (role "user")
        inside the trailing window are counted; this backs the daily
        entitlement check.
        """
        cutoff = None
        if difference_in_hours is not None:
            cutoff = self.clock() - timedelta(hours=difference_in_hours)

        count = 0
        for chat_id, chat_messages in self.messages.items():
            chat = self.chats.get(chat_id)
            if not chat or chat.user_id != user_id:
                continue
            if cutoff is None:
                count += len(chat_messages)
            else:
                count += sum(1 for m in chat_messages if m.role == "user" and m.created_at >= cutoff)
        return count

    # ---------------------------------------------------------------------
    # Votes
    # ---------------------------------------------------------------------
    def vote_message(self, chat_id: str, message_id: str, type: str) -> None:
        votes = self.votes.setdefault(chat_id, [])
        new_vote = Vote(chat_id=chat_id, message_id=message_id, is_upvoted=type == "up")
        for index, vote in enumerate(votes):
            if vote.message_id == message_id:
                votes[index] = new_vote
                return
        votes.append(new_vote)

    def get_votes_by_chat_id(self, id: str) -> List[Vote]:
        return list(self.votes.get(id, []))

    # ---------------------------------------------------------------------
    # Documents & suggestions
    # ---------------------------------------------------------------------
    def save_document(
        self, id: str, title: str, kind: str, content: Optional[str], user_id: str
    ) -> Document:
        document = Document(
            id=id,
            created_at=self.clock(),
            title=title,
            content=content,
            kind=kind,
            user_id=user_id,
        )
        self.documents.setdefault(id, []).append(document)
        return document

    def get_documents_by_id(self, id: str) -> List[Document]:
        return list(self.documents.get(id, []))

    def get_document_by_id(self, id: str) -> Optional[Document]:
        versions = self.documents.get(id)
        return versions[-1] if versions else None

    def delete_documents_by_id_after_timestamp(self, id: str, timestamp: datetime) -> List[Document]:
        timestamp = _as_utc(timestamp)
        versions = self.documents.get(id, [])
        removed = [d for d in versions if d.created_at > timestamp]
        if not removed:
            return []

        kept = [d for d in versions if d.created_at <= timestamp]
        if kept:
            self.documents[id] = kept
        else:
            del self.documents[id]

        if id in self.suggestions:
            self.suggestions[id] = [
                s for s in self.suggestions[id] if _as_utc(s.document_created_at) <= timestamp
            ]
        return removed

    def save_suggestions(self, suggestions: List[Suggestion]) -> None:
        for suggestion in suggestions:
            self.suggestions.setdefault(suggestion.document_id, []).append(suggestion)

    def get_suggestions_by_document_id(self, document_id: str) -> List[Suggestion]:
        return list(self.suggestions.get(document_id, []))

    # ---------------------------------------------------------------------
    # Streams
    # ---------------------------------------------------------------------
    def create_stream_id(self, stream_id: str, chat_id: str) -> None:
        streams = self.streams.setdefault(chat_id, [])
        if stream_id not in streams:
            streams.append(stream_id)

    def get_stream_ids_by_chat_id(self, chat_id: str) -> List[str]:
        return list(self.streams.get(chat_id, []))

    # ---------------------------------------------------------------------
    # Maintenance
    # ---------------------------------------------------------------------
    def clear(self) -> None:
        self.chats.clear()
        self.messages.clear()
        self.votes.clear()
        self.documents.clear()
        self.suggestions.clear()
        self.streams.clear()
        self.users.clear()
