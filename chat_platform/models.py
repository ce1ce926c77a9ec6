"""
Domain records stored by the local cache.

These mirror the rows a relational schema would hold (Chat, Message, Vote,
Document, Suggestion, User) so the cache can be replaced by a real database
without changing the query layer or the routes.
"""

from datetime import datetime, timezone
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field

VisibilityType = Literal["public", "private"]
ArtifactKind = Literal["text", "code", "image", "sheet"]
VoteType = Literal["up", "down"]
MessageRole = Literal["user", "assistant", "system"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(BaseModel):
    id: str
    email: str
    # bcrypt hash; None for guest users
    password: Optional[str] = None


class Chat(BaseModel):
    id: str
    created_at: datetime
    user_id: str
    title: str
    visibility: VisibilityType = "private"


class DBMessage(BaseModel):
    id: str
    chat_id: str
    role: MessageRole
    parts: List[Any] = Field(default_factory=list)
    attachments: List[Any] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)


class Vote(BaseModel):
    chat_id: str
    message_id: str
    is_upvoted: bool


class Document(BaseModel):
    id: str
    created_at: datetime
    title: str
    content: Optional[str] = None
    kind: ArtifactKind = "text"
    user_id: str


class Suggestion(BaseModel):
    id: str
    document_id: str
    document_created_at: datetime
    original_text: str
    suggested_text: str
    description: Optional[str] = None
    is_resolved: bool = False
    user_id: str
    created_at: datetime = Field(default_factory=utcnow)
