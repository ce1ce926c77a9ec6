"""
Unit tests for the ChatQueries facade.

Covers:
    - delegation to the storage backend
    - storage failures rethrown as "bad_request:database" ChatSDKErrors
    - create_guest_user swallowing failures into None
    - password hashing on create_user
"""

import pytest

from chat_platform.errors import ChatSDKError
from chat_platform.queries import ChatQueries
from chat_platform.storage.local_cache import LocalCache


class BrokenCache(LocalCache):
    """Local cache whose reads and writes blow up."""

    def get_chat_by_id(self, id):
        raise RuntimeError("connection lost")

    def save_messages(self, messages):
        raise KeyError("chat_id")

    def create_guest_user(self):
        raise RuntimeError("users table unavailable")


def test_queries_delegate_to_storage(queries, storage):
    chat = queries.save_chat(id="c1", user_id="u1", title="t", visibility="private")
    assert storage.get_chat_by_id("c1") is chat
    assert queries.get_chat_by_id("c1") is chat
    assert queries.get_chats_by_user_id("u1", 10)["chats"] == [chat]


def test_storage_error_becomes_database_error():
    queries = ChatQueries(BrokenCache())
    with pytest.raises(ChatSDKError) as excinfo:
        queries.get_chat_by_id("c1")

    err = excinfo.value
    assert err.code == "bad_request:database"
    assert err.cause == "Failed to get chat by id"
    assert err.status_code == 400
    assert isinstance(err.__cause__, RuntimeError)


def test_save_messages_error_is_wrapped():
    queries = ChatQueries(BrokenCache())
    with pytest.raises(ChatSDKError, match="database query"):
        queries.save_messages([])


def test_invalid_visibility_is_reported_as_database_error(queries):
    with pytest.raises(ChatSDKError) as excinfo:
        queries.save_chat(id="c1", user_id="u1", title="t", visibility="secret")
    assert excinfo.value.cause == "Failed to save chat"


def test_create_guest_user_failure_returns_none():
    queries = ChatQueries(BrokenCache())
    assert queries.create_guest_user() is None


def test_create_guest_user(queries):
    [guest] = queries.create_guest_user()
    assert guest.email.startswith("guest-")


def test_create_user_hashes_password(queries):
    [user] = queries.create_user("a@example.com", "plain-password")
    assert user.password != "plain-password"
    assert user.password.startswith("$2")
    assert queries.get_user("a@example.com") == [user]


def test_suggestions_by_chat_id_is_empty(queries):
    assert queries.get_suggestions_by_chat_id("c1") == []
