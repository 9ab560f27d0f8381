"""Persistence for users, departments, conversations and messages."""

from anythingai.store.file_store import FileChatStore
from anythingai.store.models import (
    DEFAULT_CONVERSATION_TITLE,
    Conversation,
    Department,
    Message,
    MessageRole,
    User,
    title_from_message,
)
from anythingai.store.protocol import ChatStoreProtocol
from anythingai.store.seed import DEFAULT_DEPARTMENTS, seed_departments

__all__ = [
    "ChatStoreProtocol",
    "Conversation",
    "DEFAULT_CONVERSATION_TITLE",
    "DEFAULT_DEPARTMENTS",
    "Department",
    "FileChatStore",
    "Message",
    "MessageRole",
    "User",
    "seed_departments",
    "title_from_message",
]
