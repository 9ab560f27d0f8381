"""Persistence data models.

Created: 2026-09-04

Design notes:
- Dataclasses with to_dict/from_dict for JSON serialization
- All IDs are UUIDs
- Timestamps are ISO 8601 strings
- Field names on the wire are camelCase to match the HTTP API
"""

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

DEFAULT_CONVERSATION_TITLE = "New Conversation"


class MessageRole(str, Enum):
    USER = "user"
    MODEL = "model"


def generate_id() -> str:
    """Generate a unique ID."""
    return str(uuid.uuid4())


def now_iso() -> str:
    """Get current UTC time as ISO 8601 string."""
    return datetime.now(UTC).isoformat()


@dataclass
class Department:
    """A workspace users chat in; may be locked behind a 4-digit access code."""

    name: str
    icon: str = ""
    description: str = ""
    access_code: str | None = None
    id: str = field(default_factory=generate_id)
    created_at: str = field(default_factory=now_iso)

    @property
    def requires_access_code(self) -> bool:
        return bool(self.access_code)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "icon": self.icon,
            "description": self.description,
            "accessCode": self.access_code,
            "createdAt": self.created_at,
        }

    def to_public_dict(self) -> dict[str, Any]:
        """Client view: the access code itself is never exposed."""
        return {
            "id": self.id,
            "name": self.name,
            "icon": self.icon,
            "description": self.description,
            "requiresAccessCode": self.requires_access_code,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Department":
        return cls(
            id=data.get("id", generate_id()),
            name=data.get("name", ""),
            icon=data.get("icon", ""),
            description=data.get("description", ""),
            access_code=data.get("accessCode"),
            created_at=data.get("createdAt", now_iso()),
        )


@dataclass
class User:
    email: str
    password_hash: str
    department_id: str
    id: str = field(default_factory=generate_id)
    created_at: str = field(default_factory=now_iso)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "passwordHash": self.password_hash,
            "departmentId": self.department_id,
            "createdAt": self.created_at,
        }

    def to_public_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "departmentId": self.department_id,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "User":
        return cls(
            id=data.get("id", generate_id()),
            email=data.get("email", ""),
            password_hash=data.get("passwordHash", ""),
            department_id=data.get("departmentId", ""),
            created_at=data.get("createdAt", now_iso()),
        )


@dataclass
class Conversation:
    user_id: str
    department_id: str
    title: str = DEFAULT_CONVERSATION_TITLE
    pinned: bool = False
    id: str = field(default_factory=generate_id)
    created_at: str = field(default_factory=now_iso)
    updated_at: str = field(default_factory=now_iso)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "userId": self.user_id,
            "departmentId": self.department_id,
            "pinned": self.pinned,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Conversation":
        return cls(
            id=data.get("id", generate_id()),
            title=data.get("title", DEFAULT_CONVERSATION_TITLE),
            user_id=data.get("userId", ""),
            department_id=data.get("departmentId", ""),
            pinned=bool(data.get("pinned", False)),
            created_at=data.get("createdAt", now_iso()),
            updated_at=data.get("updatedAt", now_iso()),
        )


@dataclass
class Message:
    """One turn of a conversation."""

    conversation_id: str
    role: MessageRole
    text: str
    id: str = field(default_factory=generate_id)
    created_at: str = field(default_factory=now_iso)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "conversationId": self.conversation_id,
            "role": self.role.value,
            "text": self.text,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Message":
        return cls(
            id=data.get("id", generate_id()),
            conversation_id=data.get("conversationId", ""),
            role=MessageRole(data.get("role", "user")),
            text=data.get("text", ""),
            created_at=data.get("createdAt", now_iso()),
        )


def title_from_message(message: str, limit: int = 35) -> str:
    """Conversation title from the first user message."""
    text = message.strip()
    if not text:
        return DEFAULT_CONVERSATION_TITLE
    if len(text) <= limit:
        return text
    return text[:limit] + "..."
