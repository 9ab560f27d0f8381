"""Chat storage protocol.

Created: 2026-09-04
Interface for persistence backends. ``FileChatStore`` is the default.
"""

from typing import Protocol, runtime_checkable

from anythingai.store.models import Conversation, Department, Message, User


@runtime_checkable
class ChatStoreProtocol(Protocol):
    """Storage for users, departments, conversations and messages."""

    # =========================================================================
    # Departments
    # =========================================================================

    async def save_department(self, department: Department) -> str: ...

    async def get_department(self, department_id: str) -> Department | None: ...

    async def get_department_by_name(self, name: str) -> Department | None:
        """Case-insensitive lookup."""
        ...

    async def list_departments(self) -> list[Department]: ...

    # =========================================================================
    # Users
    # =========================================================================

    async def save_user(self, user: User) -> str: ...

    async def get_user(self, user_id: str) -> User | None: ...

    async def get_user_by_email(self, email: str) -> User | None:
        """Case-insensitive lookup."""
        ...

    # =========================================================================
    # Conversations
    # =========================================================================

    async def save_conversation(self, conversation: Conversation) -> str:
        """Insert or update; bumps ``updated_at``."""
        ...

    async def get_conversation(self, conversation_id: str) -> Conversation | None: ...

    async def list_conversations(
        self, user_id: str, department_id: str | None = None
    ) -> list[Conversation]:
        """Pinned first, then most recently updated."""
        ...

    async def delete_conversation(self, conversation_id: str) -> bool:
        """Delete a conversation and all of its messages."""
        ...

    # =========================================================================
    # Messages
    # =========================================================================

    async def add_message(self, message: Message) -> str:
        """Append a message and touch its conversation."""
        ...

    async def get_messages(self, conversation_id: str) -> list[Message]:
        """Messages in creation order."""
        ...
