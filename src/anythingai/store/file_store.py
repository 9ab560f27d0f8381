"""File-based chat store.

Created: 2026-09-04
Implements ChatStoreProtocol using JSON files.

Storage layout:
<data_dir>/store/
    departments.json
    users.json
    conversations.json
    messages.json

Design notes:
- Single JSON file per entity type
- In-memory index for lookups
- Atomic writes using temp file + rename, run in a worker thread
- Writes are serialized per store so two saves never share a temp file
- Write failures raise OSError; callers decide whether they are fatal
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

from anythingai.store.models import Conversation, Department, Message, User, now_iso

logger = logging.getLogger(__name__)


class FileChatStore:
    """JSON-file implementation of ChatStoreProtocol."""

    def __init__(self, base_path: Path):
        self.base_path = base_path
        self.base_path.mkdir(parents=True, exist_ok=True)

        self._departments_file = self.base_path / "departments.json"
        self._users_file = self.base_path / "users.json"
        self._conversations_file = self.base_path / "conversations.json"
        self._messages_file = self.base_path / "messages.json"

        self._departments: dict[str, Department] = {}
        self._users: dict[str, User] = {}
        self._conversations: dict[str, Conversation] = {}
        self._messages: dict[str, Message] = {}
        self._write_lock = asyncio.Lock()

        self._load_all()

    # =========================================================================
    # File I/O Helpers
    # =========================================================================

    def _load_json(self, path: Path) -> list[dict[str, Any]]:
        """Load a JSON file, returning empty list if not found."""
        if not path.exists():
            return []
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.error("Error loading %s: %s", path, e)
            return []

    def _save_json(self, path: Path, data: list[dict[str, Any]]) -> None:
        """Save data to JSON file atomically."""
        temp_path = path.with_suffix(".tmp")
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            temp_path.replace(path)
        except OSError:
            if temp_path.exists():
                temp_path.unlink()
            raise

    def _load_all(self) -> None:
        for data in self._load_json(self._departments_file):
            department = Department.from_dict(data)
            self._departments[department.id] = department

        for data in self._load_json(self._users_file):
            user = User.from_dict(data)
            self._users[user.id] = user

        for data in self._load_json(self._conversations_file):
            conversation = Conversation.from_dict(data)
            self._conversations[conversation.id] = conversation

        for data in self._load_json(self._messages_file):
            message = Message.from_dict(data)
            self._messages[message.id] = message

        logger.info(
            "Store loaded: %d departments, %d users, %d conversations, %d messages",
            len(self._departments),
            len(self._users),
            len(self._conversations),
            len(self._messages),
        )

    async def _write(self, path: Path, data: list[dict[str, Any]]) -> None:
        # Snapshot is taken on the loop; only the file write leaves it.
        async with self._write_lock:
            await asyncio.to_thread(self._save_json, path, data)

    async def _persist_departments(self) -> None:
        await self._write(
            self._departments_file, [d.to_dict() for d in self._departments.values()]
        )

    async def _persist_users(self) -> None:
        await self._write(self._users_file, [u.to_dict() for u in self._users.values()])

    async def _persist_conversations(self) -> None:
        await self._write(
            self._conversations_file, [c.to_dict() for c in self._conversations.values()]
        )

    async def _persist_messages(self) -> None:
        await self._write(self._messages_file, [m.to_dict() for m in self._messages.values()])

    # =========================================================================
    # Departments
    # =========================================================================

    async def save_department(self, department: Department) -> str:
        self._departments[department.id] = department
        await self._persist_departments()
        return department.id

    async def get_department(self, department_id: str) -> Department | None:
        return self._departments.get(department_id)

    async def get_department_by_name(self, name: str) -> Department | None:
        name_lower = name.strip().lower()
        for department in self._departments.values():
            if department.name.lower() == name_lower:
                return department
        return None

    async def list_departments(self) -> list[Department]:
        return sorted(self._departments.values(), key=lambda d: d.created_at)

    # =========================================================================
    # Users
    # =========================================================================

    async def save_user(self, user: User) -> str:
        self._users[user.id] = user
        await self._persist_users()
        return user.id

    async def get_user(self, user_id: str) -> User | None:
        return self._users.get(user_id)

    async def get_user_by_email(self, email: str) -> User | None:
        email_lower = email.strip().lower()
        for user in self._users.values():
            if user.email.lower() == email_lower:
                return user
        return None

    # =========================================================================
    # Conversations
    # =========================================================================

    async def save_conversation(self, conversation: Conversation) -> str:
        conversation.updated_at = now_iso()
        self._conversations[conversation.id] = conversation
        await self._persist_conversations()
        return conversation.id

    async def get_conversation(self, conversation_id: str) -> Conversation | None:
        return self._conversations.get(conversation_id)

    async def list_conversations(
        self, user_id: str, department_id: str | None = None
    ) -> list[Conversation]:
        conversations = [
            c
            for c in self._conversations.values()
            if c.user_id == user_id and (department_id is None or c.department_id == department_id)
        ]
        # Most recent first, then a stable sort puts pinned on top.
        conversations.sort(key=lambda c: c.updated_at, reverse=True)
        conversations.sort(key=lambda c: not c.pinned)
        return conversations

    async def delete_conversation(self, conversation_id: str) -> bool:
        if conversation_id not in self._conversations:
            return False
        del self._conversations[conversation_id]
        self._messages = {
            mid: m for mid, m in self._messages.items() if m.conversation_id != conversation_id
        }
        await self._persist_conversations()
        await self._persist_messages()
        return True

    # =========================================================================
    # Messages
    # =========================================================================

    async def add_message(self, message: Message) -> str:
        self._messages[message.id] = message
        await self._persist_messages()

        conversation = self._conversations.get(message.conversation_id)
        if conversation is not None:
            conversation.updated_at = now_iso()
            await self._persist_conversations()
        return message.id

    async def get_messages(self, conversation_id: str) -> list[Message]:
        # Insertion order is creation order.
        return [m for m in self._messages.values() if m.conversation_id == conversation_id]
