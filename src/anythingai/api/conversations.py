# Conversations router: list, messages, rename/pin, delete.
# Created: 2026-09-05

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from anythingai.api.deps import authorize_department, get_current_user, get_store
from anythingai.api.schemas.conversations import ConversationUpdate
from anythingai.errors import ChatError, ErrorKind
from anythingai.store.models import Conversation, User
from anythingai.store.protocol import ChatStoreProtocol

router = APIRouter(prefix="/conversations", tags=["Conversations"])


async def _owned_conversation(
    store: ChatStoreProtocol, user: User, conversation_id: str, access_code: str | None
) -> Conversation:
    conversation = await store.get_conversation(conversation_id)
    if conversation is None or conversation.user_id != user.id:
        raise ChatError(ErrorKind.BAD_REQUEST, "Conversation not found.")
    # Coded departments gate their history the same way they gate new chats.
    await authorize_department(store, user, conversation.department_id, access_code)
    return conversation


@router.get("")
async def list_conversations(
    department_id: str | None = Query(None, alias="departmentId"),
    access_code: str | None = Query(None, alias="accessCode"),
    user: User = Depends(get_current_user),
    store: ChatStoreProtocol = Depends(get_store),
):
    """The user's conversations in one department, pinned first."""
    department = await authorize_department(store, user, department_id, access_code)
    conversations = await store.list_conversations(user.id, department.id)
    return {"conversations": [c.to_dict() for c in conversations]}


@router.get("/{conversation_id}/messages")
async def get_messages(
    conversation_id: str,
    access_code: str | None = Query(None, alias="accessCode"),
    user: User = Depends(get_current_user),
    store: ChatStoreProtocol = Depends(get_store),
):
    conversation = await _owned_conversation(store, user, conversation_id, access_code)
    messages = await store.get_messages(conversation.id)
    return {"messages": [m.to_dict() for m in messages]}


@router.patch("/{conversation_id}")
async def update_conversation(
    conversation_id: str,
    body: ConversationUpdate,
    access_code: str | None = Query(None, alias="accessCode"),
    user: User = Depends(get_current_user),
    store: ChatStoreProtocol = Depends(get_store),
):
    conversation = await _owned_conversation(store, user, conversation_id, access_code)
    if body.title is not None:
        conversation.title = body.title.strip() or conversation.title
    if body.pinned is not None:
        conversation.pinned = body.pinned
    await store.save_conversation(conversation)
    return {"conversation": conversation.to_dict()}


@router.delete("/{conversation_id}")
async def delete_conversation(
    conversation_id: str,
    access_code: str | None = Query(None, alias="accessCode"),
    user: User = Depends(get_current_user),
    store: ChatStoreProtocol = Depends(get_store),
):
    conversation = await _owned_conversation(store, user, conversation_id, access_code)
    await store.delete_conversation(conversation.id)
    return {"deleted": True}
