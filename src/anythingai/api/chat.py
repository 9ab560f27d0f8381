# Chat router: the streaming relay.
# Created: 2026-09-05
#
# POST /api/chat/stream authenticates, authorizes the department, stores the
# user turn, then opens an SSE response straight away.  Generation runs as a
# background task admitted through the RequestQueue and feeds an SSEChannel
# that the response drains.  A client disconnect closes the channel but does
# not cancel the task, so the model turn is still persisted.

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from anythingai.api.deps import (
    authorize_department,
    get_current_user,
    get_generation_client,
    get_queue,
    get_store,
)
from anythingai.api.schemas.chat import ChatStreamRequest
from anythingai.errors import ChatError, ErrorKind
from anythingai.llm.events import (
    ConversationEvent,
    ErrorEvent,
    EventSequence,
    StreamEvent,
    TokenEvent,
    encode_sse,
)
from anythingai.llm.generation import GenerationClient
from anythingai.llm.prompt import ChatRequest, HistoryTurn, ImageData
from anythingai.queue import RequestQueue
from anythingai.store.models import Conversation, Message, MessageRole, User, title_from_message
from anythingai.store.protocol import ChatStoreProtocol

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Chat"])

NO_RESPONSE_PLACEHOLDER = "(No response generated.)"
IMAGE_ONLY_TEXT = "[Image]"

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


class SSEChannel:
    """Ordered, unbuffered hand-off from the generation task to one response.

    ``send`` enforces the per-request event ordering.  Once the consumer has
    gone away (``close``), further sends are dropped.
    """

    def __init__(self):
        self._queue: asyncio.Queue[StreamEvent | None] = asyncio.Queue()
        self._sequence = EventSequence()
        self.closed = False

    @property
    def finished(self) -> bool:
        return self._sequence.finished

    def send(self, event: StreamEvent) -> bool:
        """Queue *event* for the client. Returns False when it was dropped."""
        self._sequence.check(event)
        if self.closed:
            return False
        self._queue.put_nowait(event)
        return True

    def end(self) -> None:
        """Producer side: no more events will follow."""
        self._queue.put_nowait(None)

    def close(self) -> None:
        """Consumer side: the client is gone."""
        self.closed = True

    async def events(self):
        while True:
            event = await self._queue.get()
            if event is None:
                return
            yield event


def _to_chat_request(body: ChatStreamRequest) -> ChatRequest:
    image = None
    if body.image_base64:
        data = body.image_base64
        # Accept data URLs as well as bare base64.
        if data.startswith("data:") and "," in data:
            data = data.split(",", 1)[1]
        image = ImageData(data=data, mime_type=body.mime_type or "")
    return ChatRequest(
        message=body.message.strip(),
        system_instruction=body.system_instruction,
        history=tuple(HistoryTurn(role=h.role, text=h.text) for h in body.history),
        image=image,
    )


async def _open_conversation(
    store: ChatStoreProtocol,
    user: User,
    department_id: str,
    conversation_id: str | None,
    message: str,
) -> tuple[Conversation | None, bool]:
    """Return ``(conversation, created)``; an unknown or foreign id is a 400."""
    if conversation_id:
        conversation = await store.get_conversation(conversation_id)
        if (
            conversation is None
            or conversation.user_id != user.id
            or conversation.department_id != department_id
        ):
            raise ChatError(ErrorKind.BAD_REQUEST, "Conversation not found.")
        return conversation, False

    conversation = Conversation(
        user_id=user.id,
        department_id=department_id,
        title=title_from_message(message),
    )
    try:
        await store.save_conversation(conversation)
    except Exception:
        logger.warning("Could not create conversation for user %s", user.id, exc_info=True)
        return None, False
    return conversation, True


async def _persist(store: ChatStoreProtocol, conversation_id: str, role: MessageRole, text: str):
    try:
        await store.add_message(Message(conversation_id=conversation_id, role=role, text=text))
    except Exception:
        logger.warning(
            "Could not persist %s turn for conversation %s",
            role.value,
            conversation_id,
            exc_info=True,
        )


async def _generate(
    channel: SSEChannel,
    generation: GenerationClient,
    store: ChatStoreProtocol,
    chat_request: ChatRequest,
    conversation: Conversation | None,
) -> None:
    parts: list[str] = []
    try:
        async for event in generation.stream(chat_request):
            if isinstance(event, TokenEvent):
                parts.append(event.text)
            channel.send(event)
    except Exception as exc:
        err = generation.describe_error(exc)
        logger.error("Chat stream failed: %s", err.message, exc_info=exc)
        if not channel.finished:
            channel.send(ErrorEvent.from_error(err))
    finally:
        if conversation is not None:
            text = "".join(parts).strip() or NO_RESPONSE_PLACEHOLDER
            await _persist(store, conversation.id, MessageRole.MODEL, text)


async def _run_relay(
    channel: SSEChannel,
    queue: RequestQueue,
    generation: GenerationClient,
    store: ChatStoreProtocol,
    chat_request: ChatRequest,
    conversation: Conversation | None,
) -> None:
    try:
        await queue.submit(
            lambda: _generate(channel, generation, store, chat_request, conversation)
        )
    finally:
        channel.end()


@router.post("/chat/stream")
async def chat_stream(
    body: ChatStreamRequest,
    request: Request,
    user: User = Depends(get_current_user),
    store: ChatStoreProtocol = Depends(get_store),
    queue: RequestQueue = Depends(get_queue),
    generation: GenerationClient = Depends(get_generation_client),
):
    """Stream a model reply as Server-Sent Events."""
    department = await authorize_department(store, user, body.department_id, body.access_code)

    chat_request = _to_chat_request(body)
    if not chat_request.message and chat_request.image is None:
        raise ChatError(ErrorKind.BAD_REQUEST, "Missing message or image.")
    if chat_request.image is not None and not chat_request.image.mime_type:
        raise ChatError(ErrorKind.BAD_REQUEST, "mimeType is required with imageBase64.")

    conversation, created = await _open_conversation(
        store, user, department.id, body.conversation_id, chat_request.message
    )
    if conversation is not None:
        await _persist(
            store,
            conversation.id,
            MessageRole.USER,
            chat_request.message or IMAGE_ONLY_TEXT,
        )

    channel = SSEChannel()
    if created:
        channel.send(ConversationEvent(conversation_id=conversation.id, title=conversation.title))

    task = asyncio.create_task(
        _run_relay(channel, queue, generation, store, chat_request, conversation)
    )
    tasks: set[asyncio.Task] = request.app.state.relay_tasks
    tasks.add(task)
    task.add_done_callback(tasks.discard)

    async def _event_stream():
        try:
            async for event in channel.events():
                yield encode_sse(event)
        finally:
            channel.close()

    return StreamingResponse(
        _event_stream(),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
