# Chat schemas.
# Created: 2026-09-05

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class HistoryItem(BaseModel):
    role: Literal["user", "model"]
    text: str = ""


class ChatStreamRequest(BaseModel):
    """Body of ``POST /api/chat/stream`` (camelCase on the wire)."""

    model_config = ConfigDict(populate_by_name=True)

    message: str = Field("", max_length=100_000)
    system_instruction: str | None = Field(None, alias="systemInstruction")
    history: list[HistoryItem] = []
    image_base64: str | None = Field(None, alias="imageBase64")
    mime_type: str | None = Field(None, alias="mimeType")
    department_id: str | None = Field(None, alias="departmentId")
    conversation_id: str | None = Field(None, alias="conversationId")
    access_code: str | None = Field(None, alias="accessCode")
