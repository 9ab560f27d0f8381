# Conversation schemas.
# Created: 2026-09-05

from __future__ import annotations

from pydantic import BaseModel, Field


class ConversationUpdate(BaseModel):
    """PATCH body; omitted fields are left unchanged."""

    title: str | None = Field(None, min_length=1, max_length=200)
    pinned: bool | None = None
