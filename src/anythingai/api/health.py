# Health router.
# Created: 2026-09-05

from __future__ import annotations

from fastapi import APIRouter, Depends

from anythingai.api.deps import get_generation_client, get_queue
from anythingai.llm.generation import GenerationClient
from anythingai.queue import RequestQueue

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health(
    queue: RequestQueue = Depends(get_queue),
    generation: GenerationClient = Depends(get_generation_client),
):
    return {
        "status": "ok",
        "model": generation.model,
        "queue": {
            "concurrency": queue.concurrency,
            "active": queue.active,
            "pending": queue.pending,
        },
    }
