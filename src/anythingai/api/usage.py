# Usage router: recent token usage records.
# Created: 2026-09-05

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, Query

from anythingai.api.deps import get_current_user, get_usage_logger
from anythingai.llm.usage import UsageLogger
from anythingai.store.models import User

router = APIRouter(tags=["Usage"])


@router.get("/usage")
async def recent_usage(
    limit: int = Query(50, ge=1, le=1000),
    user: User = Depends(get_current_user),
    usage_logger: UsageLogger = Depends(get_usage_logger),
):
    """Most recent usage records, newest first."""
    records = usage_logger.read_recent(limit)
    return {"records": [asdict(r) for r in records]}
