# Lookup router: weather, time and web-search lookups.
# Created: 2026-09-05
#
# Each endpoint runs one context provider on its own, which is how the UI
# shows live cards and how operators smoke-test provider keys.

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query

from anythingai.api.deps import get_app_settings
from anythingai.config import Settings
from anythingai.context.clock import get_time_data
from anythingai.context.search import search_web
from anythingai.context.weather import get_weather_data
from anythingai.errors import ChatError, ErrorKind

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Lookups"])


def _require_query(query: str) -> str:
    query = query.strip()
    if not query:
        raise ChatError(ErrorKind.BAD_REQUEST, "Missing query.")
    return query


@router.get("/weather")
async def weather(query: str = Query("")):
    data = await get_weather_data(_require_query(query))
    if data is None:
        return {"available": False}
    return {"available": True, "data": data.to_dict()}


@router.get("/time")
async def current_time(query: str = Query("")):
    data = get_time_data(_require_query(query))
    if data is None:
        return {"available": False}
    return {"available": True, "data": data.to_dict()}


@router.get("/search")
async def search(query: str = Query(""), settings: Settings = Depends(get_app_settings)):
    query = _require_query(query)
    try:
        results = await search_web(query, settings)
    except Exception as e:
        logger.error("Search lookup failed: %s", e)
        raise ChatError(ErrorKind.SERVER_ERROR, "Search lookup failed.") from e
    return {"results": [r.to_dict() for r in results]}
