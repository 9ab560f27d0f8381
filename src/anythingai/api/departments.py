# Departments router.
# Created: 2026-09-05
#
# Public: the registration form needs the list before anyone is signed in.
# Access codes are never returned, only whether one is required.

from __future__ import annotations

from fastapi import APIRouter, Depends

from anythingai.api.deps import get_store
from anythingai.store.protocol import ChatStoreProtocol

router = APIRouter(tags=["Departments"])


@router.get("/departments")
async def list_departments(store: ChatStoreProtocol = Depends(get_store)):
    departments = await store.list_departments()
    return {"departments": [d.to_public_dict() for d in departments]}
