"""Default departments.

Seeding is an upsert keyed by department name: existing departments keep
their id, so users and conversations stay attached.
"""

from __future__ import annotations

import logging

from anythingai.store.models import Department
from anythingai.store.protocol import ChatStoreProtocol

logger = logging.getLogger(__name__)

DEFAULT_DEPARTMENTS: list[dict[str, str | None]] = [
    {
        "name": "Ask Anything",
        "icon": "💬",
        "description": (
            "Ask me anything - I respond perfectly to any query with accurate, helpful answers."
        ),
        "access_code": None,
    },
    {
        "name": "Gen. AI Team",
        "icon": "🧠",
        "description": "Expert systems for advanced logic and R&D.",
        "access_code": "0402",
    },
    {
        "name": "Create Prompts",
        "icon": "✍️",
        "description": "Specialized Prompt Engineering space.",
        "access_code": None,
    },
    {
        "name": "Creative Studio",
        "icon": "🎨",
        "description": "Visual storytelling and asset generation.",
        "access_code": None,
    },
    {
        "name": "Personal Research",
        "icon": "📚",
        "description": "Deep data synthesis and knowledge extraction.",
        "access_code": None,
    },
    {
        "name": "Contenaissance Branding",
        "icon": "✨",
        "description": "Real-time viral content strategies.",
        "access_code": None,
    },
    {
        "name": "Content Writer Team",
        "icon": "📝",
        "description": "SEO-optimized articles and copywriting.",
        "access_code": "2213",
    },
]


async def seed_departments(store: ChatStoreProtocol) -> list[Department]:
    """Create or update the default departments. Returns them in seed order."""
    seeded: list[Department] = []
    for entry in DEFAULT_DEPARTMENTS:
        name = str(entry["name"])
        existing = await store.get_department_by_name(name)
        if existing is None:
            department = Department(
                name=name,
                icon=str(entry["icon"]),
                description=str(entry["description"]),
                access_code=entry["access_code"],
            )
            logger.info("Creating department %s", name)
        else:
            department = existing
            department.icon = str(entry["icon"])
            department.description = str(entry["description"])
            department.access_code = entry["access_code"]
        await store.save_department(department)
        seeded.append(department)
    return seeded
