#!/usr/bin/env python3
"""Create catalog categories that do not exist yet.

Products must belong to a category, so a fresh database needs at least
one before the create endpoint is usable.

Usage:
    cd api
    python -m scripts.seed_categories Electronics Books "Home & Garden"
"""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Sequence

from core.database import (
    create_engine,
    create_session_maker,
    dispose_engine,
    session_scope,
)
from services.categories_service import ensure_categories

logger = logging.getLogger(__name__)


async def seed_categories(names: Sequence[str]) -> list[str]:
    """Get or create each category and return the stored names."""
    engine = create_engine()
    session_maker = create_session_maker(engine)
    try:
        async with session_scope(session_maker) as session:
            categories = await ensure_categories(session, names)
        return [category.name for category in categories]
    finally:
        await dispose_engine(engine)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    if len(sys.argv) < 2:
        sys.exit("usage: python -m scripts.seed_categories NAME [NAME ...]")
    seeded = asyncio.run(seed_categories(sys.argv[1:]))
    logger.info("Seeded %d categories: %s", len(seeded), ", ".join(seeded))
