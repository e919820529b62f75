"""
IdeaVerse — Sample Data Loader
================================

Replaces the contents of the ideas table with six sample ideas, one per
category, so a fresh install has something to browse.

Usage:
    ideaverse-seed                  # wipe the table, insert the samples
    ideaverse-seed --keep-existing  # insert the samples next to existing ideas

DATABASE_URL is read the same way the server reads it.
"""

import argparse
import asyncio
import logging
import sys
import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy import delete

from ideaverse.database import dispose_engine, session_scope
from ideaverse.models.idea import Idea

logger = logging.getLogger("ideaverse.seed")

_UNSPLASH = "https://images.unsplash.com/photo-{}?auto=format&fit=crop&w=1170&q=80"

SAMPLE_IDEAS = [
    {
        "title": "AI-Powered Smart Home Assistant",
        "description": (
            "A next-generation smart home assistant that uses artificial intelligence to learn "
            "your habits and preferences. It controls your smart devices, anticipates your needs "
            "and adapts to your lifestyle over time, making your home more efficient and comfortable."
        ),
        "category": "Technology",
        "image_url": _UNSPLASH.format("1550009158-9ebf69173e03"),
        "owner_id": "user123",
        "owner_name": "Tech Innovator",
    },
    {
        "title": "Sustainable Urban Farming Initiative",
        "description": (
            "A community-based urban farming project that turns unused urban spaces into productive "
            "gardens. It increases local food production, cuts transport emissions and creates green "
            "space, using vertical farming, hydroponics and community education programs."
        ),
        "category": "Business",
        "image_url": _UNSPLASH.format("1530836369250-ef72a3f5cda8"),
        "owner_id": "user456",
        "owner_name": "Green Entrepreneur",
    },
    {
        "title": "Virtual Reality Educational Platform",
        "description": (
            "An immersive platform that uses virtual reality to make learning more engaging. "
            "Students explore historical sites, run virtual science experiments or practice "
            "languages in simulated environments, with learning paths personalized per student."
        ),
        "category": "Education",
        "image_url": _UNSPLASH.format("1617802690992-15d93263d3a9"),
        "owner_id": "user789",
        "owner_name": "Education Innovator",
    },
    {
        "title": "Mental Health Tracking App",
        "description": (
            "A mental health app that helps users track mood, sleep and stress levels and gives "
            "personalized recommendations grounded in research. It includes guided meditation, "
            "cognitive behavioral therapy exercises and a path to professional help when needed."
        ),
        "category": "Health",
        "image_url": _UNSPLASH.format("1546069901-ba9599a7e63c"),
        "owner_id": "user101",
        "owner_name": "Health Advocate",
    },
    {
        "title": "Interactive Storytelling Platform",
        "description": (
            "A digital platform for creating and experiencing interactive stories across media. "
            "It blends gaming, literature and film into narratives the audience can steer, supports "
            "collaborative storytelling and gives creators tools to monetize their work."
        ),
        "category": "Entertainment",
        "image_url": _UNSPLASH.format("1485846234645-a62644f84728"),
        "owner_id": "user202",
        "owner_name": "Creative Director",
    },
    {
        "title": "Ocean Plastic Cleanup Drone",
        "description": (
            "An autonomous, solar-powered drone system that identifies, collects and sorts plastic "
            "waste in oceans and waterways. The collected plastic is recycled into useful products, "
            "closing the loop on ocean pollution."
        ),
        "category": "Other",
        "image_url": _UNSPLASH.format("1621451537084-482c73073a0f"),
        "owner_id": "user303",
        "owner_name": "Environmental Engineer",
    },
]


def build_sample_ideas(now: Optional[datetime] = None) -> List[Idea]:
    """
    Fresh Idea rows for SAMPLE_IDEAS, with no likes.

    created_at is staggered one minute apart so the listing order matches
    the order above (first sample newest).
    """
    now = now or datetime.now(timezone.utc)
    return [
        Idea(
            id=uuid.uuid4(),
            like_count=0,
            liked_by=[],
            created_at=now - timedelta(minutes=index),
            **sample,
        )
        for index, sample in enumerate(SAMPLE_IDEAS)
    ]


async def seed(keep_existing: bool = False) -> int:
    """Write the samples in one transaction; returns how many were inserted."""
    ideas = build_sample_ideas()
    try:
        async with session_scope() as session:
            if not keep_existing:
                result = await session.execute(delete(Idea))
                logger.info("Cleared %d existing ideas", result.rowcount)
            session.add_all(ideas)
        logger.info("Added %d sample ideas", len(ideas))
        return len(ideas)
    finally:
        await dispose_engine()


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Load IdeaVerse sample ideas into the database.")
    ap.add_argument(
        "--keep-existing",
        action="store_true",
        help="Insert the samples without deleting the ideas already stored.",
    )
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )

    try:
        asyncio.run(seed(keep_existing=args.keep_existing))
    except Exception as e:
        logger.error("Error seeding database: %s", str(e), exc_info=True)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
