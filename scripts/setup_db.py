#!/usr/bin/env python3
"""Setup script for the KashiYatra API database."""

import asyncio
import logging
import sys
from pathlib import Path

# Add the server directory to the Python path
server_dir = Path(__file__).parent.parent / "server"
sys.path.insert(0, str(server_dir))

from alembic import command
from alembic.config import Config
from sqlalchemy import func, select

from kashiyatra.core.database import async_session_factory, close_db
from kashiyatra.models import Package
from kashiyatra.schemas.package import CreatePackageRequest
from kashiyatra.services.package_service import PackageService

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SAMPLE_PACKAGES = [
    {
        "name": "Kashi Darshan",
        "description": "Kashi Vishwanath, Annapurna and Sankat Mochan temples with the Dashashwamedh Ghat aarti.",
        "shortDescription": "The essential temples of Varanasi and the Ganga aarti",
        "price": 899900,
        "originalPrice": 1099900,
        "duration": {"days": 2, "nights": 1},
        "categories": ["spiritual", "budget"],
        "inclusions": ["Hotel stay", "Breakfast", "Temple guide"],
        "exclusions": ["Travel to Varanasi"],
        "highlights": ["Evening Ganga aarti", "Sunrise boat ride"],
    },
    {
        "name": "Sarnath and the Ghats",
        "description": "A heritage walk along the ghats followed by a day at the Buddhist sites of Sarnath.",
        "shortDescription": "Ghat heritage walk and Sarnath",
        "price": 1499900,
        "duration": {"days": 3, "nights": 2},
        "categories": ["cultural", "family"],
        "inclusions": ["Hotel stay", "All meals", "Heritage guide", "Museum tickets"],
        "highlights": ["Dhamek Stupa", "Assi Ghat walk"],
        "difficulty": "moderate",
    },
]


def run_migrations() -> None:
    """Apply Alembic migrations up to head."""
    alembic_cfg = Config(str(server_dir / "db" / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(server_dir / "db" / "alembic"))

    logger.info("Running database migrations...")
    command.upgrade(alembic_cfg, "head")
    logger.info("Database migrations completed")


async def create_sample_data() -> None:
    """Create sample packages when the catalogue is empty."""
    logger.info("Creating sample data...")

    async with async_session_factory() as db:
        existing = await db.scalar(select(func.count()).select_from(Package))
        if existing:
            logger.info("Sample data already exists, skipping...")
            return

        service = PackageService(db)
        for data in SAMPLE_PACKAGES:
            await service.create_package(CreatePackageRequest.model_validate(data), created_by="setup")

    logger.info("Sample data created successfully!")


async def seed() -> None:
    try:
        await create_sample_data()
    finally:
        await close_db()


def main() -> None:
    """Main setup function."""
    logger.info("Starting KashiYatra API setup...")

    # env.py drives its own event loop, so migrations run before ours starts
    run_migrations()
    asyncio.run(seed())

    logger.info("Setup completed successfully!")
    logger.info("You can now start the API server with: cd server && uvicorn kashiyatra.main:app --reload")


if __name__ == "__main__":
    main()
