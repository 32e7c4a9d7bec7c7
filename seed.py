"""
Seed the CMS database: default weekly working hours and an optional admin.

Usage:
    ADMIN_USERNAME=admin ADMIN_PASSWORD=... python seed.py
"""
import asyncio
import logging
import os
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from auth_utils import hash_password
from crud.admin_user import AdminUserRepository
from crud.booking import BookingRepository
from database import AsyncSessionLocal, init_db
from database_models import WorkingHours
from services.availability_service import DEFAULT_WORKING_HOURS
from utils.shared_utils import configure_logging

logger = logging.getLogger(__name__)


async def seed_working_hours(db: AsyncSession) -> int:
    """Insert DEFAULT_WORKING_HOURS unless a schedule already exists."""
    if await BookingRepository(db).count_working_hours() > 0:
        logger.info("Working hours already present, skipping")
        return 0

    created = 0
    for day, periods in sorted(DEFAULT_WORKING_HOURS.items()):
        for start, end in periods:
            db.add(WorkingHours(
                day_of_week=day,
                start_time=start,
                end_time=end,
                is_working=True,
                created_at=datetime.utcnow(),
            ))
            created += 1
    await db.flush()
    logger.info(f"Inserted {created} working-hours rows")
    return created


async def seed_admin(db: AsyncSession, username: str, password: str) -> bool:
    repo = AdminUserRepository(db)
    if await repo.get_by_username(username) is not None:
        logger.info(f"Admin {username} already exists, skipping")
        return False
    await repo.create_user(username, hash_password(password))
    logger.info(f"Created admin {username}")
    return True


async def main() -> None:
    await init_db()
    async with AsyncSessionLocal() as db:
        await seed_working_hours(db)

        username = os.getenv("ADMIN_USERNAME")
        password = os.getenv("ADMIN_PASSWORD")
        if username and password:
            await seed_admin(db, username, password)
        else:
            logger.warning("ADMIN_USERNAME/ADMIN_PASSWORD not set; no admin user created")

        await db.commit()


if __name__ == "__main__":
    configure_logging()
    asyncio.run(main())
