"""
Database verification script.

Creates missing tables and checks connectivity. The schema itself is
managed by Alembic: run ``alembic upgrade head`` to apply migrations.
"""

from asyncio import run as asyncio_run
from logging import getLogger

from halqa.configs import file_logger
from halqa.db.database import init_db
from halqa.errors.database import DatabaseConnectionError

logger = file_logger(getLogger(__name__))


async def main() -> None:
    """Verify database connection."""
    try:
        logger.info("Verifying database connection...")
        await init_db()
        logger.info("Database ready!")
    except Exception as e:
        logger.exception("Failed to connect to database")
        raise DatabaseConnectionError from e


if __name__ == "__main__":
    asyncio_run(main())
