import asyncio
import logging

from sqlalchemy import select

from coursedesk.core.config import ENVIRONMENT
from coursedesk.core.database import async_session, db_manager
from coursedesk.core.exceptions import DatabaseError, ConfigurationError

# Every model module must be imported before create_all
from coursedesk.fees import models as fees_models  # noqa: F401
from coursedesk.admissions import models as admissions_models  # noqa: F401
from coursedesk.auth.models import User
from coursedesk.auth.crud.users import DEFAULT_ACCOUNTS, create_default_users

logger = logging.getLogger(__name__)


async def seed_default_users() -> int:
    """Create the admin and website accounts if they don't exist"""
    async with async_session() as session:
        try:
            return await create_default_users(session)
        except Exception as e:
            logger.error(f"Failed to create default accounts: {e}")
            await session.rollback()
            raise DatabaseError(f"Failed to create default accounts: {str(e)}")


async def init_database():
    """Initialize database with tables and default accounts"""
    try:
        logger.info("Starting database initialization...")

        await db_manager.check_connection()
        logger.info("Database connection verified")

        await db_manager.create_tables()
        logger.info("Database tables created/verified")

        await seed_default_users()
        logger.info("Default accounts created/verified")

        logger.info("Database initialization completed successfully")

    except DatabaseError:
        raise
    except Exception as e:
        logger.error(f"Unexpected error during database initialization: {e}")
        raise DatabaseError(f"Database initialization failed: {str(e)}")


async def verify_database_setup():
    """Verify that both seeded accounts exist"""
    try:
        logger.info("Verifying database setup...")

        async with async_session() as session:
            result = await session.execute(
                select(User.username).where(User.username.in_(list(DEFAULT_ACCOUNTS)))
            )
            found = set(result.scalars().all())

        missing = sorted(set(DEFAULT_ACCOUNTS) - found)
        if missing:
            raise DatabaseError(f"Missing accounts: {', '.join(missing)}")

        logger.info(f"Database verification passed: {len(found)} accounts found")
        return True

    except DatabaseError:
        raise
    except Exception as e:
        logger.error(f"Database verification failed: {e}")
        raise DatabaseError(f"Database verification failed: {str(e)}")


async def reset_database():
    """Drop and recreate everything (development/test only)"""
    if ENVIRONMENT not in ["development", "dev", "test"]:
        raise ConfigurationError(
            "ENVIRONMENT",
            "Database reset is only allowed in development or test environments",
        )

    try:
        logger.warning("RESETTING DATABASE - ALL DATA WILL BE LOST!")

        await db_manager.drop_tables()
        await init_database()

        logger.info("Database reset completed")

    except DatabaseError:
        raise
    except Exception as e:
        logger.error(f"Database reset failed: {e}")
        raise DatabaseError(f"Database reset failed: {str(e)}")


COMMANDS = {
    "init": init_database,
    "verify": verify_database_setup,
    "reset": reset_database,
}


if __name__ == "__main__":
    import sys

    from coursedesk.core.config import LOG_LEVEL, LOG_FORMAT
    from coursedesk.core.logging_utils import setup_logging

    setup_logging(LOG_LEVEL, LOG_FORMAT)

    command = sys.argv[1] if len(sys.argv) > 1 else "init"
    if command not in COMMANDS:
        print(f"Unknown command: {command}")
        print(f"Available commands: {', '.join(COMMANDS)}")
        sys.exit(1)

    async def main():
        try:
            await COMMANDS[command]()
        finally:
            await db_manager.close_connections()

    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Database initialization cancelled by user")
    except Exception as e:
        logger.error(f"Database command '{command}' failed: {e}")
        sys.exit(1)
