import logging
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from coursedesk.core.config import DEFAULT_ADMIN_PASSWORD, DEFAULT_WEBSITE_PASSWORD
from coursedesk.core.database import db_operation
from coursedesk.core.exceptions import AuthenticationError, ConfigurationError
from coursedesk.core.logging_utils import log_business_event
from coursedesk.core.security import hash_password, verify_password, ROLE_ADMIN, ROLE_WEBSITE
from coursedesk.auth.models.users import User

logger = logging.getLogger(__name__)

# Seeded accounts; the username doubles as the role
DEFAULT_ACCOUNTS = {
    ROLE_ADMIN: DEFAULT_ADMIN_PASSWORD,
    ROLE_WEBSITE: DEFAULT_WEBSITE_PASSWORD,
}


async def get_user_by_username(session: AsyncSession, username: str) -> Optional[User]:
    result = await session.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


@db_operation
async def create_default_users(session: AsyncSession) -> int:
    """Seed missing accounts, returns how many were created"""
    created = 0
    for username, password in DEFAULT_ACCOUNTS.items():
        if await get_user_by_username(session, username):
            continue
        session.add(User(username=username, password_hash=hash_password(password)))
        created += 1

    if created:
        await session.commit()
        logger.info(f"Created {created} default account(s)")
    else:
        logger.info("Default accounts already exist, skipping creation")

    return created


async def _get_configured_user(session: AsyncSession, username: str) -> User:
    user = await get_user_by_username(session, username)
    if not user:
        logger.error(f"Seeded account '{username}' is missing")
        raise ConfigurationError("users", "System configuration error")
    return user


@db_operation
async def authenticate(session: AsyncSession, username: str, password: str) -> User:
    user = await _get_configured_user(session, username)

    if not verify_password(password, user.password_hash):
        logger.warning(f"Failed login for account '{username}'")
        raise AuthenticationError("Invalid password")

    return user


@db_operation
async def change_password(
    session: AsyncSession, username: str, current_password: str, new_password: str
) -> None:
    user = await authenticate(session, username, current_password)

    user.password_hash = hash_password(new_password)
    await session.commit()

    log_business_event("password_changed", "user", user.id, {"username": username})
