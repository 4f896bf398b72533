"""
FTW Community Backend — Startup Seeding
========================================

What:  Ensures the bootstrap super_admin account and the default featured
       video exist.
When:  Once during application startup (lifespan), when SEED_ON_STARTUP is on.

Seeding never blocks startup: any failure is logged and the app still boots.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ftw_community.config import Settings
from ftw_community.domain.roles import Role
from ftw_community.exceptions import CommunityError
from ftw_community.models.content import Video
from ftw_community.models.user import User
from ftw_community.repositories.content import ContentRepository
from ftw_community.repositories.users import UserRepository
from ftw_community.services.passwords import PasswordHasher

logger = logging.getLogger(__name__)


async def ensure_bootstrap_admin(
    db: AsyncSession, users: UserRepository, hasher: PasswordHasher, config: Settings
) -> bool:
    """Create the bootstrap super_admin if missing. Returns True when created."""
    if await users.get_by_team_id(db, config.bootstrap_admin_team_id) is not None:
        return False
    if not config.bootstrap_admin_passkey:
        logger.warning(
            "Bootstrap admin %s not created: BOOTSTRAP_ADMIN_PASSKEY is empty",
            config.bootstrap_admin_team_id,
        )
        return False

    await users.add(
        db,
        User(
            team_id=config.bootstrap_admin_team_id,
            name=config.bootstrap_admin_name,
            passkey_hash=hasher.hash(config.bootstrap_admin_passkey),
            role=Role.SUPER_ADMIN.value,
            organization="Headquarters",
            is_active=True,
            is_first_login=False,
        ),
    )
    logger.info("Bootstrap super_admin %s created", config.bootstrap_admin_team_id)
    return True


async def ensure_default_video(
    db: AsyncSession, content: ContentRepository, config: Settings
) -> bool:
    if await content.count_videos(db) > 0:
        return False
    await content.add(
        db,
        Video(
            title=config.default_video_title,
            youtube_id=config.default_video_youtube_id,
            priority=1,
        ),
    )
    logger.info("Seeded default featured video %s", config.default_video_youtube_id)
    return True


async def seed_initial_data(
    session_factory: async_sessionmaker,
    users: UserRepository,
    content: ContentRepository,
    hasher: PasswordHasher,
    config: Settings,
) -> None:
    async with session_factory() as db:
        try:
            await ensure_bootstrap_admin(db, users, hasher, config)
            await ensure_default_video(db, content, config)
            await db.commit()
        except (SQLAlchemyError, CommunityError) as e:
            await db.rollback()
            logger.error("Database seeding failed: %s", e)
