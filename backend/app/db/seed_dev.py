"""Dev seeding helper for stub authentication."""

import asyncio
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.auth import DEV_USER_ID
from backend.app.db.engine import get_async_engine
from backend.app.db.models import User


async def seed_dev_user(session: AsyncSession, user_id: uuid.UUID = DEV_USER_ID) -> bool:
    """Create the dev user if missing.

    Idempotent - safe to run multiple times.

    Returns:
        True if the user was created
    """
    result = await session.execute(select(User).where(User.user_id == user_id))
    if result.scalar_one_or_none() is not None:
        return False

    session.add(User(user_id=user_id, email="dev@example.com", name="Dev User"))
    await session.commit()
    return True


async def main() -> None:
    async with AsyncSession(get_async_engine()) as session:
        created = await seed_dev_user(session)

    if created:
        print(f"Created dev user {DEV_USER_ID}")
    else:
        print(f"Dev user {DEV_USER_ID} already exists")


if __name__ == "__main__":
    asyncio.run(main())
