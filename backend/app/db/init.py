from __future__ import annotations

from motor.motor_asyncio import AsyncIOMotorDatabase

from ..services.plans import PLANS_COLLECTION
from ..services.users import USERS_COLLECTION


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    await db[USERS_COLLECTION].create_index("email", unique=True)
    await db[PLANS_COLLECTION].create_index([("user", 1), ("createdAt", -1)])
