import asyncio
import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from ..core.config import settings

logger = logging.getLogger(__name__)


class MongoConnectionManager:
    client: AsyncIOMotorClient | None = None

    @classmethod
    def get_client(cls) -> AsyncIOMotorClient:
        if cls.client is None:
            cls.client = AsyncIOMotorClient(settings.mongodb_uri)
        return cls.client

    @classmethod
    def get_database(cls) -> AsyncIOMotorDatabase:
        return cls.get_client()[settings.mongodb_db]

    @classmethod
    async def connect_with_retry(cls, attempts: int | None = None, delay: float | None = None) -> bool:
        """시작 시 한 번만 호출. ping 이 성공하면 True, 모든 시도가 실패하면 False."""
        attempts = attempts if attempts is not None else settings.mongodb_connect_attempts
        delay = delay if delay is not None else settings.mongodb_retry_delay_seconds

        for attempt in range(1, attempts + 1):
            try:
                await cls.get_client().admin.command("ping")
            except Exception as exc:
                logger.error("MongoDB 연결 실패 (시도 %d/%d): %s", attempt, attempts, exc)
                if attempt < attempts:
                    logger.info("%.1f초 후 다시 시도합니다.", delay)
                    await asyncio.sleep(delay)
                continue
            logger.info("MongoDB 연결 성공")
            return True

        logger.error("MongoDB 연결 실패: 최대 재시도 횟수에 도달했습니다.")
        return False

    @classmethod
    async def close(cls) -> None:
        if cls.client:
            cls.client.close()
            cls.client = None
