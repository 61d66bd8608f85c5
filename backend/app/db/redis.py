from redis.asyncio import Redis

from ..core.config import settings


class RedisConnectionManager:
    """세션 저장소. 프로세스 전역 싱글톤으로 유지합니다."""

    client: Redis | None = None

    @classmethod
    def get_client(cls) -> Redis:
        if cls.client is None:
            cls.client = Redis.from_url(settings.redis_url, encoding="utf-8", decode_responses=True)
        return cls.client

    @classmethod
    async def close(cls) -> None:
        if cls.client:
            await cls.client.aclose()
            cls.client = None
