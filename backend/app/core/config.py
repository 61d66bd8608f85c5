from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    project_name: str = "AI Travel Planner"
    api_prefix: str = "/api"
    version: str = "1.0.0"

    # development 일 때만 에러 응답에 진단 정보를 포함
    environment: str = Field(default="production")
    log_level: str = Field(default="INFO")

    mongodb_uri: str = Field(default="mongodb://localhost:27017")
    mongodb_db: str = Field(default="ai-travel-planner")
    mongodb_connect_attempts: int = Field(default=2, ge=1)
    mongodb_retry_delay_seconds: float = Field(default=2.0, ge=0)

    redis_url: str = Field(default="redis://localhost:6379/0")

    jwt_secret_key: str = Field(default="change-me-to-a-long-random-secret-value")
    jwt_algorithm: str = Field(default="HS256")
    access_token_expire_minutes: int = Field(default=60)
    refresh_token_expire_minutes: int = Field(default=60 * 24 * 7)
    cookie_secure: bool = Field(default=False)

    password_hash_scheme: str = Field(default="argon2")

    cors_origins: str = Field(default="http://localhost:5173,http://localhost:3000")

    # 알리바바 클라우드 DashScope (텍스트 생성)
    dashscope_base_url: str = Field(default="https://dashscope.aliyuncs.com/api/v1/services")
    dashscope_model: str = Field(default="qwen-turbo")
    dashscope_timeout_seconds: float = Field(default=60.0)

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_development(self) -> bool:
        return self.environment.strip().lower() == "development"


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]


settings = get_settings()
