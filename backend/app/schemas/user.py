from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserCreate(BaseModel):
    name: str = Field(min_length=2, max_length=50)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=50)


class UserPublic(BaseModel):
    id: str
    name: str
    email: EmailStr
    created_at: datetime


class ApiKeyUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    api_key: str = Field(alias="apiKey", min_length=1)


class ApiKeySaveResponse(BaseModel):
    success: bool = True
    message: str = "API Key 가 저장되었습니다."
    saved: bool


class ApiKeyStatusResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    has_api_key: bool = Field(alias="hasApiKey")
