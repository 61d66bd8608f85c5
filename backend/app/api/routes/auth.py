import logging
from uuid import uuid4

from fastapi import APIRouter, Cookie, Depends, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials
from motor.motor_asyncio import AsyncIOMotorDatabase
from redis.asyncio import Redis

from ...core.auth import get_current_user, http_bearer
from ...core.config import settings
from ...core.security import TokenError, create_access_token, create_refresh_token, decode_token
from ...dependencies import get_mongo_db, get_redis
from ...schemas import (
    ApiKeySaveResponse,
    ApiKeyStatusResponse,
    ApiKeyUpdate,
    AuthResponse,
    MessageResponse,
    RefreshResponse,
    UserCreate,
    UserLogin,
    UserPublic,
    UserResponse,
    UserUpdate,
)
from ...services import sessions as session_service
from ...services import users as user_service

logger = logging.getLogger(__name__)

REFRESH_COOKIE = "refresh_token"

router = APIRouter()


def _set_refresh_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=REFRESH_COOKIE,
        value=token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
        max_age=settings.refresh_token_expire_minutes * 60,
        path=f"{settings.api_prefix}/auth",
    )


async def _start_session(request: Request, response: Response, redis: Redis, user: UserPublic) -> AuthResponse:
    session_id = uuid4().hex
    access_token, access_jti = create_access_token(user.id, extra={"session_id": session_id})
    refresh_token, refresh_jti = create_refresh_token(user.id, extra={"session_id": session_id})
    await session_service.create_session(
        redis,
        session_id=session_id,
        user_id=user.id,
        access_jti=access_jti,
        refresh_jti=refresh_jti,
        ip=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    _set_refresh_cookie(response, refresh_token)
    return AuthResponse(token=access_token, user=user)


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    payload: UserCreate,
    request: Request,
    response: Response,
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
    redis: Redis = Depends(get_redis),
) -> AuthResponse:
    user = await user_service.create_user(db, payload)
    logger.info("회원가입 완료: user=%s", user.id)
    return await _start_session(request, response, redis, user)


@router.post("/login", response_model=AuthResponse)
async def login(
    payload: UserLogin,
    request: Request,
    response: Response,
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
    redis: Redis = Depends(get_redis),
) -> AuthResponse:
    user_doc = await user_service.authenticate_user(db, payload)
    return await _start_session(request, response, redis, user_service.document_to_user(user_doc))


@router.post("/refresh", response_model=RefreshResponse)
async def refresh(
    response: Response,
    refresh_token: str | None = Cookie(default=None, alias=REFRESH_COOKIE),
    redis: Redis = Depends(get_redis),
) -> RefreshResponse:
    if not refresh_token:
        raise TokenError(detail="리프레시 토큰이 없습니다.")

    payload = decode_token(refresh_token)
    if payload.get("type") != "refresh":
        raise TokenError(detail="리프레시 토큰이 아닙니다.")
    session_id = payload.get("session_id")
    jti = payload.get("jti")
    if not session_id or not jti or not await redis.exists(session_service.refresh_key(jti)):
        raise TokenError(detail="만료되었거나 취소된 리프레시 토큰입니다.")

    session = await session_service.get_session(redis, session_id)
    if session is None or session.get("status") != "active" or session.get("refresh_jti") != jti:
        raise TokenError(detail="세션이 만료되었습니다. 다시 로그인해 주세요.")

    access_token, access_jti = create_access_token(payload["sub"], extra={"session_id": session_id})
    new_refresh_token, new_refresh_jti = create_refresh_token(payload["sub"], extra={"session_id": session_id})
    await session_service.rotate_refresh(
        redis, session_id, old_jti=jti, access_jti=access_jti, refresh_jti=new_refresh_jti
    )
    _set_refresh_cookie(response, new_refresh_token)
    return RefreshResponse(token=access_token)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    refresh_token: str | None = Cookie(default=None, alias=REFRESH_COOKIE),
    credentials: HTTPAuthorizationCredentials | None = Depends(http_bearer),
    redis: Redis = Depends(get_redis),
) -> MessageResponse:
    session_id: str | None = None
    for token in (refresh_token, credentials.credentials if credentials else None):
        if not token:
            continue
        try:
            session_id = decode_token(token).get("session_id")
        except TokenError:
            continue
        if session_id:
            break

    response.delete_cookie(key=REFRESH_COOKIE, path=f"{settings.api_prefix}/auth")
    if session_id:
        await session_service.revoke_session(redis, session_id, reason="logout")
    return MessageResponse(message="로그아웃되었습니다.")


@router.get("/me", response_model=UserResponse)
async def me(current_user: UserPublic = Depends(get_current_user)) -> UserResponse:
    return UserResponse(user=current_user)


@router.put("/me", response_model=UserResponse)
async def update_me(
    payload: UserUpdate,
    current_user: UserPublic = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
) -> UserResponse:
    user = await user_service.update_profile(db, current_user.id, payload.name)
    return UserResponse(user=user)


@router.put("/api-keys/dashscope", response_model=ApiKeySaveResponse)
async def save_dashscope_key(
    payload: ApiKeyUpdate,
    current_user: UserPublic = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
) -> ApiKeySaveResponse:
    saved = await user_service.save_api_key(db, current_user.id, payload.api_key)
    if not saved:
        logger.warning("API Key 저장 후 확인 실패: user=%s", current_user.id)
    return ApiKeySaveResponse(saved=saved)


@router.get("/api-keys/dashscope/status", response_model=ApiKeyStatusResponse)
async def dashscope_key_status(
    current_user: UserPublic = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
) -> ApiKeyStatusResponse:
    api_key = await user_service.get_api_key(db, current_user.id)
    return ApiKeyStatusResponse(has_api_key=bool(api_key))
