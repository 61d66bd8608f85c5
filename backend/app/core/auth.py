import logging

from fastapi import Depends, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from motor.motor_asyncio import AsyncIOMotorDatabase
from redis.asyncio import Redis

from ..dependencies import get_mongo_db, get_redis
from ..schemas.user import UserPublic
from ..services import sessions as session_service
from ..services.users import document_to_user, get_api_key, get_user_by_id
from .errors import AuthError
from .security import TokenError, decode_token

logger = logging.getLogger(__name__)

http_bearer = HTTPBearer(auto_error=False)


async def get_current_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(http_bearer),
    redis: Redis = Depends(get_redis),
) -> dict:
    if credentials is None:
        raise AuthError("인증되지 않았습니다. 먼저 로그인해 주세요.")

    payload = decode_token(credentials.credentials)
    if payload.get("type") != "access":
        raise TokenError(detail="Access 토큰이 아닙니다.")
    session_id = payload.get("session_id")
    if not session_id:
        raise TokenError(detail="세션 정보가 없습니다.")
    session = await session_service.get_session(redis, session_id)
    if session is None or session.get("status") != "active":
        raise TokenError(detail="세션이 만료되었거나 로그아웃되었습니다.")
    if session.get("access_jti") != payload.get("jti"):
        raise TokenError(detail="만료된 토큰입니다.")
    client_ip = request.client.host if request.client else None
    await session_service.touch_session(redis, session_id, ip=client_ip, user_agent=request.headers.get("user-agent"))
    return payload


async def get_current_user(
    payload: dict = Depends(get_current_token),
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
) -> UserPublic:
    user_id = payload.get("sub")
    if not user_id:
        raise TokenError(detail="토큰에 사용자 정보가 없습니다.")

    doc = await get_user_by_id(db, user_id)
    if not doc:
        raise AuthError("사용자를 찾을 수 없습니다.")
    return document_to_user(doc)


async def require_dashscope_key(
    current_user: UserPublic = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
) -> str:
    """업스트림 호출 전에 사용자 키를 확인합니다. 없으면 403."""
    api_key = await get_api_key(db, current_user.id)
    logger.info("DashScope 키 확인: user=%s has_key=%s", current_user.id, bool(api_key))
    if not api_key:
        raise AuthError("먼저 설정 페이지에서 DashScope API Key 를 등록해 주세요.", status_code=status.HTTP_403_FORBIDDEN)
    return api_key
