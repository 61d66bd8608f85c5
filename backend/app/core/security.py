from datetime import datetime, timedelta, timezone
from typing import Any, Literal
from uuid import uuid4

import jwt
from passlib.context import CryptContext

from .config import settings
from .errors import AuthError

pwd_context = CryptContext(schemes=["argon2", "bcrypt"], deprecated="auto")


class TokenError(AuthError):
    code = "TokenError"

    def __init__(self, detail: str = "유효하지 않은 인증 정보입니다."):
        super().__init__(message=detail)


def get_password_hash(password: str) -> str:
    """설정된 해시 스킴으로 비밀번호 해시 생성"""
    if settings.password_hash_scheme not in pwd_context.schemes():
        raise ValueError(f"지원하지 않는 해시 스킴: {settings.password_hash_scheme}")
    return pwd_context.hash(password, scheme=settings.password_hash_scheme)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def _build_payload(
    subject: str,
    expires_delta: timedelta,
    token_type: Literal["access", "refresh"],
    extra: dict[str, Any] | None = None,
) -> dict[str, Any]:
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": subject,
        "iat": int(now.timestamp()),
        "exp": int((now + expires_delta).timestamp()),
        "type": token_type,
        "jti": uuid4().hex,
    }
    if extra:
        payload.update(extra)
    return payload


def _encode(payload: dict[str, Any]) -> str:
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_access_token(subject: str, extra: dict[str, Any] | None = None) -> tuple[str, str]:
    payload = _build_payload(subject, timedelta(minutes=settings.access_token_expire_minutes), "access", extra)
    return _encode(payload), payload["jti"]


def create_refresh_token(subject: str, extra: dict[str, Any] | None = None) -> tuple[str, str]:
    payload = _build_payload(subject, timedelta(minutes=settings.refresh_token_expire_minutes), "refresh", extra)
    return _encode(payload), payload["jti"]


def decode_token(token: str) -> dict[str, Any]:
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError as exc:
        raise TokenError(detail="로그인이 만료되었습니다. 다시 로그인해 주세요.") from exc
    except jwt.PyJWTError as exc:
        raise TokenError(detail="토큰 디코딩에 실패했습니다.") from exc

    if "sub" not in payload:
        raise TokenError(detail="토큰에 subject 정보가 없습니다.")
    return payload
