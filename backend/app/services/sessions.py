from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

from redis.asyncio import Redis

from ..core.config import settings

SESSION_KEY_PREFIX = "auth:session:"
REFRESH_KEY_PREFIX = "auth:refresh:"


def _session_key(session_id: str) -> str:
    return f"{SESSION_KEY_PREFIX}{session_id}"


def refresh_key(jti: str) -> str:
    return f"{REFRESH_KEY_PREFIX}{jti}"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def session_ttl() -> int:
    return max(settings.refresh_token_expire_minutes, settings.access_token_expire_minutes, 60) * 60


async def _persist(redis: Redis, session: dict[str, Any]) -> dict[str, Any]:
    await redis.set(_session_key(session["session_id"]), json.dumps(session), ex=session_ttl())
    return session


async def create_session(
    redis: Redis,
    *,
    session_id: str,
    user_id: str,
    access_jti: str,
    refresh_jti: str,
    user_agent: str | None = None,
    ip: str | None = None,
) -> dict[str, Any]:
    now = _now_iso()
    session = {
        "session_id": session_id,
        "user_id": user_id,
        "status": "active",
        "created_at": now,
        "updated_at": now,
        "last_seen": now,
        "access_jti": access_jti,
        "refresh_jti": refresh_jti,
        "ip": ip,
        "user_agent": user_agent,
    }
    await redis.set(refresh_key(refresh_jti), user_id, ex=session_ttl())
    return await _persist(redis, session)


async def get_session(redis: Redis, session_id: str) -> dict[str, Any] | None:
    raw = await redis.get(_session_key(session_id))
    if raw is None:
        return None
    try:
        session = json.loads(raw)
    except json.JSONDecodeError:
        return None
    return session if isinstance(session, dict) else None


async def update_session(redis: Redis, session_id: str, **fields: Any) -> dict[str, Any] | None:
    session = await get_session(redis, session_id)
    if session is None:
        return None
    session.update(fields)
    session["updated_at"] = _now_iso()
    return await _persist(redis, session)


async def rotate_refresh(redis: Redis, session_id: str, *, old_jti: str, access_jti: str, refresh_jti: str) -> None:
    await redis.delete(refresh_key(old_jti))
    session = await update_session(redis, session_id, access_jti=access_jti, refresh_jti=refresh_jti)
    if session is not None:
        await redis.set(refresh_key(refresh_jti), session["user_id"], ex=session_ttl())


async def touch_session(
    redis: Redis,
    session_id: str,
    *,
    ip: str | None = None,
    user_agent: str | None = None,
) -> dict[str, Any] | None:
    updates: dict[str, Any] = {"last_seen": _now_iso()}
    if ip is not None:
        updates["ip"] = ip
    if user_agent is not None:
        updates["user_agent"] = user_agent
    return await update_session(redis, session_id, **updates)


async def revoke_session(redis: Redis, session_id: str, *, reason: str | None = None) -> dict[str, Any] | None:
    session = await get_session(redis, session_id)
    if session is None:
        return None
    session["status"] = "revoked"
    session["revoked_at"] = _now_iso()
    if reason:
        session["revoked_reason"] = reason
    if session.get("refresh_jti"):
        await redis.delete(refresh_key(session["refresh_jti"]))
    return await _persist(redis, session)
