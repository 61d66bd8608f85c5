"""
회원가입 / 로그인 / 세션 / API Key 저장 테스트
"""
import httpx
import pytest
from asgi_lifespan import LifespanManager

from backend.app.main import app


async def _request(method: str, url: str, **kwargs) -> httpx.Response:
    async with LifespanManager(app):
        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver") as client:
            response = await client.request(method, url, **kwargs)
            await response.aread()
            return response


async def _register(email: str = "traveler@example.com", password: str = "secret123") -> httpx.Response:
    return await _request(
        "POST",
        "/api/auth/register",
        json={"name": "여행자", "email": email, "password": password},
    )


def _bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.mark.asyncio
async def test_register_returns_token_and_user():
    response = await _register()

    assert response.status_code == 201
    data = response.json()
    assert data["success"] is True
    assert data["token"]
    assert data["user"]["email"] == "traveler@example.com"
    assert data["user"]["name"] == "여행자"
    assert "password_hash" not in data["user"]
    assert "refresh_token" in response.cookies


@pytest.mark.asyncio
async def test_duplicate_email_is_rejected():
    await _register()
    response = await _register(email="Traveler@Example.com")

    assert response.status_code == 400
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_register_validation_error_envelope():
    response = await _request("POST", "/api/auth/register", json={"email": "not-an-email", "password": "1"})

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "ValidationError"


@pytest.mark.asyncio
async def test_login_and_me():
    await _register()
    login = await _request("POST", "/api/auth/login", json={"email": "traveler@example.com", "password": "secret123"})
    assert login.status_code == 200

    me = await _request("GET", "/api/auth/me", headers=_bearer(login.json()["token"]))
    assert me.status_code == 200
    assert me.json()["user"]["email"] == "traveler@example.com"


@pytest.mark.asyncio
async def test_login_invalid_credentials():
    await _register()
    response = await _request("POST", "/api/auth/login", json={"email": "traveler@example.com", "password": "wrong-pass"})

    assert response.status_code == 401
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_me_requires_bearer_token():
    response = await _request("GET", "/api/auth/me")
    assert response.status_code == 401

    response = await _request("GET", "/api/auth/me", headers=_bearer("garbage"))
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_update_me_changes_name():
    token = (await _register()).json()["token"]

    response = await _request("PUT", "/api/auth/me", json={"name": "새 이름"}, headers=_bearer(token))

    assert response.status_code == 200
    assert response.json()["user"]["name"] == "새 이름"


@pytest.mark.asyncio
async def test_refresh_rotates_tokens_and_logout_revokes_session():
    registered = await _register()
    refresh_cookie = registered.cookies["refresh_token"]

    refreshed = await _request("POST", "/api/auth/refresh", headers={"Cookie": f"refresh_token={refresh_cookie}"})
    assert refreshed.status_code == 200
    new_token = refreshed.json()["token"]

    # 예전 access 토큰은 교체되어 더 이상 유효하지 않다
    stale = await _request("GET", "/api/auth/me", headers=_bearer(registered.json()["token"]))
    assert stale.status_code == 401

    # 이미 사용한 리프레시 토큰은 재사용할 수 없다
    reused = await _request("POST", "/api/auth/refresh", headers={"Cookie": f"refresh_token={refresh_cookie}"})
    assert reused.status_code == 401

    logout = await _request("POST", "/api/auth/logout", headers=_bearer(new_token))
    assert logout.status_code == 200

    after_logout = await _request("GET", "/api/auth/me", headers=_bearer(new_token))
    assert after_logout.status_code == 401


@pytest.mark.asyncio
async def test_api_key_is_saved_but_never_returned(fake_mongo):
    token = (await _register()).json()["token"]

    status_before = await _request("GET", "/api/auth/api-keys/dashscope/status", headers=_bearer(token))
    assert status_before.json() == {"success": True, "hasApiKey": False}

    saved = await _request("PUT", "/api/auth/api-keys/dashscope", json={"apiKey": "sk-secret-value"}, headers=_bearer(token))
    assert saved.status_code == 200
    assert saved.json()["saved"] is True
    assert "sk-secret-value" not in saved.text

    status_after = await _request("GET", "/api/auth/api-keys/dashscope/status", headers=_bearer(token))
    assert status_after.json() == {"success": True, "hasApiKey": True}

    me = await _request("GET", "/api/auth/me", headers=_bearer(token))
    assert "sk-secret-value" not in me.text

    stored = fake_mongo.db["users"].docs[0]
    assert stored["api_keys"]["dashscope"] == "sk-secret-value"


@pytest.mark.asyncio
async def test_api_key_must_not_be_blank():
    token = (await _register()).json()["token"]
    response = await _request("PUT", "/api/auth/api-keys/dashscope", json={"apiKey": ""}, headers=_bearer(token))
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_concurrent_registration_hits_unique_index(monkeypatch):
    from backend.app.services import users as user_service

    async def _not_found(db, email):
        return None

    await _register()
    # 두 요청이 모두 중복 확인을 통과한 상황
    monkeypatch.setattr(user_service, "find_user_by_email", _not_found)
    response = await _register()

    assert response.status_code == 400
    assert response.json()["error"] == "ValidationError"
    assert response.json()["message"] == "이미 등록된 이메일입니다."
