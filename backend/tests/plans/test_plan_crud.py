"""
여행 계획 CRUD 및 예산 항목 테스트
"""
import httpx
import pytest
from asgi_lifespan import LifespanManager

from backend.app.main import app

PLAN_PAYLOAD = {
    "name": "교토 가을 여행",
    "destination": "일본 교토",
    "startDate": "2024-10-01",
    "endDate": "2024-10-04",
    "duration": 4,
    "budget": 1500000,
    "people": 2,
    "preferences": "사찰",
}

SCHEDULE = [
    {
        "day": 1,
        "date": "2024-10-01",
        "activities": [
            {
                "time": "09:00-11:00",
                "activity": "기요미즈데라 산책",
                "destination": {"name": "기요미즈데라", "address": "교토시 히가시야마구", "category": "관광지"},
            }
        ],
        "accommodation": {"name": "료칸", "address": "교토역 근처", "category": "숙소"},
    }
]


async def _request(method: str, url: str, **kwargs) -> httpx.Response:
    async with LifespanManager(app):
        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver") as client:
            response = await client.request(method, url, **kwargs)
            await response.aread()
            return response


async def _auth_headers(email: str = "planner@example.com") -> dict:
    response = await _request(
        "POST",
        "/api/auth/register",
        json={"name": "플래너", "email": email, "password": "planner123"},
    )
    return {"Authorization": f"Bearer {response.json()['token']}"}


async def _create_plan(headers: dict, **overrides) -> dict:
    response = await _request("POST", "/api/plans", json={**PLAN_PAYLOAD, **overrides}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["plan"]


@pytest.mark.asyncio
async def test_create_and_get_plan():
    headers = await _auth_headers()
    plan = await _create_plan(headers)

    assert plan["name"] == "교토 가을 여행"
    assert plan["startDate"] == "2024-10-01"
    assert plan["budgetItems"] == []
    assert plan["totalSpent"] == 0
    assert plan["remainingBudget"] == 1500000

    response = await _request("GET", f"/api/plans/{plan['id']}", headers=headers)
    assert response.status_code == 200
    assert response.json()["plan"]["id"] == plan["id"]


@pytest.mark.asyncio
async def test_create_plan_with_generated_schedule():
    headers = await _auth_headers()
    plan = await _create_plan(headers, schedule=SCHEDULE, recommendations={"tips": "버스 1일권 추천"})

    assert plan["schedule"][0]["activities"][0]["destination"]["name"] == "기요미즈데라"
    assert plan["schedule"][0]["accommodation"]["name"] == "료칸"
    assert plan["recommendations"] == {"tips": "버스 1일권 추천"}


@pytest.mark.asyncio
async def test_create_plan_requires_fields():
    headers = await _auth_headers()
    response = await _request("POST", "/api/plans", json={"name": "이름만"}, headers=headers)

    assert response.status_code == 400
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_end_date_before_start_date_is_rejected():
    headers = await _auth_headers()
    response = await _request(
        "POST", "/api/plans", json={**PLAN_PAYLOAD, "startDate": "2024-10-05", "endDate": "2024-10-01"}, headers=headers
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_list_plans_returns_summaries_newest_first():
    headers = await _auth_headers()
    await _create_plan(headers, name="첫 번째")
    await _create_plan(headers, name="두 번째")

    response = await _request("GET", "/api/plans", headers=headers)
    body = response.json()

    assert response.status_code == 200
    assert body["count"] == 2
    assert [plan["name"] for plan in body["plans"]] == ["두 번째", "첫 번째"]
    assert "schedule" not in body["plans"][0]


@pytest.mark.asyncio
async def test_update_plan_and_schedule():
    headers = await _auth_headers()
    plan = await _create_plan(headers)

    updated = await _request("PUT", f"/api/plans/{plan['id']}", json={"budget": 2000000, "people": 3}, headers=headers)
    assert updated.status_code == 200
    assert updated.json()["plan"]["budget"] == 2000000
    assert updated.json()["plan"]["people"] == 3
    assert updated.json()["plan"]["name"] == "교토 가을 여행"

    scheduled = await _request("PUT", f"/api/plans/{plan['id']}/schedule", json={"schedule": SCHEDULE}, headers=headers)
    assert scheduled.status_code == 200
    assert len(scheduled.json()["plan"]["schedule"]) == 1


@pytest.mark.asyncio
async def test_update_rejects_reversed_date_range():
    headers = await _auth_headers()
    plan = await _create_plan(headers)

    response = await _request("PUT", f"/api/plans/{plan['id']}", json={"endDate": "2024-09-01"}, headers=headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_delete_plan():
    headers = await _auth_headers()
    plan = await _create_plan(headers)

    deleted = await _request("DELETE", f"/api/plans/{plan['id']}", headers=headers)
    assert deleted.status_code == 200

    missing = await _request("GET", f"/api/plans/{plan['id']}", headers=headers)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_plans_are_scoped_to_owner():
    owner = await _auth_headers("owner@example.com")
    stranger = await _auth_headers("stranger@example.com")
    plan = await _create_plan(owner)

    assert (await _request("GET", f"/api/plans/{plan['id']}", headers=stranger)).status_code == 404
    assert (await _request("DELETE", f"/api/plans/{plan['id']}", headers=stranger)).status_code == 404
    assert (await _request("GET", "/api/plans", headers=stranger)).json()["count"] == 0


@pytest.mark.asyncio
async def test_malformed_plan_id_is_bad_request():
    headers = await _auth_headers()
    response = await _request("GET", "/api/plans/not-an-object-id", headers=headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_budget_item_lifecycle_updates_totals():
    headers = await _auth_headers()
    plan = await _create_plan(headers)
    base = f"/api/plans/{plan['id']}/budget"

    added = await _request(
        "POST", base, json={"name": "왕복 항공권", "category": "교통", "amount": 400000, "date": "2024-10-01"}, headers=headers
    )
    assert added.status_code == 201
    item = added.json()["plan"]["budgetItems"][0]
    assert item["id"]
    assert item["notes"] == ""
    assert added.json()["plan"]["totalSpent"] == 400000
    assert added.json()["plan"]["remainingBudget"] == 1100000

    updated = await _request("PUT", f"{base}/{item['id']}", json={"amount": 350000, "notes": "특가"}, headers=headers)
    assert updated.status_code == 200
    updated_item = updated.json()["plan"]["budgetItems"][0]
    assert updated_item["amount"] == 350000
    assert updated_item["notes"] == "특가"
    assert updated_item["name"] == "왕복 항공권"
    assert updated.json()["plan"]["remainingBudget"] == 1150000

    deleted = await _request("DELETE", f"{base}/{item['id']}", headers=headers)
    assert deleted.status_code == 200
    assert deleted.json()["plan"]["budgetItems"] == []
    assert deleted.json()["plan"]["totalSpent"] == 0


@pytest.mark.asyncio
async def test_budget_item_validation_and_missing_item():
    headers = await _auth_headers()
    plan = await _create_plan(headers)
    base = f"/api/plans/{plan['id']}/budget"

    bad_category = await _request(
        "POST", base, json={"name": "기념품", "category": "없는분류", "amount": 1000, "date": "2024-10-02"}, headers=headers
    )
    assert bad_category.status_code == 400

    negative = await _request(
        "POST", base, json={"name": "기념품", "category": "쇼핑", "amount": -1, "date": "2024-10-02"}, headers=headers
    )
    assert negative.status_code == 400

    missing = await _request("PUT", f"{base}/does-not-exist", json={"amount": 1}, headers=headers)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_budget_items_are_appended_with_push(fake_mongo):
    headers = await _auth_headers()
    plan = await _create_plan(headers)
    base = f"/api/plans/{plan['id']}/budget"

    for name in ("점심", "저녁"):
        response = await _request(
            "POST", base, json={"name": name, "category": "식비", "amount": 15000, "date": "2024-10-01"}, headers=headers
        )
        assert response.status_code == 201

    body = (await _request("GET", f"/api/plans/{plan['id']}", headers=headers)).json()
    assert [item["name"] for item in body["plan"]["budgetItems"]] == ["점심", "저녁"]
    assert body["plan"]["totalSpent"] == 30000

    pushes = [update for update in fake_mongo.db["plans"].updates if "$push" in update]
    assert len(pushes) == 2
    assert all("budgetItems" not in update["$set"] for update in pushes)


@pytest.mark.asyncio
async def test_budget_item_on_foreign_plan_is_not_found():
    owner = await _auth_headers("owner@example.com")
    stranger = await _auth_headers("stranger@example.com")
    plan = await _create_plan(owner)

    response = await _request(
        "POST",
        f"/api/plans/{plan['id']}/budget",
        json={"name": "택시", "category": "교통", "amount": 8000, "date": "2024-10-01"},
        headers=stranger,
    )
    assert response.status_code == 404
