from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any
from uuid import uuid4

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from ..core.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

PLANS_COLLECTION = "plans"
SUMMARY_PROJECTION = {"name": 1, "destination": 1, "startDate": 1, "endDate": 1, "budget": 1, "createdAt": 1}


def _plan_object_id(plan_id: str) -> ObjectId:
    try:
        return ObjectId(plan_id)
    except (InvalidId, TypeError) as exc:
        raise ValidationError("잘못된 여행 계획 ID 입니다.") from exc


def _to_storable(value: Any) -> Any:
    """date 는 ISO 문자열로 저장합니다 (YYYY-MM-DD)."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: _to_storable(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_to_storable(item) for item in value]
    return value


def _normalize_plan(doc: dict) -> dict:
    doc = {**doc}
    doc["id"] = str(doc.pop("_id"))
    if "user" in doc:
        doc["user"] = str(doc["user"])
    items = doc.get("budgetItems") or []
    total_spent = sum(float(item.get("amount", 0)) for item in items)
    doc["totalSpent"] = total_spent
    doc["remainingBudget"] = float(doc.get("budget", 0)) - total_spent
    return doc


async def create_plan(db: AsyncIOMotorDatabase, user_id: str, payload: dict) -> dict:
    now = datetime.utcnow()
    plan_doc = {
        "user": ObjectId(user_id),
        "name": payload["name"].strip(),
        "destination": payload["destination"].strip(),
        "startDate": _to_storable(payload["startDate"]),
        "endDate": _to_storable(payload["endDate"]),
        "duration": payload["duration"],
        "budget": payload["budget"],
        "people": payload["people"],
        "preferences": payload.get("preferences") or "",
        "schedule": _to_storable(payload.get("schedule") or []),
        "recommendations": payload.get("recommendations"),
        "budgetItems": [],
        "createdAt": now,
        "updatedAt": now,
    }
    result = await db[PLANS_COLLECTION].insert_one(plan_doc)
    plan_doc["_id"] = result.inserted_id
    logger.info("여행 계획 생성: plan=%s user=%s", result.inserted_id, user_id)
    return _normalize_plan(plan_doc)


async def list_plans(db: AsyncIOMotorDatabase, user_id: str) -> list[dict]:
    cursor = db[PLANS_COLLECTION].find({"user": ObjectId(user_id)}, SUMMARY_PROJECTION).sort("createdAt", -1)
    plans: list[dict] = []
    async for doc in cursor:
        plans.append(_normalize_plan(doc))
    return plans


async def _find_owned(db: AsyncIOMotorDatabase, plan_id: str, user_id: str) -> dict:
    doc = await db[PLANS_COLLECTION].find_one({"_id": _plan_object_id(plan_id), "user": ObjectId(user_id)})
    if not doc:
        raise NotFoundError("여행 계획을 찾을 수 없습니다.")
    return doc


async def get_plan(db: AsyncIOMotorDatabase, plan_id: str, user_id: str) -> dict:
    return _normalize_plan(await _find_owned(db, plan_id, user_id))


async def _update_owned(db: AsyncIOMotorDatabase, plan_id: str, user_id: str, update: dict) -> dict:
    update = {**update, "$set": {**update.get("$set", {}), "updatedAt": datetime.utcnow()}}
    doc = await db[PLANS_COLLECTION].find_one_and_update(
        {"_id": _plan_object_id(plan_id), "user": ObjectId(user_id)},
        update,
        return_document=ReturnDocument.AFTER,
    )
    if not doc:
        raise NotFoundError("여행 계획을 찾을 수 없습니다.")
    return _normalize_plan(doc)


async def _set_fields(db: AsyncIOMotorDatabase, plan_id: str, user_id: str, fields: dict) -> dict:
    return await _update_owned(db, plan_id, user_id, {"$set": _to_storable(fields)})


async def update_plan(db: AsyncIOMotorDatabase, plan_id: str, user_id: str, payload: dict) -> dict:
    current = await _find_owned(db, plan_id, user_id)
    start = _to_storable(payload.get("startDate", current.get("startDate")))
    end = _to_storable(payload.get("endDate", current.get("endDate")))
    if start and end and str(end) < str(start):
        raise ValidationError("종료일은 시작일보다 빠를 수 없습니다.")
    return await _set_fields(db, plan_id, user_id, payload)


async def update_schedule(db: AsyncIOMotorDatabase, plan_id: str, user_id: str, schedule: list[dict]) -> dict:
    return await _set_fields(db, plan_id, user_id, {"schedule": schedule})


async def delete_plan(db: AsyncIOMotorDatabase, plan_id: str, user_id: str) -> None:
    result = await db[PLANS_COLLECTION].delete_one({"_id": _plan_object_id(plan_id), "user": ObjectId(user_id)})
    if result.deleted_count == 0:
        raise NotFoundError("여행 계획을 찾을 수 없습니다.")
    logger.info("여행 계획 삭제: plan=%s user=%s", plan_id, user_id)


async def add_budget_item(db: AsyncIOMotorDatabase, plan_id: str, user_id: str, payload: dict) -> dict:
    item = {
        "id": uuid4().hex,
        "name": payload["name"],
        "category": payload["category"],
        "amount": payload["amount"],
        "date": payload["date"],
        "notes": payload.get("notes") or "",
    }
    # 기존 배열을 다시 쓰지 않고 $push 로 덧붙인다
    return await _update_owned(db, plan_id, user_id, {"$push": {"budgetItems": _to_storable(item)}})


async def update_budget_item(db: AsyncIOMotorDatabase, plan_id: str, user_id: str, item_id: str, payload: dict) -> dict:
    plan = await _find_owned(db, plan_id, user_id)
    items = [dict(item) for item in plan.get("budgetItems") or []]
    target = next((item for item in items if item.get("id") == item_id), None)
    if target is None:
        raise NotFoundError("예산 항목을 찾을 수 없습니다.")
    target.update(_to_storable(payload))
    return await _set_fields(db, plan_id, user_id, {"budgetItems": items})


async def delete_budget_item(db: AsyncIOMotorDatabase, plan_id: str, user_id: str, item_id: str) -> dict:
    plan = await _find_owned(db, plan_id, user_id)
    items = [item for item in plan.get("budgetItems") or [] if item.get("id") != item_id]
    return await _set_fields(db, plan_id, user_id, {"budgetItems": items})
