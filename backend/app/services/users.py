import logging
from datetime import datetime

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from ..core.errors import AuthError, NotFoundError, ValidationError
from ..core.security import get_password_hash, verify_password
from ..schemas.user import UserCreate, UserLogin, UserPublic

logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"
API_KEY_FIELD = "api_keys.dashscope"


def _object_id(user_id: str) -> ObjectId:
    try:
        return ObjectId(user_id)
    except (InvalidId, TypeError) as exc:
        raise ValidationError("잘못된 사용자 ID 형식입니다.") from exc


async def find_user_by_email(db: AsyncIOMotorDatabase, email: str) -> dict | None:
    return await db[USERS_COLLECTION].find_one({"email": email.lower()})


async def get_user_by_id(db: AsyncIOMotorDatabase, user_id: str) -> dict | None:
    return await db[USERS_COLLECTION].find_one({"_id": _object_id(user_id)})


def document_to_user(doc: dict) -> UserPublic:
    return UserPublic(
        id=str(doc["_id"]),
        name=doc.get("name", ""),
        email=doc["email"],
        created_at=doc.get("created_at", datetime.utcnow()),
    )


async def create_user(db: AsyncIOMotorDatabase, payload: UserCreate) -> UserPublic:
    email = payload.email.lower()
    if await find_user_by_email(db, email):
        raise ValidationError("이미 등록된 이메일입니다.")

    now = datetime.utcnow()
    user_doc = {
        "email": email,
        "name": payload.name.strip(),
        "password_hash": get_password_hash(payload.password),
        "api_keys": {},
        "created_at": now,
        "updated_at": now,
    }
    try:
        result = await db[USERS_COLLECTION].insert_one(user_doc)
    except DuplicateKeyError as exc:
        # 동시 가입은 email 고유 인덱스에서 걸린다
        raise ValidationError("이미 등록된 이메일입니다.") from exc
    user_doc["_id"] = result.inserted_id
    return document_to_user(user_doc)


async def authenticate_user(db: AsyncIOMotorDatabase, payload: UserLogin) -> dict:
    user_doc = await find_user_by_email(db, payload.email)
    if not user_doc or not verify_password(payload.password, user_doc.get("password_hash", "")):
        raise AuthError("이메일 또는 비밀번호가 올바르지 않습니다.")
    return user_doc


async def update_profile(db: AsyncIOMotorDatabase, user_id: str, name: str | None) -> UserPublic:
    updates: dict = {"updated_at": datetime.utcnow()}
    if name:
        updates["name"] = name.strip()
    doc = await db[USERS_COLLECTION].find_one_and_update(
        {"_id": _object_id(user_id)},
        {"$set": updates},
        return_document=ReturnDocument.AFTER,
    )
    if not doc:
        raise NotFoundError("사용자를 찾을 수 없습니다.")
    return document_to_user(doc)


async def save_api_key(db: AsyncIOMotorDatabase, user_id: str, api_key: str) -> bool:
    doc = await db[USERS_COLLECTION].find_one_and_update(
        {"_id": _object_id(user_id)},
        {"$set": {API_KEY_FIELD: api_key.strip(), "updated_at": datetime.utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    if not doc:
        raise NotFoundError("사용자를 찾을 수 없습니다.")
    saved = bool((doc.get("api_keys") or {}).get("dashscope"))
    logger.info("API Key 저장 완료: user=%s saved=%s", user_id, saved)
    return saved


async def get_api_key(db: AsyncIOMotorDatabase, user_id: str) -> str | None:
    """저장된 DashScope 키. 응답 본문에는 절대 포함하지 않습니다."""
    doc = await db[USERS_COLLECTION].find_one({"_id": _object_id(user_id)}, {"api_keys": 1})
    if not doc:
        raise NotFoundError("사용자를 찾을 수 없습니다.")
    return (doc.get("api_keys") or {}).get("dashscope") or None
