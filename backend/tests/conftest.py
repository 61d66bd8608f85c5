from __future__ import annotations

import copy
import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest
from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

PROJECT_ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(PROJECT_ROOT))

from backend.app.db.mongo import MongoConnectionManager  # noqa: E402
from backend.app.db.redis import RedisConnectionManager  # noqa: E402
from backend.app.services import llm as llm_service  # noqa: E402


def _lookup(doc: dict, dotted: str) -> Any:
    value: Any = doc
    for part in dotted.split("."):
        if not isinstance(value, dict) or part not in value:
            return None
        value = value[part]
    return value


def _assign(doc: dict, dotted: str, value: Any) -> None:
    *parents, leaf = dotted.split(".")
    target = doc
    for part in parents:
        target = target.setdefault(part, {})
    target[leaf] = value


class _FakeCursor:
    def __init__(self, docs: list[dict]) -> None:
        self._docs = docs

    def sort(self, key: str, direction: int) -> "_FakeCursor":
        self._docs.sort(key=lambda doc: doc.get(key), reverse=direction < 0)
        return self

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for doc in self._docs:
            yield doc


class FakeCollection:
    """서비스 계층이 사용하는 motor 컬렉션 연산만 흉내 냅니다."""

    def __init__(self) -> None:
        self.docs: list[dict] = []
        self.updates: list[dict] = []
        self.unique_fields: set[str] = set()

    def _matches(self, doc: dict, query: dict) -> bool:
        return all(_lookup(doc, key) == value for key, value in query.items())

    def _project(self, doc: dict, projection: dict | None) -> dict:
        doc = copy.deepcopy(doc)
        if not projection:
            return doc
        return {key: value for key, value in doc.items() if key == "_id" or projection.get(key)}

    async def create_index(self, keys: Any, unique: bool = False, **_kwargs: Any) -> None:
        if unique and isinstance(keys, str):
            self.unique_fields.add(keys)

    async def insert_one(self, doc: dict) -> SimpleNamespace:
        for field in self.unique_fields:
            if any(_lookup(existing, field) == _lookup(doc, field) for existing in self.docs):
                raise DuplicateKeyError(f"E11000 duplicate key error: {field}")
        doc.setdefault("_id", ObjectId())
        self.docs.append(copy.deepcopy(doc))
        return SimpleNamespace(inserted_id=doc["_id"])

    async def find_one(self, query: dict, projection: dict | None = None) -> dict | None:
        for doc in self.docs:
            if self._matches(doc, query):
                return self._project(doc, projection)
        return None

    def find(self, query: dict, projection: dict | None = None) -> _FakeCursor:
        return _FakeCursor([self._project(doc, projection) for doc in self.docs if self._matches(doc, query)])

    async def find_one_and_update(
        self,
        query: dict,
        update: dict,
        return_document: ReturnDocument = ReturnDocument.BEFORE,
    ) -> dict | None:
        for doc in self.docs:
            if self._matches(doc, query):
                before = copy.deepcopy(doc)
                self.updates.append(copy.deepcopy(update))
                for key, value in update.get("$set", {}).items():
                    _assign(doc, key, copy.deepcopy(value))
                for key, value in update.get("$push", {}).items():
                    current = _lookup(doc, key)
                    _assign(doc, key, [*(current or []), copy.deepcopy(value)])
                return copy.deepcopy(doc) if return_document == ReturnDocument.AFTER else before
        return None

    async def delete_one(self, query: dict) -> SimpleNamespace:
        for index, doc in enumerate(self.docs):
            if self._matches(doc, query):
                del self.docs[index]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)


class FakeDatabase:
    def __init__(self) -> None:
        self.collections: dict[str, FakeCollection] = {}

    def __getitem__(self, name: str) -> FakeCollection:
        return self.collections.setdefault(name, FakeCollection())


class FakeMongoClient:
    def __init__(self) -> None:
        self.db = FakeDatabase()
        self.ping_count = 0
        self.admin = SimpleNamespace(command=self._command)

    async def _command(self, name: str) -> dict:
        self.ping_count += 1
        return {"ok": 1}

    def __getitem__(self, _name: str) -> FakeDatabase:
        return self.db

    def close(self) -> None:
        return None


class FakeRedis:
    def __init__(self) -> None:
        self.store: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self.store.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> bool:
        self.store[key] = value
        return True

    async def delete(self, *keys: str) -> int:
        return sum(1 for key in keys if self.store.pop(key, None) is not None)

    async def exists(self, *keys: str) -> int:
        return sum(1 for key in keys if key in self.store)

    async def aclose(self) -> None:
        return None


class FakeUpstream:
    """llm._invoke 대체. envelope 또는 error 를 지정하지 않으면 호출 자체가 실패합니다."""

    def __init__(self) -> None:
        self.envelope: dict[str, Any] | None = None
        self.error: Exception | None = None
        self.calls: list[dict[str, Any]] = []

    async def __call__(self, prompt: str, **kwargs: Any) -> dict[str, Any]:
        self.calls.append({"prompt": prompt, **kwargs})
        if self.error is not None:
            raise self.error
        if self.envelope is None:
            raise AssertionError("예상하지 못한 업스트림 호출")
        return self.envelope


@pytest.fixture
def fake_mongo() -> FakeMongoClient:
    return FakeMongoClient()


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture(autouse=True)
def stub_infrastructure(monkeypatch: pytest.MonkeyPatch, fake_mongo: FakeMongoClient, fake_redis: FakeRedis) -> None:
    """MongoDB/Redis 를 메모리 구현으로 대체합니다."""

    async def _noop_close(cls: type) -> None:
        return None

    monkeypatch.setattr(MongoConnectionManager, "get_client", classmethod(lambda cls: fake_mongo))
    monkeypatch.setattr(RedisConnectionManager, "get_client", classmethod(lambda cls: fake_redis))
    monkeypatch.setattr(MongoConnectionManager, "close", classmethod(_noop_close))
    monkeypatch.setattr(RedisConnectionManager, "close", classmethod(_noop_close))


@pytest.fixture(autouse=True)
def upstream(monkeypatch: pytest.MonkeyPatch) -> FakeUpstream:
    fake = FakeUpstream()
    monkeypatch.setattr(llm_service, "_invoke", fake)
    return fake
