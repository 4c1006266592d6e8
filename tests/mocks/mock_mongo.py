"""Mock MongoDB client for testing.

Implements the slice of the Motor collection API the conversation
repository uses, including the query and update operators its guarded
commits rely on ($size, dotted array paths, $push, $inc, $set).
"""

import copy
from typing import Any
from unittest.mock import MagicMock

from pymongo.errors import DuplicateKeyError


def _get_path(doc: Any, path: str) -> Any:
    current = doc
    for part in path.split("."):
        if isinstance(current, list):
            if not part.isdigit() or int(part) >= len(current):
                return None
            current = current[int(part)]
        elif isinstance(current, dict):
            if part not in current:
                return None
            current = current[part]
        else:
            return None
    return current


def _set_path(doc: dict[str, Any], path: str, value: Any) -> None:
    parts = path.split(".")
    current: Any = doc
    for part in parts[:-1]:
        if isinstance(current, list):
            current = current[int(part)]
        else:
            current = current.setdefault(part, {})
    last = parts[-1]
    if isinstance(current, list):
        current[int(last)] = value
    else:
        current[last] = value


def _matches(doc: dict[str, Any], filter_: dict[str, Any]) -> bool:
    for key, expected in filter_.items():
        actual = _get_path(doc, key)
        if isinstance(expected, dict) and "$size" in expected:
            if not isinstance(actual, list) or len(actual) != expected["$size"]:
                return False
        elif isinstance(actual, list) and not isinstance(expected, list):
            if expected not in actual:
                return False
        elif actual != expected:
            return False
    return True


def _project(doc: dict[str, Any], projection: dict[str, Any] | None) -> dict[str, Any]:
    result = copy.deepcopy(doc)
    for key, include in (projection or {}).items():
        if not include:
            result.pop(key, None)
    return result


class MockMongoCollection:
    """Mock MongoDB collection keyed by conversation_id."""

    def __init__(self) -> None:
        self._documents: dict[str, dict[str, Any]] = {}
        self.update_filters: list[dict[str, Any]] = []

    async def insert_one(self, document: dict[str, Any]) -> MagicMock:
        key = document["conversation_id"]
        if key in self._documents:
            raise DuplicateKeyError(f"duplicate conversation_id: {key}")
        self._documents[key] = copy.deepcopy(document)
        result = MagicMock()
        result.inserted_id = key
        return result

    async def find_one(
        self,
        filter_: dict[str, Any],
        projection: dict[str, Any] | None = None,
    ) -> dict[str, Any] | None:
        for doc in self._documents.values():
            if _matches(doc, filter_):
                return _project(doc, projection)
        return None

    async def find_one_and_update(
        self,
        filter_: dict[str, Any],
        update: dict[str, Any],
        projection: dict[str, Any] | None = None,
        return_document: Any = None,
    ) -> dict[str, Any] | None:
        self.update_filters.append(copy.deepcopy(filter_))
        for doc in self._documents.values():
            if _matches(doc, filter_):
                self._apply(doc, update)
                return _project(doc, projection)
        return None

    async def update_one(self, filter_: dict[str, Any], update: dict[str, Any]) -> MagicMock:
        result = MagicMock()
        result.matched_count = 0
        for doc in self._documents.values():
            if _matches(doc, filter_):
                self._apply(doc, update)
                result.matched_count = 1
                break
        return result

    async def count_documents(
        self,
        filter_: dict[str, Any],
        limit: int = 0,
    ) -> int:
        count = sum(1 for d in self._documents.values() if _matches(d, filter_))
        return min(count, limit) if limit else count

    def find(
        self,
        filter_: dict[str, Any] | None = None,
        projection: dict[str, Any] | None = None,
    ) -> "MockCursor":
        docs = [
            _project(d, projection)
            for d in self._documents.values()
            if _matches(d, filter_ or {})
        ]
        return MockCursor(docs)

    @staticmethod
    def _apply(doc: dict[str, Any], update: dict[str, Any]) -> None:
        for path, value in update.get("$set", {}).items():
            _set_path(doc, path, copy.deepcopy(value))
        for path, amount in update.get("$inc", {}).items():
            _set_path(doc, path, (_get_path(doc, path) or 0) + amount)
        for path, value in update.get("$push", {}).items():
            target = _get_path(doc, path)
            if target is None:
                _set_path(doc, path, [])
                target = _get_path(doc, path)
            target.append(copy.deepcopy(value))


class MockCursor:
    """Mock MongoDB cursor."""

    def __init__(self, documents: list[dict[str, Any]]) -> None:
        self._documents = documents

    def sort(self, key: str, direction: int = 1) -> "MockCursor":
        self._documents.sort(key=lambda d: d[key], reverse=direction < 0)
        return self

    def skip(self, n: int) -> "MockCursor":
        self._documents = self._documents[n:]
        return self

    def limit(self, n: int) -> "MockCursor":
        self._documents = self._documents[:n]
        return self

    def __aiter__(self) -> "MockCursor":
        self._index = 0
        return self

    async def __anext__(self) -> dict[str, Any]:
        if self._index >= len(self._documents):
            raise StopAsyncIteration
        doc = self._documents[self._index]
        self._index += 1
        return doc


class MockMongoClient:
    """Mock MongoDB client for testing."""

    def __init__(self, settings: Any = None) -> None:
        self.settings = settings
        self._collections: dict[str, MockMongoCollection] = {}
        self.connected = False

    def __getitem__(self, name: str) -> MockMongoCollection:
        if name not in self._collections:
            self._collections[name] = MockMongoCollection()
        return self._collections[name]

    @property
    def conversations(self) -> MockMongoCollection:
        return self["conversations"]

    async def connect(self) -> None:
        self.connected = True

    async def disconnect(self) -> None:
        self.connected = False

    async def create_indexes(self) -> None:
        pass
