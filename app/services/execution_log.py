from __future__ import annotations

from typing import Any, Optional, Protocol

from ..schemas.common import ExecutionRecord


class ExecutionLog(Protocol):
    def record(self, entry: ExecutionRecord) -> None: ...

    def recent(
        self,
        *,
        entity_id: Optional[str] = None,
        action: Optional[str] = None,
        limit: int = 50,
    ) -> list[ExecutionRecord]: ...


class InMemoryExecutionLog:
    def __init__(self) -> None:
        self._entries: list[ExecutionRecord] = []

    def record(self, entry: ExecutionRecord) -> None:
        self._entries.append(entry)

    def recent(
        self,
        *,
        entity_id: Optional[str] = None,
        action: Optional[str] = None,
        limit: int = 50,
    ) -> list[ExecutionRecord]:
        matches = [
            e for e in reversed(self._entries)
            if (entity_id is None or e.entity_id == entity_id)
            and (action is None or e.action == action.upper())
        ]
        return matches[:limit]


class MongoExecutionLog:
    def __init__(self, collection=None) -> None:
        if collection is None:
            from ..db.mongo import executions_collection
            collection = executions_collection()
        self.collection = collection

    def record(self, entry: ExecutionRecord) -> None:
        self.collection.insert_one(entry.model_dump())

    def recent(
        self,
        *,
        entity_id: Optional[str] = None,
        action: Optional[str] = None,
        limit: int = 50,
    ) -> list[ExecutionRecord]:
        query: dict[str, Any] = {}
        if entity_id is not None:
            query["entity_id"] = entity_id
        if action is not None:
            query["action"] = action.upper()
        cursor = self.collection.find(query, {"_id": 0}).sort("timestamp", -1).limit(limit)
        return [ExecutionRecord.model_validate(doc) for doc in cursor]
