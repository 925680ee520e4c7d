"""
In-memory test doubles for the Appwrite documents API.

FakeDocuments implements the DocumentsAPI surface the coordinators use:
Mongo-style filters, ``total`` counts, ordering and the unique indexes the
provisioning script creates.
"""

import asyncio
import copy
import itertools
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from integrations.appwrite.documents import build_queries
from integrations.appwrite.exceptions import AppwriteConflictError, AppwriteNotFound
from services import collections

# Unique indexes created by scripts/setup_collections.py
UNIQUE_INDEXES = {
    collections.REGISTRATIONS: [("eventId", "userId")],
    collections.TEAMS: [("inviteCode",)],
    collections.SUBMISSIONS: [("eventId", "teamId")],
}


def _coerce(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
    return value


def _compare(op: str, value: Any, operand: Any) -> bool:
    if op == "$ne":
        return value != operand
    if value is None:
        return False
    value, operand = _coerce(value), _coerce(operand)
    if op == "$gte":
        return value >= operand
    if op == "$gt":
        return value > operand
    if op == "$lte":
        return value <= operand
    if op == "$lt":
        return value < operand
    raise ValueError(f"Unsupported filter operator: {op}")


def _matches(document: Dict[str, Any], filter: Optional[Dict[str, Any]]) -> bool:
    for attribute, condition in (filter or {}).items():
        value = document.get(attribute)
        if isinstance(condition, dict):
            if not all(_compare(op, value, operand) for op, operand in condition.items()):
                return False
        elif value != condition:
            return False
    return True


class FakeDocuments:
    """
    In-memory documents API with Mongo-style filters, ``total`` counts and
    unique indexes.

    With ``interleave`` set, every call yields to the event loop first so
    concurrent coordinator calls interleave their reads and writes the way
    they would against a remote store.
    """

    def __init__(self, unique: Optional[Dict[str, list]] = None, interleave: bool = False):
        self.store: Dict[str, Dict[str, Dict[str, Any]]] = defaultdict(dict)
        self.unique = UNIQUE_INDEXES if unique is None else unique
        self.interleave = interleave
        self.failures: Dict[tuple, Exception] = {}
        self.calls: list = []
        self._ids = itertools.count(1)

    def fail_on(self, method: str, error: Exception, collection_id: Optional[str] = None):
        """Make ``method`` raise ``error`` (for one collection, or all)."""
        self.failures[(method, collection_id)] = error

    def seed(self, collection_id: str, document: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a document directly, bypassing unique checks."""
        document = dict(document)
        document.setdefault("$id", f"{collection_id}-{next(self._ids)}")
        now = datetime.now(timezone.utc).isoformat()
        document.setdefault("$createdAt", now)
        document.setdefault("$updatedAt", document["$createdAt"])
        self.store[collection_id][document["$id"]] = document
        return copy.deepcopy(document)

    def all(self, collection_id: str) -> list:
        return [copy.deepcopy(d) for d in self.store[collection_id].values()]

    async def _enter(self, method: str, collection_id: str) -> None:
        self.calls.append((method, collection_id))
        if self.interleave:
            await asyncio.sleep(0)
        error = self.failures.get((method, collection_id)) or self.failures.get((method, None))
        if error is not None:
            raise error

    async def list_documents(
        self,
        collection_id: str,
        filter: Optional[Dict[str, Any]] = None,
        skip: int = 0,
        limit: int = 100,
        order_by: Optional[str] = None,
    ) -> Dict[str, Any]:
        # Rejects unsupported operators like the real client
        build_queries(filter, skip, limit, order_by)
        await self._enter("list_documents", collection_id)

        matches = [d for d in self.store[collection_id].values() if _matches(d, filter)]
        if order_by:
            key = order_by.lstrip("-")
            matches.sort(
                key=lambda d: (d.get(key) is not None, _coerce(d.get(key)) or ""),
                reverse=order_by.startswith("-"),
            )
        return {
            "total": len(matches),
            "documents": copy.deepcopy(matches[skip:skip + limit]),
        }

    async def query_documents(self, collection_id: str, **kwargs) -> list:
        result = await self.list_documents(collection_id, **kwargs)
        return result["documents"]

    async def count_documents(self, collection_id: str, filter: Optional[Dict[str, Any]] = None) -> int:
        result = await self.list_documents(collection_id, filter=filter, limit=1)
        return result["total"]

    async def get_document(self, collection_id: str, document_id: str) -> Dict[str, Any]:
        await self._enter("get_document", collection_id)
        if document_id not in self.store[collection_id]:
            raise AppwriteNotFound("Resource not found", status_code=404)
        return copy.deepcopy(self.store[collection_id][document_id])

    async def create_document(
        self, collection_id: str, data: Dict[str, Any], document_id: str = "unique()"
    ) -> Dict[str, Any]:
        await self._enter("create_document", collection_id)

        for fields in self.unique.get(collection_id, []):
            values = tuple(data.get(f) for f in fields)
            if any(v is None for v in values):
                continue
            for existing in self.store[collection_id].values():
                if tuple(existing.get(f) for f in fields) == values:
                    raise AppwriteConflictError("Resource already exists", status_code=409)

        if document_id == "unique()":
            document_id = f"{collection_id}-{next(self._ids)}"
        elif document_id in self.store[collection_id]:
            raise AppwriteConflictError("Resource already exists", status_code=409)

        now = datetime.now(timezone.utc).isoformat()
        document = {**copy.deepcopy(data), "$id": document_id, "$createdAt": now, "$updatedAt": now}
        self.store[collection_id][document_id] = document
        return copy.deepcopy(document)

    async def update_document(
        self, collection_id: str, document_id: str, data: Dict[str, Any]
    ) -> Dict[str, Any]:
        await self._enter("update_document", collection_id)
        if document_id not in self.store[collection_id]:
            raise AppwriteNotFound("Resource not found", status_code=404)
        document = self.store[collection_id][document_id]
        document.update(copy.deepcopy(data))
        document["$updatedAt"] = datetime.now(timezone.utc).isoformat()
        return copy.deepcopy(document)

    async def delete_document(self, collection_id: str, document_id: str) -> Dict[str, Any]:
        await self._enter("delete_document", collection_id)
        if document_id not in self.store[collection_id]:
            raise AppwriteNotFound("Resource not found", status_code=404)
        del self.store[collection_id][document_id]
        return {}


class FakeAppwriteClient:
    """Stands in for AppwriteClient; only ``documents`` is used by services."""

    def __init__(self, documents: Optional[FakeDocuments] = None):
        self.documents = documents or FakeDocuments()

    async def close(self):
        pass


