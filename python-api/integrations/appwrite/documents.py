"""
Appwrite Documents API Wrapper

Provides methods for per-document CRUD and filtered list queries.
"""

import json
from typing import Any, List, Optional

# Mongo-style comparison operators accepted in filters
_OPERATORS = {
    "$gte": "greaterThanEqual",
    "$gt": "greaterThan",
    "$lte": "lessThanEqual",
    "$lt": "lessThan",
    "$ne": "notEqual",
}


def build_queries(
    filter: Optional[dict[str, Any]] = None,
    skip: int = 0,
    limit: Optional[int] = None,
    order_by: Optional[str] = None,
) -> List[str]:
    """
    Translate a Mongo-style filter into Appwrite JSON query strings.

    Plain values are equality matches; a dict value maps operators to operands:

        {"authorId": "u1", "$createdAt": {"$gte": "2024-01-01T00:00:00Z"}}

    Args:
        filter: Field filter (optional)
        skip: Offset for pagination
        limit: Maximum number of documents
        order_by: Field to sort on; prefix with "-" for descending

    Returns:
        List of serialized queries for the ``queries[]`` parameter

    Raises:
        ValueError: If an unknown operator is used
    """
    queries = []

    for attribute, condition in (filter or {}).items():
        if isinstance(condition, dict):
            for op, operand in condition.items():
                method = _OPERATORS.get(op)
                if method is None:
                    raise ValueError(f"Unsupported filter operator: {op}")
                queries.append({"method": method, "attribute": attribute, "values": [operand]})
        else:
            queries.append({"method": "equal", "attribute": attribute, "values": [condition]})

    if order_by:
        if order_by.startswith("-"):
            queries.append({"method": "orderDesc", "attribute": order_by[1:]})
        else:
            queries.append({"method": "orderAsc", "attribute": order_by})
    if skip:
        queries.append({"method": "offset", "values": [skip]})
    if limit is not None:
        queries.append({"method": "limit", "values": [limit]})

    return [json.dumps(q, separators=(",", ":")) for q in queries]


class DocumentsAPI:
    """
    Wrapper for Appwrite Documents API operations.

    None of these calls is transactional across documents, and the store
    offers no compare-and-swap; callers coordinate with check-then-act.
    """

    def __init__(self, client):
        """
        Initialize DocumentsAPI wrapper.

        Args:
            client: AppwriteClient instance
        """
        self.client = client

    def _path(self, collection_id: str, document_id: Optional[str] = None) -> str:
        path = f"{self.client.database_path}/collections/{collection_id}/documents"
        if document_id:
            path = f"{path}/{document_id}"
        return path

    async def list_documents(
        self,
        collection_id: str,
        filter: Optional[dict[str, Any]] = None,
        skip: int = 0,
        limit: int = 100,
        order_by: Optional[str] = None,
    ) -> dict[str, Any]:
        """
        List documents matching a filter.

        Args:
            collection_id: Collection to query
            filter: Mongo-style filter (optional)
            skip: Number of documents to skip
            limit: Maximum number of documents to return
            order_by: Sort field, "-field" for descending

        Returns:
            Dict with "total" (count of all matches) and "documents"

        Example:
            result = await client.documents.list_documents(
                "registrations",
                filter={"eventId": "evt-1"},
                limit=1,
            )
            print(result["total"])
        """
        params = {"queries[]": build_queries(filter, skip=skip, limit=limit, order_by=order_by)}
        response = await self.client._request("GET", self._path(collection_id), params=params)
        return {
            "total": response.get("total", 0),
            "documents": response.get("documents", []),
        }

    async def query_documents(
        self,
        collection_id: str,
        filter: Optional[dict[str, Any]] = None,
        skip: int = 0,
        limit: int = 100,
        order_by: Optional[str] = None,
    ) -> List[dict[str, Any]]:
        """
        Query documents and return just the matching rows.

        Example:
            teams = await client.documents.query_documents(
                "hackathon_teams",
                filter={"inviteCode": "K7QX2M"},
                limit=1,
            )
        """
        result = await self.list_documents(
            collection_id, filter=filter, skip=skip, limit=limit, order_by=order_by
        )
        return result["documents"]

    async def count_documents(
        self,
        collection_id: str,
        filter: Optional[dict[str, Any]] = None,
    ) -> int:
        """
        Count documents matching a filter without transferring them.

        Returns:
            Total number of matching documents
        """
        result = await self.list_documents(collection_id, filter=filter, limit=1)
        return int(result["total"])

    async def get_document(self, collection_id: str, document_id: str) -> dict[str, Any]:
        """
        Get a single document.

        Raises:
            AppwriteNotFound: If the document does not exist
        """
        return await self.client._request("GET", self._path(collection_id, document_id))

    async def create_document(
        self,
        collection_id: str,
        data: dict[str, Any],
        document_id: str = "unique()",
    ) -> dict[str, Any]:
        """
        Create a document.

        Args:
            collection_id: Target collection
            data: Document attributes
            document_id: Explicit ID, or "unique()" for a server-generated one

        Returns:
            Created document including "$id" and "$createdAt"

        Raises:
            AppwriteConflictError: If a unique index rejects the document
        """
        payload = {"documentId": document_id, "data": data}
        return await self.client._request("POST", self._path(collection_id), json=payload)

    async def update_document(
        self,
        collection_id: str,
        document_id: str,
        data: dict[str, Any],
    ) -> dict[str, Any]:
        """
        Partially update a document.

        Returns:
            Updated document
        """
        payload = {"data": data}
        return await self.client._request(
            "PATCH", self._path(collection_id, document_id), json=payload
        )

    async def delete_document(self, collection_id: str, document_id: str) -> dict[str, Any]:
        """
        Delete a document.

        Returns:
            Empty dict on success
        """
        return await self.client._request("DELETE", self._path(collection_id, document_id))
