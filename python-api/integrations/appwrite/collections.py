"""
Appwrite Collections API Wrapper

Provides methods for provisioning collections, attributes and indexes.
"""

from typing import Any, List, Optional


class CollectionsAPI:
    """
    Wrapper for Appwrite collection administration.

    Provides methods for:
    - Creating and listing collections
    - Creating typed attributes
    - Creating key and unique indexes
    """

    def __init__(self, client):
        """
        Initialize CollectionsAPI wrapper.

        Args:
            client: AppwriteClient instance
        """
        self.client = client

    @property
    def _base(self) -> str:
        return f"{self.client.database_path}/collections"

    async def create(
        self,
        collection_id: str,
        name: str,
        permissions: Optional[List[str]] = None,
        document_security: bool = False,
    ) -> dict[str, Any]:
        """
        Create a new collection.

        Args:
            collection_id: Collection ID
            name: Display name
            permissions: Collection-level permission strings
            document_security: Whether per-document permissions apply

        Returns:
            Dict with collection details
        """
        payload = {
            "collectionId": collection_id,
            "name": name,
            "documentSecurity": document_security,
            "permissions": permissions or [],
        }
        return await self.client._request("POST", self._base, json=payload)

    async def list(self, limit: int = 100) -> list[dict[str, Any]]:
        """List collections in the database."""
        response = await self.client._request("GET", self._base)
        return response.get("collections", [])[:limit]

    async def create_attribute(
        self,
        collection_id: str,
        attribute_type: str,
        key: str,
        required: bool = False,
        default: Any = None,
        array: bool = False,
        size: Optional[int] = None,
        min: Optional[float] = None,
        max: Optional[float] = None,
        elements: Optional[List[str]] = None,
    ) -> dict[str, Any]:
        """
        Create an attribute on a collection.

        Args:
            collection_id: Collection ID
            attribute_type: string, integer, float, boolean, enum or datetime
            key: Attribute key
            required: Whether the attribute is required
            default: Default value (must be None when required)
            array: Whether the attribute holds a list
            size: Max length for string attributes
            min: Minimum for numeric attributes
            max: Maximum for numeric attributes
            elements: Allowed values for enum attributes

        Example:
            await client.collections.create_attribute(
                "hackathon_teams", "string", "inviteCode", required=True, size=6
            )
        """
        payload: dict[str, Any] = {"key": key, "required": required}
        if not required:
            payload["default"] = default
        if array:
            payload["array"] = True

        if attribute_type == "string":
            payload["size"] = size or 255
        elif attribute_type in ("integer", "float"):
            payload["min"] = min
            payload["max"] = max
        elif attribute_type == "enum":
            payload["elements"] = elements or []

        path = f"{self._base}/{collection_id}/attributes/{attribute_type}"
        return await self.client._request("POST", path, json=payload)

    async def list_attributes(self, collection_id: str) -> list[dict[str, Any]]:
        """List attributes and their processing status."""
        response = await self.client._request("GET", f"{self._base}/{collection_id}/attributes")
        return response.get("attributes", [])

    async def create_index(
        self,
        collection_id: str,
        key: str,
        index_type: str,
        attributes: List[str],
        orders: Optional[List[str]] = None,
    ) -> dict[str, Any]:
        """
        Create an index.

        Args:
            collection_id: Collection ID
            key: Index key
            index_type: "key", "unique" or "fulltext"
            attributes: Indexed attribute keys
            orders: Sort order per attribute (defaults to ASC)
        """
        payload = {
            "key": key,
            "type": index_type,
            "attributes": attributes,
            "orders": orders or ["ASC" for _ in attributes],
        }
        return await self.client._request("POST", f"{self._base}/{collection_id}/indexes", json=payload)
