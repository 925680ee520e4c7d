"""
Advisory Counters

Helpers for denormalized counters (team ``memberCount``, blog ``views``,
event ``registered``). The store has no atomic increment, so every
increment is a read followed by a write and concurrent increments can be
lost. These values are display/advisory only: invariants are always
checked against them or recomputed from source documents, and
``recount`` restores them after drift or a partially applied request.
"""

import logging
from typing import Any, Dict, Optional

from integrations.appwrite.client import AppwriteClient
from integrations.appwrite.exceptions import AppwriteError

# Configure logger
logger = logging.getLogger(__name__)


async def increment_counter(
    client: AppwriteClient,
    collection_id: str,
    document_id: str,
    field: str,
    amount: int = 1,
) -> Optional[int]:
    """
    Best-effort increment of a numeric field.

    Re-reads the document right before writing to keep the lost-update
    window small. Failures are logged and swallowed.

    Args:
        client: Appwrite client instance
        collection_id: Collection holding the document
        document_id: Document to update
        field: Counter attribute
        amount: Increment (default 1)

    Returns:
        The value written, or None if the increment failed
    """
    try:
        document = await client.documents.get_document(collection_id, document_id)
        new_value = int(document.get(field) or 0) + amount
        await client.documents.update_document(collection_id, document_id, {field: new_value})
        return new_value
    except AppwriteError as e:
        logger.warning(
            f"Counter increment failed for {collection_id}/{document_id}.{field}: {str(e)}",
            extra={"collection": collection_id, "document_id": document_id, "field": field},
        )
        return None


async def recount(
    client: AppwriteClient,
    collection_id: str,
    document_id: str,
    field: str,
    source_collection_id: str,
    source_filter: Dict[str, Any],
) -> int:
    """
    Recompute a counter from its source documents and store it.

    Args:
        client: Appwrite client instance
        collection_id: Collection holding the counter
        document_id: Document holding the counter
        field: Counter attribute
        source_collection_id: Collection whose matching documents are counted
        source_filter: Filter selecting the counted documents

    Returns:
        The recomputed value

    Raises:
        AppwriteError: If the count or the write fails
    """
    total = await client.documents.count_documents(source_collection_id, filter=source_filter)
    await client.documents.update_document(collection_id, document_id, {field: total})
    logger.info(f"Reconciled {collection_id}/{document_id}.{field} to {total}")
    return total
