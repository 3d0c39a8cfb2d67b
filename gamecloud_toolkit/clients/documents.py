"""Document store client for game data (Supabase table of id -> JSON document rows)."""
import logging
from typing import Any, Dict, List, Optional

from supabase import Client, create_client

from .base import CredentialBearingClient
from .config import DocumentStoreConfig

logger = logging.getLogger(__name__)


class DocumentStoreClient(CredentialBearingClient[DocumentStoreConfig]):
    """
    CRUD and query operations on player documents.

    Rows have two columns: "id" (primary key) and "data" (jsonb document).
    Reads hand back the document with its "id" merged in. Every failure is
    logged and returned as None / False / [].
    """

    service_name = "Document store"

    async def _build_handle(self, credential: str) -> Client:
        if not self.config.url:
            raise ValueError("documents.url is not configured")
        return create_client(self.config.url, credential)

    def _table(self):
        return self._handle.table(self.config.table)

    async def upsert_item(self, item_id: str, item: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Create or replace a document.

        Returns:
            The stored document (always carrying "id"), or None on failure
        """
        if not await self._ready_or_warn("upsert item"):
            return None

        document = {**item, "id": item_id}
        try:
            logger.info(f"Upserting item with id: {item_id}")
            query = self._table().upsert({"id": item_id, "data": document}, on_conflict="id")
            response = await self._run_blocking(query.execute)
        except Exception as e:
            logger.error(f"Failed to upsert item {item_id}: {e}")
            return None

        logger.info(f"Item upserted successfully: {item_id}")
        if response.data:
            return self._to_document(response.data[0])
        return document

    async def read_item(self, item_id: str) -> Optional[Dict[str, Any]]:
        """Return the document with item_id, or None if it is absent or unreadable."""
        if not await self._ready_or_warn("read item"):
            return None

        try:
            logger.info(f"Reading item with id: {item_id}")
            query = self._table().select("*").eq("id", item_id).limit(1)
            response = await self._run_blocking(query.execute)
        except Exception as e:
            logger.error(f"Failed to read item {item_id}: {e}")
            return None

        if not response.data:
            logger.info(f"Item not found: {item_id}")
            return None
        return self._to_document(response.data[0])

    async def delete_item(self, item_id: str) -> bool:
        if not await self._ready_or_warn("delete item"):
            return False

        try:
            logger.info(f"Deleting item with id: {item_id}")
            query = self._table().delete().eq("id", item_id)
            await self._run_blocking(query.execute)
        except Exception as e:
            logger.error(f"Failed to delete item {item_id}: {e}")
            return False

        logger.info(f"Item deleted successfully: {item_id}")
        return True

    async def query_items(self, query: str, parameters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """
        Run a stored SQL function and return the matching documents.

        Args:
            query: Name of the database function to call
            parameters: Named arguments for the function
        """
        if not await self._ready_or_warn("query items"):
            return []

        try:
            logger.info(f"Querying items with query: {query}")
            request = self._handle.rpc(query, parameters or {})
            response = await self._run_blocking(request.execute)
        except Exception as e:
            logger.error(f"Failed to query items: {e}")
            return []

        rows = response.data or []
        if not isinstance(rows, list):
            rows = [rows]
        return [self._to_document(row) for row in rows]

    @staticmethod
    def _to_document(row: Dict[str, Any]) -> Dict[str, Any]:
        data = row.get("data")
        if isinstance(data, dict):
            return {**data, "id": row.get("id", data.get("id"))}
        return dict(row)
