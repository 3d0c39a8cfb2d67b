"""Keeps the document store in step with player records by way of the queue."""
import json
import logging
from typing import Any, Dict, Optional

from ..clients.identity import IdentityClient
from ..clients.queue import QueueClient
from ..errors import AuthenticationRequired

logger = logging.getLogger(__name__)


class DataIntegrationService:
    """Writes player data to the record store, then queues the document-store update."""

    def __init__(self, identity: IdentityClient, queue: QueueClient):
        self.identity = identity
        self.queue = queue

    async def sync_player_data(self, player_id: str, data: Dict[str, Any]) -> bool:
        """
        Synchronize player data to the document store.

        Non-string values are JSON-encoded for the record store; the queued
        message carries the original values.

        Returns:
            True if both the record write and the enqueue succeeded
        """
        record = {
            key: value if isinstance(value, str) else json.dumps(value)
            for key, value in data.items()
        }

        try:
            version = await self.identity.update_user_data(record)
        except AuthenticationRequired as e:
            logger.error(f"Failed to synchronize player data: {e}")
            return False

        if version is None:
            logger.error("Failed to synchronize player data: record store write failed")
            return False

        return await self.queue.enqueue_player_data_operation("update", player_id, data)

    async def delete_player_data(self, player_id: str) -> bool:
        # The record store offers no bulk delete; only the document is removed
        return await self.queue.enqueue_player_data_operation("delete", player_id)

    async def execute_cloud_script(self, function_name: str, parameters: Optional[Dict[str, Any]] = None) -> Any:
        return await self.identity.execute_cloud_script(function_name, parameters or {})
