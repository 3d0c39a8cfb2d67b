"""Message queue client that hands player-data operations to background workers (RQ over Redis)."""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from redis import Redis
from rq import Queue

from .base import CredentialBearingClient
from .config import QueueConfig

logger = logging.getLogger(__name__)

# Job executed by `rq worker` for every enqueued message
PROCESS_FUNCTION_PATH = "gamecloud_toolkit.game.worker.process_player_operation"

PLAYER_DATA_OPERATIONS = ("create", "read", "update", "delete")


class QueueClient(CredentialBearingClient[QueueConfig]):
    """Fire-and-forget dispatch: success means the message was accepted by the queue."""

    service_name = "Queue"

    async def _build_handle(self, credential: str) -> Queue:
        connection = Redis(
            host=self.config.host,
            port=self.config.port,
            db=self.config.db,
            password=credential,
            socket_timeout=self.config.timeout,
        )
        return Queue(self.config.queue_name, connection=connection)

    async def enqueue_message(self, message: Dict[str, Any]) -> bool:
        """
        Enqueue a message for processing by the worker.

        Returns:
            True if the message was enqueued, False otherwise
        """
        if not await self._ready_or_warn("enqueue message"):
            return False

        try:
            logger.info(f"Enqueueing message on queue {self.config.queue_name}")
            job = await self._run_blocking(self._handle.enqueue, PROCESS_FUNCTION_PATH, message)
        except Exception as e:
            logger.error(f"Failed to enqueue message: {e}")
            return False

        logger.info(f"Message enqueued successfully as job {job.id}")
        return True

    async def enqueue_player_data_operation(
        self,
        operation: str,
        player_id: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Enqueue a player data operation.

        Args:
            operation: One of create, read, update, delete
            player_id: Player ID
            data: Player data (empty for read/delete)

        Raises:
            ValueError: If operation is not a known player data operation
        """
        if operation not in PLAYER_DATA_OPERATIONS:
            raise ValueError(f"Unknown operation: {operation}")

        return await self.enqueue_message({
            "operation": operation,
            "playerId": player_id,
            "data": data or {},
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })
