"""
Background job that applies queued player-data operations to the document store.

Run with: rq worker player-data-sync
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from rq import get_current_job

from ..clients.documents import DocumentStoreClient
from ..secrets.domains.cache import SecretCache

logger = logging.getLogger(__name__)

# Shared by every job this worker process runs
_secret_cache = SecretCache()


def _set_progress(progress: str, error: Optional[str] = None) -> None:
    job = get_current_job()
    if job:
        job.meta['progress'] = progress
        if error:
            job.meta['error'] = error
        job.save_meta()


async def apply_player_operation(documents: DocumentStoreClient, message: Dict[str, Any]) -> Any:
    """
    Apply one queued operation.

    Raises:
        ValueError: If the message has no playerId or an unknown operation
        RuntimeError: If the document store rejected the operation, so the
            job is marked failed
    """
    operation = message.get("operation")
    player_id = message.get("playerId")
    data = message.get("data") or {}

    if not player_id:
        raise ValueError("Message is missing playerId")

    if operation in ("create", "update"):
        document = await documents.upsert_item(player_id, {
            **data,
            "_lastUpdated": datetime.now(timezone.utc).isoformat(),
        })
        if document is None:
            raise RuntimeError(f"Failed to {operation} player data for player {player_id}")
        logger.info(f"Player data {operation}d for player {player_id}")
        return document

    if operation == "read":
        document = await documents.read_item(player_id)
        logger.info(f"Player data read for player {player_id}")
        return document

    if operation == "delete":
        if not await documents.delete_item(player_id):
            raise RuntimeError(f"Failed to delete player data for player {player_id}")
        logger.info(f"Player data deleted for player {player_id}")
        return True

    raise ValueError(f"Unknown operation: {operation}")


def process_player_operation(message: Dict[str, Any]) -> Any:
    """RQ entry point: builds a document store client from configuration and applies message.

    Clients are built per job, since each job runs its own event loop; resolved
    secrets are reused across jobs through the process-wide cache.
    """
    from ..factory import create_services

    _set_progress('running')
    services = create_services(cache=_secret_cache)
    try:
        result = asyncio.run(apply_player_operation(services.documents, message))
    except Exception as e:
        logger.error(f"Error processing queued operation: {e}")
        _set_progress('failed', str(e))
        raise

    _set_progress('completed')
    return result
