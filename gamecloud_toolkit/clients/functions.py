"""Client for auxiliary server-side functions (game data validation, leaderboard extras)."""
import logging
from typing import Any, Dict, Optional

import httpx

from .config import FunctionsConfig

logger = logging.getLogger(__name__)


class FunctionsClient:
    """POSTs JSON to <endpoint>/api/<function name>."""

    def __init__(self, config: FunctionsConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self._transport = transport

    async def call_function(self, function_name: str, data: Any = None) -> Any:
        """
        Call a function and return its decoded JSON response.

        Raises:
            RuntimeError: If no endpoint is configured
            httpx.HTTPError: On transport failure or a non-2xx status
        """
        if not self.config.endpoint:
            raise RuntimeError("functions.endpoint is not configured")

        logger.info(f"Calling function: {function_name}")
        try:
            async with httpx.AsyncClient(timeout=self.config.timeout, transport=self._transport) as client:
                response = await client.post(
                    f"{self.config.endpoint}/api/{function_name}",
                    json=data,
                )
                response.raise_for_status()
                return response.json()
        except httpx.HTTPError as e:
            logger.error(f"Failed to call function {function_name}: {e}")
            raise

    async def validate_game_data(self, game_data: Any) -> Dict[str, Any]:
        """Validate game data; reports the service as unavailable instead of raising."""
        try:
            return await self.call_function("validateGameData", game_data)
        except (httpx.HTTPError, RuntimeError, ValueError) as e:
            logger.error(f"Game data validation failed: {e}")
            return {"isValid": False, "errors": ["Validation service unavailable"]}

    async def process_leaderboard(self, player_id: str, score: int) -> Optional[Dict[str, Any]]:
        """Returns {"position": ..., "topScores": [...]}; errors propagate."""
        return await self.call_function("leaderboardExtras", {"playerId": player_id, "score": score})
