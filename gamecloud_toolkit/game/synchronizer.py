"""Local-first game state with best-effort persistence to the player's record.

Mutations change the in-memory state immediately and, when persistence is due,
schedule a save on the running event loop. A failed save only sets `error`;
the local state is never rolled back.
"""
import asyncio
import json
import logging
import time
from dataclasses import replace
from typing import Callable, Optional, Set

from ..clients.identity import IdentityClient
from ..errors import AuthenticationRequired
from .auth import AuthSession
from .models import GAME_STATE_KEY, GameState

logger = logging.getLogger(__name__)

STATUS_IDLE = "idle"
STATUS_LOADING = "loading"
STATUS_READY = "ready"
STATUS_SAVING = "saving"


class GameStateSynchronizer:
    """
    Owns the current GameState.

    With auto_save, start_game/add_score/level_up each trigger a save;
    end_game always saves. Mutations must run inside an event loop whenever
    they trigger a save; flush() waits for scheduled saves to finish.
    """

    def __init__(
        self,
        store: IdentityClient,
        auth: AuthSession,
        auto_save: bool = True,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.auth = auth
        self.auto_save = auto_save
        self._clock = clock
        self.state = GameState()
        self.status = STATUS_IDLE
        self.error: Optional[str] = None
        self._pending: Set[asyncio.Task] = set()
        self._saves_in_flight = 0

    async def load(self) -> GameState:
        """
        Replace local state with the saved one merged over defaults.

        No saved record, or one that cannot be decoded, yields the defaults.
        Without a logged-in player the local state is left as it is.
        """
        if not self.auth.is_authenticated:
            logger.warning("Cannot load game state: no player is logged in")
            self.status = STATUS_READY
            return self.state

        self.status = STATUS_LOADING
        self.error = None
        try:
            record = await self.store.get_user_data([GAME_STATE_KEY])
            raw = record.get(GAME_STATE_KEY)
            if raw is None:
                logger.info("No saved game state, starting from defaults")
                self.state = GameState()
            else:
                self.state = self._decode(raw)
        finally:
            self.status = STATUS_READY
        return self.state

    @staticmethod
    def _decode(raw: str) -> GameState:
        try:
            return GameState.from_dict(json.loads(raw))
        except ValueError as e:
            logger.error(f"Failed to decode saved game state, using defaults: {e}")
            return GameState()

    async def save(self) -> bool:
        """
        Persist the current state with a fresh lastSaved stamp.

        Returns:
            True if the record store accepted the write
        """
        if not self.auth.is_authenticated:
            logger.warning("Cannot save game state: no player is logged in")
            self.error = "You must be logged in to save your game"
            return False

        snapshot = replace(self.state, last_saved=int(self._clock() * 1000))
        payload = {GAME_STATE_KEY: json.dumps(snapshot.to_dict())}

        self._saves_in_flight += 1
        self.status = STATUS_SAVING
        try:
            version = await self.store.update_user_data(payload)
        except AuthenticationRequired as e:
            version = None
            logger.error(f"Failed to save game state: {e}")
        finally:
            self._saves_in_flight -= 1
            if self._saves_in_flight == 0:
                self.status = STATUS_READY

        if version is None:
            self.error = "Failed to save game state"
            return False

        self.error = None
        self.state = replace(self.state, last_saved=snapshot.last_saved)
        logger.info(f"Game state saved (version {version})")
        return True

    def start_game(self) -> Optional[asyncio.Task]:
        self.state = self.state.started()
        return self._persist(self.auto_save)

    def end_game(self) -> Optional[asyncio.Task]:
        # Ending is the natural checkpoint, so it saves regardless of auto_save
        self.state = self.state.ended()
        return self._persist(True)

    def add_score(self, points: int) -> Optional[asyncio.Task]:
        self.state = self.state.with_points(points)
        return self._persist(self.auto_save)

    def level_up(self) -> Optional[asyncio.Task]:
        self.state = self.state.leveled_up()
        return self._persist(self.auto_save)

    def _persist(self, due: bool) -> Optional[asyncio.Task]:
        if not due:
            return None
        task = asyncio.get_running_loop().create_task(self.save())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def flush(self) -> None:
        """Wait until every scheduled save has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending))
