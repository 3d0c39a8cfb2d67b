"""Player-facing data models and their record-store encoding."""
import math
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

GAME_STATE_KEY = "GameState"

# Flat string keys stored next to GameState in the player's record
DISPLAY_NAME_KEY = "DisplayName"
BIO_KEY = "Bio"
AVATAR_URL_KEY = "AvatarUrl"
PROFILE_KEYS = [DISPLAY_NAME_KEY, BIO_KEY, AVATAR_URL_KEY]


@dataclass(frozen=True)
class GameState:
    score: int = 0
    level: int = 1
    is_playing: bool = False
    last_saved: Optional[int] = None  # epoch milliseconds

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "score": self.score,
            "level": self.level,
            "isPlaying": self.is_playing,
        }
        if self.last_saved is not None:
            data["lastSaved"] = self.last_saved
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameState":
        """
        Shallow-merge a saved state over the defaults.

        Fields missing from an older save keep their default values; unknown
        keys are ignored.

        Raises:
            ValueError: If data is not a mapping or a field has the wrong type
        """
        if not isinstance(data, dict):
            raise ValueError(f"Saved game state must be an object, got {type(data).__name__}")

        merged = {**cls().to_dict(), **data}
        last_saved = merged.get("lastSaved")
        if not isinstance(merged["isPlaying"], bool):
            raise ValueError("isPlaying must be a boolean")
        return cls(
            score=_as_int(merged["score"], "score"),
            level=_as_int(merged["level"], "level"),
            is_playing=merged["isPlaying"],
            last_saved=_as_int(last_saved, "lastSaved") if last_saved is not None else None,
        )

    def started(self) -> "GameState":
        return replace(GameState(), is_playing=True)

    def ended(self) -> "GameState":
        return replace(self, is_playing=False)

    def with_points(self, points: int) -> "GameState":
        return replace(self, score=self.score + points)

    def leveled_up(self) -> "GameState":
        return replace(self, level=self.level + 1)


def _as_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{field_name} must be a number")
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError(f"{field_name} must be a finite number")
    return int(value)


@dataclass
class ProfileData:
    display_name: str = ""
    bio: str = ""
    avatar_url: str = ""

    def to_record(self) -> Dict[str, str]:
        return {
            DISPLAY_NAME_KEY: self.display_name,
            BIO_KEY: self.bio,
            AVATAR_URL_KEY: self.avatar_url,
        }
