"""Domain models for secret management."""
from dataclasses import dataclass


@dataclass(frozen=True)
class SecretCacheEntry:
    """A resolved secret and the time it was resolved."""
    name: str
    value: str
    resolved_at: float  # seconds since the epoch
    source: str = "secret_manager"  # "secret_manager" or "env"

    def is_fresh(self, now: float, ttl_seconds: float) -> bool:
        return now - self.resolved_at < ttl_seconds
