"""Configuration for each service client.

Every field is resolved with the same precedence:
explicit keyword override > environment variable > config file section > default.

Environment variables are named GAMECLOUD_<SECTION>_<FIELD>, for example
GAMECLOUD_STORAGE_CDN_ENDPOINT or GAMECLOUD_QUEUE_PORT.
"""
import os
import logging
from dataclasses import MISSING, dataclass, fields
from typing import Any, ClassVar, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


def _pick(name: str, overrides: Dict[str, Any], section: Dict[str, Any], env_name: str, fallback: Any) -> Any:
    if overrides.get(name) is not None:
        value = overrides[name]
    elif os.getenv(env_name):
        value = os.getenv(env_name)
        logger.debug(f"Using {env_name} from environment")
    elif section.get(name) is not None:
        value = section[name]
    else:
        return fallback

    # Environment and YAML values may arrive as strings
    if isinstance(fallback, bool):
        return str(value).lower() in ("1", "true", "yes")
    if isinstance(fallback, (int, float)) and not isinstance(value, type(fallback)):
        return type(fallback)(value)
    return value


@dataclass
class ServiceConfig:
    """Base for all service configs."""
    SECTION: ClassVar[str] = ""

    timeout: float = DEFAULT_TIMEOUT_SECONDS

    @classmethod
    def from_settings(cls, config: Optional[Dict[str, Any]] = None, **overrides):
        """
        Build a config from the loaded YAML config, environment and overrides.

        Args:
            config: Full configuration dict as returned by load_config (may be empty)
            **overrides: Explicit field values; None means "not overridden"

        Raises:
            TypeError: If an override does not name a field of this config
        """
        known = {f.name for f in fields(cls)}
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"Unknown {cls.__name__} fields: {', '.join(sorted(unknown))}")

        section = (config or {}).get(cls.SECTION) or {}
        values = {}
        for f in fields(cls):
            fallback = f.default if f.default is not MISSING else None
            env_name = f"GAMECLOUD_{cls.SECTION.upper()}_{f.name.upper()}"
            values[f.name] = _pick(f.name, overrides, section, env_name, fallback)
        return cls(**values)


@dataclass
class ClientConfig(ServiceConfig):
    """Config for a client that needs a credential.

    credential holds either the literal secret or a secret-store reference
    such as "@Microsoft.KeyVault(SecretUri=https://vault/secrets/name/version)".
    """
    credential: Optional[str] = None


@dataclass
class StorageConfig(ClientConfig):
    """Object storage; credential is the service-account JSON key."""
    SECTION: ClassVar[str] = "storage"

    timeout: float = 30.0
    account_host: str = "storage.googleapis.com"
    container: str = "profile-images"
    cdn_endpoint: Optional[str] = None


@dataclass
class DocumentStoreConfig(ClientConfig):
    """Document store; credential is the service key."""
    SECTION: ClassVar[str] = "documents"

    url: Optional[str] = None
    table: str = "players"


@dataclass
class QueueConfig(ClientConfig):
    """Message queue; credential is the Redis password."""
    SECTION: ClassVar[str] = "queue"

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    queue_name: str = "player-data-sync"


@dataclass
class IdentityConfig(ClientConfig):
    """Identity provider and player record store; credential is the title id."""
    SECTION: ClassVar[str] = "identity"

    base_url: Optional[str] = None


@dataclass
class FunctionsConfig(ServiceConfig):
    """Auxiliary HTTP functions."""
    SECTION: ClassVar[str] = "functions"

    endpoint: Optional[str] = None
