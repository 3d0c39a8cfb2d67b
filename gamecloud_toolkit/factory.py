"""Wires every client around one shared secret cache and resolver."""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .clients.config import (
    DocumentStoreConfig,
    FunctionsConfig,
    IdentityConfig,
    QueueConfig,
    StorageConfig,
)
from .clients.documents import DocumentStoreClient
from .clients.functions import FunctionsClient
from .clients.identity import IdentityClient
from .clients.queue import QueueClient
from .clients.storage import StorageClient
from .game.auth import AuthSession
from .game.integration import DataIntegrationService
from .game.profile import ProfileManager
from .game.synchronizer import GameStateSynchronizer
from .secrets.domains.cache import SecretCache
from .secrets.domains.config_loader import load_config_or_empty
from .secrets.domains.gcp_client import GCPSecretClient
from .secrets.workflows.secret_operations import SecretResolver

logger = logging.getLogger(__name__)


@dataclass
class Services:
    cache: SecretCache
    resolver: SecretResolver
    storage: StorageClient
    documents: DocumentStoreClient
    queue: QueueClient
    identity: IdentityClient
    functions: FunctionsClient

    async def aclose(self) -> None:
        await self.identity.aclose()


@dataclass
class PlayerSession:
    auth: AuthSession
    game: GameStateSynchronizer
    profile: ProfileManager
    integration: DataIntegrationService


def create_services(
    config: Optional[Dict[str, Any]] = None,
    cache: Optional[SecretCache] = None,
    secret_client: Optional[GCPSecretClient] = None,
    env_fallback: bool = False,
) -> Services:
    """
    Build all service clients.

    Args:
        config: Loaded configuration; read from the config file when omitted
        cache: Secret cache to share; a new one is created when omitted
        secret_client: Secret store client; built from config when omitted
        env_fallback: Let secret lookups fall back to environment variables

    Construction performs no network work; each client resolves its
    credential on first use.
    """
    if config is None:
        config = load_config_or_empty()

    cache = cache if cache is not None else SecretCache()
    if secret_client is None:
        secret_client = GCPSecretClient.from_config(config)
    resolver = SecretResolver(cache, secret_client, env_fallback=env_fallback)

    return Services(
        cache=cache,
        resolver=resolver,
        storage=StorageClient(StorageConfig.from_settings(config), resolver),
        documents=DocumentStoreClient(DocumentStoreConfig.from_settings(config), resolver),
        queue=QueueClient(QueueConfig.from_settings(config), resolver),
        identity=IdentityClient(IdentityConfig.from_settings(config), resolver),
        functions=FunctionsClient(FunctionsConfig.from_settings(config)),
    )


def create_player_session(services: Services, auto_save: bool = True) -> PlayerSession:
    """Per-player objects that share the identity client, so logout reaches the record store."""
    auth = AuthSession(services.identity)
    return PlayerSession(
        auth=auth,
        game=GameStateSynchronizer(services.identity, auth, auto_save=auto_save),
        profile=ProfileManager(services.identity, services.storage, auth),
        integration=DataIntegrationService(services.identity, services.queue),
    )
