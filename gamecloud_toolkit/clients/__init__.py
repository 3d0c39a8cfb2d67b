"""Service clients. Each credential-bearing client resolves its credential lazily on first use."""
from .base import CredentialBearingClient
from .config import (
    DocumentStoreConfig,
    FunctionsConfig,
    IdentityConfig,
    QueueConfig,
    StorageConfig,
)
from .documents import DocumentStoreClient
from .functions import FunctionsClient
from .identity import IdentityClient, LoginResult
from .queue import QueueClient
from .storage import StorageClient

__all__ = [
    "CredentialBearingClient",
    "DocumentStoreClient",
    "DocumentStoreConfig",
    "FunctionsClient",
    "FunctionsConfig",
    "IdentityClient",
    "IdentityConfig",
    "LoginResult",
    "QueueClient",
    "QueueConfig",
    "StorageClient",
    "StorageConfig",
]
