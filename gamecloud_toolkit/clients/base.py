"""Shared lifecycle for clients that need a credential before they can talk to a service.

Construction is synchronous and never fails. The credential is resolved and
the transport handle built on the first call to ensure_ready(), whose outcome
is memoized for the lifetime of the instance: a client that could not obtain
a credential stays uninitialized, and its operations return benign values.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Generic, Optional, TypeVar

from ..secrets.domains.references import is_reference
from ..secrets.workflows.secret_operations import SecretResolver
from .config import ClientConfig

logger = logging.getLogger(__name__)

ConfigT = TypeVar("ConfigT", bound=ClientConfig)

STATE_PENDING = "pending"
STATE_READY = "ready"
STATE_UNINITIALIZED = "uninitialized"


class CredentialBearingClient(ABC, Generic[ConfigT]):
    """Base class: subclasses implement _build_handle(credential)."""

    service_name = "service"

    def __init__(self, config: ConfigT, resolver: Optional[SecretResolver] = None):
        self.config = config
        self._resolver = resolver
        self._handle: Any = None
        self._state = STATE_PENDING
        self._init_lock = asyncio.Lock()

    @property
    def state(self) -> str:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state == STATE_READY

    async def ensure_ready(self) -> bool:
        """
        Resolve the credential and build the transport handle, once.

        Returns:
            True if the client can serve requests, False if it is uninitialized.
            Later calls return the memoized result without any network work.
        """
        if self._state != STATE_PENDING:
            return self.is_ready

        async with self._init_lock:
            if self._state != STATE_PENDING:
                return self.is_ready

            credential = await self._resolve_credential()
            if not credential:
                logger.warning(
                    f"{self.service_name} client not properly initialized. Missing credential; "
                    f"operating in uninitialized mode."
                )
                self._state = STATE_UNINITIALIZED
                return False

            try:
                self._handle = await self._build_handle(credential)
            except Exception as e:
                logger.error(f"Failed to initialize {self.service_name} client: {e}")
                self._state = STATE_UNINITIALIZED
                return False

            self._state = STATE_READY
            logger.info(f"{self.service_name} client initialized")
            return True

    async def _resolve_credential(self) -> Optional[str]:
        raw = self.config.credential
        if not raw:
            return None

        if not is_reference(raw):
            return raw

        if self._resolver is None:
            logger.warning(f"{self.service_name} credential is a secret reference but no resolver was provided")
            return None

        try:
            return await self._resolver.resolve(raw)
        except Exception as e:
            logger.error(f"Failed to resolve {self.service_name} credential: {e}")
            return None

    @abstractmethod
    async def _build_handle(self, credential: str) -> Any:
        """Build the SDK or HTTP handle from a resolved credential."""

    async def _ready_or_warn(self, operation: str) -> bool:
        if await self.ensure_ready():
            return True
        logger.warning(f"{self.service_name} client not properly initialized. Cannot {operation}.")
        return False

    async def _run_blocking(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Run a blocking SDK call in a worker thread, bounded by the configured timeout."""
        return await asyncio.wait_for(
            asyncio.to_thread(func, *args, **kwargs),
            timeout=self.config.timeout,
        )
