"""Workflow for secret operations with caching and fallback."""
import os
import logging
from typing import Optional

from ..domains.cache import SecretCache
from ..domains.gcp_client import GCPSecretClient
from ..domains.references import is_reference, parse_reference

logger = logging.getLogger(__name__)


class SecretResolver:
    """
    Turns configuration values into concrete secrets.

    Literal values pass through untouched. References are parsed to a secret
    name, looked up in the shared cache, and fetched from Secret Manager on a
    miss. A failed resolution writes nothing to the cache.
    """

    def __init__(self, cache: SecretCache, secret_client: Optional[GCPSecretClient] = None, env_fallback: bool = False):
        self.cache = cache
        self.secret_client = secret_client
        self.env_fallback = env_fallback

    async def get_secret(self, secret_name: str, quiet: bool = False) -> Optional[str]:
        """
        Fetch a secret by name with memory caching.

        Args:
            secret_name: Name of the secret to fetch
            quiet: If True, suppress fallback warnings

        Returns:
            Secret value as string, or None if not found

        Behavior:
            - Returns the cached value while it is younger than the cache TTL
            - Fetches from GCP Secret Manager on a miss and caches the result
            - With env_fallback, falls back to os.getenv(secret_name) when the
              fetch yields nothing
        """
        cached = self.cache.get(secret_name)
        if cached is not None:
            return cached

        secret_value = None
        if self.secret_client is not None:
            secret_value = await self.secret_client.fetch_secret(secret_name, quiet=quiet)
        elif not quiet:
            logger.warning(f"No secret store configured, cannot fetch {secret_name}")

        if secret_value:
            self.cache.put(secret_name, secret_value)
            return secret_value

        if self.env_fallback:
            env_value = os.getenv(secret_name)
            if env_value:
                if not quiet:
                    logger.warning(f"Using environment variable for {secret_name}")
                self.cache.put(secret_name, env_value, source="env")
                return env_value

        return None

    async def resolve(self, raw: Optional[str], quiet: bool = False) -> Optional[str]:
        """
        Resolve a configuration value that may be a literal or a reference.

        Returns:
            The literal value, the referenced secret, or None when nothing
            usable could be obtained (empty value, malformed reference,
            missing secret).
        """
        if not raw:
            return None

        if not is_reference(raw):
            return raw

        secret_name = parse_reference(raw)
        if secret_name is None:
            return None

        return await self.get_secret(secret_name, quiet=quiet)
