"""GCP Secret Manager client wrapper."""
import asyncio
import os
import logging
from typing import Optional, Dict, Any
from google.cloud import secretmanager

logger = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT_SECONDS = 10.0


class GCPSecretClient:
    """
    Wrapper around GCP Secret Manager client.

    This is the secret store consulted on a cache miss. The underlying SDK
    client is blocking, so fetches run in a worker thread.
    """

    def __init__(
        self,
        project_id: Optional[str] = None,
        service_account_path: Optional[str] = None,
        timeout: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
    ):
        self._project_id = project_id
        self._service_account_path = service_account_path
        self.timeout = timeout
        self._client = None

    @classmethod
    def from_config(cls, config: Dict[str, Any], project_id: Optional[str] = None) -> "GCPSecretClient":
        """Build a client from the 'authentication' and 'gcp' config sections; project_id overrides the file."""
        auth = config.get("authentication") or {}
        gcp = config.get("gcp") or {}
        return cls(
            project_id=project_id or gcp.get("project_id"),
            service_account_path=auth.get("service_account_path"),
            timeout=float(gcp.get("timeout", DEFAULT_FETCH_TIMEOUT_SECONDS)),
        )

    @property
    def client(self) -> secretmanager.SecretManagerServiceClient:
        """Lazy-initialize client."""
        if self._client is None:
            if self._service_account_path:
                self._client = secretmanager.SecretManagerServiceClient.from_service_account_file(
                    self._service_account_path
                )
            else:
                self._client = secretmanager.SecretManagerServiceClient()
        return self._client

    def get_project_id(self) -> Optional[str]:
        """
        Get GCP project ID from environment variable or config.

        Priority order:
        1. GCP_PROJECT environment variable (allows override)
        2. project_id passed at construction (config file)

        Returns:
            Project ID string, or None if not found
        """
        gcp_project_env = os.getenv("GCP_PROJECT")
        if gcp_project_env:
            logger.debug(f"Using GCP_PROJECT from environment: {gcp_project_env}")
            return gcp_project_env

        if self._project_id:
            logger.debug(f"Using project_id from config: {self._project_id}")
            return self._project_id

        logger.error("Project ID not found. Please set GCP_PROJECT environment variable or configure project_id in config file")
        return None

    def _access_secret(self, secret_name: str, project_id: str) -> str:
        name = f"projects/{project_id}/secrets/{secret_name}/versions/latest"
        response = self.client.access_secret_version(request={"name": name})
        return response.payload.data.decode("UTF-8")

    async def fetch_secret(self, secret_name: str, project_id: Optional[str] = None, quiet: bool = False) -> Optional[str]:
        """
        Fetch secret from GCP Secret Manager.

        Args:
            secret_name: Name of the secret
            project_id: GCP project ID (auto-detected if not provided)
            quiet: If True, suppress warning logs

        Returns:
            Secret value or None if the secret is missing or the fetch fails
        """
        project_id = project_id or self.get_project_id()
        if not project_id:
            return None

        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self._access_secret, secret_name, project_id),
                timeout=self.timeout,
            )
        except Exception as e:
            if not quiet:
                logger.warning(f"GCP fetch failed for {secret_name}: {e}")
            return None
