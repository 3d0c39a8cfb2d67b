"""Object storage client for profile image uploads (Google Cloud Storage)."""
import json
import logging
import re
import time
from datetime import timedelta
from typing import Optional

from google.cloud import storage

from .base import CredentialBearingClient
from .config import StorageConfig

logger = logging.getLogger(__name__)

_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9.]")


def generate_blob_name(filename: str, now_ms: Optional[int] = None) -> str:
    """
    Build a unique, URL-safe blob name: <epoch-millis>-<sanitized filename>.

    Every character outside [A-Za-z0-9.] in the filename becomes "_".
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{now_ms}-{_UNSAFE_NAME_CHARS.sub('_', filename)}"


class StorageClient(CredentialBearingClient[StorageConfig]):
    """
    Uploads, deletes and addresses blobs in one container.

    URL helpers are pure and work even when the client is uninitialized.
    """

    service_name = "Storage"

    async def _build_handle(self, credential: str) -> storage.Bucket:
        info = json.loads(credential)
        client = await self._run_blocking(storage.Client.from_service_account_info, info)
        return client.bucket(self.config.container)

    def get_blob_url(self, blob_name: str) -> str:
        """Public URL for a blob; the CDN endpoint wins when configured."""
        if self.config.cdn_endpoint:
            return f"{self.config.cdn_endpoint}/{blob_name}"
        return f"https://{self.config.account_host}/{self.config.container}/{blob_name}"

    def get_blob_name_from_url(self, blob_url: str) -> Optional[str]:
        """
        Recover the blob name from a URL produced by get_blob_url.

        Accepts both the CDN shape and the direct storage shape (a query
        string after the name is dropped). Returns None for anything else.
        """
        if not blob_url:
            return None

        cdn = self.config.cdn_endpoint
        if cdn and blob_url.startswith(f"{cdn}/"):
            return blob_url[len(cdn) + 1:] or None

        pattern = (
            rf"^https://{re.escape(self.config.account_host)}/"
            rf"{re.escape(self.config.container)}/(.+?)(?:\?|$)"
        )
        match = re.match(pattern, blob_url)
        if match:
            return match.group(1)
        return None

    async def upload_image(self, data: bytes, filename: str, content_type: str) -> Optional[str]:
        """
        Upload image bytes under a generated blob name.

        Returns:
            URL of the uploaded blob, or None if the client is uninitialized
            or the upload failed
        """
        if not await self._ready_or_warn("upload image"):
            return None

        blob_name = generate_blob_name(filename)
        try:
            logger.info(f"Uploading file: {filename}")
            blob = self._handle.blob(blob_name)
            await self._run_blocking(blob.upload_from_string, data, content_type=content_type)
        except Exception as e:
            logger.error(f"Failed to upload image {filename}: {e}")
            return None

        logger.info(f"File uploaded successfully: {blob_name}")
        return self.get_blob_url(blob_name)

    async def delete_blob(self, blob_url: str) -> bool:
        """Delete the blob addressed by blob_url. Returns True on success."""
        if not await self._ready_or_warn("delete blob"):
            return False

        blob_name = self.get_blob_name_from_url(blob_url)
        if not blob_name:
            logger.error(f"Invalid blob URL: {blob_url}")
            return False

        try:
            logger.info(f"Deleting blob: {blob_name}")
            await self._run_blocking(self._handle.blob(blob_name).delete)
        except Exception as e:
            logger.error(f"Failed to delete blob {blob_name}: {e}")
            return False

        logger.info(f"Blob deleted successfully: {blob_name}")
        return True

    async def generate_signed_url(self, blob_name: str, expiry_minutes: int = 60) -> str:
        """
        Time-limited read URL for a private blob.

        Falls back to the plain blob URL when signing is unavailable.
        """
        if not await self.ensure_ready():
            logger.warning("Cannot generate signed URL without storage credentials")
            return self.get_blob_url(blob_name)

        try:
            blob = self._handle.blob(blob_name)
            return await self._run_blocking(
                blob.generate_signed_url,
                version="v4",
                expiration=timedelta(minutes=expiry_minutes),
                method="GET",
            )
        except Exception as e:
            logger.error(f"Failed to generate signed URL for {blob_name}: {e}")
            return self.get_blob_url(blob_name)
