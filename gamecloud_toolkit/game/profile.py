"""Player profile fields and avatar images."""
import logging
from typing import Optional

from ..clients.identity import IdentityClient
from ..clients.storage import StorageClient
from ..errors import AuthenticationRequired, ValidationError
from .auth import AuthSession
from .models import AVATAR_URL_KEY, BIO_KEY, DISPLAY_NAME_KEY, PROFILE_KEYS, ProfileData

logger = logging.getLogger(__name__)

MAX_AVATAR_BYTES = 2 * 1024 * 1024
PLACEHOLDER_AVATAR_URL = "/assets/images/default-avatar.png"


def validate_avatar(data: bytes, content_type: str) -> None:
    """
    Reject non-image uploads and images over 2 MiB.

    Raises:
        ValidationError: With a message suitable for display
    """
    if not content_type or not content_type.startswith("image/"):
        raise ValidationError("Please select an image file (JPEG, PNG, etc.)")

    if len(data) > MAX_AVATAR_BYTES:
        raise ValidationError("Image size must be less than 2MB")


def avatar_or_placeholder(avatar_url: Optional[str]) -> str:
    return avatar_url or PLACEHOLDER_AVATAR_URL


class ProfileManager:
    """Loads and saves the logged-in player's profile; `error`/`success` hold the last outcome."""

    def __init__(self, identity: IdentityClient, storage: StorageClient, auth: AuthSession):
        self.identity = identity
        self.storage = storage
        self.auth = auth
        self.error: Optional[str] = None
        self.success: Optional[str] = None

    async def load_profile(self) -> ProfileData:
        if not self.auth.is_authenticated:
            return ProfileData()

        self.error = None
        data = await self.identity.get_user_data(PROFILE_KEYS)
        return ProfileData(
            display_name=data.get(DISPLAY_NAME_KEY) or self.auth.user.display_name or "",
            bio=data.get(BIO_KEY) or "",
            avatar_url=data.get(AVATAR_URL_KEY) or "",
        )

    async def save_profile(self, profile: ProfileData) -> bool:
        self.error = None
        self.success = None

        if not self.auth.is_authenticated:
            self.error = "You must be logged in to update your profile"
            return False

        try:
            version = await self.identity.update_user_data(profile.to_record())
        except AuthenticationRequired as e:
            self.error = str(e)
            return False

        if version is None:
            self.error = "Failed to update profile"
            return False

        self.success = "Profile updated successfully"
        return True

    async def upload_avatar(self, data: bytes, filename: str, content_type: str) -> Optional[str]:
        """
        Validate and upload an avatar image.

        Returns:
            URL of the uploaded image, or None (see `error`)
        """
        self.error = None
        try:
            validate_avatar(data, content_type)
        except ValidationError as e:
            self.error = str(e)
            return None

        url = await self.storage.upload_image(data, filename, content_type)
        if url is None:
            self.error = "Failed to upload image. Please try again."
            return None

        logger.info(f"Image uploaded successfully: {url}")
        return url

    async def replace_avatar(self, profile: ProfileData, data: bytes, filename: str, content_type: str) -> Optional[str]:
        """
        Upload a new avatar into profile and delete the one it replaces.

        The previous image is only deleted when it lives in our storage. The
        profile is updated in memory; call save_profile to persist it.
        """
        url = await self.upload_avatar(data, filename, content_type)
        if url is None:
            return None

        previous = profile.avatar_url
        profile.avatar_url = url
        if previous and self.storage.get_blob_name_from_url(previous):
            if not await self.storage.delete_blob(previous):
                logger.warning(f"Could not delete previous avatar: {previous}")
        return url
