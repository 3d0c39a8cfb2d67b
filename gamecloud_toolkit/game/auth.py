"""Authentication lifecycle for the current player.

States: unauthenticated -> authenticating -> authenticated | error.
Logging out resets the session and makes the identity client forget its
session ticket, so later player-scoped writes fail with AuthenticationRequired.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from ..clients.identity import IdentityClient, LoginResult
from ..errors import ValidationError

logger = logging.getLogger(__name__)

STATE_UNAUTHENTICATED = "unauthenticated"
STATE_AUTHENTICATING = "authenticating"
STATE_AUTHENTICATED = "authenticated"
STATE_ERROR = "error"

MIN_PASSWORD_LENGTH = 6


@dataclass(frozen=True)
class User:
    id: str
    display_name: str
    session_token: str


def validate_login(email: str, password: str) -> None:
    """Raises ValidationError unless both fields are filled in."""
    if not email or not password:
        raise ValidationError("Please enter both email and password")


def validate_registration(
    email: str,
    password: str,
    display_name: str,
    confirm_password: Optional[str] = None,
) -> None:
    """
    Check a registration form before any network call.

    confirm_password is only compared when given.

    Raises:
        ValidationError: With a message suitable for display
    """
    if not email or not password or not display_name or confirm_password == "":
        raise ValidationError("Please fill in all fields")

    if confirm_password is not None and password != confirm_password:
        raise ValidationError("Passwords do not match")

    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")


class AuthSession:
    """Tracks who is logged in; gates player-scoped operations."""

    def __init__(self, identity: IdentityClient):
        self.identity = identity
        self.state = STATE_UNAUTHENTICATED
        self.user: Optional[User] = None
        self.error: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.state == STATE_AUTHENTICATED

    @property
    def is_loading(self) -> bool:
        return self.state == STATE_AUTHENTICATING

    @property
    def session_token(self) -> Optional[str]:
        return self.user.session_token if self.user else None

    async def login(self, email: str, password: str) -> bool:
        """
        Log in; returns True on success.

        On failure the session stays unauthenticated and error holds the reason.
        """
        try:
            validate_login(email, password)
        except ValidationError as e:
            self._reject(str(e))
            return False

        self._begin()
        try:
            result = await self.identity.login(email, password)
        except Exception as e:
            self._fail(str(e) or "Login failed")
            return False

        self._succeed(result)
        return True

    async def register(
        self,
        email: str,
        password: str,
        display_name: str,
        confirm_password: Optional[str] = None,
    ) -> bool:
        """Register and log in as the new player; returns True on success."""
        try:
            validate_registration(email, password, display_name, confirm_password)
        except ValidationError as e:
            self._reject(str(e))
            return False

        self._begin()
        try:
            result = await self.identity.register(email, password, display_name)
        except Exception as e:
            self._fail(str(e) or "Registration failed")
            return False

        self._succeed(result)
        return True

    def logout(self) -> None:
        self.identity.clear_session_ticket()
        self.state = STATE_UNAUTHENTICATED
        self.user = None
        self.error = None
        logger.info("Logged out")

    def clear_error(self) -> None:
        self.error = None
        if self.state == STATE_ERROR:
            self.state = STATE_UNAUTHENTICATED

    def _begin(self) -> None:
        self.state = STATE_AUTHENTICATING
        self.error = None

    def _succeed(self, result: LoginResult) -> None:
        self.user = User(
            id=result.user_id,
            display_name=result.display_name,
            session_token=result.session_token,
        )
        self.state = STATE_AUTHENTICATED
        self.error = None
        logger.info(f"Authenticated as player {result.user_id}")

    def _reject(self, message: str) -> None:
        # Bad input never reaches the network and leaves an existing session alone
        self.error = message
        if not self.is_authenticated:
            self.state = STATE_ERROR

    def _fail(self, message: str) -> None:
        logger.warning(f"Authentication failed: {message}")
        self.state = STATE_ERROR
        self.user = None
        self.error = message
        self.identity.clear_session_ticket()
