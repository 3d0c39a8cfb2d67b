"""Exceptions that propagate to callers.

Missing configuration and transport failures are not represented here:
clients log them and return benign values instead.
"""


class GameCloudError(Exception):
    """Base class for toolkit errors."""
    pass


class ValidationError(GameCloudError):
    """Caller-supplied input was rejected before any network call."""
    pass


class AuthenticationRequired(GameCloudError):
    """A player-scoped write was attempted without a logged-in session."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class IdentityError(GameCloudError):
    """Login or registration failed; the message is meant for display."""
    pass
