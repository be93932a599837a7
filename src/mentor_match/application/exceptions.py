"""Application-level exceptions.

These are business-logic errors, not HTTP errors. The account service
translates its own failures into HTTP responses; the profile client maps
those responses back onto this hierarchy.
"""


class StorageWriteError(RuntimeError):
    """Raised when the local key-value store rejects a write or delete."""


class StorageReadError(RuntimeError):
    """Raised when the local store cannot say whether a key exists."""


class SignedOutError(RuntimeError):
    """Raised when user data is touched while no user is signed in."""


class EmptyMessageError(ValueError):
    """Raised when the caller sends a blank chat message."""


class ContentGenerationError(RuntimeError):
    """Raised by the remote generator when the model output is unusable."""


# ---------------------------------------------------------------------------
# Account service
# ---------------------------------------------------------------------------


class ProfileServiceError(Exception):
    """A request to the account service failed.

    ``message`` is safe to show to the user.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class UserExistsError(ProfileServiceError):
    """Registration with an email that is already taken."""


class UserNotFoundError(ProfileServiceError):
    """Login or profile lookup for an unknown user."""


class InvalidCredentialsError(ProfileServiceError):
    """Login with a wrong password."""


class ProfileServiceUnavailableError(ProfileServiceError):
    """5xx responses and transport failures."""
