"""
Error variants raised by the admission and login services.

Every variant carries the ``code``/``name``/``message`` triple that the HTTP
layer renders as ``{"status": "error", "data": {...}}``. ``name`` is part of that
contract: validation-style failures report ``"Error"``, DOS rejections report
their category and store failures report the store's own exception name.
"""

from sqlalchemy.exc import DBAPIError


class NodeAuthError(Exception):
    """Base class for failures surfaced to callers as an error payload."""

    default_name: str | None = "Error"

    def __init__(self, message: str, *, name: str | None = None, code: int | None = None):
        super().__init__(message)
        self.message = message
        self.name = self.default_name if name is None else name
        self.code = code


class ValidationError(NodeAuthError):
    """Malformed identity or message supplied by the client."""


class ExpiredChallengeError(NodeAuthError):
    """Login phrase missing, already used, or outside its validity window."""

    def __init__(
        self, message: str = "Signed message is no longer valid. Please request a new one."
    ):
        super().__init__(message)


class SignatureError(NodeAuthError):
    """Signature did not verify against the supplied identity."""

    def __init__(self, message: str = "Invalid signature"):
        super().__init__(message)


class HardwareIneligibleError(NodeAuthError):
    def __init__(self, message: str = "Node hardware requirements not met"):
        super().__init__(message)


class OracleUnavailableError(NodeAuthError):
    """The DOS state could not be determined."""

    default_name = None

    def __init__(self, message: str = "Unable to check DOS state"):
        super().__init__(message)


class DosRejectedError(NodeAuthError):
    default_name = "DOS"


class StoreError(NodeAuthError):
    """Persistence failure, carrying the store's native error name and message."""

    @classmethod
    def from_exception(cls, exc: Exception) -> "StoreError":
        # DBAPIError text embeds the SQL statement and its bound parameters
        message = str(exc.orig) if isinstance(exc, DBAPIError) else str(exc)
        return cls(message, name=type(exc).__name__, code=getattr(exc, "code", None))
