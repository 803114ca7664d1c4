"""Typed registry errors with stable numeric codes."""

from enum import IntEnum


class ErrorCode(IntEnum):
    """Error codes shared by every registry.

    Values are part of the public contract. 1004 is reserved and must not be
    reassigned.
    """
    ALREADY_EXISTS = 1001
    NOT_FOUND = 1002
    NOT_AUTHORIZED = 1003
    INVALID_ACTION = 1005


class RegistryError(Exception):
    """Base class for failures returned by a registry operation."""

    code: ErrorCode

    def __init__(self, message: str | None = None):
        super().__init__(message or self.code.name)

    def __str__(self) -> str:
        return f"{self.code.value} {self.code.name}: {self.args[0]}"


class AlreadyExistsError(RegistryError):
    """Raised when an entity with this key is already registered."""
    code = ErrorCode.ALREADY_EXISTS


class NotFoundError(RegistryError):
    """Raised when no entity exists at this key."""
    code = ErrorCode.NOT_FOUND


class NotAuthorizedError(RegistryError):
    """Raised when the caller lacks the required owner/provider/admin relation."""
    code = ErrorCode.NOT_AUTHORIZED


class InvalidActionError(RegistryError):
    """Raised when an access action is outside the recognized set."""
    code = ErrorCode.INVALID_ACTION
