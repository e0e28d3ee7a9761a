"""Typed failures returned by Gang Wars operations.

Every failure carries a `reason`, the short machine-distinguishable string the
dispatcher turns into a chat message (e.g. "Insufficient funds").
"""

from fastapi import status


class GangWarsError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class ValidationError(GangWarsError):
    pass


class NotFoundError(GangWarsError):
    status_code = status.HTTP_404_NOT_FOUND


class PermissionDeniedError(GangWarsError):
    status_code = status.HTTP_403_FORBIDDEN


class InsufficientFundsError(GangWarsError):
    pass


class CooldownError(GangWarsError):
    status_code = status.HTTP_409_CONFLICT


class ConflictError(GangWarsError):
    status_code = status.HTTP_409_CONFLICT


class StorageError(GangWarsError):
    """The underlying store rejected a read or write. Never retried here."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, reason: str = "Storage error"):
        super().__init__(reason)
