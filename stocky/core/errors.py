# stocky/core/errors.py

from typing import Optional


class StockyError(Exception):
    """Base class for every error the reward engine surfaces"""


class ValidationError(StockyError):
    """Input was malformed. Nothing was written."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class ConflictError(StockyError):
    """The reward was already recorded. Carries the id of the existing reward."""

    def __init__(self, reward_id: Optional[str], message: str = "duplicate reward"):
        self.reward_id = reward_id
        super().__init__(f"{message} (reward_id={reward_id})")


class IdempotencyInProgressError(ConflictError):
    """Another request holding the same idempotency key has not finished yet"""

    def __init__(self, idempotency_key: str):
        self.idempotency_key = idempotency_key
        super().__init__(None, f"request with idempotency key {idempotency_key!r} is still in progress")


class StorageError(StockyError):
    """A required store operation failed. State is unknown and must be investigated."""


class PublishError(StockyError):
    """Event delivery failed. Logged only, never rolls back a committed write."""


class OperationCancelled(StockyError):
    """The caller cancelled the operation before it committed"""
