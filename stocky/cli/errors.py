# stocky/cli/errors.py

"""Exit codes for engine errors, so scripts can branch without parsing messages"""

import click

from ..core.errors import (
    ConflictError,
    IdempotencyInProgressError,
    OperationCancelled,
    StockyError,
    StorageError,
    ValidationError,
)


# Most specific first: IdempotencyInProgressError is a ConflictError
EXIT_CODES = (
    (ValidationError, 3),
    (IdempotencyInProgressError, 5),
    (ConflictError, 4),
    (StorageError, 6),
    (OperationCancelled, 7),
)


class StockyCommandError(click.ClickException):
    def __init__(self, error: StockyError):
        super().__init__(str(error))
        self.exit_code = exit_code_for(error)


def exit_code_for(error: StockyError) -> int:
    for error_type, code in EXIT_CODES:
        if isinstance(error, error_type):
            return code
    return 1
