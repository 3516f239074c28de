"""Rejections raised by raffle operations.

Every error aborts the whole operation; the enclosing session transaction is
expected to roll back so no partial change survives.
"""

from __future__ import annotations

from typing import Optional


class RaffleError(Exception):
    """Base class for all raffle rejections.

    ``code`` is the stable, language-neutral name of the error kind.
    """

    code: str = "RaffleError"
    message: str = "Raffle operation rejected"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.message)


class RaffleNotActiveError(RaffleError):
    code = "RaffleNotActive"
    message = "The raffle is not active"


class PoolCompleteError(RaffleError):
    code = "PoolComplete"
    message = "The pool has already reached its target"


class InsufficientFundsError(RaffleError):
    code = "InsufficientFunds"
    message = "Insufficient funds"


class InvalidNumberError(RaffleError):
    code = "InvalidNumber"
    message = "Invalid number (must be between 1 and 49)"


class DuplicateNumbersError(RaffleError):
    code = "DuplicateNumbers"
    message = "Duplicate numbers detected"


class UnauthorizedError(RaffleError):
    code = "Unauthorized"
    message = "Caller is not the raffle authority"


class PoolNotCompleteError(RaffleError):
    code = "PoolNotComplete"
    message = "The pool has not reached its target"


class DrawAlreadyCompleteError(RaffleError):
    code = "DrawAlreadyComplete"
    message = "The draw has already been conducted"


class DrawNotCompleteError(RaffleError):
    code = "DrawNotComplete"
    message = "The draw has not been conducted"


class RandomGenerationFailedError(RaffleError):
    code = "RandomGenerationFailed"
    message = "Failed to generate winning numbers"


class InvalidTransition(RuntimeError):
    """Internal guard: a status change outside the forward-only lifecycle."""


__all__ = [
    "DrawAlreadyCompleteError",
    "DrawNotCompleteError",
    "DuplicateNumbersError",
    "InsufficientFundsError",
    "InvalidNumberError",
    "InvalidTransition",
    "PoolCompleteError",
    "PoolNotCompleteError",
    "RaffleError",
    "RaffleNotActiveError",
    "RandomGenerationFailedError",
    "UnauthorizedError",
]
