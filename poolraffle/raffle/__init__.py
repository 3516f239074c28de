"""Raffle lifecycle: purchases, draw and winner registration."""

from .draw import DrawEngine, DrawOutcome, derive_winning_numbers
from .errors import (
    DrawAlreadyCompleteError,
    DrawNotCompleteError,
    DuplicateNumbersError,
    InsufficientFundsError,
    InvalidNumberError,
    InvalidTransition,
    PoolCompleteError,
    PoolNotCompleteError,
    RaffleError,
    RaffleNotActiveError,
    RandomGenerationFailedError,
    UnauthorizedError,
)
from .hashing import ticket_hash
from .lifecycle import RaffleLifecycleManager
from .purchase import PurchaseReceipt, TicketPurchaseProcessor, validate_numbers
from .status import RaffleTransition, next_status
from .winner import WinnerRegistrar

__all__ = [
    "DrawAlreadyCompleteError",
    "DrawEngine",
    "DrawNotCompleteError",
    "DrawOutcome",
    "DuplicateNumbersError",
    "InsufficientFundsError",
    "InvalidNumberError",
    "InvalidTransition",
    "PoolCompleteError",
    "PoolNotCompleteError",
    "PurchaseReceipt",
    "RaffleError",
    "RaffleLifecycleManager",
    "RaffleNotActiveError",
    "RaffleTransition",
    "RandomGenerationFailedError",
    "TicketPurchaseProcessor",
    "UnauthorizedError",
    "WinnerRegistrar",
    "derive_winning_numbers",
    "next_status",
    "ticket_hash",
    "validate_numbers",
]
