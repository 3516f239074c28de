"""Winning number derivation and the draw operation."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from ..ledger.base import LedgerHost
from ..models.raffle import RaffleRecord, RaffleStatus
from .errors import (
    DrawAlreadyCompleteError,
    PoolNotCompleteError,
    RandomGenerationFailedError,
    UnauthorizedError,
)
from .events import DrawConducted, emit
from .status import RaffleTransition, next_status

logger = logging.getLogger(__name__)

MAX_NUMBER = 49
WINNING_NUMBER_COUNT = 5
MAX_ATTEMPTS = 100


def derive_winning_numbers(
    seed: int,
    *,
    count: int = WINNING_NUMBER_COUNT,
    max_number: int = MAX_NUMBER,
    max_attempts: int = MAX_ATTEMPTS,
) -> list[int]:
    """Derive ``count`` distinct winning numbers from ``seed``.

    Position ``i`` tries ``(seed + i + attempts) % max_number + 1`` for
    ``attempts = 0, 1, ...`` until an unused value is found. The result is
    sorted ascending.

    Parameters
    ----------
    seed : int
        Non-negative seed, normally the ledger slot at draw time.
    count : int, default: 5
        Number of winning numbers.
    max_number : int, default: 49
        Numbers are drawn from ``1..max_number``.
    max_attempts : int, default: 100
        Attempts allowed per position before giving up.

    Returns
    -------
    list[int]
        ``count`` distinct integers in ``[1, max_number]``, ascending.

    Raises
    ------
    RandomGenerationFailedError
        If a position reaches ``max_attempts`` without an unused candidate.

    Notes
    -----
    The seed is public before the draw is submitted, so anyone watching the
    ledger can predict the outcome. This matches the hosted program and is
    not suitable where prediction resistance matters.
    """
    if seed < 0:
        raise ValueError("seed must be non-negative")

    chosen: list[int] = []
    used: set[int] = set()
    for position in range(count):
        attempts = 0
        while True:
            candidate = (seed + position + attempts) % max_number + 1
            if candidate not in used:
                chosen.append(candidate)
                used.add(candidate)
                break
            attempts += 1
            if attempts >= max_attempts:
                raise RandomGenerationFailedError(
                    f"No unused candidate for position {position} after {attempts} attempts"
                )
    return sorted(chosen)


@dataclass
class DrawOutcome:
    """Value object describing a completed draw.

    Attributes
    ----------
    raffle : RaffleRecord
        The raffle after the draw was applied.
    seed : int
        Slot value the numbers were derived from.
    winning_numbers : list[int]
        The stored winning numbers, ascending.
    """

    raffle: RaffleRecord
    seed: int
    winning_numbers: list[int]


class DrawEngine:
    """Runs the one-time draw of a raffle whose pool is full."""

    def __init__(self, session: Session, host: LedgerHost) -> None:
        self._session = session
        self._host = host

    def conduct_draw(self, raffle: RaffleRecord, caller: bytes) -> DrawOutcome:
        """Draw the winning numbers for ``raffle``.

        Raises
        ------
        UnauthorizedError
            If ``caller`` is not the raffle authority.
        DrawAlreadyCompleteError
            If the draw already ran.
        PoolNotCompleteError
            If the raffle status is not ``pool_complete``.
        RandomGenerationFailedError
            If the numbers cannot be derived.
        """
        if caller != raffle.authority:
            raise UnauthorizedError()
        # A finished draw also leaves the pool stage, so report it as such first.
        if raffle.is_draw_complete:
            raise DrawAlreadyCompleteError()
        if raffle.raffle_status is not RaffleStatus.POOL_COMPLETE:
            raise PoolNotCompleteError()

        seed = self._host.current_slot()
        winning_numbers = derive_winning_numbers(seed)

        raffle.winning_numbers = winning_numbers
        raffle.is_draw_complete = True
        raffle.status = next_status(
            raffle.raffle_status, RaffleTransition.DRAW_CONDUCTED
        ).value

        emit(
            self._session,
            DrawConducted(
                raffle=raffle.address,
                winning_numbers=tuple(winning_numbers),
                total_tickets=raffle.total_tickets_sold,
            ),
        )
        self._session.flush()
        logger.debug(f"Draw derived {winning_numbers} from slot {seed}")
        return DrawOutcome(raffle=raffle, seed=seed, winning_numbers=winning_numbers)


__all__ = [
    "DrawEngine",
    "DrawOutcome",
    "MAX_ATTEMPTS",
    "MAX_NUMBER",
    "WINNING_NUMBER_COUNT",
    "derive_winning_numbers",
]
