"""Recording the declared winner of a drawn raffle."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from ..models.raffle import RaffleRecord
from ..models.types import IDENTITY_LENGTH
from .errors import DrawNotCompleteError, UnauthorizedError
from .events import WinnerSet, emit

logger = logging.getLogger(__name__)


class WinnerRegistrar:
    """Stores the winner chosen by the raffle authority.

    The declared identity is not checked against the purchased tickets: the
    operator decides who won, and may declare again to overwrite. Use
    :func:`poolraffle.raffle.matching.rank_tickets` to inspect which tickets
    match the winning numbers before declaring.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def set_winner(self, raffle: RaffleRecord, caller: bytes, winner: bytes) -> RaffleRecord:
        if not isinstance(winner, bytes) or len(winner) != IDENTITY_LENGTH:
            raise ValueError(f"winner must be a {IDENTITY_LENGTH}-byte identity")
        if caller != raffle.authority:
            raise UnauthorizedError()
        if not raffle.is_draw_complete:
            raise DrawNotCompleteError()

        if raffle.has_winner and raffle.winner != winner:
            logger.warning(
                f"Overwriting declared winner of raffle {raffle.address.hex()[:16]}"
            )
        raffle.winner = winner

        emit(
            self._session,
            WinnerSet(
                raffle=raffle.address,
                winner=winner,
                winning_numbers=tuple(raffle.winning_numbers),
            ),
        )
        self._session.flush()
        return raffle


__all__ = ["WinnerRegistrar"]
