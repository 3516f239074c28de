"""Validation and accounting for ticket purchases."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from sqlalchemy.orm import Session

from ..ledger.base import LedgerHost
from ..models.raffle import RaffleRecord, RaffleStatus
from ..models.ticket import TicketRecord
from ..models.types import IDENTITY_LENGTH, MAX_AMOUNT
from .draw import MAX_NUMBER
from .errors import (
    DuplicateNumbersError,
    InsufficientFundsError,
    InvalidNumberError,
    PoolCompleteError,
    RaffleNotActiveError,
)
from .events import TicketsPurchased, emit
from .hashing import TICKET_NUMBER_COUNT, ticket_hash
from .status import RaffleTransition, next_status

logger = logging.getLogger(__name__)

MAX_QUANTITY = 255

TICKET_SEED = b"entry"


def validate_numbers(numbers: Sequence[int]) -> None:
    """Reject numbers outside ``[1, 49]`` first, then any repeated value.

    Raises
    ------
    InvalidNumberError
        If any number is outside ``[1, 49]``.
    DuplicateNumbersError
        If two positions hold the same number.
    """
    for number in numbers:
        if not 1 <= number <= MAX_NUMBER:
            raise InvalidNumberError(f"Invalid number {number} (must be between 1 and 49)")
    if len(set(numbers)) != len(numbers):
        raise DuplicateNumbersError()


def _check_shape(buyer: bytes, numbers: Sequence[int], quantity: int) -> list[int]:
    if not isinstance(buyer, bytes) or len(buyer) != IDENTITY_LENGTH:
        raise ValueError(f"buyer must be a {IDENTITY_LENGTH}-byte identity")
    if len(numbers) != TICKET_NUMBER_COUNT:
        raise ValueError(f"a ticket holds exactly {TICKET_NUMBER_COUNT} numbers")
    if any(not isinstance(n, int) or isinstance(n, bool) for n in numbers):
        raise ValueError("ticket numbers must be integers")
    if (
        isinstance(quantity, bool)
        or not isinstance(quantity, int)
        or not 0 <= quantity <= MAX_QUANTITY
    ):
        raise ValueError(f"quantity must be an integer in 0..{MAX_QUANTITY}")
    return list(numbers)


@dataclass
class PurchaseReceipt:
    """Result of an accepted purchase.

    Attributes
    ----------
    ticket : TicketRecord
        The newly stored ticket.
    cost : int
        Amount transferred from the buyer to the pool.
    pool_completed : bool
        ``True`` when this purchase moved the raffle to ``pool_complete``.
    """

    ticket: TicketRecord
    cost: int
    pool_completed: bool


class TicketPurchaseProcessor:
    """Validates a purchase, records the ticket and updates the pool totals."""

    def __init__(self, session: Session, host: LedgerHost) -> None:
        self._session = session
        self._host = host

    def buy_tickets(
        self,
        raffle: RaffleRecord,
        buyer: bytes,
        numbers: Sequence[int],
        quantity: int,
    ) -> PurchaseReceipt:
        """Buy ``quantity`` tickets on ``numbers`` for ``buyer``.

        Parameters
        ----------
        raffle : RaffleRecord
            Raffle to buy into.
        buyer : bytes
            Authenticated identity of the purchaser.
        numbers : Sequence[int]
            Exactly five numbers chosen by the buyer.
        quantity : int
            Tickets represented by this purchase (0..255). The intended 1 or 5
            is not enforced.

        Returns
        -------
        PurchaseReceipt
            The stored ticket together with the cost charged.

        Notes
        -----
        Checks run before any state change, in this order: raffle still
        selling, pool not full, buyer balance, number range, distinct numbers.
        The ticket is flushed before the totals change, so a second purchase
        by the same buyer fails with the storage layer's ``IntegrityError``.

        Raises
        ------
        RaffleNotActiveError, PoolCompleteError, InsufficientFundsError,
        InvalidNumberError, DuplicateNumbersError
            When the corresponding check fails.
        ValueError
            If the input is malformed or the totals would exceed the stored width.
        """
        chosen = _check_shape(buyer, numbers, quantity)

        status = raffle.raffle_status
        # A filled pool is reported as such rather than as an inactive raffle.
        if status not in (RaffleStatus.ACTIVE, RaffleStatus.POOL_COMPLETE):
            raise RaffleNotActiveError()
        if status is RaffleStatus.POOL_COMPLETE or raffle.is_pool_full:
            raise PoolCompleteError()

        cost = raffle.ticket_price * quantity
        if self._host.balance_of(buyer) < cost:
            raise InsufficientFundsError()

        validate_numbers(chosen)

        if (
            raffle.total_collected + cost > MAX_AMOUNT
            or raffle.total_tickets_sold + quantity > MAX_AMOUNT
        ):
            raise ValueError("purchase would overflow the raffle totals")

        timestamp = self._host.unix_timestamp()
        ticket = TicketRecord(
            address=self._host.derive_address(TICKET_SEED, raffle.address, buyer),
            raffle=raffle,
            buyer=buyer,
            numbers=chosen,
            quantity=quantity,
            timestamp=timestamp,
            ticket_hash=ticket_hash(chosen, buyer, timestamp),
        )
        self._session.add(ticket)
        self._session.flush()

        raffle.total_tickets_sold += quantity
        raffle.total_collected += cost
        pool_completed = False
        if raffle.total_collected >= raffle.target_amount:
            raffle.status = next_status(
                raffle.raffle_status, RaffleTransition.POOL_FILLED
            ).value
            pool_completed = True

        self._host.transfer(buyer, raffle.address, cost)

        emit(
            self._session,
            TicketsPurchased(
                raffle=raffle.address,
                buyer=buyer,
                numbers=tuple(chosen),
                quantity=quantity,
                total_cost=cost,
                ticket_hash=ticket.ticket_hash,
            ),
        )
        self._session.flush()

        if pool_completed:
            logger.info(
                f"Raffle {raffle.address.hex()[:16]} reached its target "
                f"({raffle.total_collected}/{raffle.target_amount})"
            )
        return PurchaseReceipt(ticket=ticket, cost=cost, pool_completed=pool_completed)


__all__ = [
    "MAX_QUANTITY",
    "PurchaseReceipt",
    "TICKET_SEED",
    "TicketPurchaseProcessor",
    "validate_numbers",
]
