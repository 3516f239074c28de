"""Entry point for the four raffle operations."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from sqlalchemy.orm import Session

from ..ledger.base import LedgerHost
from ..models.raffle import RaffleRecord, RaffleStatus
from ..models.types import IDENTITY_LENGTH, MAX_AMOUNT
from .draw import DrawEngine, DrawOutcome
from .events import RaffleInitialized, emit
from .purchase import PurchaseReceipt, TicketPurchaseProcessor
from .winner import WinnerRegistrar

logger = logging.getLogger(__name__)

RAFFLE_SEED = b"raffle"


class RaffleLifecycleManager:
    """Creates the raffle and routes each operation to its component.

    Every method is one atomic unit; run it inside ``Session.begin()`` so a
    rejection rolls back anything already written.
    """

    def __init__(self, session: Session, host: LedgerHost) -> None:
        """Bind the manager to a session and a ledger host.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session acting as the host's keyed storage.
        host : LedgerHost
            Provider of balances, transfers, the clock, the slot seed and
            address derivation.
        """

        self._session = session
        self._host = host
        self._purchases = TicketPurchaseProcessor(session, host)
        self._draws = DrawEngine(session, host)
        self._winners = WinnerRegistrar(session)

    @property
    def raffle_address(self) -> bytes:
        """Address of the raffle; one raffle exists per program."""
        return self._host.derive_address(RAFFLE_SEED)

    def load(self) -> Optional[RaffleRecord]:
        """Return the stored raffle, or ``None`` before ``initialize``."""
        return RaffleRecord.get_by_address(self._session, self.raffle_address)

    def _require_raffle(self) -> RaffleRecord:
        raffle = self.load()
        if raffle is None:
            raise LookupError("The raffle has not been initialized")
        return raffle

    def initialize(self, caller: bytes, target_amount: int, ticket_price: int) -> RaffleRecord:
        """Create the raffle with ``caller`` as its authority.

        Amounts are not range-checked beyond the stored width; a zero target
        or price is accepted. A second call fails with the storage layer's
        ``IntegrityError`` because the raffle address is already taken.
        """
        if not isinstance(caller, bytes) or len(caller) != IDENTITY_LENGTH:
            raise ValueError(f"caller must be a {IDENTITY_LENGTH}-byte identity")
        for name, value in (("target_amount", target_amount), ("ticket_price", ticket_price)):
            if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= MAX_AMOUNT:
                raise ValueError(f"{name} must be an integer in 0..{MAX_AMOUNT}")

        raffle = RaffleRecord(
            address=self.raffle_address,
            authority=caller,
            target_amount=target_amount,
            ticket_price=ticket_price,
            created_at=self._host.unix_timestamp(),
            status=RaffleStatus.ACTIVE,
        )
        self._session.add(raffle)
        self._session.flush()

        emit(
            self._session,
            RaffleInitialized(
                raffle=raffle.address,
                authority=caller,
                target_amount=target_amount,
                ticket_price=ticket_price,
            ),
        )
        self._session.flush()
        logger.debug(
            f"Raffle initialized with target {target_amount} and price {ticket_price}"
        )
        return raffle

    def buy_tickets(
        self, caller: bytes, numbers: Sequence[int], quantity: int
    ) -> PurchaseReceipt:
        return self._purchases.buy_tickets(self._require_raffle(), caller, numbers, quantity)

    def conduct_draw(self, caller: bytes) -> DrawOutcome:
        return self._draws.conduct_draw(self._require_raffle(), caller)

    def set_winner(self, caller: bytes, winner: bytes) -> RaffleRecord:
        return self._winners.set_winner(self._require_raffle(), caller, winner)


__all__ = ["RAFFLE_SEED", "RaffleLifecycleManager"]
