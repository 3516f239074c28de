from typing import TYPE_CHECKING, Optional, Sequence

from sqlalchemy.orm import Session

from .models import RaffleRecord
from .raffle.draw import DrawOutcome
from .raffle.lifecycle import RaffleLifecycleManager
from .raffle.matching import TicketEvaluation, rank_tickets
from .raffle.purchase import PurchaseReceipt

if TYPE_CHECKING:
    from .ledger.base import LedgerHost


def _manager(session: Session, host: Optional["LedgerHost"]) -> RaffleLifecycleManager:
    if host is None:
        from .ledger.api import ChainClient

        host = ChainClient()
    return RaffleLifecycleManager(session, host)


def initialize_raffle(
    session: Session,
    authority: bytes,
    target_amount: int,
    ticket_price: int,
    host: Optional["LedgerHost"] = None,
) -> RaffleRecord:
    """Create the raffle and make ``authority`` its operator.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session.
    authority : bytes
        32-byte identity of the operator submitting the call.
    target_amount : int
        Funding target of the pool.
    ticket_price : int
        Price of one ticket.
    host : Optional[LedgerHost]
        Ledger host to use. If not provided, a default
        :class:`~poolraffle.ledger.api.ChainClient` is created.

    Returns
    -------
    RaffleRecord
        The persisted raffle in ``active`` status.
    """
    return _manager(session, host).initialize(authority, target_amount, ticket_price)


def purchase_tickets(
    session: Session,
    buyer: bytes,
    numbers: Sequence[int],
    quantity: int = 1,
    host: Optional["LedgerHost"] = None,
) -> PurchaseReceipt:
    """Buy ``quantity`` tickets on ``numbers`` for ``buyer``.

    See :meth:`~poolraffle.raffle.purchase.TicketPurchaseProcessor.buy_tickets`
    for the order of checks and the errors raised.
    """
    return _manager(session, host).buy_tickets(buyer, numbers, quantity)


def run_draw(
    session: Session,
    authority: bytes,
    host: Optional["LedgerHost"] = None,
) -> DrawOutcome:
    """Draw the winning numbers once the pool is complete.

    The ledger host's current slot seeds the draw.
    """
    return _manager(session, host).conduct_draw(authority)


def declare_winner(
    session: Session,
    authority: bytes,
    winner: bytes,
    host: Optional["LedgerHost"] = None,
) -> RaffleRecord:
    """Record ``winner`` on a drawn raffle.

    ``winner`` is stored as given; it is not required to hold a matching
    ticket. Call :func:`list_winning_tickets` first to see who matched.
    """
    return _manager(session, host).set_winner(authority, winner)


def list_winning_tickets(
    session: Session,
    host: Optional["LedgerHost"] = None,
) -> list[TicketEvaluation]:
    """Return tickets sharing numbers with the draw, best match first."""
    raffle = _manager(session, host).load()
    if raffle is None:
        return []
    return rank_tickets(session, raffle)
