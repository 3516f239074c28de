"""Database model for the raffle (pool) record."""

from __future__ import annotations

import enum
import json
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    JSON,
    String,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from .base import Base
from .types import AMOUNT_TYPE, EMPTY_IDENTITY, ID_TYPE, IDENTITY_TYPE, TIMESTAMP_TYPE
from ..db.utils import unix_to_iso

if TYPE_CHECKING:
    from .ticket import TicketRecord


class RaffleStatus(str, enum.Enum):
    """Lifecycle stage of a raffle.

    The declaration order is the persisted one-byte ordinal used by
    :mod:`poolraffle.raffle.layout`.
    """

    ACTIVE = "active"
    POOL_COMPLETE = "pool_complete"
    DRAW_COMPLETE = "draw_complete"
    CANCELLED = "cancelled"
    """Defined for format stability; no operation produces it."""

    @property
    def ordinal(self) -> int:
        return list(RaffleStatus).index(self)

    @classmethod
    def from_ordinal(cls, value: int) -> "RaffleStatus":
        members = list(cls)
        if not 0 <= value < len(members):
            raise ValueError(f"Unknown raffle status ordinal: {value}")
        return members[value]


NO_WINNING_NUMBERS = [0, 0, 0, 0, 0]


class RaffleRecord(Base):
    """Single pooled-fund raffle instance.

    One row corresponds to the raffle account kept by the ledger host. The
    row is created by ``initialize`` and mutated by every other operation; it
    is never deleted.
    """

    __tablename__ = "raffle_records"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    """Surrogate primary key."""

    address: Mapped[bytes] = mapped_column(IDENTITY_TYPE, nullable=False, unique=True)
    """Deterministic storage address of the raffle; duplicates are rejected."""

    authority: Mapped[bytes] = mapped_column(IDENTITY_TYPE, nullable=False)
    """Operator allowed to conduct the draw and declare the winner."""

    target_amount: Mapped[int] = mapped_column(AMOUNT_TYPE, nullable=False)
    """Funding target of the pool. Immutable."""

    ticket_price: Mapped[int] = mapped_column(AMOUNT_TYPE, nullable=False)
    """Price of a single ticket. Immutable."""

    total_tickets_sold: Mapped[int] = mapped_column(AMOUNT_TYPE, nullable=False, default=0)
    """Sum of ``quantity`` over all purchases."""

    total_collected: Mapped[int] = mapped_column(AMOUNT_TYPE, nullable=False, default=0)
    """Sum of the cost of all purchases."""

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=RaffleStatus.ACTIVE.value
    )
    """Current :class:`RaffleStatus` value."""

    created_at: Mapped[int] = mapped_column(TIMESTAMP_TYPE, nullable=False)
    """Unix timestamp (seconds) of initialization."""

    winning_numbers: Mapped[list[int]] = mapped_column(
        JSON, nullable=False, default=lambda: list(NO_WINNING_NUMBERS)
    )
    """Five winning numbers in ascending order; all zero before the draw."""

    winner: Mapped[bytes] = mapped_column(
        IDENTITY_TYPE, nullable=False, default=EMPTY_IDENTITY
    )
    """Declared winner; all-zero until ``set_winner`` runs."""

    is_draw_complete: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    """Flipped exactly once by the draw."""

    tickets: Mapped[list["TicketRecord"]] = relationship(back_populates="raffle")
    """Tickets purchased against this raffle."""

    __table_args__ = (
        CheckConstraint(
            "status IN ('active','pool_complete','draw_complete','cancelled')",
            name="status_enum",
        ),
        CheckConstraint("total_collected >= 0", name="total_collected_non_negative"),
        CheckConstraint("total_tickets_sold >= 0", name="tickets_sold_non_negative"),
    )

    def __init__(
        self,
        *,
        address: bytes,
        authority: bytes,
        target_amount: int,
        ticket_price: int,
        created_at: int,
        status: RaffleStatus = RaffleStatus.ACTIVE,
        total_tickets_sold: int = 0,
        total_collected: int = 0,
        winning_numbers: Optional[list[int]] = None,
        winner: bytes = EMPTY_IDENTITY,
        is_draw_complete: bool = False,
    ) -> None:
        self.address = address
        self.authority = authority
        self.target_amount = target_amount
        self.ticket_price = ticket_price
        self.created_at = created_at
        self.status = RaffleStatus(status).value
        self.total_tickets_sold = total_tickets_sold
        self.total_collected = total_collected
        self.winning_numbers = (
            list(winning_numbers) if winning_numbers is not None else list(NO_WINNING_NUMBERS)
        )
        self.winner = winner
        self.is_draw_complete = is_draw_complete

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return (
            f"<RaffleRecord(id={self.id}, address={self.address.hex()[:16]}..., "
            f"status='{self.status}', total_collected={self.total_collected}, "
            f"target_amount={self.target_amount})>"
        )

    @property
    def raffle_status(self) -> RaffleStatus:
        return RaffleStatus(self.status)

    @property
    def has_winner(self) -> bool:
        return self.winner != EMPTY_IDENTITY

    @property
    def is_pool_full(self) -> bool:
        return self.total_collected >= self.target_amount

    @classmethod
    def get_by_address(cls, session: Session, address: bytes) -> Optional["RaffleRecord"]:
        """Return the raffle stored at ``address`` if it exists."""

        return session.scalar(select(cls).where(cls.address == address))

    def to_json(self) -> dict[str, Any]:
        """Return a JSON-serializable view; identities are hex encoded."""
        return {
            "address": self.address.hex(),
            "authority": self.authority.hex(),
            "target_amount": self.target_amount,
            "ticket_price": self.ticket_price,
            "total_tickets_sold": self.total_tickets_sold,
            "total_collected": self.total_collected,
            "status": self.status,
            "created_at": unix_to_iso(self.created_at),
            "winning_numbers": list(self.winning_numbers),
            "winner": self.winner.hex() if self.has_winner else None,
            "is_draw_complete": self.is_draw_complete,
        }

    def to_json_str(self) -> str:
        return json.dumps(self.to_json())


__all__ = ["NO_WINNING_NUMBERS", "RaffleRecord", "RaffleStatus"]
