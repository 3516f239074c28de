"""Database model for purchased tickets."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Integer,
    JSON,
    UniqueConstraint,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from .base import Base
from .types import ID_TYPE, IDENTITY_TYPE, TIMESTAMP_TYPE
from ..db.utils import unix_to_iso

if TYPE_CHECKING:
    from .raffle import RaffleRecord


class TicketRecord(Base):
    """Write-once record of one purchase.

    The storage address is derived from ``(raffle, buyer)`` so at most one
    ticket exists per buyer and raffle. ``quantity`` is the only way to hold
    several tickets.
    """

    def __init__(
        self,
        *,
        address: bytes,
        raffle: Optional["RaffleRecord"] = None,
        raffle_id: Optional[int] = None,
        buyer: bytes,
        numbers: list[int],
        quantity: int,
        timestamp: int,
        ticket_hash: bytes,
    ) -> None:
        """Create a new ticket record.

        Parameters
        ----------
        address : bytes
            32-byte storage address derived from the raffle address and buyer.
        raffle : RaffleRecord, optional
            Owning raffle. Either ``raffle`` or ``raffle_id`` should be given.
        raffle_id : int, optional
            Primary key of the owning raffle.
        buyer : bytes
            32-byte identity of the purchaser.
        numbers : list[int]
            The five numbers chosen by the buyer, in the order given.
        quantity : int
            Number of tickets represented by this purchase.
        timestamp : int
            Unix timestamp (seconds) of the purchase.
        ticket_hash : bytes
            32-byte fingerprint of ``(numbers, buyer, timestamp)``.
        """

        self.address = address
        if raffle is not None:
            self.raffle = raffle
        if raffle_id is not None:
            self.raffle_id = raffle_id
        self.buyer = buyer
        self.numbers = list(numbers)
        self.quantity = quantity
        self.timestamp = timestamp
        self.ticket_hash = ticket_hash

    __tablename__ = "ticket_records"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    address: Mapped[bytes] = mapped_column(IDENTITY_TYPE, nullable=False, unique=True)
    raffle_id: Mapped[int] = mapped_column(
        ForeignKey("raffle_records.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    buyer: Mapped[bytes] = mapped_column(IDENTITY_TYPE, nullable=False)
    numbers: Mapped[list[int]] = mapped_column(JSON, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    timestamp: Mapped[int] = mapped_column(TIMESTAMP_TYPE, nullable=False)
    ticket_hash: Mapped[bytes] = mapped_column(IDENTITY_TYPE, nullable=False)

    raffle: Mapped["RaffleRecord"] = relationship(back_populates="tickets")

    __table_args__ = (
        UniqueConstraint("raffle_id", "buyer", name="uq_ticket_per_buyer"),
        CheckConstraint("quantity >= 0 AND quantity <= 255", name="quantity_u8"),
    )

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return (
            f"<TicketRecord(id={self.id}, raffle_id={self.raffle_id}, "
            f"numbers={self.numbers}, quantity={self.quantity})>"
        )

    @classmethod
    def get_for_buyer(
        cls, session: Session, raffle: "RaffleRecord", buyer: bytes
    ) -> Optional["TicketRecord"]:
        """Return the buyer's ticket for ``raffle`` if one was purchased."""

        return session.scalar(
            select(cls).where(cls.raffle_id == raffle.id, cls.buyer == buyer)
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "address": self.address.hex(),
            "buyer": self.buyer.hex(),
            "numbers": list(self.numbers),
            "quantity": self.quantity,
            "timestamp": unix_to_iso(self.timestamp),
            "ticket_hash": self.ticket_hash.hex(),
        }

    def to_json_str(self) -> str:
        return json.dumps(self.to_json())


__all__ = ["TicketRecord"]
