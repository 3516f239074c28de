from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Index,
    JSON,
    String,
    func,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column

from .base import Base
from .types import ID_TYPE, IDENTITY_TYPE


class RaffleEventLog(Base):
    """Append-only log of events emitted by raffle operations."""

    __tablename__ = "raffle_event_log"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    raffle_address: Mapped[bytes] = mapped_column(IDENTITY_TYPE, nullable=False)
    kind: Mapped[str] = mapped_column(String(32), nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )

    __table_args__ = (
        CheckConstraint(
            "kind IN ('RaffleInitialized','TicketsPurchased','DrawConducted','WinnerSet')",
            name="kind_enum",
        ),
        Index("ix_raffle_event_log_raffle_kind", "raffle_address", "kind"),
    )

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<RaffleEventLog(id={self.id}, kind='{self.kind}')>"

    @classmethod
    def for_raffle(
        cls, session: Session, raffle_address: bytes, kind: Optional[str] = None
    ) -> list["RaffleEventLog"]:
        """Return the events of a raffle in emission order, optionally by ``kind``."""

        stmt = select(cls).where(cls.raffle_address == raffle_address)
        if kind is not None:
            stmt = stmt.where(cls.kind == kind)
        return list(session.scalars(stmt.order_by(cls.id.asc())).all())


__all__ = ["RaffleEventLog"]
