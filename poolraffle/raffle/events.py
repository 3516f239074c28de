"""Events emitted by raffle operations."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import Any, Union

from sqlalchemy.orm import Session

from ..models.event_log import RaffleEventLog

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RaffleInitialized:
    raffle: bytes
    authority: bytes
    target_amount: int
    ticket_price: int


@dataclass(frozen=True)
class TicketsPurchased:
    raffle: bytes
    buyer: bytes
    numbers: tuple[int, ...]
    quantity: int
    total_cost: int
    ticket_hash: bytes


@dataclass(frozen=True)
class DrawConducted:
    raffle: bytes
    winning_numbers: tuple[int, ...]
    total_tickets: int


@dataclass(frozen=True)
class WinnerSet:
    raffle: bytes
    winner: bytes
    winning_numbers: tuple[int, ...]


RaffleEvent = Union[RaffleInitialized, TicketsPurchased, DrawConducted, WinnerSet]


def event_payload(event: RaffleEvent) -> dict[str, Any]:
    """Return a JSON-serializable mapping of ``event``; bytes become hex."""
    payload: dict[str, Any] = {}
    for field in fields(event):
        value = getattr(event, field.name)
        if isinstance(value, bytes):
            value = value.hex()
        elif isinstance(value, tuple):
            value = list(value)
        payload[field.name] = value
    return payload


def emit(session: Session, event: RaffleEvent) -> RaffleEventLog:
    """Append ``event`` to the raffle event log.

    The row joins the caller's transaction, so a rolled back operation leaves
    no event behind.
    """
    kind = type(event).__name__
    entry = RaffleEventLog(
        raffle_address=event.raffle,
        kind=kind,
        payload=event_payload(event),
    )
    session.add(entry)
    logger.info(f"{kind} emitted for raffle {event.raffle.hex()[:16]}")
    return entry


__all__ = [
    "DrawConducted",
    "RaffleEvent",
    "RaffleInitialized",
    "TicketsPurchased",
    "WinnerSet",
    "emit",
    "event_payload",
]
