"""Fixed-size binary layouts of the raffle and ticket accounts.

Integers are little-endian; the status is its one-byte ordinal. An optional
8-byte discriminator, ``sha256(b"account:<Name>")[:8]``, prefixes each
account when written to the ledger host.
"""

from __future__ import annotations

import hashlib
import struct
from dataclasses import dataclass

from ..models.raffle import RaffleRecord, RaffleStatus
from ..models.ticket import TicketRecord

RAFFLE_LAYOUT = struct.Struct("<32sQQQQBq5s32s?")
TICKET_LAYOUT = struct.Struct("<32s32s5sBq32s")

DISCRIMINATOR_SIZE = 8


def _discriminator(name: str) -> bytes:
    return hashlib.sha256(f"account:{name}".encode("ascii")).digest()[:DISCRIMINATOR_SIZE]


RAFFLE_DISCRIMINATOR = _discriminator("Raffle")
TICKET_DISCRIMINATOR = _discriminator("TicketEntry")


@dataclass(frozen=True)
class RaffleAccount:
    authority: bytes
    target_amount: int
    ticket_price: int
    total_tickets_sold: int
    total_collected: int
    status: RaffleStatus
    created_at: int
    winning_numbers: tuple[int, ...]
    winner: bytes
    is_draw_complete: bool


@dataclass(frozen=True)
class TicketAccount:
    raffle: bytes
    buyer: bytes
    numbers: tuple[int, ...]
    quantity: int
    timestamp: int
    ticket_hash: bytes


def _strip_discriminator(data: bytes, expected: bytes, with_discriminator: bool) -> bytes:
    if not with_discriminator:
        return data
    if data[:DISCRIMINATOR_SIZE] != expected:
        raise ValueError("account discriminator does not match")
    return data[DISCRIMINATOR_SIZE:]


def pack_raffle(raffle: RaffleRecord, *, with_discriminator: bool = False) -> bytes:
    """Serialize ``raffle`` into its 111-byte layout."""
    body = RAFFLE_LAYOUT.pack(
        raffle.authority,
        raffle.target_amount,
        raffle.ticket_price,
        raffle.total_tickets_sold,
        raffle.total_collected,
        raffle.raffle_status.ordinal,
        raffle.created_at,
        bytes(raffle.winning_numbers),
        raffle.winner,
        raffle.is_draw_complete,
    )
    return RAFFLE_DISCRIMINATOR + body if with_discriminator else body


def unpack_raffle(data: bytes, *, with_discriminator: bool = False) -> RaffleAccount:
    body = _strip_discriminator(data, RAFFLE_DISCRIMINATOR, with_discriminator)
    if len(body) != RAFFLE_LAYOUT.size:
        raise ValueError(f"raffle account must be {RAFFLE_LAYOUT.size} bytes, got {len(body)}")
    (
        authority,
        target_amount,
        ticket_price,
        total_tickets_sold,
        total_collected,
        status,
        created_at,
        winning_numbers,
        winner,
        is_draw_complete,
    ) = RAFFLE_LAYOUT.unpack(body)
    return RaffleAccount(
        authority=authority,
        target_amount=target_amount,
        ticket_price=ticket_price,
        total_tickets_sold=total_tickets_sold,
        total_collected=total_collected,
        status=RaffleStatus.from_ordinal(status),
        created_at=created_at,
        winning_numbers=tuple(winning_numbers),
        winner=winner,
        is_draw_complete=is_draw_complete,
    )


def pack_ticket(ticket: TicketRecord, *, with_discriminator: bool = False) -> bytes:
    """Serialize ``ticket`` into its 110-byte layout."""
    body = TICKET_LAYOUT.pack(
        ticket.raffle.address,
        ticket.buyer,
        bytes(ticket.numbers),
        ticket.quantity,
        ticket.timestamp,
        ticket.ticket_hash,
    )
    return TICKET_DISCRIMINATOR + body if with_discriminator else body


def unpack_ticket(data: bytes, *, with_discriminator: bool = False) -> TicketAccount:
    body = _strip_discriminator(data, TICKET_DISCRIMINATOR, with_discriminator)
    if len(body) != TICKET_LAYOUT.size:
        raise ValueError(f"ticket account must be {TICKET_LAYOUT.size} bytes, got {len(body)}")
    raffle, buyer, numbers, quantity, timestamp, digest = TICKET_LAYOUT.unpack(body)
    return TicketAccount(
        raffle=raffle,
        buyer=buyer,
        numbers=tuple(numbers),
        quantity=quantity,
        timestamp=timestamp,
        ticket_hash=digest,
    )


__all__ = [
    "RAFFLE_DISCRIMINATOR",
    "RAFFLE_LAYOUT",
    "RaffleAccount",
    "TICKET_DISCRIMINATOR",
    "TICKET_LAYOUT",
    "TicketAccount",
    "pack_raffle",
    "pack_ticket",
    "unpack_raffle",
    "unpack_ticket",
]
