"""Deterministic fingerprints for purchased tickets."""

from __future__ import annotations

from typing import Sequence

from Crypto.Hash import keccak

from ..models.types import IDENTITY_LENGTH

TICKET_NUMBER_COUNT = 5


def _encode_numbers(numbers: Sequence[int]) -> bytes:
    """Encode the ticket numbers as one raw byte each, in the given order."""
    if len(numbers) != TICKET_NUMBER_COUNT:
        raise ValueError(f"a ticket holds exactly {TICKET_NUMBER_COUNT} numbers")
    try:
        return bytes(numbers)
    except (TypeError, ValueError) as exc:
        raise ValueError("ticket numbers must be integers in 0..255") from exc


def ticket_hash(numbers: Sequence[int], buyer: bytes, timestamp: int) -> bytes:
    """Return the 32-byte fingerprint of a ticket.

    Parameters
    ----------
    numbers : Sequence[int]
        The five numbers chosen by the buyer. Order matters.
    buyer : bytes
        32-byte identity of the purchaser.
    timestamp : int
        Unix timestamp of the purchase, encoded as a signed 64-bit
        little-endian integer.

    Returns
    -------
    bytes
        Keccak-256 digest of ``numbers || buyer || timestamp``.
    """
    if not isinstance(buyer, (bytes, bytearray)) or len(buyer) != IDENTITY_LENGTH:
        raise ValueError(f"buyer must be a {IDENTITY_LENGTH}-byte identity")
    payload = (
        _encode_numbers(numbers)
        + bytes(buyer)
        + int(timestamp).to_bytes(8, "little", signed=True)
    )
    return keccak.new(digest_bits=256, data=payload).digest()


__all__ = ["TICKET_NUMBER_COUNT", "ticket_hash"]
