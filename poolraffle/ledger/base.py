"""Interface to the ledger host that runs the raffle."""

from __future__ import annotations

import hashlib
import os
from abc import ABC, abstractmethod
from typing import Optional

from dotenv import load_dotenv

DEFAULT_PROGRAM_ID = "poolraffle"


class LedgerHost(ABC):
    """Services the raffle core relies on but does not implement.

    Signature verification happens upstream: every ``caller`` handed to the
    core is assumed to be an already authenticated identity.
    """

    def __init__(self, program_id: Optional[str] = None) -> None:
        load_dotenv()
        self.program_id = program_id or os.getenv("RAFFLE_PROGRAM_ID", DEFAULT_PROGRAM_ID)

    @abstractmethod
    def balance_of(self, identity: bytes) -> int:
        """Return the spendable balance held by ``identity``."""

    @abstractmethod
    def transfer(self, source: bytes, destination: bytes, amount: int) -> None:
        """Move ``amount`` from ``source`` into ``destination``'s custody."""

    @abstractmethod
    def current_slot(self) -> int:
        """Return the host's monotonically increasing slot counter."""

    @abstractmethod
    def unix_timestamp(self) -> int:
        """Return the host clock in unix seconds."""

    def derive_address(self, *seeds: bytes) -> bytes:
        """Derive a 32-byte storage address from ``seeds``.

        The same seeds always map to the same address within a program, which
        is what makes per-(raffle, buyer) storage unique.
        """
        digest = hashlib.sha256()
        for seed in seeds:
            digest.update(len(seed).to_bytes(1, "little"))
            digest.update(seed)
        digest.update(self.program_id.encode("utf-8"))
        digest.update(b"ProgramDerivedAddress")
        return digest.digest()


__all__ = ["DEFAULT_PROGRAM_ID", "LedgerHost"]
