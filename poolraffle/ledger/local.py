"""In-process ledger host for development databases and tests."""

from __future__ import annotations

import logging
import time
from typing import Optional

from .base import LedgerHost

logger = logging.getLogger(__name__)


class LocalLedger(LedgerHost):
    """Keeps balances in memory and advances its slot on demand.

    ``now`` pins the clock when given; otherwise wall-clock seconds are used.
    """

    def __init__(
        self,
        balances: Optional[dict[bytes, int]] = None,
        *,
        slot: int = 0,
        now: Optional[int] = None,
        program_id: Optional[str] = None,
    ) -> None:
        super().__init__(program_id=program_id)
        self.balances: dict[bytes, int] = dict(balances or {})
        self.slot = slot
        self.now = now
        self.transfers: list[tuple[bytes, bytes, int]] = []

    def fund(self, identity: bytes, amount: int) -> None:
        self.balances[identity] = self.balances.get(identity, 0) + amount

    def advance(self, slots: int = 1) -> int:
        self.slot += slots
        return self.slot

    def balance_of(self, identity: bytes) -> int:
        return self.balances.get(identity, 0)

    def transfer(self, source: bytes, destination: bytes, amount: int) -> None:
        available = self.balance_of(source)
        if available < amount:
            raise RuntimeError(
                f"Ledger transfer failed: balance {available} below {amount}"
            )
        self.balances[source] = available - amount
        self.fund(destination, amount)
        self.transfers.append((source, destination, amount))
        logger.debug(f"Local transfer of {amount} recorded")

    def current_slot(self) -> int:
        return self.slot

    def unix_timestamp(self) -> int:
        if self.now is not None:
            return self.now
        return int(time.time())


__all__ = ["LocalLedger"]
