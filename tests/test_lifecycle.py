from __future__ import annotations

import unittest
from unittest.mock import patch

from sqlalchemy import create_engine, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from poolraffle.ledger.local import LocalLedger
from poolraffle.models import Base, RaffleEventLog, RaffleRecord, RaffleStatus, TicketRecord
from poolraffle.models.types import EMPTY_IDENTITY, MAX_AMOUNT
from poolraffle.raffle import (
    DrawAlreadyCompleteError,
    DrawNotCompleteError,
    DuplicateNumbersError,
    InsufficientFundsError,
    InvalidNumberError,
    PoolCompleteError,
    PoolNotCompleteError,
    RaffleLifecycleManager,
    RaffleNotActiveError,
    UnauthorizedError,
    derive_winning_numbers,
    ticket_hash,
)

AUTHORITY = b"\xaa" * 32
STRANGER = b"\xbb" * 32
NOW = 1_700_000_000


def buyer(n: int) -> bytes:
    return bytes([n]) * 32


class RaffleLifecycleTests(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(
            bind=self.engine, future=True, expire_on_commit=False
        )
        self.ledger = LocalLedger(
            {buyer(n): 10_000 for n in range(1, 20)}, slot=500, now=NOW
        )

    def tearDown(self) -> None:
        self.engine.dispose()

    def _initialize(self, target: int = 1000, price: int = 100) -> RaffleRecord:
        with self.Session.begin() as session:
            return RaffleLifecycleManager(session, self.ledger).initialize(
                AUTHORITY, target, price
            )

    def _buy(self, who: bytes, numbers, quantity: int = 1):
        with self.Session.begin() as session:
            return RaffleLifecycleManager(session, self.ledger).buy_tickets(
                who, numbers, quantity
            )

    def _raffle(self) -> RaffleRecord:
        with self.Session() as session:
            raffle = RaffleLifecycleManager(session, self.ledger).load()
            assert raffle is not None
            return raffle

    def _fill_pool(self) -> None:
        self._initialize()
        self._buy(buyer(1), [1, 2, 3, 4, 5], 5)
        self._buy(buyer(2), [6, 7, 8, 9, 10], 5)

    def _events(self, kind: str) -> list[RaffleEventLog]:
        with self.Session() as session:
            return RaffleEventLog.for_raffle(session, self._raffle().address, kind)

    def test_initialize_sets_defaults_and_emits(self) -> None:
        raffle = self._initialize()
        self.assertEqual(raffle.authority, AUTHORITY)
        self.assertEqual(raffle.target_amount, 1000)
        self.assertEqual(raffle.ticket_price, 100)
        self.assertEqual(raffle.total_collected, 0)
        self.assertEqual(raffle.total_tickets_sold, 0)
        self.assertEqual(raffle.raffle_status, RaffleStatus.ACTIVE)
        self.assertEqual(raffle.winning_numbers, [0, 0, 0, 0, 0])
        self.assertEqual(raffle.winner, EMPTY_IDENTITY)
        self.assertFalse(raffle.is_draw_complete)
        self.assertEqual(raffle.created_at, NOW)

        events = self._events("RaffleInitialized")
        self.assertEqual(len(events), 1)
        self.assertEqual(
            events[0].payload,
            {
                "raffle": raffle.address.hex(),
                "authority": AUTHORITY.hex(),
                "target_amount": 1000,
                "ticket_price": 100,
            },
        )

    def test_initialize_accepts_zero_amounts(self) -> None:
        raffle = self._initialize(target=0, price=0)
        self.assertEqual(raffle.target_amount, 0)
        self.assertEqual(raffle.ticket_price, 0)

    def test_second_initialize_fails_at_storage_layer(self) -> None:
        self._initialize()
        with self.assertRaises(IntegrityError):
            self._initialize(target=5, price=1)
        self.assertEqual(self._raffle().target_amount, 1000)

    def test_single_purchase_keeps_raffle_active(self) -> None:
        self._initialize()
        receipt = self._buy(buyer(1), [1, 2, 3, 4, 5])

        raffle = self._raffle()
        self.assertEqual(raffle.total_collected, 100)
        self.assertEqual(raffle.total_tickets_sold, 1)
        self.assertEqual(raffle.raffle_status, RaffleStatus.ACTIVE)
        self.assertEqual(receipt.cost, 100)
        self.assertFalse(receipt.pool_completed)

        ticket = receipt.ticket
        self.assertEqual(ticket.numbers, [1, 2, 3, 4, 5])
        self.assertEqual(ticket.buyer, buyer(1))
        self.assertEqual(ticket.timestamp, NOW)
        self.assertEqual(ticket.ticket_hash, ticket_hash([1, 2, 3, 4, 5], buyer(1), NOW))
        self.assertEqual(self.ledger.balance_of(buyer(1)), 9_900)
        self.assertEqual(self.ledger.balance_of(raffle.address), 100)

        events = self._events("TicketsPurchased")
        self.assertEqual(len(events), 1)
        self.assertEqual(events[0].payload["numbers"], [1, 2, 3, 4, 5])
        self.assertEqual(events[0].payload["total_cost"], 100)
        self.assertEqual(events[0].payload["ticket_hash"], ticket.ticket_hash.hex())

    def test_crossing_the_target_completes_the_pool(self) -> None:
        self._initialize()
        self._buy(buyer(1), [1, 2, 3, 4, 5], 1)
        collected = [self._raffle().total_collected]
        self._buy(buyer(2), [11, 12, 13, 14, 15], 5)
        collected.append(self._raffle().total_collected)
        self.assertEqual(self._raffle().raffle_status, RaffleStatus.ACTIVE)
        self._buy(buyer(3), [21, 22, 23, 24, 25], 1)
        collected.append(self._raffle().total_collected)
        receipt = self._buy(buyer(4), [31, 32, 33, 34, 35], 5)
        collected.append(self._raffle().total_collected)

        self.assertTrue(receipt.pool_completed)
        self.assertEqual(collected, sorted(collected))
        raffle = self._raffle()
        self.assertEqual(raffle.total_collected, 1200)
        self.assertEqual(raffle.total_tickets_sold, 12)
        self.assertEqual(raffle.raffle_status, RaffleStatus.POOL_COMPLETE)

        with self.assertRaises(PoolCompleteError):
            self._buy(buyer(5), [41, 42, 43, 44, 45], 1)
        self.assertEqual(self._raffle().total_collected, 1200)

    def test_duplicate_numbers_rejected_before_any_change(self) -> None:
        self._initialize()
        with self.assertRaises(DuplicateNumbersError) as ctx:
            self._buy(buyer(1), [1, 1, 2, 3, 4])
        self.assertEqual(ctx.exception.code, "DuplicateNumbers")

        raffle = self._raffle()
        self.assertEqual(raffle.total_collected, 0)
        self.assertEqual(raffle.total_tickets_sold, 0)
        self.assertEqual(self.ledger.balance_of(buyer(1)), 10_000)
        with self.Session() as session:
            self.assertEqual(session.scalar(select(func.count(TicketRecord.id))), 0)
        self.assertEqual(self._events("TicketsPurchased"), [])

    def test_out_of_range_numbers_rejected(self) -> None:
        self._initialize()
        for numbers in ([0, 2, 3, 4, 5], [1, 2, 3, 4, 50]):
            with self.subTest(numbers=numbers):
                with self.assertRaises(InvalidNumberError):
                    self._buy(buyer(1), numbers)
        # range is checked across all numbers before duplicates
        with self.assertRaises(InvalidNumberError):
            self._buy(buyer(1), [1, 1, 2, 3, 60])

    def test_insufficient_funds_checked_before_numbers(self) -> None:
        self._initialize()
        poor = buyer(99)
        self.ledger.fund(poor, 150)
        with self.assertRaises(InsufficientFundsError):
            self._buy(poor, [1, 1, 1, 1, 1], 2)
        receipt = self._buy(poor, [1, 2, 3, 4, 5], 1)
        self.assertEqual(receipt.cost, 100)

    def test_second_purchase_by_same_buyer_fails_at_storage_layer(self) -> None:
        self._initialize()
        self._buy(buyer(1), [1, 2, 3, 4, 5], 1)
        with self.assertRaises(IntegrityError):
            self._buy(buyer(1), [6, 7, 8, 9, 10], 1)
        raffle = self._raffle()
        self.assertEqual(raffle.total_collected, 100)
        self.assertEqual(raffle.total_tickets_sold, 1)
        self.assertEqual(self.ledger.balance_of(buyer(1)), 9_900)

    def test_failed_transfer_rolls_back_the_purchase(self) -> None:
        self._initialize()
        self._buy(buyer(1), [1, 2, 3, 4, 5], 1)

        with patch.object(
            self.ledger,
            "transfer",
            side_effect=RuntimeError("Ledger transfer failed: host unavailable"),
        ):
            with self.assertRaises(RuntimeError):
                self._buy(buyer(2), [6, 7, 8, 9, 10], 9)

        raffle = self._raffle()
        self.assertEqual(raffle.total_collected, 100)
        self.assertEqual(raffle.total_tickets_sold, 1)
        self.assertEqual(raffle.raffle_status, RaffleStatus.ACTIVE)
        self.assertEqual(self.ledger.balance_of(buyer(2)), 10_000)
        with self.Session() as session:
            self.assertEqual(session.scalar(select(func.count(TicketRecord.id))), 1)
            self.assertIsNone(TicketRecord.get_for_buyer(session, raffle, buyer(2)))
        self.assertEqual(len(self._events("TicketsPurchased")), 1)

        receipt = self._buy(buyer(2), [6, 7, 8, 9, 10], 9)
        self.assertTrue(receipt.pool_completed)

    def test_amounts_use_the_full_u64_range(self) -> None:
        whale = buyer(30)
        self.ledger.fund(whale, MAX_AMOUNT)
        self._initialize(target=MAX_AMOUNT, price=MAX_AMOUNT)
        receipt = self._buy(whale, [1, 2, 3, 4, 5], 1)
        self.assertTrue(receipt.pool_completed)

        raffle = self._raffle()
        self.assertEqual(raffle.target_amount, 2**64 - 1)
        self.assertEqual(raffle.ticket_price, 2**64 - 1)
        self.assertEqual(raffle.total_collected, 2**64 - 1)
        self.assertEqual(raffle.raffle_status, RaffleStatus.POOL_COMPLETE)
        self.assertEqual(self.ledger.balance_of(raffle.address), 2**64 - 1)
        self.assertEqual(self._events("TicketsPurchased")[0].payload["total_cost"], 2**64 - 1)

    def test_totals_past_u64_are_rejected(self) -> None:
        half = 2**63
        self._initialize(target=MAX_AMOUNT, price=half)
        for n in (30, 31):
            self.ledger.fund(buyer(n), half)
        self._buy(buyer(30), [1, 2, 3, 4, 5], 1)
        self.assertEqual(self._raffle().total_collected, half)

        with self.assertRaises(ValueError):
            self._buy(buyer(31), [6, 7, 8, 9, 10], 1)
        self.assertEqual(self._raffle().total_collected, half)
        self.assertEqual(self.ledger.balance_of(buyer(31)), half)

    def test_initialize_rejects_amounts_outside_u64(self) -> None:
        for target, price in ((2**64, 1), (1, -1), (True, 1)):
            with self.subTest(target=target, price=price):
                with self.assertRaises(ValueError):
                    self._initialize(target=target, price=price)
        with self.Session() as session:
            self.assertIsNone(RaffleLifecycleManager(session, self.ledger).load())

    def test_quantity_is_not_restricted_to_one_or_five(self) -> None:
        self._initialize(target=100_000, price=10)
        self.assertEqual(self._buy(buyer(1), [1, 2, 3, 4, 5], 3).cost, 30)
        zero = self._buy(buyer(2), [1, 2, 3, 4, 5], 0)
        self.assertEqual(zero.cost, 0)
        self.assertEqual(zero.ticket.quantity, 0)
        self.assertEqual(self._buy(buyer(3), [1, 2, 3, 4, 5], 255).cost, 2_550)
        with self.assertRaises(ValueError):
            self._buy(buyer(4), [1, 2, 3, 4, 5], 256)
        with self.assertRaises(ValueError):
            self._buy(buyer(5), [1, 2, 3, 4, 5], True)

    def test_zero_target_pool_is_full_from_the_start(self) -> None:
        self._initialize(target=0, price=100)
        with self.assertRaises(PoolCompleteError):
            self._buy(buyer(1), [1, 2, 3, 4, 5])

    def test_draw_requires_authority_then_populates_numbers(self) -> None:
        self._fill_pool()
        with self.assertRaises(UnauthorizedError):
            with self.Session.begin() as session:
                RaffleLifecycleManager(session, self.ledger).conduct_draw(STRANGER)
        self.assertFalse(self._raffle().is_draw_complete)

        self.ledger.advance(12)
        with self.Session.begin() as session:
            outcome = RaffleLifecycleManager(session, self.ledger).conduct_draw(AUTHORITY)

        self.assertEqual(outcome.seed, 512)
        raffle = self._raffle()
        self.assertEqual(raffle.winning_numbers, derive_winning_numbers(512))
        self.assertEqual(len(set(raffle.winning_numbers)), 5)
        self.assertEqual(raffle.winning_numbers, sorted(raffle.winning_numbers))
        self.assertTrue(all(1 <= n <= 49 for n in raffle.winning_numbers))
        self.assertTrue(raffle.is_draw_complete)
        self.assertEqual(raffle.raffle_status, RaffleStatus.DRAW_COMPLETE)

        events = self._events("DrawConducted")
        self.assertEqual(len(events), 1)
        self.assertEqual(events[0].payload["winning_numbers"], raffle.winning_numbers)
        self.assertEqual(events[0].payload["total_tickets"], 10)

    def test_draw_before_pool_is_complete(self) -> None:
        self._initialize()
        with self.assertRaises(PoolNotCompleteError):
            with self.Session.begin() as session:
                RaffleLifecycleManager(session, self.ledger).conduct_draw(AUTHORITY)

    def test_second_draw_is_rejected(self) -> None:
        self._fill_pool()
        with self.Session.begin() as session:
            RaffleLifecycleManager(session, self.ledger).conduct_draw(AUTHORITY)
        first = self._raffle().winning_numbers

        self.ledger.advance(3)
        with self.assertRaises(DrawAlreadyCompleteError):
            with self.Session.begin() as session:
                RaffleLifecycleManager(session, self.ledger).conduct_draw(AUTHORITY)
        self.assertEqual(self._raffle().winning_numbers, first)

    def test_purchase_after_draw_is_rejected(self) -> None:
        self._fill_pool()
        with self.Session.begin() as session:
            RaffleLifecycleManager(session, self.ledger).conduct_draw(AUTHORITY)
        with self.assertRaises(RaffleNotActiveError):
            self._buy(buyer(7), [1, 2, 3, 4, 5])

    def test_set_winner_before_and_after_draw(self) -> None:
        self._fill_pool()
        with self.assertRaises(DrawNotCompleteError):
            with self.Session.begin() as session:
                RaffleLifecycleManager(session, self.ledger).set_winner(AUTHORITY, buyer(1))

        with self.Session.begin() as session:
            RaffleLifecycleManager(session, self.ledger).conduct_draw(AUTHORITY)

        with self.assertRaises(UnauthorizedError):
            with self.Session.begin() as session:
                RaffleLifecycleManager(session, self.ledger).set_winner(STRANGER, STRANGER)

        # No ticket check: an identity that never bought is accepted.
        with self.Session.begin() as session:
            RaffleLifecycleManager(session, self.ledger).set_winner(AUTHORITY, STRANGER)

        raffle = self._raffle()
        self.assertEqual(raffle.winner, STRANGER)
        self.assertTrue(raffle.has_winner)
        events = self._events("WinnerSet")
        self.assertEqual(len(events), 1)
        self.assertEqual(events[0].payload["winner"], STRANGER.hex())
        self.assertEqual(events[0].payload["winning_numbers"], raffle.winning_numbers)

    def test_winner_can_be_declared_again(self) -> None:
        self._fill_pool()
        with self.Session.begin() as session:
            manager = RaffleLifecycleManager(session, self.ledger)
            manager.conduct_draw(AUTHORITY)
            manager.set_winner(AUTHORITY, buyer(1))
            manager.set_winner(AUTHORITY, buyer(2))
        self.assertEqual(self._raffle().winner, buyer(2))
        self.assertEqual(len(self._events("WinnerSet")), 2)

    def test_operations_before_initialize(self) -> None:
        with self.assertRaises(LookupError):
            self._buy(buyer(1), [1, 2, 3, 4, 5])

    def test_status_never_regresses_over_full_lifecycle(self) -> None:
        order = [RaffleStatus.ACTIVE, RaffleStatus.POOL_COMPLETE, RaffleStatus.DRAW_COMPLETE]
        seen = [self._initialize().raffle_status]
        for n, numbers in enumerate(([1, 2, 3, 4, 5], [2, 3, 4, 5, 6], [3, 4, 5, 6, 7]), 1):
            try:
                self._buy(buyer(n), numbers, 5)
            except PoolCompleteError:
                pass
            seen.append(self._raffle().raffle_status)
        with self.Session.begin() as session:
            RaffleLifecycleManager(session, self.ledger).conduct_draw(AUTHORITY)
        seen.append(self._raffle().raffle_status)

        indexes = [order.index(status) for status in seen]
        self.assertEqual(indexes, sorted(indexes))
        self.assertEqual(seen[-1], RaffleStatus.DRAW_COMPLETE)


if __name__ == "__main__":
    unittest.main()
