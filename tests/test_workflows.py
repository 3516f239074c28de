import json
import unittest

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from poolraffle.ledger.local import LocalLedger
from poolraffle.models import Base, RaffleStatus
from poolraffle.raffle import InsufficientFundsError
from poolraffle.workflows import (
    declare_winner,
    initialize_raffle,
    list_winning_tickets,
    purchase_tickets,
    run_draw,
)

OPERATOR = b"\x0f" * 32
ALICE = b"\xa1" * 32
BOB = b"\xb0" * 32


class RaffleWorkflowTestCase(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(
            bind=self.engine, future=True, expire_on_commit=False
        )
        # slot 7 draws [8, 9, 10, 11, 12]
        self.ledger = LocalLedger({ALICE: 1_000, BOB: 300}, slot=7, now=1_700_000_000)

    def tearDown(self):
        self.engine.dispose()

    def test_full_raffle_round(self):
        with self.Session.begin() as session:
            raffle = initialize_raffle(session, OPERATOR, 600, 100, host=self.ledger)
            self.assertEqual(raffle.raffle_status, RaffleStatus.ACTIVE)

        with self.Session.begin() as session:
            purchase_tickets(session, BOB, [8, 9, 10, 30, 31], 1, host=self.ledger)
        with self.Session.begin() as session:
            receipt = purchase_tickets(session, ALICE, [8, 9, 10, 11, 40], 5, host=self.ledger)
            self.assertTrue(receipt.pool_completed)

        with self.Session.begin() as session:
            outcome = run_draw(session, OPERATOR, host=self.ledger)
            self.assertEqual(outcome.winning_numbers, [8, 9, 10, 11, 12])

        with self.Session.begin() as session:
            ranking = list_winning_tickets(session, host=self.ledger)
            self.assertEqual([ev.ticket.buyer for ev in ranking], [ALICE, BOB])
            self.assertEqual([ev.matches for ev in ranking], [4, 3])
            raffle = declare_winner(session, OPERATOR, ranking[0].ticket.buyer, host=self.ledger)

        snapshot = json.loads(raffle.to_json_str())
        self.assertEqual(snapshot["status"], "draw_complete")
        self.assertEqual(snapshot["winner"], ALICE.hex())
        self.assertEqual(snapshot["total_collected"], 600)
        self.assertEqual(snapshot["created_at"], "2023-11-14T22:13:20+00:00")
        self.assertEqual(self.ledger.balance_of(raffle.address), 600)

    def test_insufficient_balance_leaves_no_trace(self):
        with self.Session.begin() as session:
            initialize_raffle(session, OPERATOR, 600, 100, host=self.ledger)
        with self.assertRaises(InsufficientFundsError):
            with self.Session.begin() as session:
                purchase_tickets(session, BOB, [1, 2, 3, 4, 5], 5, host=self.ledger)
        with self.Session() as session:
            self.assertEqual(list_winning_tickets(session, host=self.ledger), [])

    def test_list_winning_tickets_before_initialize(self):
        with self.Session() as session:
            self.assertEqual(list_winning_tickets(session, host=self.ledger), [])


if __name__ == "__main__":
    unittest.main()
