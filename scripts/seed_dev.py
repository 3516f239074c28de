import hashlib

from poolraffle.db.engine import get_sessionmaker, make_engine
from poolraffle.ledger.local import LocalLedger
from poolraffle.models import Base
from poolraffle.raffle.matching import rank_tickets
from poolraffle.workflows import (
    declare_winner,
    initialize_raffle,
    purchase_tickets,
    run_draw,
)


def _identity(label: str) -> bytes:
    return hashlib.sha256(label.encode("utf-8")).digest()


def main() -> None:
    """Seed the development database with a fully drawn sample raffle."""
    engine = make_engine()

    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    Session = get_sessionmaker(engine)

    operator = _identity("operator")
    buyers = [_identity(f"buyer-{i}") for i in range(4)]
    ledger = LocalLedger({buyer: 1_000 for buyer in buyers}, slot=1_000)

    with Session.begin() as session:
        initialize_raffle(session, operator, target_amount=1_000, ticket_price=100, host=ledger)

    picks = [
        ([1, 2, 3, 4, 5], 1),
        ([7, 14, 21, 28, 35], 5),
        ([10, 20, 30, 40, 49], 1),
        ([3, 9, 27, 33, 41], 5),
    ]
    for buyer, (numbers, quantity) in zip(buyers, picks):
        with Session.begin() as session:
            receipt = purchase_tickets(session, buyer, numbers, quantity, host=ledger)
            ledger.advance()
            if receipt.pool_completed:
                break

    with Session.begin() as session:
        outcome = run_draw(session, operator, host=ledger)
        print("Winning numbers:", outcome.winning_numbers)
        ranking = rank_tickets(session, outcome.raffle)
        if ranking:
            best = ranking[0]
            declare_winner(session, operator, best.ticket.buyer, host=ledger)
            print(f"Winner declared with {best.matches} matches ({best.prize.name})")
        else:
            print("No ticket matched; winner left empty")


if __name__ == "__main__":
    main()
