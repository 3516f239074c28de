"""Comparing tickets against the winning numbers.

These helpers are informational: they never change the raffle and are not
consulted by ``set_winner``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..models.raffle import RaffleRecord
from ..models.ticket import TicketRecord
from .hashing import ticket_hash


@dataclass(frozen=True)
class PrizeTier:
    """Prize attached to a number of matches."""

    matches: int
    name: str
    value: str


PRIZE_TIERS: dict[int, PrizeTier] = {
    5: PrizeTier(5, "Jackpot - Ferrari 488", "$250,000"),
    4: PrizeTier(4, "Second Prize - Mercedes AMG", "$150,000"),
    3: PrizeTier(3, "Third Prize - Cash Prize", "$50,000"),
    2: PrizeTier(2, "Fourth Prize - Dream Vacation", "$25,000"),
    1: PrizeTier(1, "Fifth Prize - Rolex Submariner", "$15,000"),
}

NO_PRIZE = PrizeTier(0, "No Prize", "$0")


@dataclass(frozen=True)
class TicketEvaluation:
    """A ticket with at least one number in common with the draw.

    Attributes
    ----------
    ticket : TicketRecord
        The evaluated ticket.
    matches : int
        Count of ticket numbers present in the winning numbers.
    prize : PrizeTier
        Tier reached by ``matches``.
    """

    ticket: TicketRecord
    matches: int
    prize: PrizeTier


def count_matches(ticket_numbers: Sequence[int], winning_numbers: Sequence[int]) -> int:
    """Count the ticket numbers that appear among ``winning_numbers``."""
    winning = set(winning_numbers)
    return sum(1 for number in ticket_numbers if number in winning)


def prize_for_matches(matches: int) -> PrizeTier:
    return PRIZE_TIERS.get(matches, NO_PRIZE)


def evaluate_ticket(
    ticket: TicketRecord, winning_numbers: Sequence[int]
) -> Optional[TicketEvaluation]:
    """Return the ticket's evaluation, or ``None`` when nothing matches."""
    matches = count_matches(ticket.numbers, winning_numbers)
    if matches == 0:
        return None
    return TicketEvaluation(ticket=ticket, matches=matches, prize=prize_for_matches(matches))


def rank_tickets(session: Session, raffle: RaffleRecord) -> list[TicketEvaluation]:
    """Return the raffle's matching tickets, most matches first.

    Ties keep purchase order. The ranking is empty before the draw.

    Parameters
    ----------
    session : Session
        Session used to load the tickets.
    raffle : RaffleRecord
        Drawn raffle whose tickets should be ranked.

    Returns
    -------
    list[TicketEvaluation]
        Evaluations of every ticket with at least one match.
    """
    if not raffle.is_draw_complete:
        return []

    tickets = session.scalars(
        select(TicketRecord)
        .where(TicketRecord.raffle_id == raffle.id)
        .order_by(TicketRecord.timestamp.asc(), TicketRecord.id.asc())
    ).all()

    evaluations: list[TicketEvaluation] = []
    for ticket in tickets:
        evaluation = evaluate_ticket(ticket, raffle.winning_numbers)
        if evaluation is not None:
            evaluations.append(evaluation)
    # sorted() is stable, so equal match counts stay in purchase order
    return sorted(evaluations, key=lambda ev: -ev.matches)


def verify_ticket_integrity(ticket: TicketRecord) -> bool:
    """Recompute the fingerprint and compare it with the stored one."""
    return ticket_hash(ticket.numbers, ticket.buyer, ticket.timestamp) == ticket.ticket_hash


__all__ = [
    "NO_PRIZE",
    "PRIZE_TIERS",
    "PrizeTier",
    "TicketEvaluation",
    "count_matches",
    "evaluate_ticket",
    "prize_for_matches",
    "rank_tickets",
    "verify_ticket_integrity",
]
