"""Forward-only status transitions for a raffle."""

from __future__ import annotations

import enum

from ..models.raffle import RaffleStatus
from .errors import InvalidTransition


class RaffleTransition(str, enum.Enum):
    POOL_FILLED = "pool_filled"
    DRAW_CONDUCTED = "draw_conducted"


_TRANSITIONS: dict[tuple[RaffleStatus, RaffleTransition], RaffleStatus] = {
    (RaffleStatus.ACTIVE, RaffleTransition.POOL_FILLED): RaffleStatus.POOL_COMPLETE,
    (RaffleStatus.POOL_COMPLETE, RaffleTransition.DRAW_CONDUCTED): RaffleStatus.DRAW_COMPLETE,
}


def next_status(current: RaffleStatus, transition: RaffleTransition) -> RaffleStatus:
    """Return the status reached by applying ``transition`` to ``current``.

    Raises
    ------
    InvalidTransition
        If the pair is not part of ``active -> pool_complete -> draw_complete``.
    """
    try:
        return _TRANSITIONS[(RaffleStatus(current), RaffleTransition(transition))]
    except KeyError as exc:
        raise InvalidTransition(
            f"Cannot apply '{RaffleTransition(transition).value}' to a raffle in "
            f"status '{RaffleStatus(current).value}'"
        ) from exc


__all__ = ["RaffleTransition", "next_status"]
