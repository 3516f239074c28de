from .base import Base

# import models so Alembic/autoloaders can discover mappers
from .raffle import RaffleRecord, RaffleStatus  # noqa: F401
from .ticket import TicketRecord  # noqa: F401
from .event_log import RaffleEventLog  # noqa: F401

__all__ = [
    "Base",
    "RaffleRecord",
    "RaffleStatus",
    "TicketRecord",
    "RaffleEventLog",
]
