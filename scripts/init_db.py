from __future__ import annotations

from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import inspect

from poolraffle.db.engine import get_sessionmaker, make_engine
from poolraffle.ledger.local import LocalLedger
from poolraffle.raffle.lifecycle import RaffleLifecycleManager


def upgrade_db(target_revision: str = "head") -> None:
    """Apply Alembic migrations up to the requested revision."""
    project_root = Path(__file__).resolve().parents[1]
    alembic_cfg = Config(str(project_root / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(project_root / "alembic"))
    command.upgrade(alembic_cfg, target_revision)


def report(engine) -> None:
    """Print the raffle tables and, when present, the stored raffle."""
    tables = inspect(engine).get_table_names()
    print("Current tables:", ", ".join(sorted(tables)))
    if "raffle_records" not in tables:
        return

    Session = get_sessionmaker(engine)
    with Session() as session:
        # Address derivation only needs the program id, so a local host suffices.
        raffle = RaffleLifecycleManager(session, LocalLedger()).load()
        if raffle is None:
            print("Raffle: not initialized")
        else:
            print("Raffle:", raffle.to_json_str())


def main() -> None:
    upgrade_db()
    report(make_engine())


if __name__ == "__main__":
    main()
