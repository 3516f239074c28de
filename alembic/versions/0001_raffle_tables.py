"""create raffle, ticket and event log tables

Revision ID: 0001_raffle_tables
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa

revision = "0001_raffle_tables"
down_revision = None
branch_labels = None
depends_on = None


# Unsigned 64-bit amounts; decimal text on SQLite keeps values above 2**63 exact.
AMOUNT = sa.Numeric(precision=20, scale=0).with_variant(sa.String(length=20), "sqlite")


def upgrade():
    op.create_table(
        "raffle_records",
        sa.Column("id", sa.BigInteger().with_variant(sa.Integer(), "sqlite"), autoincrement=True, nullable=False),
        sa.Column("address", sa.LargeBinary(length=32), nullable=False),
        sa.Column("authority", sa.LargeBinary(length=32), nullable=False),
        sa.Column("target_amount", AMOUNT, nullable=False),
        sa.Column("ticket_price", AMOUNT, nullable=False),
        sa.Column("total_tickets_sold", AMOUNT, nullable=False),
        sa.Column("total_collected", AMOUNT, nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("created_at", sa.BigInteger(), nullable=False),
        sa.Column("winning_numbers", sa.JSON(), nullable=False),
        sa.Column("winner", sa.LargeBinary(length=32), nullable=False),
        sa.Column("is_draw_complete", sa.Boolean(), nullable=False),
        sa.CheckConstraint(
            "status IN ('active','pool_complete','draw_complete','cancelled')",
            name=op.f("ck_raffle_records_status_enum"),
        ),
        sa.CheckConstraint(
            "total_collected >= 0",
            name=op.f("ck_raffle_records_total_collected_non_negative"),
        ),
        sa.CheckConstraint(
            "total_tickets_sold >= 0",
            name=op.f("ck_raffle_records_tickets_sold_non_negative"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_raffle_records")),
        sa.UniqueConstraint("address", name=op.f("uq_raffle_records_address")),
    )

    op.create_table(
        "ticket_records",
        sa.Column("id", sa.BigInteger().with_variant(sa.Integer(), "sqlite"), autoincrement=True, nullable=False),
        sa.Column("address", sa.LargeBinary(length=32), nullable=False),
        sa.Column("raffle_id", sa.BigInteger().with_variant(sa.Integer(), "sqlite"), nullable=False),
        sa.Column("buyer", sa.LargeBinary(length=32), nullable=False),
        sa.Column("numbers", sa.JSON(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.Column("ticket_hash", sa.LargeBinary(length=32), nullable=False),
        sa.CheckConstraint(
            "quantity >= 0 AND quantity <= 255",
            name=op.f("ck_ticket_records_quantity_u8"),
        ),
        sa.ForeignKeyConstraint(
            ["raffle_id"],
            ["raffle_records.id"],
            name=op.f("fk_ticket_records_raffle_id_raffle_records"),
            ondelete="RESTRICT",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_ticket_records")),
        sa.UniqueConstraint("address", name=op.f("uq_ticket_records_address")),
        sa.UniqueConstraint("raffle_id", "buyer", name="uq_ticket_per_buyer"),
    )
    op.create_index(
        op.f("ix_ticket_records_raffle_id"), "ticket_records", ["raffle_id"], unique=False
    )

    op.create_table(
        "raffle_event_log",
        sa.Column("id", sa.BigInteger().with_variant(sa.Integer(), "sqlite"), autoincrement=True, nullable=False),
        sa.Column("raffle_address", sa.LargeBinary(length=32), nullable=False),
        sa.Column("kind", sa.String(length=32), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column(
            "occurred_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=False,
        ),
        sa.CheckConstraint(
            "kind IN ('RaffleInitialized','TicketsPurchased','DrawConducted','WinnerSet')",
            name=op.f("ck_raffle_event_log_kind_enum"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_raffle_event_log")),
    )
    op.create_index(
        "ix_raffle_event_log_raffle_kind",
        "raffle_event_log",
        ["raffle_address", "kind"],
        unique=False,
    )


def downgrade():
    op.drop_index("ix_raffle_event_log_raffle_kind", table_name="raffle_event_log")
    op.drop_table("raffle_event_log")
    op.drop_index(op.f("ix_ticket_records_raffle_id"), table_name="ticket_records")
    op.drop_table("ticket_records")
    op.drop_table("raffle_records")
