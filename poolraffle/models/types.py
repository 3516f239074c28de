from decimal import Decimal

from sqlalchemy import BigInteger, Integer, LargeBinary, Numeric, String
from sqlalchemy.types import TypeDecorator

# Use BigInteger by default, with a SQLite-safe Integer variant for autoincrement PKs.
ID_TYPE = BigInteger().with_variant(Integer, "sqlite")

# 32-byte ledger identities and addresses.
IDENTITY_TYPE = LargeBinary(32)

# Unix timestamps (seconds), signed 64-bit.
TIMESTAMP_TYPE = BigInteger()

MAX_AMOUNT = 2**64 - 1

IDENTITY_LENGTH = 32

EMPTY_IDENTITY = bytes(IDENTITY_LENGTH)
"""All-zero identity used for "no winner declared yet"."""


class UnsignedAmount(TypeDecorator):
    """Unsigned 64-bit ledger amount, returned as a Python ``int``.

    ``NUMERIC(20, 0)`` holds every value up to ``MAX_AMOUNT``. SQLite would
    coerce integers past the signed 64-bit range to floating point, so there
    the value is kept as its decimal text instead.
    """

    impl = Numeric(20, 0)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(String(20))
        return dialect.type_descriptor(Numeric(20, 0))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if dialect.name == "sqlite":
            return str(int(value))
        return Decimal(int(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return int(value)


AMOUNT_TYPE = UnsignedAmount()
