"""Column types shared by the ORM models."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from sqlalchemy.types import String, TypeDecorator


class ExactDecimal(TypeDecorator):
    """Store a ``Decimal`` as its canonical string so no digits are lost.

    ``Numeric`` columns round to their declared scale, and SQLite keeps them as
    floats; archived money must read back exactly as it was computed.
    """

    impl = String(64)
    cache_ok = True

    def process_bind_param(self, value: Any, dialect) -> str | None:
        if value is None:
            return None
        return str(value if isinstance(value, Decimal) else Decimal(str(value)))

    def process_result_value(self, value: Any, dialect) -> Decimal | None:
        if value is None:
            return None
        return Decimal(value)
