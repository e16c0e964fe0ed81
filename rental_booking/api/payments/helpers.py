from __future__ import annotations

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
import uuid


def generate_transaction_id() -> str:
    return f"txn_{uuid.uuid4().hex[:21]}"


def amount_to_minor_units(amount: Decimal) -> int:
    return int((money(amount) * 100).to_integral_value())


def minor_units_to_amount(value: int | str | None) -> Decimal:
    return money(Decimal(str(value or 0)) / Decimal(100))


def money(value: Decimal | str | int | float | None) -> Decimal:
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def utcnow() -> datetime:
    # naive UTC, matching the DateTime columns
    return datetime.now(timezone.utc).replace(tzinfo=None)
