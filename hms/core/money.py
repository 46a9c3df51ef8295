from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

MONEY_QUANT = Decimal("0.01")
ZERO_MONEY = Decimal("0.00")

MoneyLike = Decimal | int | float | str


def to_money(value: MoneyLike) -> Decimal:
    return Decimal(str(value)).quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def sum_money(values: Iterable[MoneyLike]) -> Decimal:
    """Exact sum of unrounded amounts.

    Callers round the result once with ``to_money`` when presenting it.
    """
    total = Decimal("0")
    for value in values:
        total += Decimal(str(value))
    return total


def format_money(value: MoneyLike, currency: str = "$") -> str:
    amount = to_money(value)
    if len(currency) == 1:
        return f"{currency}{amount:.2f}"
    return f"{currency} {amount:.2f}"
