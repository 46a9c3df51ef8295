from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Iterable

from hms.core.errors import InvalidRangeError
from hms.core.money import to_money
from hms.schemas.records import ExpenseRecord, parse_rows


@dataclass(frozen=True)
class CategoryTotal:
    category: str
    total: Decimal


def aggregate_expense_categories(
    expenses: Iterable[ExpenseRecord | dict[str, Any]],
    period_start: date,
    period_end: date,
) -> list[CategoryTotal]:
    if period_start > period_end:
        raise InvalidRangeError("start_date cannot be after end_date")

    # dict keeps first-seen order, which the stable sort below preserves for ties.
    totals: dict[str, Decimal] = {}
    for row in parse_rows(ExpenseRecord, expenses):
        if not period_start <= row.expense_date <= period_end:
            continue
        totals[row.category] = totals.get(row.category, Decimal("0")) + row.amount

    ordered = sorted(totals.items(), key=lambda item: -item[1])
    return [CategoryTotal(category=category, total=to_money(total)) for category, total in ordered]
