from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Sequence

from hms.core.errors import ValidationError
from hms.core.money import sum_money, to_money
from hms.schemas.records import InvoiceLineItem, parse_rows


@dataclass(frozen=True)
class LineTotal:
    description: str
    quantity: Decimal
    unit_price: Decimal
    line_total: Decimal


@dataclass(frozen=True)
class InvoiceTotals:
    lines: list[LineTotal]
    subtotal: Decimal
    total: Decimal


def compute_line_total(item: InvoiceLineItem) -> Decimal:
    if item.quantity <= 0:
        raise ValidationError(
            "Quantity must be greater than zero",
            details=[{"field": "quantity", "message": "Must be > 0", "type": "greater_than"}],
        )
    if item.unit_price < 0:
        raise ValidationError(
            "Unit price cannot be negative",
            details=[{"field": "unit_price", "message": "Must be >= 0", "type": "greater_than_equal"}],
        )
    return item.quantity * item.unit_price


def compute_invoice_totals(items: Sequence[InvoiceLineItem | dict[str, Any]]) -> InvoiceTotals:
    if not items:
        raise ValidationError(
            "Add at least one item",
            details=[{"field": "items", "message": "At least one item is required", "type": "too_short"}],
        )

    parsed = parse_rows(InvoiceLineItem, items)
    raw_totals = [compute_line_total(item) for item in parsed]
    subtotal = to_money(sum_money(raw_totals))

    lines = [
        LineTotal(
            description=item.description,
            quantity=item.quantity,
            unit_price=to_money(item.unit_price),
            line_total=to_money(raw_total),
        )
        for item, raw_total in zip(parsed, raw_totals)
    ]
    # Taxes and fees would be added on top of the subtotal here.
    total = subtotal
    return InvoiceTotals(lines=lines, subtotal=subtotal, total=total)
