from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Iterable

from hms.core.money import sum_money, to_money
from hms.schemas.records import (
    ExpenseRecord,
    InventoryItemRecord,
    PaymentRecord,
    ReservationDetail,
    ensure_aware,
    parse_rows,
)
from hms.services.category_service import CategoryTotal, aggregate_expense_categories
from hms.services.inventory_service import low_stock_items
from hms.services.timeseries_service import DailyBucket, aggregate_daily, occupies


@dataclass(frozen=True)
class DashboardSummary:
    as_of: date
    income_today: Decimal
    income_month: Decimal
    income_year: Decimal
    expenses_month: Decimal
    profit_month: Decimal
    occupied_rooms: int
    rooms_total: int
    available_rooms: int
    upcoming_checkouts: list[ReservationDetail]
    low_stock: list[InventoryItemRecord]
    series: list[DailyBucket]
    expense_categories: list[CategoryTotal]


def _income_since(payments: list[PaymentRecord], start: date, today: date) -> Decimal:
    return sum_money(row.amount for row in payments if start <= row.paid_at.date() <= today)


def _expenses_since(expenses: list[ExpenseRecord], start: date, today: date) -> Decimal:
    return sum_money(row.amount for row in expenses if start <= row.expense_date <= today)


def upcoming_checkouts(
    reservations: Iterable[ReservationDetail | dict[str, Any]],
    today: date,
    *,
    within_days: int,
    limit: int,
) -> list[ReservationDetail]:
    horizon = today + timedelta(days=within_days)
    due = [
        row
        for row in parse_rows(ReservationDetail, reservations)
        if row.status == "checked_in" and today <= row.check_out_date <= horizon
    ]
    return sorted(due, key=lambda row: row.check_out_date)[:limit]


def build_dashboard_summary(
    *,
    payments: Iterable[PaymentRecord | dict[str, Any]],
    expenses: Iterable[ExpenseRecord | dict[str, Any]],
    reservations: Iterable[ReservationDetail | dict[str, Any]],
    inventory_items: Iterable[InventoryItemRecord | dict[str, Any]],
    rooms_total: int,
    now: datetime,
    series_days: int = 30,
    upcoming_days: int = 7,
    list_limit: int = 5,
) -> DashboardSummary:
    today = ensure_aware(now).date()
    month_start = today.replace(day=1)
    year_start = today.replace(month=1, day=1)
    series_start = today - timedelta(days=series_days - 1)

    payment_rows = parse_rows(PaymentRecord, payments)
    expense_rows = parse_rows(ExpenseRecord, expenses)
    reservation_rows = parse_rows(ReservationDetail, reservations)

    income_month = _income_since(payment_rows, month_start, today)
    expenses_month = _expenses_since(expense_rows, month_start, today)
    occupied = sum(1 for row in reservation_rows if occupies(row, today))

    return DashboardSummary(
        as_of=today,
        income_today=to_money(_income_since(payment_rows, today, today)),
        income_month=to_money(income_month),
        income_year=to_money(_income_since(payment_rows, year_start, today)),
        expenses_month=to_money(expenses_month),
        profit_month=to_money(income_month - expenses_month),
        occupied_rooms=occupied,
        rooms_total=rooms_total,
        available_rooms=max(0, rooms_total - occupied),
        upcoming_checkouts=upcoming_checkouts(
            reservation_rows,
            today,
            within_days=upcoming_days,
            limit=list_limit,
        ),
        low_stock=low_stock_items(inventory_items)[:list_limit],
        series=aggregate_daily(payment_rows, expense_rows, reservation_rows, series_start, today),
        expense_categories=aggregate_expense_categories(expense_rows, month_start, today),
    )
