from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Iterable

from hms.core.errors import InvalidRangeError
from hms.core.money import sum_money, to_money
from hms.schemas.records import (
    ExpenseRecord,
    PaymentRecord,
    ReservationSummary,
    parse_rows,
)


@dataclass(frozen=True)
class DailyBucket:
    day: date
    income: Decimal
    expenses: Decimal
    net: Decimal
    bookings: int
    occupancy: int
    payments_count: int
    expenses_count: int


@dataclass(frozen=True)
class ReportTotals:
    income: Decimal
    expenses: Decimal
    net: Decimal


def build_day_range(range_start: date, range_end: date) -> list[date]:
    if range_start > range_end:
        raise InvalidRangeError("start_date cannot be after end_date")

    days: list[date] = []
    cursor = range_start
    while cursor <= range_end:
        days.append(cursor)
        cursor += timedelta(days=1)
    return days


def occupies(reservation: ReservationSummary, day: date) -> bool:
    # Half-open stay: the check-out day itself is free.
    return reservation.is_active and reservation.check_in_date <= day < reservation.check_out_date


def occupancy_on(reservations: Iterable[ReservationSummary | dict[str, Any]], day: date) -> int:
    rows = parse_rows(ReservationSummary, reservations)
    return sum(1 for row in rows if occupies(row, day))


def _occupancy_by_day(
    reservations: list[ReservationSummary],
    range_start: date,
    range_end: date,
) -> dict[date, int]:
    counts: dict[date, int] = {}
    for row in reservations:
        if not row.is_active:
            continue
        cursor = max(row.check_in_date, range_start)
        last_night = min(row.check_out_date - timedelta(days=1), range_end)
        while cursor <= last_night:
            counts[cursor] = counts.get(cursor, 0) + 1
            cursor += timedelta(days=1)
    return counts


def aggregate_daily(
    payments: Iterable[PaymentRecord | dict[str, Any]],
    expenses: Iterable[ExpenseRecord | dict[str, Any]],
    reservations: Iterable[ReservationSummary | dict[str, Any]],
    range_start: date,
    range_end: date,
) -> list[DailyBucket]:
    """Dense per-day series over ``[range_start, range_end]``.

    The day list, not the event data, decides the length of the result: days
    without payments, expenses or stays still get a zero bucket. Amounts are
    summed unrounded and rounded once per bucket.
    """
    days = build_day_range(range_start, range_end)
    payment_rows = parse_rows(PaymentRecord, payments)
    expense_rows = parse_rows(ExpenseRecord, expenses)
    reservation_rows = parse_rows(ReservationSummary, reservations)

    income_by_day: dict[date, list[Decimal]] = {}
    for row in payment_rows:
        # Wall-clock date of the stored timestamp; no timezone conversion.
        day = row.paid_at.date()
        if range_start <= day <= range_end:
            income_by_day.setdefault(day, []).append(row.amount)

    expenses_by_day: dict[date, list[Decimal]] = {}
    for row in expense_rows:
        if range_start <= row.expense_date <= range_end:
            expenses_by_day.setdefault(row.expense_date, []).append(row.amount)

    bookings_by_day: dict[date, int] = {}
    for row in reservation_rows:
        if not row.is_active:
            continue
        day = row.created_at.date()
        if range_start <= day <= range_end:
            bookings_by_day[day] = bookings_by_day.get(day, 0) + 1

    occupancy_by_day = _occupancy_by_day(reservation_rows, range_start, range_end)

    buckets: list[DailyBucket] = []
    for day in days:
        day_income = income_by_day.get(day, [])
        day_expenses = expenses_by_day.get(day, [])
        income = sum_money(day_income)
        expense_total = sum_money(day_expenses)
        buckets.append(
            DailyBucket(
                day=day,
                income=to_money(income),
                expenses=to_money(expense_total),
                net=to_money(income - expense_total),
                bookings=bookings_by_day.get(day, 0),
                occupancy=occupancy_by_day.get(day, 0),
                payments_count=len(day_income),
                expenses_count=len(day_expenses),
            )
        )
    return buckets


def summarize_totals(
    payments: Iterable[PaymentRecord | dict[str, Any]],
    expenses: Iterable[ExpenseRecord | dict[str, Any]],
    range_start: date,
    range_end: date,
) -> ReportTotals:
    if range_start > range_end:
        raise InvalidRangeError("start_date cannot be after end_date")

    income = sum_money(
        row.amount
        for row in parse_rows(PaymentRecord, payments)
        if range_start <= row.paid_at.date() <= range_end
    )
    expense_total = sum_money(
        row.amount
        for row in parse_rows(ExpenseRecord, expenses)
        if range_start <= row.expense_date <= range_end
    )
    return ReportTotals(
        income=to_money(income),
        expenses=to_money(expense_total),
        net=to_money(income - expense_total),
    )
