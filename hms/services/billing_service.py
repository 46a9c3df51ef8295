from typing import Any, Iterable

from hms.schemas.records import BILLABLE_RESERVATION_STATUSES, ReservationDetail, parse_rows


def balances_due(reservations: Iterable[ReservationDetail | dict[str, Any]]) -> list[ReservationDetail]:
    rows = parse_rows(ReservationDetail, reservations)
    owing = [
        row
        for row in rows
        if row.status in BILLABLE_RESERVATION_STATUSES and row.balance_due > 0
    ]
    return sorted(owing, key=lambda row: row.balance_due, reverse=True)
