from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Iterable, Optional

from hms.core.errors import ValidationError
from hms.core.money import format_money
from hms.schemas.records import (
    CustomerRef,
    ExpenseRecord,
    HotelSettingsRecord,
    HrRecordRow,
    InventoryItemRecord,
    InvoiceRecord,
    ReservationDetail,
    parse_rows,
)
from hms.services.document_service import Note, PrintSection, Table, render_print_document
from hms.services.invoice_service import compute_invoice_totals
from hms.services.timeseries_service import DailyBucket, ReportTotals

REPORT_SECTIONS: dict[str, str] = {
    "financial": "Financial summary",
    "expenses": "Expenses list",
    "hr": "HR list",
    "inventory": "Inventory list",
    "billing": "Billing overview",
}


@dataclass
class SystemReportData:
    start_date: date
    end_date: date
    daily_rows: list[DailyBucket] = field(default_factory=list)
    totals: Optional[ReportTotals] = None
    expenses: list[ExpenseRecord] = field(default_factory=list)
    hr_records: list[HrRecordRow] = field(default_factory=list)
    inventory_items: list[InventoryItemRecord] = field(default_factory=list)
    low_stock: list[InventoryItemRecord] = field(default_factory=list)
    balances_due: list[ReservationDetail] = field(default_factory=list)
    latest_invoices: list[InvoiceRecord] = field(default_factory=list)


def normalize_section_keys(keys: Iterable[str]) -> list[str]:
    """Validate a section selection and return it in canonical print order."""
    requested = {key.strip().lower() for key in keys if key and key.strip()}
    if not requested:
        raise ValidationError(
            "Select at least one section",
            details=[{"field": "sections", "message": "At least one section is required", "type": "too_short"}],
        )
    unknown = sorted(requested - set(REPORT_SECTIONS))
    if unknown:
        allowed = ", ".join(REPORT_SECTIONS)
        raise ValidationError(
            f"Invalid report sections: {', '.join(unknown)}. Allowed: {allowed}",
            details=[{"field": "sections", "message": f"Unknown section {key}", "type": "enum"} for key in unknown],
        )
    return [key for key in REPORT_SECTIONS if key in requested]


def daily_rows_for_export(rows: list[DailyBucket]) -> list[dict[str, Any]]:
    return [
        {
            "date": row.day.isoformat(),
            "income": f"{row.income:.2f}",
            "expenses": f"{row.expenses:.2f}",
            "net": f"{row.net:.2f}",
            "payments_count": row.payments_count,
            "expenses_count": row.expenses_count,
            "bookings": row.bookings,
            "occupancy": row.occupancy,
        }
        for row in rows
    ]


def _stock_label(amount: Any, unit: str) -> str:
    return f"{amount.normalize():f} {unit}".strip()


def financial_section(data: SystemReportData) -> PrintSection:
    blocks: list[Any] = [
        Note(f"Range: {data.start_date.isoformat()} → {data.end_date.isoformat()}"),
        Table(
            headers=["Date", "Income", "Expenses", "Net"],
            rows=[
                [row.day.isoformat(), format_money(row.income), format_money(row.expenses), format_money(row.net)]
                for row in data.daily_rows
            ],
            numeric_columns=frozenset({1, 2, 3}),
        ),
    ]
    if data.totals is not None:
        blocks.append(
            Note(
                f"Total income: {format_money(data.totals.income)} · "
                f"Total expenses: {format_money(data.totals.expenses)} · "
                f"Net: {format_money(data.totals.net)}"
            )
        )
    return PrintSection(title=REPORT_SECTIONS["financial"], blocks=blocks)


def expenses_section(data: SystemReportData) -> PrintSection:
    ordered = sorted(data.expenses, key=lambda row: row.expense_date, reverse=True)
    return PrintSection(
        title=REPORT_SECTIONS["expenses"],
        blocks=[
            Table(
                headers=["Date", "Category", "Description", "Amount"],
                rows=[
                    [row.expense_date.isoformat(), row.category, row.description, format_money(row.amount)]
                    for row in ordered
                ],
                numeric_columns=frozenset({3}),
            )
        ],
    )


def hr_section(data: SystemReportData) -> PrintSection:
    ordered = sorted(data.hr_records, key=lambda row: row.full_name.lower())
    return PrintSection(
        title=REPORT_SECTIONS["hr"],
        blocks=[
            Table(
                headers=["Name", "Role", "Email", "Phone", "Start", "End"],
                rows=[
                    [row.full_name, row.role_title, row.email, row.phone, row.start_date, row.end_date]
                    for row in ordered
                ],
            )
        ],
    )


def inventory_section(data: SystemReportData) -> PrintSection:
    def table(items: list[InventoryItemRecord]) -> Table:
        return Table(
            headers=["Item", "Current", "Reorder level"],
            rows=[
                [item.name, _stock_label(item.current_stock, item.unit), _stock_label(item.reorder_level, item.unit)]
                for item in sorted(items, key=lambda row: row.name.lower())
            ],
            numeric_columns=frozenset({1, 2}),
        )

    return PrintSection(
        title=REPORT_SECTIONS["inventory"],
        blocks=[
            Note("Inventory items"),
            table(data.inventory_items),
            Note("Low stock"),
            table(data.low_stock),
        ],
    )


def billing_section(data: SystemReportData) -> PrintSection:
    return PrintSection(
        title=REPORT_SECTIONS["billing"],
        blocks=[
            Note("Balances due"),
            Table(
                headers=["Guest", "Room", "Status", "Balance"],
                rows=[
                    [row.guest_name, row.room_number or "—", row.status, format_money(row.balance_due)]
                    for row in data.balances_due
                ],
                numeric_columns=frozenset({3}),
            ),
            Note("Latest invoices"),
            Table(
                headers=["Invoice #", "Status", "Total", "Created"],
                rows=[
                    [row.invoice_no or "—", row.status, format_money(row.total), row.created_at.date()]
                    for row in data.latest_invoices
                ],
                numeric_columns=frozenset({2, 3}),
            ),
        ],
    )


_SECTION_BUILDERS = {
    "financial": financial_section,
    "expenses": expenses_section,
    "hr": hr_section,
    "inventory": inventory_section,
    "billing": billing_section,
}


def build_system_report(
    *,
    sections: Iterable[str],
    data: SystemReportData,
    printed_at: datetime,
) -> str:
    keys = normalize_section_keys(sections)
    return render_print_document(
        title="System Report",
        subtitle="Selected sections",
        sections=[_SECTION_BUILDERS[key](data) for key in keys],
        printed_at=printed_at,
    )


def _bill_to(customer: CustomerRef | None, reservation: ReservationDetail | None) -> list[str]:
    if customer is not None:
        lines = [customer.full_name or "Customer"]
        lines.extend(value for value in (customer.email, customer.phone, customer.address) if value)
        return lines
    if reservation is not None:
        return [reservation.guest_name or "Guest"]
    return ["—"]


def build_invoice_document(
    *,
    invoice: InvoiceRecord,
    printed_at: datetime,
    customer: CustomerRef | dict[str, Any] | None = None,
    reservation: ReservationDetail | dict[str, Any] | None = None,
    hotel: HotelSettingsRecord | dict[str, Any] | None = None,
    default_currency: str = "USD",
) -> str:
    customer_row = parse_rows(CustomerRef, [customer])[0] if customer is not None else None
    reservation_row = parse_rows(ReservationDetail, [reservation])[0] if reservation is not None else None
    hotel_row = parse_rows(HotelSettingsRecord, [hotel])[0] if hotel is not None else None
    currency = hotel_row.currency_code if hotel_row else default_currency

    if invoice.items:
        totals = compute_invoice_totals(invoice.items)
        line_rows = [
            [
                line.description,
                f"{line.quantity.normalize():f}",
                format_money(line.unit_price, currency),
                format_money(line.line_total, currency),
            ]
            for line in totals.lines
        ]
    else:
        line_rows = []
    # Stored total may carry fees on top of the line items.
    subtotal, total = invoice.subtotal or invoice.total, invoice.total

    details = [
        Note("Bill to: " + " · ".join(_bill_to(customer_row, reservation_row))),
        Table(
            headers=["Status", "Invoice #", "Date", "Room"],
            rows=[
                [
                    invoice.status,
                    invoice.invoice_no or "—",
                    invoice.created_at.date(),
                    (reservation_row.room_number if reservation_row else None) or "—",
                ]
            ],
        ),
    ]
    if invoice.notes:
        details.append(Note(f"Notes: {invoice.notes}"))

    footer = [value for value in (hotel_row.legal_name, hotel_row.address) if value] if hotel_row else []
    if hotel_row:
        contact = " · ".join(value for value in (hotel_row.email, hotel_row.phone) if value)
        if contact:
            footer.append(contact)
    footer.append("Thank you for your business.")

    items_blocks: list[Any] = [
        Table(
            headers=["Description", "Qty", "Unit", "Line total"],
            rows=line_rows,
            numeric_columns=frozenset({1, 2, 3}),
        ),
        Table(
            headers=["", "Amount"],
            rows=[
                ["Subtotal", format_money(subtotal, currency)],
                ["Total", format_money(total, currency)],
            ],
            numeric_columns=frozenset({1}),
        ),
    ]
    items_blocks.extend(Note(line) for line in footer)

    return render_print_document(
        title=hotel_row.hotel_name if hotel_row else "Invoice",
        subtitle="Invoice",
        sections=[
            PrintSection(title="Invoice", blocks=details),
            PrintSection(title="Line items", blocks=items_blocks),
        ],
        printed_at=printed_at,
    )
