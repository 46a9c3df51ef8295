from datetime import date, datetime, timezone

import pytest

from hms.core.errors import ValidationError
from hms.schemas.records import ExpenseRecord, InvoiceRecord
from hms.services.report_service import (
    SystemReportData,
    build_invoice_document,
    build_system_report,
    daily_rows_for_export,
    normalize_section_keys,
)
from hms.services.timeseries_service import aggregate_daily, summarize_totals

PRINTED_AT = datetime(2024, 2, 14, 12, 0, tzinfo=timezone.utc)


def _report_data() -> SystemReportData:
    payments = [{"amount": "120.00", "paid_at": datetime(2024, 2, 1, 9, 0, tzinfo=timezone.utc)}]
    expenses = [{"amount": "20.00", "category": "supplies", "expense_date": date(2024, 2, 2), "description": "Soap & towels"}]
    start, end = date(2024, 2, 1), date(2024, 2, 3)
    return SystemReportData(
        start_date=start,
        end_date=end,
        daily_rows=aggregate_daily(payments, expenses, [], start, end),
        totals=summarize_totals(payments, expenses, start, end),
    )


def test_section_keys_are_validated_and_put_in_print_order():
    assert normalize_section_keys(["billing", " Financial ", "billing"]) == ["financial", "billing"]

    with pytest.raises(ValidationError):
        normalize_section_keys([])
    with pytest.raises(ValidationError):
        normalize_section_keys(["", "  "])
    with pytest.raises(ValidationError) as exc_info:
        normalize_section_keys(["financial", "payroll"])
    assert "payroll" in exc_info.value.message


def test_system_report_renders_only_selected_sections_in_fixed_order():
    data = _report_data()

    html = build_system_report(sections=["expenses", "financial"], data=data, printed_at=PRINTED_AT)

    assert "<title>System Report</title>" in html
    assert html.index("Financial summary") < html.index("Expenses list")
    assert "HR list" not in html
    assert "Billing overview" not in html
    assert "Total income: $120.00" in html
    assert "Net: $100.00" in html


def test_expenses_section_escapes_descriptions():
    data = _report_data()
    data.expenses = [
        ExpenseRecord(amount="20.00", category="supplies", expense_date=date(2024, 2, 2), description="Soap & <towels>")
    ]

    html = build_system_report(sections=["expenses"], data=data, printed_at=PRINTED_AT)

    assert "Soap &amp; &lt;towels&gt;" in html
    assert '<td class="num">$20.00</td>' in html


def test_daily_rows_for_export_columns():
    rows = daily_rows_for_export(_report_data().daily_rows)

    assert list(rows[0]) == [
        "date",
        "income",
        "expenses",
        "net",
        "payments_count",
        "expenses_count",
        "bookings",
        "occupancy",
    ]
    assert rows[0]["income"] == "120.00"
    assert rows[1]["net"] == "-20.00"
    assert rows[2]["date"] == "2024-02-03"


def test_invoice_document_uses_line_totals_and_hotel_details():
    invoice = InvoiceRecord.model_validate(
        {
            "id": "inv-1",
            "invoice_no": "INV-0042",
            "status": "issued",
            "created_at": datetime(2024, 2, 10, 9, 0, tzinfo=timezone.utc),
            "notes": "Late checkout <approved>",
            "subtotal": "25.50",
            "total": "25.50",
            "items": [
                {"description": "Deluxe room", "quantity": 2, "unit_price": "10.00"},
                {"description": "Breakfast", "quantity": 1, "unit_price": "5.50"},
            ],
        }
    )

    html = build_invoice_document(
        invoice=invoice,
        printed_at=PRINTED_AT,
        customer={"id": "c-1", "first_name": "Ana", "last_name": "Smith", "email": "ana@example.com"},
        hotel={"hotel_name": "Seaside <Inn>", "legal_name": "Seaside Ltd", "currency_code": "EUR"},
    )

    assert "<title>Seaside &lt;Inn&gt;</title>" in html
    assert "Bill to: Ana Smith · ana@example.com" in html
    assert "INV-0042" in html
    assert "Late checkout &lt;approved&gt;" in html
    assert '<td class="num">EUR 20.00</td>' in html
    assert '<td class="num">EUR 25.50</td>' in html
    assert "Seaside Ltd" in html
    assert "Thank you for your business." in html


def test_invoice_document_without_items_falls_back_to_stored_totals():
    invoice = InvoiceRecord.model_validate(
        {
            "id": "inv-2",
            "status": "paid",
            "created_at": datetime(2024, 2, 10, 9, 0, tzinfo=timezone.utc),
            "subtotal": "80.00",
            "total": "80.00",
        }
    )

    html = build_invoice_document(invoice=invoice, printed_at=PRINTED_AT, default_currency="USD")

    assert "<title>Invoice</title>" in html
    assert "Bill to: —" in html
    assert '<td class="num">USD 80.00</td>' in html


def test_invoice_document_prints_stored_total_with_fees():
    invoice = InvoiceRecord.model_validate(
        {
            "id": "inv-3",
            "status": "issued",
            "created_at": datetime(2024, 2, 10, 9, 0, tzinfo=timezone.utc),
            "subtotal": "25.50",
            "total": "30.00",
            "items": [
                {"description": "Deluxe room", "quantity": 2, "unit_price": "10.00"},
                {"description": "Breakfast", "quantity": 1, "unit_price": "5.50"},
            ],
        }
    )

    html = build_invoice_document(invoice=invoice, printed_at=PRINTED_AT, default_currency="USD")

    assert '<td class="num">USD 20.00</td>' in html
    assert '<td>Subtotal</td><td class="num">USD 25.50</td>' in html
    assert '<td>Total</td><td class="num">USD 30.00</td>' in html
