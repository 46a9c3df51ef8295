from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from hms.core.errors import InvalidRangeError, ValidationError
from hms.schemas.invoice import InvoiceFilter
from hms.schemas.records import InvoiceRecord, validate_model
from hms.services.category_service import aggregate_expense_categories
from hms.services.report_filter_service import (
    OVERDUE_AFTER_DAYS,
    classify_invoice,
    filter_invoices,
    index_customers,
    matches_status_class,
)

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


def _invoice(invoice_id: str, *, status: str = "issued", created_at: datetime = NOW, **extra) -> InvoiceRecord:
    return InvoiceRecord.model_validate({"id": invoice_id, "status": status, "created_at": created_at, **extra})


def _customers():
    return index_customers(
        [
            {"id": "c-ana", "first_name": "Ana", "last_name": "Smith"},
            {"id": "c-bo", "first_name": "Bo", "last_name": "Okafor"},
        ]
    )


def test_category_ties_keep_first_seen_order():
    expenses = [
        {"amount": "100.00", "category": "utilities", "expense_date": date(2024, 2, 1)},
        {"amount": "25.00", "category": "supplies", "expense_date": date(2024, 2, 2)},
        {"amount": "40.00", "category": "taxes", "expense_date": date(2024, 2, 3)},
        {"amount": "15.00", "category": "supplies", "expense_date": date(2024, 2, 4)},
    ]

    totals = aggregate_expense_categories(expenses, date(2024, 2, 1), date(2024, 2, 29))

    assert [row.category for row in totals] == ["utilities", "supplies", "taxes"]
    assert [row.total for row in totals] == [Decimal("100.00"), Decimal("40.00"), Decimal("40.00")]


def test_categories_are_sparse_and_period_bounded():
    expenses = [
        {"amount": "9.99", "category": "Maintenance", "expense_date": date(2024, 2, 29)},
        {"amount": "50.00", "category": "payroll", "expense_date": date(2024, 3, 1)},
        {"amount": "12.00", "category": "marketing", "expense_date": date(2024, 1, 31)},
    ]

    totals = aggregate_expense_categories(expenses, date(2024, 2, 1), date(2024, 2, 29))

    assert [(row.category, row.total) for row in totals] == [("maintenance", Decimal("9.99"))]
    assert aggregate_expense_categories([], date(2024, 2, 1), date(2024, 2, 29)) == []


def test_category_period_must_not_be_inverted():
    with pytest.raises(InvalidRangeError):
        aggregate_expense_categories([], date(2024, 3, 1), date(2024, 2, 1))


def test_unknown_expense_category_is_rejected():
    with pytest.raises(ValidationError):
        aggregate_expense_categories(
            [{"amount": "1.00", "category": "gifts", "expense_date": date(2024, 2, 1)}],
            date(2024, 2, 1),
            date(2024, 2, 29),
        )


def test_overdue_starts_strictly_after_thirty_days():
    assert OVERDUE_AFTER_DAYS == 30
    assert classify_invoice(_invoice("a", created_at=NOW - timedelta(days=31)), NOW) == "overdue"
    assert classify_invoice(_invoice("b", created_at=NOW - timedelta(days=29)), NOW) == "unpaid"
    assert classify_invoice(_invoice("c", created_at=NOW - timedelta(days=30)), NOW) == "unpaid"
    assert classify_invoice(_invoice("d", status="paid", created_at=NOW - timedelta(days=90)), NOW) == "paid"
    assert classify_invoice(_invoice("e", status="void", created_at=NOW - timedelta(days=90)), NOW) == "void"
    assert classify_invoice(_invoice("f", status="draft", created_at=NOW - timedelta(days=45)), NOW) == "overdue"


def test_unpaid_status_class_includes_overdue():
    overdue = _invoice("a", created_at=NOW - timedelta(days=31))

    assert matches_status_class(overdue, "unpaid", NOW)
    assert matches_status_class(overdue, "overdue", NOW)
    assert not matches_status_class(overdue, "paid", NOW)
    assert matches_status_class(overdue, None, NOW)


def test_date_to_covers_the_whole_day():
    late = _invoice("late", created_at=datetime(2024, 2, 10, 23, 50, tzinfo=timezone.utc))

    same_day = filter_invoices([late], InvoiceFilter(date_to=date(2024, 2, 10)), {}, NOW)
    day_before = filter_invoices([late], InvoiceFilter(date_to=date(2024, 2, 9)), {}, NOW)
    from_same_day = filter_invoices([late], InvoiceFilter(date_from=date(2024, 2, 10)), {}, NOW)
    from_next_day = filter_invoices([late], InvoiceFilter(date_from=date(2024, 2, 11)), {}, NOW)

    assert [row.id for row in same_day] == ["late"]
    assert day_before == []
    assert [row.id for row in from_same_day] == ["late"]
    assert from_next_day == []


def test_text_matches_invoice_number_or_customer_label_case_insensitively():
    invoices = [
        _invoice("1", invoice_no="INV-0001", customer_id="c-bo"),
        _invoice("2", invoice_no="INV-0002", customer_id="c-ana"),
        _invoice("3", invoice_no=None, customer_id=None),
    ]
    customers = _customers()

    by_label = filter_invoices(invoices, InvoiceFilter(text="smith, a"), customers, NOW)
    by_number = filter_invoices(invoices, InvoiceFilter(text="inv-000"), customers, NOW)

    assert [row.id for row in by_label] == ["2"]
    assert [row.id for row in by_number] == ["1", "2"]


def test_customer_label_keeps_comma_when_a_name_is_blank():
    customers = index_customers([{"id": "c-sm", "first_name": "", "last_name": "Smith"}])
    invoices = [_invoice("1", invoice_no="INV-0001", customer_id="c-sm")]

    assert customers["c-sm"].display_label == "Smith, "
    assert [row.id for row in filter_invoices(invoices, InvoiceFilter(text="smith,"), customers, NOW)] == ["1"]


def test_predicates_are_combined_and_order_is_kept():
    invoices = [
        _invoice("3", customer_id="c-ana", created_at=NOW - timedelta(days=40)),
        _invoice("1", customer_id="c-ana", status="paid"),
        _invoice("2", customer_id="c-ana", created_at=NOW - timedelta(days=2)),
        _invoice("4", customer_id="c-bo", created_at=NOW - timedelta(days=2)),
    ]

    selected = filter_invoices(
        invoices,
        InvoiceFilter(customer_id="c-ana", status_class="unpaid"),
        _customers(),
        NOW,
    )

    assert [row.id for row in selected] == ["3", "2"]
    assert filter_invoices(invoices, InvoiceFilter(status_class="all"), {}, NOW) == invoices


def test_inverted_filter_dates_are_rejected():
    with pytest.raises(InvalidRangeError):
        filter_invoices([], InvoiceFilter(date_from=date(2024, 2, 10), date_to=date(2024, 2, 9)), {}, NOW)


def test_unknown_status_class_is_a_validation_error():
    with pytest.raises(ValidationError) as exc_info:
        validate_model(InvoiceFilter, {"status_class": "late"}, "Invalid invoice filter")

    assert exc_info.value.details[0]["field"] == "status_class"
