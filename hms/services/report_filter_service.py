from __future__ import annotations

from datetime import datetime, time, timedelta
from typing import Any, Iterable, Mapping

from hms.core.errors import InvalidRangeError
from hms.schemas.invoice import InvoiceFilter
from hms.schemas.records import CustomerRef, InvoiceRecord, ensure_aware, parse_rows

# Unpaid invoices older than this many days count as overdue.
OVERDUE_AFTER_DAYS = 30


def classify_invoice(invoice: InvoiceRecord, now: datetime) -> str:
    if invoice.status == "paid":
        return "paid"
    if invoice.status == "void":
        return "void"
    if ensure_aware(now) - invoice.created_at > timedelta(days=OVERDUE_AFTER_DAYS):
        return "overdue"
    return "unpaid"


def matches_status_class(invoice: InvoiceRecord, status_class: str | None, now: datetime) -> bool:
    if status_class is None or status_class == "all":
        return True
    invoice_class = classify_invoice(invoice, now)
    if status_class == "unpaid":
        return invoice_class in {"unpaid", "overdue"}
    return invoice_class == status_class


def index_customers(customers: Iterable[CustomerRef | dict[str, Any]]) -> dict[str, CustomerRef]:
    return {customer.id: customer for customer in parse_rows(CustomerRef, customers)}


def customer_label(customers: Mapping[str, CustomerRef], customer_id: str | None) -> str | None:
    if not customer_id:
        return None
    customer = customers.get(customer_id)
    return customer.display_label if customer else None


def _within_dates(invoice: InvoiceRecord, criteria: InvoiceFilter) -> bool:
    created_at = invoice.created_at
    if criteria.date_from:
        lower = datetime.combine(criteria.date_from, time.min, tzinfo=created_at.tzinfo)
        if created_at < lower:
            return False
    if criteria.date_to:
        # date_to covers the whole calendar day.
        upper = datetime.combine(criteria.date_to + timedelta(days=1), time.min, tzinfo=created_at.tzinfo)
        if created_at >= upper:
            return False
    return True


def _matches_text(invoice: InvoiceRecord, needle: str, customers: Mapping[str, CustomerRef]) -> bool:
    candidates = [invoice.invoice_no or "", customer_label(customers, invoice.customer_id) or ""]
    return any(needle in candidate.lower() for candidate in candidates)


def filter_invoices(
    invoices: Iterable[InvoiceRecord | dict[str, Any]],
    criteria: InvoiceFilter,
    customers: Mapping[str, CustomerRef],
    now: datetime,
) -> list[InvoiceRecord]:
    """Apply every active predicate (AND) while keeping the input order."""
    if criteria.date_from and criteria.date_to and criteria.date_from > criteria.date_to:
        raise InvalidRangeError("date_from cannot be after date_to")

    needle = (criteria.text or "").strip().lower()
    selected: list[InvoiceRecord] = []
    for invoice in parse_rows(InvoiceRecord, invoices):
        if criteria.customer_id and invoice.customer_id != criteria.customer_id:
            continue
        if not matches_status_class(invoice, criteria.status_class, now):
            continue
        if not _within_dates(invoice, criteria):
            continue
        if needle and not _matches_text(invoice, needle, customers):
            continue
        selected.append(invoice)
    return selected
