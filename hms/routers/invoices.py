from datetime import date

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from hms.core.api_docs import error_responses
from hms.core.clock import Clock, get_clock
from hms.core.config import settings
from hms.core.deps import get_db
from hms.core.observability import log_event
from hms.schemas.invoice import (
    InvoiceFilter,
    InvoiceListOut,
    InvoiceSummaryOut,
    InvoiceTotalsIn,
    InvoiceTotalsOut,
    LineTotalOut,
)
from hms.schemas.records import validate_model
from hms.services import row_source
from hms.services.invoice_service import compute_invoice_totals
from hms.services.report_filter_service import classify_invoice, customer_label, filter_invoices, index_customers
from hms.services.report_service import build_invoice_document

router = APIRouter(prefix="/invoices", tags=["invoices"])


@router.get(
    "",
    response_model=InvoiceListOut,
    summary="Search invoices by text, status class, date and customer",
    responses={
        200: {
            "description": "Invoices matching every supplied filter, newest first",
            "content": {
                "application/json": {
                    "example": {
                        "count": 1,
                        "filters": {
                            "text": "smith",
                            "status_class": "unpaid",
                            "date_from": None,
                            "date_to": "2024-02-29",
                            "customer_id": None,
                        },
                        "items": [
                            {
                                "id": "invoice-id",
                                "invoice_no": "INV-0042",
                                "status": "issued",
                                "status_class": "unpaid",
                                "customer_id": "customer-id",
                                "customer_label": "Smith, Ana",
                                "subtotal": 25.5,
                                "total": 25.5,
                                "created_at": "2024-02-20T09:30:00Z",
                            }
                        ],
                    }
                }
            },
        },
        **error_responses(400, 422, 500),
    },
)
def list_invoices(
    q: str | None = Query(default=None, description="Matches invoice number or customer 'Last, First'"),
    status_class: str | None = Query(default=None, description="all | paid | unpaid | overdue | void"),
    date_from: date | None = Query(default=None, description="Created on or after (YYYY-MM-DD)"),
    date_to: date | None = Query(default=None, description="Created on or before, whole day (YYYY-MM-DD)"),
    customer_id: str | None = Query(default=None),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    criteria = validate_model(
        InvoiceFilter,
        {
            "text": q,
            "status_class": status_class,
            "date_from": date_from,
            "date_to": date_to,
            "customer_id": customer_id,
        },
        "Invalid invoice filter",
    )
    now = clock.now()
    invoices = row_source.fetch_invoices(db)
    customers = index_customers(
        row_source.fetch_customers(db, {row.customer_id for row in invoices if row.customer_id})
    )
    selected = filter_invoices(invoices, criteria, customers, now)
    return InvoiceListOut(
        count=len(selected),
        filters=criteria,
        items=[
            InvoiceSummaryOut(
                id=row.id,
                invoice_no=row.invoice_no,
                status=row.status,
                status_class=classify_invoice(row, now),
                customer_id=row.customer_id,
                customer_label=customer_label(customers, row.customer_id),
                subtotal=float(row.subtotal),
                total=float(row.total),
                created_at=row.created_at,
            )
            for row in selected
        ],
    )


@router.post(
    "/totals",
    response_model=InvoiceTotalsOut,
    summary="Compute line totals, subtotal and total for invoice items",
    responses={
        200: {
            "description": "Rounded totals; the subtotal is rounded once from the exact line sum",
            "content": {
                "application/json": {
                    "example": {
                        "lines": [
                            {"description": "Deluxe room", "quantity": 2.0, "unit_price": 10.0, "line_total": 20.0},
                            {"description": "Breakfast", "quantity": 1.0, "unit_price": 5.5, "line_total": 5.5},
                        ],
                        "subtotal": 25.5,
                        "total": 25.5,
                    }
                }
            },
        },
        **error_responses(422, 500),
    },
)
def invoice_totals(payload: InvoiceTotalsIn):
    totals = compute_invoice_totals(payload.items)
    return InvoiceTotalsOut(
        lines=[
            LineTotalOut(
                description=line.description,
                quantity=float(line.quantity),
                unit_price=float(line.unit_price),
                line_total=float(line.line_total),
            )
            for line in totals.lines
        ],
        subtotal=float(totals.subtotal),
        total=float(totals.total),
    )


@router.get(
    "/{invoice_id}/print",
    summary="Render a printable invoice",
    response_class=Response,
    responses={
        200: {"description": "Printable HTML invoice", "content": {"text/html": {}}},
        **error_responses(404, 422, 500),
    },
)
def print_invoice(
    invoice_id: str,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    invoice = row_source.fetch_invoice(db, invoice_id)
    customer = row_source.fetch_customer(db, invoice.customer_id) if invoice.customer_id else None
    reservation = row_source.fetch_reservation(db, invoice.reservation_id) if invoice.reservation_id else None

    html = build_invoice_document(
        invoice=invoice,
        printed_at=clock.now(),
        customer=customer,
        reservation=reservation,
        hotel=row_source.fetch_hotel_settings(db),
        default_currency=settings.currency_code,
    )
    log_event("invoice.printed", invoice_id=invoice.id, invoice_no=invoice.invoice_no)
    return Response(content=html, media_type="text/html")
