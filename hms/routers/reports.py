from datetime import date, timedelta

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from hms.core.api_docs import error_responses
from hms.core.clock import Clock, get_clock
from hms.core.config import settings
from hms.core.deps import get_db
from hms.core.errors import InvalidRangeError
from hms.core.money import to_money
from hms.core.observability import log_event
from hms.schemas.common import DateRangeOut
from hms.schemas.records import BILLABLE_RESERVATION_STATUSES
from hms.schemas.reports import (
    CategoryTotalOut,
    CategoryTotalsOut,
    DailyBucketOut,
    DailyReportOut,
    ReportPrintIn,
    ReportTotalsOut,
)
from hms.services import row_source
from hms.services.billing_service import balances_due
from hms.services.category_service import aggregate_expense_categories
from hms.services.document_service import to_csv
from hms.services.inventory_service import low_stock_items
from hms.services.report_service import (
    SystemReportData,
    build_system_report,
    daily_rows_for_export,
    normalize_section_keys,
)
from hms.services.timeseries_service import DailyBucket, aggregate_daily, summarize_totals

router = APIRouter(prefix="/reports", tags=["reports"])


def _resolve_range(start_date: date | None, end_date: date | None, today: date) -> tuple[date, date]:
    resolved_end = end_date or today
    resolved_start = start_date or (resolved_end - timedelta(days=settings.report_default_window_days))
    if resolved_start > resolved_end:
        raise InvalidRangeError("start_date cannot be after end_date")
    return resolved_start, resolved_end


def _bucket_out(row: DailyBucket) -> DailyBucketOut:
    return DailyBucketOut(
        day=row.day,
        income=float(to_money(row.income)),
        expenses=float(to_money(row.expenses)),
        net=float(to_money(row.net)),
        bookings=row.bookings,
        occupancy=row.occupancy,
        payments_count=row.payments_count,
        expenses_count=row.expenses_count,
    )


def _daily_rows(db: Session, start_date: date, end_date: date) -> tuple[list[DailyBucket], list, list]:
    payments = row_source.fetch_payments(db, start_date, end_date)
    expenses = row_source.fetch_expenses(db, start_date, end_date)
    reservations = row_source.fetch_active_reservations(db, start_date, end_date)
    return aggregate_daily(payments, expenses, reservations, start_date, end_date), payments, expenses


@router.get(
    "/daily",
    response_model=DailyReportOut,
    summary="Get dense daily income, expenses, bookings and occupancy",
    responses={
        200: {
            "description": "One row per day of the range, including empty days",
            "content": {
                "application/json": {
                    "example": {
                        "range": {"start_date": "2024-02-01", "end_date": "2024-02-02"},
                        "rows": [
                            {
                                "day": "2024-02-01",
                                "income": 120.0,
                                "expenses": 20.0,
                                "net": 100.0,
                                "bookings": 1,
                                "occupancy": 3,
                                "payments_count": 2,
                                "expenses_count": 1,
                            },
                            {
                                "day": "2024-02-02",
                                "income": 0.0,
                                "expenses": 0.0,
                                "net": 0.0,
                                "bookings": 0,
                                "occupancy": 2,
                                "payments_count": 0,
                                "expenses_count": 0,
                            },
                        ],
                        "totals": {"income": 120.0, "expenses": 20.0, "net": 100.0},
                    }
                }
            },
        },
        **error_responses(400, 422, 500),
    },
)
def daily_report(
    start_date: date | None = Query(default=None, description="Range start (YYYY-MM-DD)"),
    end_date: date | None = Query(default=None, description="Range end, inclusive (YYYY-MM-DD)"),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    start_date, end_date = _resolve_range(start_date, end_date, clock.now().date())
    rows, payments, expenses = _daily_rows(db, start_date, end_date)
    totals = summarize_totals(payments, expenses, start_date, end_date)
    return DailyReportOut(
        range=DateRangeOut(start_date=start_date, end_date=end_date),
        rows=[_bucket_out(row) for row in rows],
        totals=ReportTotalsOut(
            income=float(totals.income),
            expenses=float(totals.expenses),
            net=float(totals.net),
        ),
    )


@router.get(
    "/daily.csv",
    summary="Download the daily report as CSV",
    response_class=Response,
    responses={
        200: {"description": "CSV attachment", "content": {"text/csv": {}}},
        **error_responses(400, 422, 500),
    },
)
def daily_report_csv(
    start_date: date | None = Query(default=None, description="Range start (YYYY-MM-DD)"),
    end_date: date | None = Query(default=None, description="Range end, inclusive (YYYY-MM-DD)"),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    start_date, end_date = _resolve_range(start_date, end_date, clock.now().date())
    rows, _payments, _expenses = _daily_rows(db, start_date, end_date)
    content = to_csv(daily_rows_for_export(rows))
    filename = f"report_{start_date.isoformat()}_to_{end_date.isoformat()}.csv"
    log_event("report.exported", report="daily", row_count=len(rows), filename=filename)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get(
    "/expense-categories",
    response_model=CategoryTotalsOut,
    summary="Get expense totals per category",
    responses={
        200: {
            "description": "Categories with spend in the period, largest first",
            "content": {
                "application/json": {
                    "example": {
                        "range": {"start_date": "2024-02-01", "end_date": "2024-02-14"},
                        "items": [
                            {"category": "utilities", "total": 250.0},
                            {"category": "supplies", "total": 80.5},
                        ],
                    }
                }
            },
        },
        **error_responses(400, 422, 500),
    },
)
def expense_categories(
    start_date: date | None = Query(default=None, description="Defaults to the first day of the current month"),
    end_date: date | None = Query(default=None, description="Defaults to today"),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    resolved_end = end_date or clock.now().date()
    resolved_start = start_date or resolved_end.replace(day=1)
    if resolved_start > resolved_end:
        raise InvalidRangeError("start_date cannot be after end_date")

    expenses = row_source.fetch_expenses(db, resolved_start, resolved_end)
    totals = aggregate_expense_categories(expenses, resolved_start, resolved_end)
    return CategoryTotalsOut(
        range=DateRangeOut(start_date=resolved_start, end_date=resolved_end),
        items=[CategoryTotalOut(category=row.category, total=float(row.total)) for row in totals],
    )


@router.post(
    "/print",
    summary="Render a printable system report",
    response_class=Response,
    responses={
        200: {"description": "Printable HTML document", "content": {"text/html": {}}},
        **error_responses(400, 422, 500),
    },
)
def print_report(
    payload: ReportPrintIn,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    sections = normalize_section_keys(payload.sections)
    now = clock.now()
    start_date, end_date = _resolve_range(payload.start_date, payload.end_date, now.date())
    data = SystemReportData(start_date=start_date, end_date=end_date)

    if "financial" in sections:
        rows, payments, expenses = _daily_rows(db, start_date, end_date)
        data.daily_rows = rows
        data.totals = summarize_totals(payments, expenses, start_date, end_date)
    if "expenses" in sections:
        data.expenses = row_source.fetch_expenses(db, start_date, end_date)
    if "hr" in sections:
        data.hr_records = row_source.fetch_hr_records(db)
    if "inventory" in sections:
        data.inventory_items = row_source.fetch_inventory_items(db)
        data.low_stock = low_stock_items(data.inventory_items)
    if "billing" in sections:
        data.balances_due = balances_due(
            row_source.fetch_reservations_by_status(db, BILLABLE_RESERVATION_STATUSES)
        )
        data.latest_invoices = row_source.fetch_invoices(db, limit=settings.latest_invoices_limit)

    html = build_system_report(sections=sections, data=data, printed_at=now)
    log_event(
        "report.printed",
        sections=sections,
        start_date=start_date.isoformat(),
        end_date=end_date.isoformat(),
    )
    return Response(content=html, media_type="text/html")
