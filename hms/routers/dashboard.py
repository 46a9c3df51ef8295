from datetime import timedelta

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from hms.core.api_docs import error_responses
from hms.core.clock import Clock, get_clock
from hms.core.config import settings
from hms.core.deps import get_db
from hms.schemas.dashboard import DashboardSummaryOut, UpcomingCheckoutOut
from hms.schemas.inventory import LowStockItemOut
from hms.schemas.records import ACTIVE_RESERVATION_STATUSES
from hms.schemas.reports import CategoryTotalOut, DailyBucketOut
from hms.services import row_source
from hms.services.dashboard_service import build_dashboard_summary

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get(
    "/summary",
    response_model=DashboardSummaryOut,
    summary="Get hotel KPI summary",
    responses={
        200: {
            "description": "Dashboard summary as of today",
            "content": {
                "application/json": {
                    "example": {
                        "as_of": "2024-02-14",
                        "income_today": 120.0,
                        "income_month": 1850.0,
                        "income_year": 4200.0,
                        "expenses_month": 640.0,
                        "profit_month": 1210.0,
                        "occupied_rooms": 7,
                        "rooms_total": 12,
                        "available_rooms": 5,
                        "upcoming_checkouts": [],
                        "low_stock": [],
                        "series": [],
                        "expense_categories": [{"category": "utilities", "total": 400.0}],
                    }
                }
            },
        },
        **error_responses(422, 500),
    },
)
def summary(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    now = clock.now()
    today = now.date()
    # Widest window any KPI needs: year to date or the trailing series.
    fetch_start = min(today.replace(month=1, day=1), today - timedelta(days=settings.dashboard_series_days - 1))

    result = build_dashboard_summary(
        payments=row_source.fetch_payments(db, fetch_start, today),
        expenses=row_source.fetch_expenses(db, fetch_start, today),
        reservations=row_source.fetch_reservations_by_status(db, ACTIVE_RESERVATION_STATUSES),
        inventory_items=row_source.fetch_inventory_items(db),
        rooms_total=row_source.count_rooms(db),
        now=now,
        series_days=settings.dashboard_series_days,
        upcoming_days=settings.upcoming_checkout_days,
        list_limit=settings.dashboard_list_limit,
    )
    return DashboardSummaryOut(
        as_of=result.as_of,
        income_today=float(result.income_today),
        income_month=float(result.income_month),
        income_year=float(result.income_year),
        expenses_month=float(result.expenses_month),
        profit_month=float(result.profit_month),
        occupied_rooms=result.occupied_rooms,
        rooms_total=result.rooms_total,
        available_rooms=result.available_rooms,
        upcoming_checkouts=[
            UpcomingCheckoutOut(
                reservation_id=row.id,
                guest_name=row.guest_name,
                room_number=row.room_number,
                check_out_date=row.check_out_date,
                balance_due=float(row.balance_due),
            )
            for row in result.upcoming_checkouts
        ],
        low_stock=[
            LowStockItemOut(
                id=item.id,
                name=item.name,
                unit=item.unit,
                current_stock=float(item.current_stock),
                reorder_level=float(item.reorder_level),
            )
            for item in result.low_stock
        ],
        series=[
            DailyBucketOut(
                day=row.day,
                income=float(row.income),
                expenses=float(row.expenses),
                net=float(row.net),
                bookings=row.bookings,
                occupancy=row.occupancy,
                payments_count=row.payments_count,
                expenses_count=row.expenses_count,
            )
            for row in result.series
        ],
        expense_categories=[
            CategoryTotalOut(category=row.category, total=float(row.total))
            for row in result.expense_categories
        ],
    )
