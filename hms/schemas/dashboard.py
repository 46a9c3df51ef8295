from datetime import date

from pydantic import BaseModel

from hms.schemas.inventory import LowStockItemOut
from hms.schemas.reports import CategoryTotalOut, DailyBucketOut


class UpcomingCheckoutOut(BaseModel):
    reservation_id: str | None = None
    guest_name: str
    room_number: str | None = None
    check_out_date: date
    balance_due: float


class DashboardSummaryOut(BaseModel):
    as_of: date
    income_today: float
    income_month: float
    income_year: float
    expenses_month: float
    profit_month: float
    occupied_rooms: int
    rooms_total: int
    available_rooms: int
    upcoming_checkouts: list[UpcomingCheckoutOut]
    low_stock: list[LowStockItemOut]
    series: list[DailyBucketOut]
    expense_categories: list[CategoryTotalOut]
