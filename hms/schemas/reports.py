from datetime import date

from pydantic import BaseModel, ConfigDict, Field

from hms.schemas.common import DateRangeOut


class DailyBucketOut(BaseModel):
    day: date
    income: float
    expenses: float
    net: float
    bookings: int
    occupancy: int
    payments_count: int
    expenses_count: int


class ReportTotalsOut(BaseModel):
    income: float
    expenses: float
    net: float


class DailyReportOut(BaseModel):
    range: DateRangeOut
    rows: list[DailyBucketOut]
    totals: ReportTotalsOut


class CategoryTotalOut(BaseModel):
    category: str
    total: float


class CategoryTotalsOut(BaseModel):
    range: DateRangeOut
    items: list[CategoryTotalOut]


class ReportPrintIn(BaseModel):
    sections: list[str] = Field(default_factory=list)
    start_date: date | None = None
    end_date: date | None = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "sections": ["financial", "expenses", "billing"],
                "start_date": "2024-02-01",
                "end_date": "2024-02-29",
            }
        }
    )
