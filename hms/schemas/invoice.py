from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from hms.schemas.records import InvoiceLineItem

STATUS_CLASSES = {"paid", "unpaid", "overdue", "void"}


class InvoiceFilter(BaseModel):
    text: Optional[str] = None
    status_class: Optional[str] = None
    date_from: date | None = None
    date_to: date | None = None
    customer_id: Optional[str] = None

    @field_validator("text", "customer_id")
    @classmethod
    def _normalize_optional_text(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = value.strip()
        return cleaned or None

    @field_validator("status_class")
    @classmethod
    def _validate_status_class(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        normalized = value.strip().lower()
        if not normalized or normalized == "all":
            return None
        if normalized not in STATUS_CLASSES:
            allowed = ", ".join(sorted(STATUS_CLASSES | {"all"}))
            raise ValueError(f"Invalid status_class: {value}. Allowed: {allowed}")
        return normalized


class InvoiceTotalsIn(BaseModel):
    items: list[InvoiceLineItem] = Field(default_factory=list)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "items": [
                    {"description": "Deluxe room", "quantity": 2, "unit_price": 10.0},
                    {"description": "Breakfast", "quantity": 1, "unit_price": 5.5},
                ]
            }
        }
    )


class LineTotalOut(BaseModel):
    description: str
    quantity: float
    unit_price: float
    line_total: float


class InvoiceTotalsOut(BaseModel):
    lines: list[LineTotalOut]
    subtotal: float
    total: float


class InvoiceSummaryOut(BaseModel):
    id: str
    invoice_no: Optional[str] = None
    status: str
    status_class: str
    customer_id: Optional[str] = None
    customer_label: Optional[str] = None
    subtotal: float
    total: float
    created_at: datetime


class InvoiceListOut(BaseModel):
    count: int
    filters: InvoiceFilter
    items: list[InvoiceSummaryOut]
