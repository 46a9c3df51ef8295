"""Validated projections of the rows the hosted backend stores.

Every computation in ``hms.services`` works on these records, never on raw
mappings, so a malformed row fails here instead of leaking ``None`` into
arithmetic further down.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Iterable, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from hms.core.errors import ValidationError

EXPENSE_CATEGORIES = ("utilities", "maintenance", "supplies", "payroll", "marketing", "taxes", "other")
RESERVATION_STATUSES = {"draft", "confirmed", "checked_in", "checked_out", "cancelled"}
ACTIVE_RESERVATION_STATUSES = frozenset({"confirmed", "checked_in"})
BILLABLE_RESERVATION_STATUSES = frozenset({"confirmed", "checked_in", "checked_out"})
INVOICE_STATUSES = {"draft", "issued", "paid", "void"}
STOCK_DIRECTIONS = {"in", "out"}


def ensure_aware(value: datetime) -> datetime:
    # Rows read back from SQLite lose their offset; the hosted store keeps UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True, extra="ignore")


class PaymentRecord(_Record):
    amount: Decimal = Field(ge=0)
    paid_at: datetime
    reservation_id: Optional[str] = None

    @field_validator("paid_at")
    @classmethod
    def _aware_paid_at(cls, value: datetime) -> datetime:
        return ensure_aware(value)


class ExpenseRecord(_Record):
    amount: Decimal = Field(ge=0)
    category: str
    expense_date: date
    description: str = ""

    @field_validator("category")
    @classmethod
    def _validate_category(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in EXPENSE_CATEGORIES:
            allowed = ", ".join(EXPENSE_CATEGORIES)
            raise ValueError(f"Invalid expense category: {value}. Allowed: {allowed}")
        return normalized

    @field_validator("description", mode="before")
    @classmethod
    def _normalize_description(cls, value: Optional[str]) -> str:
        return (value or "").strip()


class ReservationSummary(_Record):
    id: Optional[str] = None
    created_at: datetime
    check_in_date: date
    check_out_date: date
    status: str

    @field_validator("created_at")
    @classmethod
    def _aware_created_at(cls, value: datetime) -> datetime:
        return ensure_aware(value)

    @field_validator("status")
    @classmethod
    def _validate_status(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in RESERVATION_STATUSES:
            allowed = ", ".join(sorted(RESERVATION_STATUSES))
            raise ValueError(f"Invalid reservation status: {value}. Allowed: {allowed}")
        return normalized

    @model_validator(mode="after")
    def _validate_stay(self) -> "ReservationSummary":
        if self.check_out_date <= self.check_in_date:
            raise ValueError("check_out_date must be after check_in_date")
        return self

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_RESERVATION_STATUSES


class ReservationDetail(ReservationSummary):
    first_name: str = ""
    last_name: str = ""
    room_number: Optional[str] = None
    total_amount: Decimal = Decimal("0")
    balance_due: Decimal = Decimal("0")

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def _blank_missing_name(cls, value: Optional[str]) -> str:
        # Outer joins leave the guest columns NULL when the customer is gone.
        return value or ""

    @property
    def guest_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class InvoiceLineItem(_Record):
    description: str = Field(min_length=1, max_length=255)
    quantity: Decimal = Field(gt=0)
    unit_price: Decimal = Field(ge=0)

    @field_validator("description", mode="before")
    @classmethod
    def _strip_description(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"description": "Deluxe room, 2 nights", "quantity": 2, "unit_price": 10.0}
        }
    )


class InvoiceRecord(_Record):
    id: str
    invoice_no: Optional[str] = None
    status: str = "draft"
    customer_id: Optional[str] = None
    reservation_id: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    subtotal: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
    items: list[InvoiceLineItem] = Field(default_factory=list)

    @field_validator("created_at")
    @classmethod
    def _aware_created_at(cls, value: datetime) -> datetime:
        return ensure_aware(value)

    @field_validator("status")
    @classmethod
    def _validate_status(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in INVOICE_STATUSES:
            allowed = ", ".join(sorted(INVOICE_STATUSES))
            raise ValueError(f"Invalid invoice status: {value}. Allowed: {allowed}")
        return normalized

    @field_validator("invoice_no", "notes", mode="before")
    @classmethod
    def _normalize_optional_text(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = str(value).strip()
        return cleaned or None


class CustomerRef(_Record):
    id: str
    first_name: str = ""
    last_name: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

    @property
    def display_label(self) -> str:
        return f"{self.last_name}, {self.first_name}"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class RoomRecord(_Record):
    id: str
    room_number: str
    status: str = "active"


class InventoryItemRecord(_Record):
    id: str
    name: str
    unit: str
    reorder_level: Decimal = Field(ge=0)
    current_stock: Decimal = Decimal("0")


class StockMoveRecord(_Record):
    inventory_item_id: str
    direction: str
    quantity: Decimal = Field(gt=0)

    @field_validator("direction")
    @classmethod
    def _validate_direction(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in STOCK_DIRECTIONS:
            raise ValueError("direction must be 'in' or 'out'")
        return normalized


class HrRecordRow(_Record):
    full_name: str
    role_title: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class HotelSettingsRecord(_Record):
    hotel_name: str
    legal_name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    currency_code: str = "USD"


RecordT = TypeVar("RecordT", bound=BaseModel)


def _issue_details(exc: PydanticValidationError, prefix: tuple[str, ...] = ()) -> list[dict]:
    return [
        {
            "field": ".".join([*prefix, *(str(part) for part in err.get("loc", ()))]),
            "message": err.get("msg", "Invalid value"),
            "type": err.get("type"),
        }
        for err in exc.errors()
    ]


def validate_model(model: type[RecordT], data: Any, message: str) -> RecordT:
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(message, details=_issue_details(exc)) from exc


def parse_rows(model: type[RecordT], rows: Iterable[Any]) -> list[RecordT]:
    parsed: list[RecordT] = []
    for index, row in enumerate(rows):
        if isinstance(row, model):
            parsed.append(row)
            continue
        try:
            parsed.append(model.model_validate(row))
        except PydanticValidationError as exc:
            raise ValidationError(
                f"Invalid {model.__name__} row at index {index}",
                details=_issue_details(exc, (str(index),)),
            ) from exc
    return parsed
