"""Read-only fetches from the hotel's relational store.

Each function applies the date/status predicates the reports need and
returns validated records; the computations in the other service modules
never touch the session.
"""

from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy import and_, func, or_, select
from sqlalchemy.orm import Session

from hms.core.errors import NotFoundError
from hms.models.billing import BillingInvoice, BillingInvoiceItem
from hms.models.finance import Expense, Payment
from hms.models.hr import HotelSettings, HrRecord
from hms.models.inventory import InventoryItem, InventoryTransaction
from hms.models.reservation import Customer, Reservation, Room
from hms.schemas.records import (
    ACTIVE_RESERVATION_STATUSES,
    CustomerRef,
    ExpenseRecord,
    HotelSettingsRecord,
    HrRecordRow,
    InventoryItemRecord,
    InvoiceRecord,
    PaymentRecord,
    ReservationDetail,
    StockMoveRecord,
    parse_rows,
)


def _day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def fetch_payments(db: Session, start_date: date, end_date: date) -> list[PaymentRecord]:
    rows = db.execute(
        select(Payment)
        .where(
            Payment.paid_at >= _day_start(start_date),
            Payment.paid_at < _day_start(end_date + timedelta(days=1)),
        )
        .order_by(Payment.paid_at)
    ).scalars().all()
    return parse_rows(PaymentRecord, rows)


def fetch_expenses(db: Session, start_date: date, end_date: date) -> list[ExpenseRecord]:
    rows = db.execute(
        select(Expense)
        .where(Expense.expense_date >= start_date, Expense.expense_date <= end_date)
        .order_by(Expense.expense_date.desc(), Expense.created_at.desc())
    ).scalars().all()
    return parse_rows(ExpenseRecord, rows)


def _reservation_detail_stmt():
    return (
        select(
            Reservation.id,
            Reservation.created_at,
            Reservation.check_in_date,
            Reservation.check_out_date,
            Reservation.status,
            Reservation.total_amount,
            Reservation.balance_due,
            Customer.first_name,
            Customer.last_name,
            Room.room_number,
        )
        .join(Customer, Customer.id == Reservation.customer_id, isouter=True)
        .join(Room, Room.id == Reservation.room_id, isouter=True)
    )


def _reservation_details(db: Session, stmt) -> list[ReservationDetail]:
    rows = db.execute(stmt).mappings().all()
    return parse_rows(ReservationDetail, [dict(row) for row in rows])


def fetch_active_reservations(db: Session, start_date: date, end_date: date) -> list[ReservationDetail]:
    """Active reservations booked in the range or staying over any day of it."""
    created_in_range = and_(
        Reservation.created_at >= _day_start(start_date),
        Reservation.created_at < _day_start(end_date + timedelta(days=1)),
    )
    overlapping = and_(
        Reservation.check_in_date <= end_date,
        Reservation.check_out_date > start_date,
    )
    stmt = (
        _reservation_detail_stmt()
        .where(
            Reservation.status.in_(sorted(ACTIVE_RESERVATION_STATUSES)),
            or_(created_in_range, overlapping),
        )
        .order_by(Reservation.check_in_date)
    )
    return _reservation_details(db, stmt)


def fetch_reservations_by_status(db: Session, statuses: set[str] | frozenset[str]) -> list[ReservationDetail]:
    stmt = (
        _reservation_detail_stmt()
        .where(Reservation.status.in_(sorted(statuses)))
        .order_by(Reservation.check_out_date)
    )
    return _reservation_details(db, stmt)


def fetch_reservation(db: Session, reservation_id: str) -> ReservationDetail | None:
    details = _reservation_details(db, _reservation_detail_stmt().where(Reservation.id == reservation_id))
    return details[0] if details else None


def count_rooms(db: Session) -> int:
    return int(db.execute(select(func.count(Room.id))).scalar_one())


def fetch_customers(db: Session, customer_ids: set[str] | None = None) -> list[CustomerRef]:
    stmt = select(Customer).order_by(Customer.last_name, Customer.first_name)
    if customer_ids is not None:
        if not customer_ids:
            return []
        stmt = stmt.where(Customer.id.in_(sorted(customer_ids)))
    return parse_rows(CustomerRef, db.execute(stmt).scalars().all())


def fetch_customer(db: Session, customer_id: str) -> CustomerRef | None:
    row = db.execute(select(Customer).where(Customer.id == customer_id)).scalar_one_or_none()
    return CustomerRef.model_validate(row) if row else None


def fetch_invoices(db: Session, limit: int | None = None) -> list[InvoiceRecord]:
    stmt = select(BillingInvoice).order_by(BillingInvoice.created_at.desc())
    if limit is not None:
        stmt = stmt.limit(limit)
    return parse_rows(InvoiceRecord, db.execute(stmt).scalars().all())


def fetch_invoice(db: Session, invoice_id: str) -> InvoiceRecord:
    invoice = db.execute(
        select(BillingInvoice).where(BillingInvoice.id == invoice_id)
    ).scalar_one_or_none()
    if not invoice:
        raise NotFoundError("Invoice not found")

    items = db.execute(
        select(BillingInvoiceItem)
        .where(BillingInvoiceItem.invoice_id == invoice_id)
        .order_by(BillingInvoiceItem.created_at, BillingInvoiceItem.id)
    ).scalars().all()

    return InvoiceRecord.model_validate(
        {
            "id": invoice.id,
            "invoice_no": invoice.invoice_no,
            "status": invoice.status,
            "customer_id": invoice.customer_id,
            "reservation_id": invoice.reservation_id,
            "notes": invoice.notes,
            "created_at": invoice.created_at,
            "subtotal": invoice.subtotal,
            "total": invoice.total,
            "items": [
                {"description": item.description, "quantity": item.quantity, "unit_price": item.unit_price}
                for item in items
            ],
        }
    )


def fetch_inventory_items(db: Session) -> list[InventoryItemRecord]:
    rows = db.execute(select(InventoryItem).order_by(InventoryItem.name)).scalars().all()
    return parse_rows(InventoryItemRecord, rows)


def fetch_stock_moves(db: Session) -> list[StockMoveRecord]:
    rows = db.execute(
        select(InventoryTransaction).order_by(InventoryTransaction.occurred_at)
    ).scalars().all()
    return parse_rows(StockMoveRecord, rows)


def fetch_hr_records(db: Session) -> list[HrRecordRow]:
    rows = db.execute(select(HrRecord).order_by(HrRecord.full_name)).scalars().all()
    return parse_rows(HrRecordRow, rows)


def fetch_hotel_settings(db: Session) -> HotelSettingsRecord | None:
    row = db.execute(
        select(HotelSettings).order_by(HotelSettings.created_at).limit(1)
    ).scalar_one_or_none()
    return HotelSettingsRecord.model_validate(row) if row else None
