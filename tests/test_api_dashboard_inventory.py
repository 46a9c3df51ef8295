from datetime import date, datetime, timezone
from decimal import Decimal

from hms.models.finance import Expense, Payment
from hms.models.inventory import InventoryItem, InventoryTransaction
from hms.models.reservation import Customer, Reservation, Room


def _seed_hotel(session_local) -> None:
    with session_local() as db:
        guest = Customer(first_name="Ana", last_name="Smith")
        rooms = [Room(room_number=str(number)) for number in (101, 102, 103)]
        db.add(guest)
        db.add_all(rooms)
        db.flush()
        staying = Reservation(
            customer_id=guest.id,
            room_id=rooms[0].id,
            check_in_date=date(2024, 2, 12),
            check_out_date=date(2024, 2, 16),
            status="checked_in",
            total_amount=Decimal("400.00"),
            balance_due=Decimal("150.00"),
            created_at=datetime(2024, 2, 5, 12, 0, tzinfo=timezone.utc),
        )
        leaving = Reservation(
            customer_id=guest.id,
            room_id=rooms[1].id,
            check_in_date=date(2024, 2, 10),
            check_out_date=date(2024, 2, 14),
            status="checked_in",
            created_at=datetime(2024, 2, 5, 12, 0, tzinfo=timezone.utc),
        )
        db.add_all([staying, leaving])
        db.flush()
        db.add_all(
            [
                Payment(reservation_id=staying.id, amount=Decimal("250.00"), paid_at=datetime(2024, 2, 14, 8, 0, tzinfo=timezone.utc)),
                Payment(reservation_id=leaving.id, amount=Decimal("75.00"), paid_at=datetime(2024, 1, 5, 8, 0, tzinfo=timezone.utc)),
                Expense(description="Water", category="utilities", amount=Decimal("60.00"), expense_date=date(2024, 2, 2)),
            ]
        )
        towels = InventoryItem(name="Towels", unit="pcs", reorder_level=Decimal("5"), current_stock=Decimal("4"))
        soap = InventoryItem(name="Soap", unit="bars", reorder_level=Decimal("2"), current_stock=Decimal("12"))
        db.add_all([towels, soap])
        db.flush()
        db.add_all(
            [
                InventoryTransaction(inventory_item_id=towels.id, direction="in", quantity=Decimal("10")),
                InventoryTransaction(inventory_item_id=towels.id, direction="out", quantity=Decimal("6")),
                InventoryTransaction(inventory_item_id=soap.id, direction="in", quantity=Decimal("10")),
            ]
        )
        db.commit()


def test_dashboard_summary(test_context):
    client, session_local = test_context
    _seed_hotel(session_local)

    res = client.get("/dashboard/summary")
    assert res.status_code == 200, res.text
    body = res.json()

    assert body["as_of"] == "2024-02-14"
    assert body["income_today"] == 250.0
    assert body["income_month"] == 250.0
    assert body["income_year"] == 325.0
    assert body["expenses_month"] == 60.0
    assert body["profit_month"] == 190.0
    assert body["rooms_total"] == 3
    assert body["occupied_rooms"] == 1
    assert body["available_rooms"] == 2
    assert [row["check_out_date"] for row in body["upcoming_checkouts"]] == ["2024-02-14", "2024-02-16"]
    assert body["upcoming_checkouts"][1]["guest_name"] == "Ana Smith"
    assert body["upcoming_checkouts"][1]["room_number"] == "101"
    assert [item["name"] for item in body["low_stock"]] == ["Towels"]
    assert len(body["series"]) == 30
    assert body["series"][-1]["income"] == 250.0
    assert body["expense_categories"] == [{"category": "utilities", "total": 60.0}]


def test_dashboard_summary_on_empty_store(test_context):
    client, _session_local = test_context

    res = client.get("/dashboard/summary")
    assert res.status_code == 200, res.text
    body = res.json()

    assert body["rooms_total"] == 0
    assert body["available_rooms"] == 0
    assert body["upcoming_checkouts"] == []
    assert all(row["income"] == 0.0 for row in body["series"])


def test_low_stock_and_stock_levels(test_context):
    client, session_local = test_context
    _seed_hotel(session_local)

    low = client.get("/inventory/low-stock")
    assert low.status_code == 200, low.text
    assert low.json()["count"] == 1
    assert low.json()["items"][0]["name"] == "Towels"
    assert low.json()["items"][0]["current_stock"] == 4.0

    levels = client.get("/inventory/stock-levels")
    assert levels.status_code == 200, levels.text
    items = {item["name"]: item for item in levels.json()["items"]}

    assert list(items) == ["Soap", "Towels"]
    assert items["Towels"]["ledger_stock"] == 4.0
    assert items["Towels"]["drift"] == 0.0
    assert items["Towels"]["is_low"] is True
    assert items["Soap"]["ledger_stock"] == 10.0
    assert items["Soap"]["drift"] == 2.0
    assert items["Soap"]["is_low"] is False


def test_health_endpoints(test_context):
    client, _session_local = test_context

    assert client.get("/health").json() == {"ok": True}
    assert client.get("/").json()["docs"] == "/docs"

    res = client.get("/ready")
    assert res.status_code == 200
    assert res.headers["X-Request-ID"]


def test_routing_errors_use_error_envelope(test_context):
    client, _session_local = test_context

    missing = client.get("/reports/weekly")
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "not_found"
    assert missing.json()["error"]["path"] == "/reports/weekly"

    wrong_method = client.post("/dashboard/summary")
    assert wrong_method.status_code == 405
    assert wrong_method.json()["error"]["code"] == "method_not_allowed"
