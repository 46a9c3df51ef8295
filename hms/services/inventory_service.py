from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable

from hms.schemas.records import InventoryItemRecord, StockMoveRecord, parse_rows


@dataclass(frozen=True)
class StockLevel:
    item: InventoryItemRecord
    ledger_stock: Decimal

    @property
    def drift(self) -> Decimal:
        return self.item.current_stock - self.ledger_stock


def stock_from_moves(moves: Iterable[StockMoveRecord | dict[str, Any]]) -> dict[str, Decimal]:
    levels: dict[str, Decimal] = {}
    for move in parse_rows(StockMoveRecord, moves):
        delta = move.quantity if move.direction == "in" else -move.quantity
        levels[move.inventory_item_id] = levels.get(move.inventory_item_id, Decimal("0")) + delta
    return levels


def stock_levels(
    items: Iterable[InventoryItemRecord | dict[str, Any]],
    moves: Iterable[StockMoveRecord | dict[str, Any]],
) -> list[StockLevel]:
    ledger = stock_from_moves(moves)
    return [
        StockLevel(item=item, ledger_stock=ledger.get(item.id, Decimal("0")))
        for item in sorted(parse_rows(InventoryItemRecord, items), key=lambda row: row.name.lower())
    ]


def low_stock_items(items: Iterable[InventoryItemRecord | dict[str, Any]]) -> list[InventoryItemRecord]:
    rows = parse_rows(InventoryItemRecord, items)
    low = [row for row in rows if row.current_stock <= row.reorder_level]
    return sorted(low, key=lambda row: row.name.lower())
