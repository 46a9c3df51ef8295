from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from hms.core.api_docs import error_responses
from hms.core.deps import get_db
from hms.schemas.inventory import LowStockItemOut, LowStockListOut, StockLevelListOut, StockLevelOut
from hms.services import row_source
from hms.services.inventory_service import low_stock_items, stock_levels

router = APIRouter(prefix="/inventory", tags=["inventory"])


@router.get(
    "/low-stock",
    response_model=LowStockListOut,
    summary="List items at or below their reorder level",
    responses=error_responses(422, 500),
)
def low_stock(db: Session = Depends(get_db)):
    items = low_stock_items(row_source.fetch_inventory_items(db))
    return LowStockListOut(
        count=len(items),
        items=[
            LowStockItemOut(
                id=item.id,
                name=item.name,
                unit=item.unit,
                current_stock=float(item.current_stock),
                reorder_level=float(item.reorder_level),
            )
            for item in items
        ],
    )


@router.get(
    "/stock-levels",
    response_model=StockLevelListOut,
    summary="Compare stored stock with the movement ledger",
    responses=error_responses(422, 500),
)
def list_stock_levels(db: Session = Depends(get_db)):
    levels = stock_levels(row_source.fetch_inventory_items(db), row_source.fetch_stock_moves(db))
    return StockLevelListOut(
        items=[
            StockLevelOut(
                id=level.item.id,
                name=level.item.name,
                unit=level.item.unit,
                current_stock=float(level.item.current_stock),
                ledger_stock=float(level.ledger_stock),
                drift=float(level.drift),
                reorder_level=float(level.item.reorder_level),
                is_low=level.item.current_stock <= level.item.reorder_level,
            )
            for level in levels
        ]
    )
