from pydantic import BaseModel


class LowStockItemOut(BaseModel):
    id: str
    name: str
    unit: str
    current_stock: float
    reorder_level: float


class LowStockListOut(BaseModel):
    count: int
    items: list[LowStockItemOut]


class StockLevelOut(BaseModel):
    id: str
    name: str
    unit: str
    current_stock: float
    ledger_stock: float
    drift: float
    reorder_level: float
    is_low: bool


class StockLevelListOut(BaseModel):
    items: list[StockLevelOut]
