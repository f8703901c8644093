# schemas/report.py

from pydantic import BaseModel
from datetime import datetime
from decimal import Decimal
from typing import List

from lims.schemas.component import ComponentResponse


class LowStockSummary(BaseModel):
    low_stock_count: int
    out_of_stock_count: int
    total_critical: int


class LowStockReportResponse(BaseModel):
    low_stock: List[ComponentResponse]
    out_of_stock: List[ComponentResponse]
    summary: LowStockSummary


class OldStockSummary(BaseModel):
    count: int
    total_value: Decimal
    stale_since: datetime


class OldStockReportResponse(BaseModel):
    old_stock: List[ComponentResponse]
    summary: OldStockSummary


class InventoryOverviewResponse(BaseModel):
    total_components: int
    total_categories: int
    total_users: int
    active_users: int
    total_transactions: int
    inward_quantity_last_30_days: int
    outward_quantity_last_30_days: int
    total_inventory_value: Decimal
    low_stock_count: int
    out_of_stock_count: int
