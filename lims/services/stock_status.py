# =========================================================
# STOCK STATUS RULES
#
# Pure helpers shared by the ledger, the reports and the
# component responses. Nothing in here touches storage.
# =========================================================

from calendar import monthrange
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum


class StockStatus(str, Enum):
    IN_STOCK = "IN_STOCK"
    LOW_STOCK = "LOW_STOCK"
    OUT_OF_STOCK = "OUT_OF_STOCK"


def stock_status(quantity: int, threshold: int) -> StockStatus:
    if quantity == 0:
        return StockStatus.OUT_OF_STOCK
    if quantity <= threshold:
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


def partition_low_stock(components):
    """
    Split components into (low_stock, out_of_stock).

    Components above their threshold are dropped. Low stock comes back
    sorted by quantity ascending so the most critical parts lead.
    """
    low_stock = []
    out_of_stock = []

    for component in components:
        status = stock_status(component.quantity, component.critical_low_threshold)
        if status == StockStatus.OUT_OF_STOCK:
            out_of_stock.append(component)
        elif status == StockStatus.LOW_STOCK:
            low_stock.append(component)

    low_stock.sort(key=lambda c: c.quantity)
    return low_stock, out_of_stock


def sort_old_stock(components):
    # Never-outwarded parts first, then oldest use, then largest holding
    return sorted(
        components,
        key=lambda c: (
            c.last_outward_date is not None,
            _naive(c.last_outward_date) if c.last_outward_date else datetime.min,
            -c.quantity,
        ),
    )


def stock_value(components) -> Decimal:
    return sum(
        (Decimal(c.unit_price or 0) * c.quantity for c in components),
        Decimal("0.00"),
    )


def months_ago(moment: datetime, months: int) -> datetime:
    """Step back whole calendar months, clamping to the end of shorter months."""
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(moment.day, monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def _naive(value: datetime) -> datetime:
    # SQLite hands back naive UTC values, Postgres aware ones
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.replace(tzinfo=None)
