# =========================================================
# REPORTS ROUTER
#
# - Low stock / out of stock alerts
# - Old stock (not outwarded within the staleness window)
# - Inventory overview counters for the dashboards
#
# Available to roles holding VIEW_REPORTS.
# =========================================================

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func
from sqlalchemy.orm import Session

from lims.database import get_db
from lims.core.auth import require_capability
from lims.core.config import settings
from lims.core.permissions import Capability
from lims.models.categories import Category
from lims.models.components import Component
from lims.models.transactions import Transaction, TransactionType
from lims.models.users import User
from lims.schemas.report import (
    InventoryOverviewResponse,
    LowStockReportResponse,
    OldStockReportResponse,
)
from lims.services.ledger import StockLedger
from lims.services.sqlalchemy_store import get_stock_ledger
from lims.services.stock_status import months_ago

router = APIRouter(prefix="/reports", tags=["Reports"])

view_reports = require_capability(Capability.VIEW_REPORTS)


# =========================================================
# LOW STOCK
# =========================================================
@router.get("/low-stock", response_model=LowStockReportResponse)
def low_stock_report(
    ledger: StockLedger = Depends(get_stock_ledger),
    current_user=Depends(view_reports),
):
    return ledger.list_low_stock()


# =========================================================
# OLD STOCK
# =========================================================
@router.get("/old-stock", response_model=OldStockReportResponse)
def old_stock_report(
    months: int = Query(settings.OLD_STOCK_MONTHS, ge=1, le=120),
    ledger: StockLedger = Depends(get_stock_ledger),
    current_user=Depends(view_reports),
):
    stale_since = months_ago(datetime.now(timezone.utc), months)
    return ledger.list_old_stock(stale_since)


# =========================================================
# OVERVIEW (ROLLING 30 DAYS FOR MOVEMENTS)
# =========================================================
def _movement_total(db: Session, txn_type: TransactionType, since: datetime) -> int:
    return (
        db.query(func.coalesce(func.sum(Transaction.quantity), 0))
        .filter(
            Transaction.type == txn_type.value,
            Transaction.created_at >= since,
        )
        .scalar()
    )


@router.get("/overview", response_model=InventoryOverviewResponse)
def inventory_overview(
    db: Session = Depends(get_db),
    current_user=Depends(view_reports),
):
    start_30 = datetime.now(timezone.utc) - timedelta(days=30)

    total_components = db.query(func.count(Component.id)).scalar()
    total_categories = db.query(func.count(Category.id)).scalar()
    total_users = db.query(func.count(User.id)).scalar()
    active_users = db.query(func.count(User.id)).filter(User.is_active.is_(True)).scalar()
    total_transactions = db.query(func.count(Transaction.id)).scalar()

    total_value = db.query(
        func.coalesce(func.sum(Component.unit_price * Component.quantity), 0)
    ).scalar()

    out_of_stock_count = (
        db.query(func.count(Component.id))
        .filter(Component.quantity == 0)
        .scalar()
    )

    low_stock_count = (
        db.query(func.count(Component.id))
        .filter(
            Component.quantity > 0,
            Component.quantity <= Component.critical_low_threshold,
        )
        .scalar()
    )

    return {
        "total_components": total_components,
        "total_categories": total_categories,
        "total_users": total_users,
        "active_users": active_users,
        "total_transactions": total_transactions,
        "inward_quantity_last_30_days": _movement_total(db, TransactionType.INWARD, start_30),
        "outward_quantity_last_30_days": _movement_total(db, TransactionType.OUTWARD, start_30),
        "total_inventory_value": Decimal(total_value or 0).quantize(Decimal("0.01")),
        "low_stock_count": low_stock_count,
        "out_of_stock_count": out_of_stock_count,
    }
