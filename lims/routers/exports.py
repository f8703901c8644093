from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session, joinedload
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from io import BytesIO

from openpyxl import Workbook
from fastapi.responses import StreamingResponse

from lims.database import get_db
from lims.core.auth import require_capability
from lims.core.permissions import Capability
from lims.core.rate_limiter import limiter
from lims.models.components import Component
from lims.models.transactions import Transaction
from lims.services.stock_status import stock_value

router = APIRouter(prefix="/exports", tags=["Exports"])

view_reports = require_capability(Capability.VIEW_REPORTS)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


# =========================================================
# EXPORT ROUTES
# =========================================================

@router.get("/components")
@limiter.limit("10/minute")
def export_components(
    request: Request,
    db: Session = Depends(get_db),
    current_user=Depends(view_reports),
):
    components = (
        db.query(Component)
        .options(joinedload(Component.category))
        .order_by(Component.part_number.asc())
        .all()
    )

    workbook = Workbook()

    sheet = workbook.active
    sheet.title = "Components"

    sheet.append([
        "Part Number",
        "Name",
        "Category",
        "Manufacturer",
        "Supplier",
        "Location",
        "Quantity",
        "Critical Low Threshold",
        "Status",
        "Unit Price",
        "Stock Value",
        "Last Outward",
    ])

    for component in components:
        sheet.append([
            component.part_number,
            component.name,
            component.category.name if component.category else "",
            component.manufacturer or "",
            component.supplier or "",
            component.location_bin or "",
            component.quantity,
            component.critical_low_threshold,
            component.stock_status.value,
            float(component.unit_price),
            float(Decimal(component.unit_price) * component.quantity),
            _format_date(component.last_outward_date),
        ])

    summary = workbook.create_sheet(title="Summary")
    summary.append(["Generated", datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")])
    summary.append(["Components", len(components)])
    summary.append(["Total Stock Value", float(stock_value(components))])

    today = datetime.now(timezone.utc).date()
    return _stream_workbook(workbook, f"components_{today}.xlsx")


@router.get("/transactions")
@limiter.limit("10/minute")
def export_transactions(
    request: Request,
    days: int = Query(30, ge=1, le=366),
    db: Session = Depends(get_db),
    current_user=Depends(view_reports),
):
    now = datetime.now(timezone.utc)
    since = now - timedelta(days=days)

    transactions = (
        db.query(Transaction)
        .options(
            joinedload(Transaction.component),
            joinedload(Transaction.user),
        )
        .filter(Transaction.created_at >= since)
        .order_by(Transaction.created_at.asc(), Transaction.id.asc())
        .all()
    )

    workbook = Workbook()

    sheet = workbook.active
    sheet.title = "Transactions"

    sheet.append([
        "Date",
        "Transaction ID",
        "Type",
        "Part Number",
        "Component",
        "Quantity",
        "Reason",
        "Project",
        "Remarks",
        "Recorded By",
    ])

    inward = 0
    outward = 0

    for txn in transactions:
        if txn.type == "INWARD":
            inward += txn.quantity
        else:
            outward += txn.quantity

        sheet.append([
            _format_date(txn.created_at),
            txn.id,
            txn.type,
            txn.component.part_number,
            txn.component.name,
            txn.quantity,
            txn.reason or "",
            txn.project or "",
            txn.remarks or "",
            txn.user.full_name,
        ])

    summary = workbook.create_sheet(title="Summary")
    summary.append(["Period", f"{since.date()} to {now.date()}"])
    summary.append([])
    summary.append(["Transactions", len(transactions)])
    summary.append(["Units In", inward])
    summary.append(["Units Out", outward])

    return _stream_workbook(workbook, f"transactions_{since.date()}_to_{now.date()}.xlsx")


# =========================================================
# HELPERS
# =========================================================
def _format_date(value):
    return value.strftime("%Y-%m-%d %H:%M") if value else ""


def _stream_workbook(workbook: Workbook, filename: str):
    output = BytesIO()
    workbook.save(output)
    output.seek(0)

    return StreamingResponse(
        output,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
