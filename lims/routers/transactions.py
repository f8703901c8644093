# =========================================================
# TRANSACTIONS ROUTER
#
# Every stock movement goes through the StockLedger; this
# router only binds the acting user from the bearer token.
# =========================================================

from fastapi import APIRouter, Depends, Query, Request, status

from lims.database import INT4_MAX
from lims.core.auth import require_capability
from lims.core.permissions import Capability
from lims.core.rate_limiter import limiter
from lims.models.transactions import TransactionType
from lims.schemas.transaction import (
    TransactionCreate,
    TransactionListResponse,
    TransactionResponse,
)
from lims.services.ledger import StockLedger
from lims.services.sqlalchemy_store import get_stock_ledger

router = APIRouter(prefix="/transactions", tags=["Transactions"])

record_transactions = require_capability(Capability.RECORD_TRANSACTIONS)


@router.post("", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("60/minute")
def create_transaction(
    request: Request,
    transaction_data: TransactionCreate,
    ledger: StockLedger = Depends(get_stock_ledger),
    current_user=Depends(record_transactions),
):
    return ledger.record_transaction(
        component_id=transaction_data.component_id,
        type=transaction_data.type,
        quantity=transaction_data.quantity,
        actor_id=current_user.id,
        reason=transaction_data.reason,
        project=transaction_data.project,
        remarks=transaction_data.remarks,
    )


@router.get("", response_model=TransactionListResponse)
def list_transactions(
    page: int = Query(1, ge=1, le=INT4_MAX),
    limit: int = Query(10, ge=1, le=100),
    component_id: int | None = Query(None, ge=1, le=INT4_MAX),
    type: TransactionType | None = None,
    ledger: StockLedger = Depends(get_stock_ledger),
    current_user=Depends(record_transactions),
):
    return ledger.list_transactions(
        page=page,
        limit=limit,
        component_id=component_id,
        type=type,
    )
