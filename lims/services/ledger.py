# =========================================================
# STOCK LEDGER
#
# Owns component quantities and the append-only transaction
# log. Every movement is applied by the store as a single
# conditional update, so concurrent OUTWARD requests for the
# same component can never push its quantity below zero, and
# the transaction row is only written when the update landed.
#
# The ledger only talks to a StockStore; swapping the backing
# store never changes the rules below.
# =========================================================

import logging
import math
from abc import ABC, abstractmethod
from datetime import datetime, timezone

from lims.core.errors import (
    ComponentNotFound,
    InsufficientStock,
    InventoryError,
    ValidationError,
)
from lims.database import INT4_MAX
from lims.models.transactions import TransactionType
from lims.services.stock_status import partition_low_stock, sort_old_stock, stock_value

logger = logging.getLogger("app")


class StockStore(ABC):
    """Storage adapter used by the ledger. Calls share one unit of work until commit/rollback."""

    @abstractmethod
    def apply_movement(self, component_id: int, delta: int, moved_at: datetime, outward: bool) -> bool:
        """
        Add ``delta`` to the component quantity unless the result would fall
        outside ``0..INT4_MAX``.

        Returns False when no row was changed (component missing, not enough
        stock, or the stock ceiling reached).
        OUTWARD movements also stamp ``last_outward_date`` with ``moved_at``.
        """

    @abstractmethod
    def get_component(self, component_id: int):
        ...

    @abstractmethod
    def add_transaction(
        self,
        *,
        component_id: int,
        type: str,
        quantity: int,
        actor_id: int,
        reason: str | None,
        project: str | None,
        remarks: str | None,
        created_at: datetime,
    ):
        ...

    @abstractmethod
    def commit(self) -> None:
        ...

    @abstractmethod
    def rollback(self) -> None:
        ...

    @abstractmethod
    def stock_alert_candidates(self) -> list:
        """Components whose quantity is at or below their critical-low threshold."""

    @abstractmethod
    def old_stock_candidates(self, stale_since: datetime) -> list:
        """Components in stock that were never outwarded or not since ``stale_since``."""

    @abstractmethod
    def list_transactions(
        self,
        offset: int,
        limit: int,
        component_id: int | None = None,
        type: str | None = None,
    ) -> tuple[list, int]:
        ...


class StockLedger:
    def __init__(self, store: StockStore):
        self.store = store

    # -----------------------------------------------------
    # RECORD A MOVEMENT
    # -----------------------------------------------------
    def record_transaction(
        self,
        component_id,
        type,
        quantity,
        actor_id: int,
        reason: str | None = None,
        project: str | None = None,
        remarks: str | None = None,
    ):
        component_id = _require_id(component_id)
        txn_type = _parse_type(type)
        quantity = _require_positive_quantity(quantity)

        outward = txn_type == TransactionType.OUTWARD
        delta = -quantity if outward else quantity
        moved_at = datetime.now(timezone.utc)

        try:
            applied = self.store.apply_movement(component_id, delta, moved_at, outward)

            if not applied:
                component = self.store.get_component(component_id)
                if component is None:
                    raise ComponentNotFound(component_id)
                if not outward:
                    raise ValidationError(
                        f"Stock cannot exceed {INT4_MAX}. Available: {component.quantity}, "
                        f"Requested: {quantity}"
                    )
                raise InsufficientStock(available=component.quantity, requested=quantity)

            transaction = self.store.add_transaction(
                component_id=component_id,
                type=txn_type.value,
                quantity=quantity,
                actor_id=actor_id,
                reason=_clean(reason),
                project=_clean(project),
                remarks=_clean(remarks),
                created_at=moved_at,
            )
            self.store.commit()

        except InsufficientStock as exc:
            self.store.rollback()
            logger.warning(
                f"Rejected OUTWARD of {exc.requested} on component {component_id} "
                f"(available {exc.available}) by user {actor_id}"
            )
            raise

        except InventoryError:
            self.store.rollback()
            raise

        logger.info(
            f"Recorded {txn_type.value} of {quantity} on component {component_id} "
            f"by user {actor_id} (transaction {transaction.id})"
        )
        return transaction

    # -----------------------------------------------------
    # QUERIES
    # -----------------------------------------------------
    def list_low_stock(self) -> dict:
        low_stock, out_of_stock = partition_low_stock(self.store.stock_alert_candidates())

        return {
            "low_stock": low_stock,
            "out_of_stock": out_of_stock,
            "summary": {
                "low_stock_count": len(low_stock),
                "out_of_stock_count": len(out_of_stock),
                "total_critical": len(low_stock) + len(out_of_stock),
            },
        }

    def list_old_stock(self, stale_since: datetime) -> dict:
        old_stock = sort_old_stock(self.store.old_stock_candidates(stale_since))

        return {
            "old_stock": old_stock,
            "summary": {
                "count": len(old_stock),
                "total_value": stock_value(old_stock),
                "stale_since": stale_since,
            },
        }

    def list_transactions(
        self,
        page: int = 1,
        limit: int = 10,
        component_id: int | None = None,
        type=None,
    ) -> dict:
        if page < 1:
            raise ValidationError("Page must be 1 or greater")
        if limit < 1:
            raise ValidationError("Limit must be 1 or greater")

        txn_type = _parse_type(type).value if type is not None else None

        transactions, total = self.store.list_transactions(
            offset=(page - 1) * limit,
            limit=limit,
            component_id=component_id,
            type=txn_type,
        )

        return {
            "transactions": transactions,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "pages": math.ceil(total / limit),
            },
        }


# =========================================================
# INPUT CHECKS
# =========================================================
def _require_id(component_id) -> int:
    if component_id is None or component_id == "":
        raise ValidationError("Component ID, type, and quantity are required")
    if isinstance(component_id, bool):
        raise ValidationError("Component ID must be an integer")
    try:
        component_id = int(component_id)
    except (TypeError, ValueError):
        raise ValidationError("Component ID must be an integer")
    if not 1 <= component_id <= INT4_MAX:
        raise ValidationError("Component ID is out of range")
    return component_id


def _parse_type(value) -> TransactionType:
    if value is None or value == "":
        raise ValidationError("Component ID, type, and quantity are required")
    try:
        return TransactionType(value)
    except ValueError:
        raise ValidationError("Transaction type must be INWARD or OUTWARD")


def _require_positive_quantity(quantity) -> int:
    if quantity is None:
        raise ValidationError("Component ID, type, and quantity are required")
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError("Quantity must be a whole number")
    if quantity <= 0:
        raise ValidationError("Quantity must be greater than zero")
    if quantity > INT4_MAX:
        raise ValidationError(f"Quantity cannot exceed {INT4_MAX}")
    return quantity


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None
