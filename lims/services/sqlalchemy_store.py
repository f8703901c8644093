# lims/services/sqlalchemy_store.py

import logging
from datetime import datetime

from fastapi import Depends
from sqlalchemy import or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from lims.core.errors import StorageFailure
from lims.database import INT4_MAX, get_db
from lims.models.components import Component
from lims.models.transactions import Transaction
from lims.services.ledger import StockLedger, StockStore

logger = logging.getLogger("app")


class SqlAlchemyStockStore(StockStore):
    def __init__(self, db: Session):
        self.db = db

    def apply_movement(self, component_id, delta, moved_at, outward):
        values = {
            "quantity": Component.quantity + delta,
            "updated_at": moved_at,
        }
        if outward:
            values["last_outward_date"] = moved_at

        # Check and apply in one statement; the row lock it takes
        # serialises concurrent movements on the same component.
        # Bounds are compared against the bare column so the check itself
        # cannot overflow an int4.
        stmt = (
            update(Component)
            .where(
                Component.id == component_id,
                Component.quantity >= -delta,
                Component.quantity <= INT4_MAX - delta,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )

        try:
            result = self.db.execute(stmt)
        except SQLAlchemyError as exc:
            logger.exception(f"Stock update failed for component {component_id}")
            raise StorageFailure("Failed to record transaction") from exc

        return result.rowcount == 1

    def get_component(self, component_id):
        try:
            return self.db.get(Component, component_id, populate_existing=True)
        except SQLAlchemyError as exc:
            logger.exception(f"Component lookup failed for {component_id}")
            raise StorageFailure("Failed to record transaction") from exc

    def add_transaction(
        self,
        *,
        component_id,
        type,
        quantity,
        actor_id,
        reason,
        project,
        remarks,
        created_at,
    ):
        transaction = Transaction(
            type=type,
            quantity=quantity,
            reason=reason,
            project=project,
            remarks=remarks,
            component_id=component_id,
            user_id=actor_id,
            created_at=created_at,
        )
        self.db.add(transaction)

        try:
            self.db.flush()
        except SQLAlchemyError as exc:
            logger.exception(f"Transaction insert failed for component {component_id}")
            raise StorageFailure("Failed to record transaction") from exc

        return transaction

    def commit(self):
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            logger.exception("Commit of stock transaction failed")
            raise StorageFailure("Failed to record transaction") from exc

    def rollback(self):
        self.db.rollback()

    def stock_alert_candidates(self):
        try:
            return (
                self.db.query(Component)
                .options(joinedload(Component.category))
                .filter(Component.quantity <= Component.critical_low_threshold)
                .all()
            )
        except SQLAlchemyError as exc:
            logger.exception("Low stock query failed")
            raise StorageFailure("Failed to fetch low stock analytics") from exc

    def old_stock_candidates(self, stale_since: datetime):
        try:
            return (
                self.db.query(Component)
                .options(joinedload(Component.category))
                .filter(
                    Component.quantity > 0,
                    or_(
                        Component.last_outward_date.is_(None),
                        Component.last_outward_date < stale_since,
                    ),
                )
                .all()
            )
        except SQLAlchemyError as exc:
            logger.exception("Old stock query failed")
            raise StorageFailure("Failed to fetch old stock analytics") from exc

    def list_transactions(self, offset, limit, component_id=None, type=None):
        query = self.db.query(Transaction)

        if component_id is not None:
            query = query.filter(Transaction.component_id == component_id)

        if type is not None:
            query = query.filter(Transaction.type == type)

        try:
            total = query.count()
            transactions = (
                query
                .options(
                    joinedload(Transaction.component),
                    joinedload(Transaction.user),
                )
                .order_by(Transaction.created_at.desc(), Transaction.id.desc())
                .offset(offset)
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as exc:
            logger.exception("Transaction listing failed")
            raise StorageFailure("Failed to fetch transactions") from exc

        return transactions, total


def get_stock_ledger(db: Session = Depends(get_db)) -> StockLedger:
    return StockLedger(SqlAlchemyStockStore(db))
