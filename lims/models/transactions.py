# lims/models/transactions.py

from enum import Enum

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from lims.database import Base


class TransactionType(str, Enum):
    INWARD = "INWARD"
    OUTWARD = "OUTWARD"


class Transaction(Base):
    """One stock movement. Rows are append-only."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)

    type = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False)

    reason = Column(String, nullable=True)
    project = Column(String, nullable=True)
    remarks = Column(Text, nullable=True)

    component_id = Column(Integer, ForeignKey("components.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    component = relationship("Component", back_populates="transactions")
    user = relationship("User")

    __table_args__ = (
        Index("ix_transactions_component_created", "component_id", "created_at"),
        CheckConstraint("type IN ('INWARD', 'OUTWARD')", name="ck_transactions_type_valid"),
        CheckConstraint("quantity > 0", name="ck_transactions_quantity_positive"),
    )
