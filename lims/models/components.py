# lims/models/components.py

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from lims.database import Base
from lims.services.stock_status import stock_status


class Component(Base):
    __tablename__ = "components"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    manufacturer = Column(String, nullable=True)
    supplier = Column(String, nullable=True)
    part_number = Column(String, unique=True, index=True, nullable=False)
    description = Column(Text, nullable=True)

    quantity = Column(Integer, nullable=False, default=0)
    location_bin = Column(String, nullable=True)
    unit_price = Column(Numeric(10, 2), nullable=False, default=0)
    datasheet_link = Column(String, nullable=True)
    critical_low_threshold = Column(Integer, nullable=False, default=10)

    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
    last_outward_date = Column(DateTime(timezone=True), nullable=True)

    category = relationship("Category", back_populates="components")
    creator = relationship("User")
    transactions = relationship("Transaction", back_populates="component")

    __table_args__ = (
        Index("ix_components_quantity", "quantity"),
        Index("ix_components_last_outward_date", "last_outward_date"),
        CheckConstraint("quantity >= 0", name="ck_components_quantity_non_negative"),
        CheckConstraint("unit_price >= 0", name="ck_components_unit_price_non_negative"),
        CheckConstraint(
            "critical_low_threshold >= 0",
            name="ck_components_threshold_non_negative",
        ),
    )

    @property
    def stock_status(self):
        return stock_status(self.quantity, self.critical_low_threshold)
