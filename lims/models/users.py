# lims/models/users.py

from enum import Enum

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, String
from sqlalchemy.sql import func

from lims.database import Base


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    LAB_TECHNICIAN = "LAB_TECHNICIAN"
    RESEARCHER = "RESEARCHER"
    MANUFACTURING_ENGINEER = "MANUFACTURING_ENGINEER"
    USER = "USER"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)

    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)

    role = Column(String, nullable=False, default=UserRole.USER.value)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
    last_login_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "role IN ('ADMIN', 'LAB_TECHNICIAN', 'RESEARCHER', 'MANUFACTURING_ENGINEER', 'USER')",
            name="ck_users_role_valid",
        ),
    )

    @property
    def full_name(self):
        return " ".join(part for part in (self.first_name, self.last_name) if part) or self.username
