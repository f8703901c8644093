# schemas/transaction.py

from pydantic import BaseModel, Field
from datetime import datetime
from typing import List

from lims.database import INT4_MAX
from lims.models.transactions import TransactionType
from lims.schemas.component import Pagination
from lims.schemas.user import UserSummary


class TransactionCreate(BaseModel):
    component_id: int = Field(..., le=INT4_MAX)
    type: TransactionType
    quantity: int = Field(..., le=INT4_MAX)
    reason: str | None = None
    project: str | None = None
    remarks: str | None = None


class TransactionComponent(BaseModel):
    id: int
    name: str
    part_number: str

    class Config:
        from_attributes = True


class TransactionResponse(BaseModel):
    id: int
    type: TransactionType
    quantity: int
    reason: str | None
    project: str | None
    remarks: str | None
    component_id: int
    user_id: int
    created_at: datetime

    component: TransactionComponent
    user: UserSummary

    class Config:
        from_attributes = True


class TransactionListResponse(BaseModel):
    transactions: List[TransactionResponse]
    pagination: Pagination
