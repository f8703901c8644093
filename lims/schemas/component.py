from decimal import Decimal
from pydantic import BaseModel, Field
from datetime import datetime
from typing import List

from lims.database import INT4_MAX
from lims.schemas.category import CategoryResponse
from lims.services.stock_status import StockStatus


class ComponentCreate(BaseModel):
    name: str = Field(..., min_length=1)
    part_number: str = Field(..., min_length=1)
    category_id: int = Field(..., le=INT4_MAX)

    manufacturer: str | None = None
    supplier: str | None = None
    description: str | None = None
    quantity: int = Field(0, ge=0, le=INT4_MAX)
    location_bin: str | None = None

    unit_price: Decimal = Field(
        Decimal("0.00"),
        ge=0,
        lt=100_000_000,
        description="Unit price must be below 100 million"
    )

    datasheet_link: str | None = None
    critical_low_threshold: int | None = Field(None, ge=0, le=INT4_MAX)


class ComponentUpdate(BaseModel):
    name: str | None = Field(None, min_length=1)
    part_number: str | None = Field(None, min_length=1)
    category_id: int | None = Field(None, le=INT4_MAX)
    manufacturer: str | None = None
    supplier: str | None = None
    description: str | None = None
    quantity: int | None = Field(None, ge=0, le=INT4_MAX)
    location_bin: str | None = None
    unit_price: Decimal | None = Field(None, ge=0, lt=100_000_000)
    datasheet_link: str | None = None
    critical_low_threshold: int | None = Field(None, ge=0, le=INT4_MAX)


class CreatorResponse(BaseModel):
    id: int
    first_name: str | None
    last_name: str | None
    email: str

    class Config:
        from_attributes = True


class ComponentResponse(BaseModel):
    id: int
    name: str
    manufacturer: str | None
    supplier: str | None
    part_number: str
    description: str | None
    quantity: int
    location_bin: str | None
    unit_price: Decimal
    datasheet_link: str | None
    critical_low_threshold: int
    stock_status: StockStatus
    category_id: int
    created_by: int
    created_at: datetime
    updated_at: datetime
    last_outward_date: datetime | None

    category: CategoryResponse | None = None
    creator: CreatorResponse | None = None

    class Config:
        from_attributes = True


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class ComponentListResponse(BaseModel):
    components: List[ComponentResponse]
    pagination: Pagination
