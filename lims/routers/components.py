# lims/routers/components.py

import logging
import math

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from lims.database import INT4_MAX, get_db
from lims.core.auth import get_current_user, require_capability
from lims.core.config import settings
from lims.core.errors import StorageFailure
from lims.core.permissions import Capability
from lims.models.categories import Category
from lims.models.components import Component
from lims.models.transactions import Transaction
from lims.schemas.component import (
    ComponentCreate,
    ComponentUpdate,
    ComponentResponse,
    ComponentListResponse,
)

router = APIRouter(
    prefix="/components",
    tags=["Components"],
)

logger = logging.getLogger("app")

manage_inventory = require_capability(Capability.MANAGE_INVENTORY)


def _ensure_category_exists(db: Session, category_id: int):
    if not db.query(Category.id).filter(Category.id == category_id).first():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Selected category does not exist (ID: {category_id})",
        )


def _ensure_part_number_free(db: Session, part_number: str):
    if db.query(Component.id).filter(Component.part_number == part_number).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Part number already exists",
        )


def _commit(db: Session, conflict_detail: str):
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=conflict_detail,
        )
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Component commit failed")
        raise StorageFailure("Failed to save component") from exc


def _load_component(db: Session, component_id: int) -> Component | None:
    return (
        db.query(Component)
        .options(
            joinedload(Component.category),
            joinedload(Component.creator),
        )
        .filter(Component.id == component_id)
        .first()
    )


@router.get("", response_model=ComponentListResponse)
def list_components(
    category: str | None = None,
    search: str | None = None,
    min_quantity: int | None = Query(None, ge=0, le=INT4_MAX),
    max_quantity: int | None = Query(None, ge=0, le=INT4_MAX),
    location: str | None = None,
    page: int = Query(1, ge=1, le=INT4_MAX),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    query = db.query(Component)

    if category and category != "all":
        if not category.isdigit() or int(category) > INT4_MAX:
            raise HTTPException(status_code=400, detail="Invalid category filter")
        query = query.filter(Component.category_id == int(category))

    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(
                Component.name.ilike(pattern),
                Component.part_number.ilike(pattern),
                Component.description.ilike(pattern),
                Component.manufacturer.ilike(pattern),
                Component.supplier.ilike(pattern),
            )
        )

    if min_quantity is not None:
        query = query.filter(Component.quantity >= min_quantity)

    if max_quantity is not None:
        query = query.filter(Component.quantity <= max_quantity)

    if location:
        query = query.filter(Component.location_bin.ilike(f"%{location.strip()}%"))

    total = query.count()

    components = (
        query
        .options(
            joinedload(Component.category),
            joinedload(Component.creator),
        )
        .order_by(Component.created_at.desc(), Component.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return {
        "components": components,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit),
        },
    }


@router.get("/{component_id}", response_model=ComponentResponse)
def get_component(
    component_id: int = Path(..., ge=1, le=INT4_MAX),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    component = _load_component(db, component_id)

    if not component:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Component not found",
        )

    return component


@router.post(
    "",
    response_model=ComponentResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_component(
    component_data: ComponentCreate,
    db: Session = Depends(get_db),
    current_user=Depends(manage_inventory),
):
    part_number = component_data.part_number.strip()

    _ensure_category_exists(db, component_data.category_id)
    _ensure_part_number_free(db, part_number)

    threshold = component_data.critical_low_threshold
    if threshold is None:
        threshold = settings.DEFAULT_CRITICAL_LOW_THRESHOLD

    component = Component(
        name=component_data.name.strip(),
        manufacturer=component_data.manufacturer,
        supplier=component_data.supplier,
        part_number=part_number,
        description=component_data.description,
        quantity=component_data.quantity,
        location_bin=component_data.location_bin,
        unit_price=component_data.unit_price,
        datasheet_link=component_data.datasheet_link,
        critical_low_threshold=threshold,
        category_id=component_data.category_id,
        created_by=current_user.id,
    )

    db.add(component)
    _commit(db, "Part number already exists")

    logger.info(f"Component {part_number} created by {current_user.email}")
    return _load_component(db, component.id)


@router.put("/{component_id}", response_model=ComponentResponse)
def update_component(
    component_data: ComponentUpdate,
    component_id: int = Path(..., ge=1, le=INT4_MAX),
    db: Session = Depends(get_db),
    current_user=Depends(manage_inventory),
):
    # Row lock keeps a direct quantity edit from racing a ledger movement
    component = (
        db.query(Component)
        .filter(Component.id == component_id)
        .with_for_update()
        .first()
    )

    if not component:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Component not found",
        )

    if component_data.part_number is not None:
        part_number = component_data.part_number.strip()
        if part_number != component.part_number:
            _ensure_part_number_free(db, part_number)
        component.part_number = part_number

    if component_data.category_id is not None:
        _ensure_category_exists(db, component_data.category_id)
        component.category_id = component_data.category_id

    if component_data.name is not None:
        component.name = component_data.name.strip()

    for field in (
        "manufacturer",
        "supplier",
        "description",
        "location_bin",
        "datasheet_link",
        "unit_price",
        "critical_low_threshold",
    ):
        value = getattr(component_data, field)
        if value is not None:
            setattr(component, field, value)

    if component_data.quantity is not None and component_data.quantity != component.quantity:
        logger.info(
            f"Quantity override on {component.part_number}: "
            f"{component.quantity} -> {component_data.quantity} by {current_user.email}"
        )
        component.quantity = component_data.quantity

    _commit(db, "Part number already exists")

    return _load_component(db, component_id)


@router.delete("/{component_id}")
def delete_component(
    component_id: int = Path(..., ge=1, le=INT4_MAX),
    db: Session = Depends(get_db),
    current_user=Depends(manage_inventory),
):
    component = db.query(Component).filter(Component.id == component_id).first()

    if not component:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Component not found",
        )

    # The ledger is append-only, so referenced components stay
    has_history = (
        db.query(Transaction.id)
        .filter(Transaction.component_id == component.id)
        .first()
    )
    if has_history:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Component has recorded transactions and cannot be deleted",
        )

    part_number = component.part_number
    db.delete(component)
    _commit(db, "Component has recorded transactions and cannot be deleted")

    logger.info(f"Component {part_number} deleted by {current_user.email}")
    return {"message": "Component deleted successfully"}
