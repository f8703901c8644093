# lims/routers/categories.py

import logging

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from lims.database import INT4_MAX, get_db
from lims.core.auth import get_current_user, require_capability
from lims.core.errors import StorageFailure
from lims.core.permissions import Capability
from lims.models.categories import Category
from lims.models.components import Component
from lims.schemas.category import (
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse,
)

router = APIRouter(
    prefix="/categories",
    tags=["Categories"],
)

logger = logging.getLogger("app")

manage_inventory = require_capability(Capability.MANAGE_INVENTORY)


def _get_category_or_404(db: Session, category_id: int) -> Category:
    category = db.query(Category).filter(Category.id == category_id).first()

    if not category:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Category not found",
        )

    return category


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
        logger.exception("Category commit failed")
        raise StorageFailure("Failed to save category") from exc


def _ensure_name_free(db: Session, name: str, exclude_id: int | None = None):
    query = db.query(Category).filter(Category.name == name)

    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)

    if query.first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Category already exists",
        )


@router.get("", response_model=list[CategoryResponse])
def list_categories(
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return db.query(Category).order_by(Category.name.asc()).all()


@router.post(
    "",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_category(
    category_data: CategoryCreate,
    db: Session = Depends(get_db),
    current_user=Depends(manage_inventory),
):
    name = category_data.name.strip()
    _ensure_name_free(db, name)

    category = Category(
        name=name,
        description=category_data.description,
    )

    db.add(category)
    _commit(db, "Category already exists")

    db.refresh(category)
    return category


@router.put("/{category_id}", response_model=CategoryResponse)
def update_category(
    category_data: CategoryUpdate,
    category_id: int = Path(..., ge=1, le=INT4_MAX),
    db: Session = Depends(get_db),
    current_user=Depends(manage_inventory),
):
    category = _get_category_or_404(db, category_id)

    if category_data.name is not None:
        name = category_data.name.strip()
        _ensure_name_free(db, name, exclude_id=category.id)
        category.name = name

    if category_data.description is not None:
        category.description = category_data.description

    _commit(db, "Category already exists")
    db.refresh(category)

    return category


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    category_id: int = Path(..., ge=1, le=INT4_MAX),
    db: Session = Depends(get_db),
    current_user=Depends(manage_inventory),
):
    category = _get_category_or_404(db, category_id)

    in_use = (
        db.query(Component.id)
        .filter(Component.category_id == category.id)
        .first()
    )
    if in_use:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Category still has components",
        )

    # A component added since the check above trips the foreign key
    db.delete(category)
    _commit(db, "Category still has components")

    return None
