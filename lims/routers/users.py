# lims/routers/users.py

import logging

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from lims.database import INT4_MAX, get_db
from lims.core.auth import require_capability
from lims.core.errors import StorageFailure
from lims.core.hashing import hash_password
from lims.core.permissions import Capability
from lims.models.users import User, UserRole
from lims.schemas.user import UserCreate, UserResponse, UserUpdate
from lims.services.accounts import create_account

router = APIRouter(
    prefix="/users",
    tags=["Users"],
)

logger = logging.getLogger("app")

manage_users = require_capability(Capability.MANAGE_USERS)


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )

    return user


def _commit(db: Session):
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User already exists",
        )
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("User commit failed")
        raise StorageFailure("Failed to save user") from exc


@router.get("", response_model=list[UserResponse])
def list_users(
    role: UserRole | None = None,
    is_active: bool | None = None,
    db: Session = Depends(get_db),
    admin=Depends(manage_users),
):
    query = db.query(User)

    if role is not None:
        query = query.filter(User.role == role.value)

    if is_active is not None:
        query = query.filter(User.is_active == is_active)

    return query.order_by(User.created_at.desc(), User.id.desc()).all()


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: int = Path(..., ge=1, le=INT4_MAX),
    db: Session = Depends(get_db),
    admin=Depends(manage_users),
):
    return _get_user_or_404(db, user_id)


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_user(
    user_data: UserCreate,
    db: Session = Depends(get_db),
    admin=Depends(manage_users),
):
    return create_account(
        db,
        email=user_data.email,
        password=user_data.password,
        username=user_data.username,
        first_name=user_data.first_name,
        last_name=user_data.last_name,
        role=user_data.role,
    )


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_data: UserUpdate,
    user_id: int = Path(..., ge=1, le=INT4_MAX),
    db: Session = Depends(get_db),
    admin=Depends(manage_users),
):
    user = _get_user_or_404(db, user_id)

    # An admin locking themselves out leaves nobody to undo it
    if user.id == admin.id:
        if user_data.is_active is False:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You cannot deactivate your own account",
            )
        if user_data.role is not None and user_data.role != UserRole.ADMIN:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You cannot remove your own admin role",
            )

    if user_data.first_name is not None:
        user.first_name = user_data.first_name

    if user_data.last_name is not None:
        user.last_name = user_data.last_name

    if user_data.role is not None:
        user.role = user_data.role.value

    if user_data.is_active is not None:
        user.is_active = user_data.is_active

    if user_data.password:
        user.password_hash = hash_password(user_data.password)

    _commit(db)
    db.refresh(user)

    logger.info(f"User {user.email} updated by {admin.email}")
    return user


@router.delete("/{user_id}")
def deactivate_user(
    user_id: int = Path(..., ge=1, le=INT4_MAX),
    db: Session = Depends(get_db),
    admin=Depends(manage_users),
):
    user = _get_user_or_404(db, user_id)

    if user.id == admin.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot deactivate your own account",
        )

    # Soft delete; transactions keep pointing at the account
    user.is_active = False
    _commit(db)

    logger.info(f"User {user.email} deactivated by {admin.email}")
    return {"message": "User deactivated successfully"}
