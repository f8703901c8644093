# lims/services/accounts.py

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from lims.core.errors import Conflict, StorageFailure
from lims.core.hashing import hash_password
from lims.models.users import User, UserRole

logger = logging.getLogger("app")


def derive_username(db: Session, email: str) -> str:
    base = email.split("@")[0].lower()
    candidate = base
    suffix = 1

    while db.query(User.id).filter(User.username == candidate).first():
        suffix += 1
        candidate = f"{base}{suffix}"

    return candidate


def create_account(
    db: Session,
    email: str,
    password: str,
    username: str | None = None,
    first_name: str | None = None,
    last_name: str | None = None,
    role: UserRole = UserRole.USER,
) -> User:
    email = email.lower().strip()

    if db.query(User.id).filter(User.email == email).first():
        raise Conflict("Email already exists")

    if username:
        username = username.strip()
        if db.query(User.id).filter(User.username == username).first():
            raise Conflict("Username already exists")
    else:
        username = derive_username(db, email)

    user = User(
        username=username,
        email=email,
        password_hash=hash_password(password),
        first_name=first_name,
        last_name=last_name,
        role=UserRole(role).value,
        is_active=True,
    )

    try:
        db.add(user)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("User already exists")
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception(f"Account creation failed for {email}")
        raise StorageFailure("Unable to create account") from exc

    db.refresh(user)
    logger.info(f"Created {user.role} account {user.email}")
    return user
