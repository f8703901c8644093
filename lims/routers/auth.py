import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status, Request
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from lims.database import get_db
from lims.models.users import User
from lims.schemas.user import CurrentUserResponse, UserResponse, UserSignup
from lims.core.auth import get_current_user
from lims.core.hashing import verify_password
from lims.core.jwt import create_user_token
from lims.core.permissions import capabilities_for
from lims.core.rate_limiter import limiter
from lims.services.accounts import create_account

router = APIRouter(prefix="/auth", tags=["Authentication"])

logger = logging.getLogger("app")


# ---------------- SIGNUP ----------------
@router.post("/signup", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("3/minute")
def signup(request: Request, user_data: UserSignup, db: Session = Depends(get_db)):
    if user_data.password.isdigit():
        raise HTTPException(
            status_code=400,
            detail="Password cannot be numbers only.",
        )

    # Self-registered accounts always start with the least privileged role
    return create_account(
        db,
        email=user_data.email,
        password=user_data.password,
        first_name=user_data.first_name,
        last_name=user_data.last_name,
    )


# ---------------- LOGIN (TOKEN-BASED) ----------------
@router.post("/login")
@limiter.limit("5/minute")
def login(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    email = form_data.username.lower().strip()
    user = db.query(User).filter(User.email == email).first()

    if not user or not verify_password(form_data.password, user.password_hash):
        logger.warning(f"Failed login for {email}")
        raise HTTPException(status_code=401, detail="Invalid credentials")

    if not user.is_active:
        logger.warning(f"Login attempt on deactivated account {email}")
        raise HTTPException(status_code=401, detail="Account is deactivated")

    user.last_login_at = datetime.now(timezone.utc)
    db.commit()

    return {
        "access_token": create_user_token(user),
        "token_type": "bearer",
    }


# ---------------- CURRENT USER ----------------
@router.get("/me", response_model=CurrentUserResponse)
def me(current_user: User = Depends(get_current_user)):
    profile = UserResponse.model_validate(current_user).model_dump()
    profile["capabilities"] = sorted(capabilities_for(current_user.role))
    return profile


# ---------------- LOGOUT ----------------
@router.post("/logout")
def logout():
    # Tokens are stateless; the client drops its copy
    return {"message": "Logged out successfully"}
