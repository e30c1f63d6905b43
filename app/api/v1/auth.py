# app/api/v1/auth.py
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import datetime, timezone
import logging

from ...database import get_async_db
from ...crud.user import get_user_by_email
from ...models.user import User
from ...schemas.user import TokenResponse, UserOut
from ...utils.security import create_access_token, verify_password
from ..deps import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def format_user(user: User) -> UserOut:
    return UserOut(
        id=user.id,
        email=user.email,
        is_active=user.is_active,
        email_verified=user.email_verified,
        roles=sorted(user.role_names),
        last_login=user.last_login,
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_async_db),
):
    """Sign in with email and password, returns a bearer token"""
    email = form_data.username.lower().strip()
    logger.info(f"🔍 Login attempt: {email}")

    user = await get_user_by_email(db, email)

    if not user or not verify_password(form_data.password, user.hashed_password):
        logger.warning(f"❌ Invalid credentials for: {email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Your account has been deactivated"
        )

    if not user.email_verified:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Email address has not been confirmed"
        )

    user.last_login = datetime.now(timezone.utc)
    await db.commit()

    access_token = create_access_token(subject=user.id, roles=user.role_names)

    logger.info(f"✅ Login successful: {email}")
    return TokenResponse(access_token=access_token, user=format_user(user))


@router.get("/me", response_model=UserOut)
async def read_current_user(current_user: User = Depends(get_current_user)):
    return format_user(current_user)
