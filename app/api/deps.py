# app/api/deps.py
from typing import Callable
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from jose import JWTError, ExpiredSignatureError
import logging
from ..database import get_async_db
from ..crud.user import get_user
from ..utils.security import decode_access_token
from ..models.user import User, RoleName

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    db: AsyncSession = Depends(get_async_db),
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> User:
    """
    Get current authenticated user from JWT token.
    Missing, expired and invalid tokens all answer 401.
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")

    try:
        payload = decode_access_token(credentials.credentials)
        user_id = int(payload.get("sub"))
    except ExpiredSignatureError:
        raise _unauthorized("Token has expired")
    except (JWTError, TypeError, ValueError):
        raise _unauthorized("Could not validate credentials")

    user = await get_user(db, user_id)

    if user is None:
        raise _unauthorized("User not found")

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user"
        )

    return user


def require_role(*roles: str) -> Callable:
    """
    Build a guard that lets a request through only when the signed-in
    user holds at least one of `roles`.

    Usage:
        admin_router = APIRouter(dependencies=[Depends(require_role("Admin"))])
    """
    async def role_guard(current_user: User = Depends(get_current_user)) -> User:
        if not current_user.role_names.intersection(roles):
            logger.warning(
                f"User {current_user.email} denied, requires one of roles {list(roles)}"
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not enough permissions"
            )
        return current_user

    return role_guard


require_admin = require_role(RoleName.ADMIN.value)
