"""
API middleware for identity and common concerns.
Centralized authentication enforcement for all protected routes.
"""

from typing import Optional
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from careflow.db.session import get_db
from careflow.db.repositories.user_repository import UserRepository
from careflow.models.user import User

USER_HEADER = "X-User-Id"


async def require_authentication(
    x_user_id: Optional[str] = Header(None, alias=USER_HEADER),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Resolve the calling user from the identity header.
    
    Usage:
        @router.get("/endpoint")
        async def my_endpoint(
            current_user: User = Depends(require_authentication)
        ):
            ...
    
    Raises:
        HTTPException: 401 when the header is missing or names no user,
            403 when the user is deactivated
    """
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing {USER_HEADER} header",
        )
    
    try:
        user_id = UUID(x_user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid {USER_HEADER} header",
        )
    
    user = await UserRepository(db).get(user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive",
        )
    
    return user
