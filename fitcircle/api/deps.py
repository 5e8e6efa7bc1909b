from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from fitcircle.core.database import get_db
from fitcircle.models.user import User
from fitcircle.services.auth import AuthService
from fitcircle.utils.exceptions import AuthenticationError

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Resolve the caller from the bearer token or fail as unauthenticated"""
    if credentials is None:
        raise AuthenticationError("No authentication token provided")

    user = await AuthService(db).get_user_from_token(credentials.credentials)
    if not user:
        raise AuthenticationError("Invalid or expired token")

    return user
