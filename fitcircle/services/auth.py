import logging
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession

from fitcircle.core.security import create_access_token, decode_token, verify_password
from fitcircle.repositories.user import UserRepository
from fitcircle.schemas.auth import AuthResponse
from fitcircle.schemas.user import User as UserSchema, UserCreate
from fitcircle.models.user import User
from fitcircle.utils.exceptions import AuthenticationError, ConflictError

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db: AsyncSession):
        self.user_repo = UserRepository(db)

    async def build_user_response(self, user: User) -> UserSchema:
        friend_count = await self.user_repo.count_friends(user.id)
        return UserSchema(
            id=user.id,
            name=user.name,
            email=user.email,
            is_premium=user.is_premium,
            created_at=user.created_at,
            updated_at=user.updated_at,
            friend_count=friend_count
        )

    async def _auth_response(self, user: User) -> AuthResponse:
        return AuthResponse(
            access_token=create_access_token(user.id),
            user=await self.build_user_response(user)
        )

    async def register(self, user_data: UserCreate) -> AuthResponse:
        """Register a new user and sign them in"""
        email = user_data.email.strip().lower()

        # Check if user already exists
        if await self.user_repo.get_by_email(email):
            raise ConflictError("An account with this email already exists")

        user = await self.user_repo.create(user_data.name, email, user_data.password)
        if not user:
            raise ConflictError("An account with this email already exists")

        logger.info(f"Registered user {user.id}")
        return await self._auth_response(user)

    async def authenticate(self, email: str, password: str) -> AuthResponse:
        """Authenticate user with email and password"""
        user = await self.user_repo.get_by_email(email)
        if not user or not verify_password(password, user.hashed_password):
            raise AuthenticationError("Invalid email or password")

        return await self._auth_response(user)

    async def get_user_from_token(self, token: Optional[str]) -> Optional[User]:
        """Resolve the user a bearer token was issued to"""
        if not token:
            return None

        payload = decode_token(token)
        if not payload or payload.get("type") != "access":
            return None

        user_id = payload.get("sub")
        if not user_id:
            return None

        try:
            return await self.user_repo.get_by_id(int(user_id))
        except ValueError:
            return None

    async def upgrade(self, user: User) -> UserSchema:
        """Mock payment: mark the user as premium"""
        updated = await self.user_repo.set_premium(user.id, True)
        logger.info(f"User {user.id} upgraded to premium")
        return await self.build_user_response(updated)
