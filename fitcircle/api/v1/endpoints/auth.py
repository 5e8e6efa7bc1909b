from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from fitcircle.core.database import get_db
from fitcircle.api.deps import get_current_user
from fitcircle.schemas.auth import AuthResponse, LoginRequest
from fitcircle.schemas.user import UserCreate, User
from fitcircle.models.user import User as UserModel
from fitcircle.services.auth import AuthService

router = APIRouter()


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserCreate,
    db: AsyncSession = Depends(get_db)
):
    """Register a new user"""
    auth_service = AuthService(db)
    return await auth_service.register(user_data)


@router.post("/login", response_model=AuthResponse)
async def login(
    login_data: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """Login with email and password"""
    auth_service = AuthService(db)
    return await auth_service.authenticate(login_data.email, login_data.password)


@router.get("/me", response_model=User)
async def get_current_user_profile(
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get current user profile"""
    auth_service = AuthService(db)
    return await auth_service.build_user_response(current_user)


@router.put("/upgrade", response_model=User)
async def upgrade(
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Upgrade the current user to premium"""
    auth_service = AuthService(db)
    return await auth_service.upgrade(current_user)
