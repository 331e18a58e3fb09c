"""
Authentication API routes.
"""
from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm
from sqlmodel.ext.asyncio.session import AsyncSession

from chatpad.database import get_session
from chatpad.services.auth_service import AuthService
from chatpad.services.access_service import AccessService
from chatpad.schemas.auth import RegisterRequest, RegisterResponse, TokenResponse, UserResponse
from chatpad.repositories.user_repo import ProfileRepository
from chatpad.api.deps import get_current_user
from chatpad.models.user import User

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    request: RegisterRequest,
    session: AsyncSession = Depends(get_session)
):
    """Register a new user. With an invitation token the user joins that team."""
    auth_service = AuthService(session)
    return await auth_service.register(
        email=request.email,
        password=request.password,
        display_name=request.display_name,
        company_name=request.company_name,
        invitation_token=request.invitation_token
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    session: AsyncSession = Depends(get_session)
):
    """Login and get an access token."""
    auth_service = AuthService(session)
    return await auth_service.login(
        email=form_data.username,
        password=form_data.password
    )


@router.get("/me", response_model=UserResponse)
async def get_me(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Get current user info with resolved account."""
    access = AccessService(session)
    profile = await ProfileRepository(session).get_by_user_id(current_user.id)

    return UserResponse(
        id=current_user.id,
        email=current_user.email,
        display_name=profile.display_name if profile else None,
        account_id=await access.resolve_account_id(current_user.id),
        platform_role=await access.get_platform_role(current_user.id),
        created_at=current_user.created_at,
        last_login_at=current_user.last_login_at
    )
