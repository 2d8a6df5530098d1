from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import create_access_token, create_refresh_token, decode_token
from app.core.rate_limiting import limiter, RateLimits
from app.core.exceptions import (
    InvalidCredentialsException,
    InactiveUserException,
    InvalidTokenException,
)
from app.models.user import User
from app.schemas.user import (
    UserCreate,
    UserLogin,
    UserResponse,
    SocialLoginRequest,
    SocialLoginResponse,
    Token,
    RefreshTokenRequest,
    Message
)
from app.services.user_service import user_service
from app.api.dependencies import get_current_user

router = APIRouter()


def _issue_tokens(user: User) -> Token:
    return Token(
        access_token=create_access_token(subject=str(user.id)),
        refresh_token=create_refresh_token(subject=str(user.id)),
        token_type="bearer"
    )


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(RateLimits.AUTH_REGISTER)
async def register(
        request: Request,
        user_data: UserCreate,
        db: AsyncSession = Depends(get_db)
):
    """
    Register a new user

    - **name**: Display name
    - **email**: Valid email address
    - **password**: Minimum 8 characters, must contain uppercase, lowercase, and digit
    - **password_confirm**: Must match password
    - **role**: user (default) or agent
    """
    return await user_service.create_user(db, user_data)


@router.post("/login", response_model=Token)
@limiter.limit(RateLimits.AUTH_LOGIN)
async def login(
        request: Request,
        credentials: UserLogin,
        db: AsyncSession = Depends(get_db)
):
    """
    Login with email and password

    Returns access token and refresh token
    """
    user = await user_service.authenticate(db, credentials.email, credentials.password)

    if not user:
        raise InvalidCredentialsException()
    if not user.is_active:
        raise InactiveUserException()

    return _issue_tokens(user)


@router.post("/social-login", response_model=SocialLoginResponse)
@limiter.limit(RateLimits.AUTH_SOCIAL_LOGIN)
async def social_login(
        request: Request,
        identity: SocialLoginRequest,
        db: AsyncSession = Depends(get_db)
):
    """
    Sign in with a federated identity (google, facebook, apple)

    Only the exact provider identity signs in to an existing account. An
    unknown identity creates a new account; 409 if its email is already
    registered.
    """
    user, created = await user_service.social_login(db, identity)
    if not user.is_active:
        raise InactiveUserException()

    tokens = _issue_tokens(user)
    return SocialLoginResponse(
        **tokens.model_dump(),
        user=UserResponse.model_validate(user),
        created=created
    )


@router.post("/refresh", response_model=Token)
async def refresh_token(
        token_data: RefreshTokenRequest,
        db: AsyncSession = Depends(get_db)
):
    """
    Refresh access token using refresh token

    - **refresh_token**: Valid refresh token
    """
    payload = decode_token(token_data.refresh_token)
    if not payload:
        raise InvalidTokenException("Invalid refresh token")

    if payload.get("type") != "refresh":
        raise InvalidTokenException("Invalid token type")

    user_id_str = payload.get("sub")
    if not user_id_str:
        raise InvalidTokenException()

    try:
        user_id = UUID(user_id_str)
    except ValueError:
        raise InvalidTokenException("Invalid user ID in token")

    user = await user_service.get_by_id(db, user_id)
    if not user or not user.is_active:
        raise InvalidTokenException("User not found or inactive")

    return _issue_tokens(user)


@router.post("/logout", response_model=Message)
async def logout(current_user: User = Depends(get_current_user)):
    """
    Logout endpoint

    JWT tokens are stateless, so logout is handled client-side
    by discarding the tokens.
    """
    return Message(message="Successfully logged out")


@router.get("/me", response_model=UserResponse)
async def read_me(current_user: User = Depends(get_current_user)):
    """Get the authenticated user"""
    return current_user
