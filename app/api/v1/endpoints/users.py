from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from app.core.database import get_db
from app.core.exceptions import UserNotFoundException
from app.models.user import User
from app.schemas.user import (
    UserResponse,
    UserListResponse,
    UserUpdate,
    AdminUserUpdate,
    PasswordChange,
    RegistrationStats,
    Message
)
from app.services.user_service import user_service
from app.services.property_service import page_count
from app.api.dependencies import get_current_user, require_admin

router = APIRouter()


@router.get("/me", response_model=UserResponse)
async def get_current_user_profile(
        current_user: User = Depends(get_current_user)
):
    """
    Get current user's profile

    Requires authentication
    """
    return current_user


@router.put("/me", response_model=UserResponse)
async def update_current_user_profile(
        user_data: UserUpdate,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db)
):
    """
    Update current user's profile

    - **name**: Display name
    """
    return await user_service.update_profile(db, current_user, user_data)


@router.post("/me/change-password", response_model=Message)
async def change_password(
        password_data: PasswordChange,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db)
):
    """
    Change current user's password

    - **current_password**: Current password for verification
    - **new_password**: New password (min 8 chars)
    - **new_password_confirm**: Must match new_password
    """
    await user_service.change_password(
        db,
        current_user,
        password_data.current_password,
        password_data.new_password
    )

    return Message(message="Password changed successfully")


# ==========================================
# ADMIN ROUTES
# ==========================================

@router.get("/stats/registrations", response_model=RegistrationStats)
async def registration_stats(
        admin: User = Depends(require_admin),
        db: AsyncSession = Depends(get_db)
):
    """Daily registrations by sign-up method over the last 30 days"""
    days = await user_service.registration_stats(db)
    return RegistrationStats(days=days)


@router.get("", response_model=UserListResponse)
async def list_users(
        page: int = Query(1, ge=1),
        page_size: int = Query(20, ge=1, le=100),
        admin: User = Depends(require_admin),
        db: AsyncSession = Depends(get_db)
):
    """All users, newest first"""
    users, total = await user_service.list_users(db, (page - 1) * page_size, page_size)
    return UserListResponse(
        items=[UserResponse.model_validate(user) for user in users],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=page_count(total, page_size)
    )


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
        user_id: UUID,
        admin: User = Depends(require_admin),
        db: AsyncSession = Depends(get_db)
):
    user = await user_service.get_by_id(db, user_id)
    if not user:
        raise UserNotFoundException(user_id=user_id)
    return user


@router.put("/{user_id}", response_model=UserResponse)
async def replace_user(
        user_id: UUID,
        user_data: AdminUserUpdate,
        admin: User = Depends(require_admin),
        db: AsyncSession = Depends(get_db)
):
    """Replace a user's name, email and role"""
    return await user_service.replace_user(db, user_id, user_data)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
        user_id: UUID,
        admin: User = Depends(require_admin),
        db: AsyncSession = Depends(get_db)
):
    """Permanently delete a user and their favorites"""
    await user_service.delete_user(db, user_id)
