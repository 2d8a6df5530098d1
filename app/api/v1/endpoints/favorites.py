from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from app.core.database import get_db
from app.models.user import User
from app.schemas.favorite import (
    FavoriteCreate,
    FavoriteResponse,
    FavoriteWithProperty,
    FavoriteListResponse,
    FavoriteCheck
)
from app.schemas.property import PropertyResponse
from app.services.favorite_service import favorite_service
from app.services.property_service import page_count
from app.api.dependencies import get_current_user

router = APIRouter()


@router.post("", response_model=FavoriteResponse, status_code=status.HTTP_201_CREATED)
async def add_to_favorites(
    favorite_data: FavoriteCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Add property to favorites

    404 when the property does not exist, 409 when it is already a favorite.
    """
    return await favorite_service.add_favorite(db, current_user.id, favorite_data.property_id)


@router.delete("/{property_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_from_favorites(
    property_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Remove property from favorites"""
    await favorite_service.remove_favorite(db, current_user.id, property_id)


@router.get("", response_model=FavoriteListResponse)
async def get_my_favorites(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Get user's favorite properties with pagination

    **Returns:**
    - Favorites with full property details, newest first
    - Total count
    """
    favorites, total = await favorite_service.get_user_favorites(
        db,
        current_user.id,
        (page - 1) * page_size,
        page_size
    )

    items = []
    for fav in favorites:
        prop = PropertyResponse.model_validate(fav.property)
        prop.is_favorite = True
        items.append(FavoriteWithProperty(
            id=fav.id,
            user_id=fav.user_id,
            property_id=fav.property_id,
            created_at=fav.created_at,
            property=prop
        ))

    return FavoriteListResponse(
        items=items,
        total=total,
        page=page,
        page_size=page_size,
        total_pages=page_count(total, page_size)
    )


@router.get("/check/{property_id}", response_model=FavoriteCheck)
async def check_if_favorited(
    property_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Check if property is in user's favorites"""
    is_favorited = await favorite_service.is_favorited(db, current_user.id, property_id)
    return FavoriteCheck(is_favorited=is_favorited)
