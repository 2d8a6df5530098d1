from pydantic import BaseModel
from typing import List
from datetime import datetime
from uuid import UUID

from app.schemas.property import PropertyResponse


class FavoriteCreate(BaseModel):
    """Schema for adding property to favorites"""
    property_id: UUID


class FavoriteResponse(BaseModel):
    """Schema for favorite response"""
    id: UUID
    user_id: UUID
    property_id: UUID
    created_at: datetime

    class Config:
        from_attributes = True


class FavoriteWithProperty(FavoriteResponse):
    """Favorite with the listing it points to"""
    property: PropertyResponse


class FavoriteListResponse(BaseModel):
    items: List[FavoriteWithProperty]
    total: int
    page: int
    page_size: int
    total_pages: int


class FavoriteCheck(BaseModel):
    is_favorited: bool
