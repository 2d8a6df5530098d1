from fastapi import APIRouter, Depends, status, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID
from typing import Optional, List

from app.core.database import get_db
from app.models.user import User
from app.schemas.property import (
    PropertyCreate,
    PropertyUpdate,
    PropertyResponse,
    PropertyListResponse,
    PropertySearchResponse,
)
from app.schemas.search import QUERY_KEYS
from app.services.property_service import property_service, page_count
from app.services.property_repository import SqlPropertyRepository
from app.services.favorite_service import favorite_service
from app.api.dependencies import get_current_user_optional, require_agent

router = APIRouter()

PAGING_KEYS = {"page", "pageSize"}


async def _mark_favorites(
        db: AsyncSession,
        viewer: Optional[User],
        items: List[PropertyResponse]
) -> List[PropertyResponse]:
    """Set is_favorite on each item for the viewer (always false anonymously)"""
    if viewer is None or not items:
        return items
    favorited = await favorite_service.favorited_ids(db, viewer.id, [item.id for item in items])
    for item in items:
        item.is_favorite = item.id in favorited
    return items


async def _respond(db, viewer, properties) -> List[PropertyResponse]:
    items = [PropertyResponse.model_validate(prop) for prop in properties]
    return await _mark_favorites(db, viewer, items)


# ==========================================
# SPECIFIC ROUTES (MUST COME FIRST)
# ==========================================

@router.get("/search", response_model=PropertySearchResponse)
async def search_properties(
        request: Request,
        location: Optional[str] = Query(None, description="Substring of location, state, area or title"),
        state: Optional[str] = Query(None, description="Exact state (case-insensitive)"),
        area: Optional[str] = Query(None, description="Exact area (case-insensitive)"),
        property_type: Optional[str] = Query(None, alias="propertyType"),
        listing_status: Optional[str] = Query(None, alias="status", description="sale or rent"),
        min_price: Optional[str] = Query(None, alias="minPrice"),
        max_price: Optional[str] = Query(None, alias="maxPrice"),
        bedrooms: Optional[str] = Query(None, description="Minimum bedrooms: N, N+ or any"),
        bathrooms: Optional[str] = Query(None, description="Minimum bathrooms: N, N+ or any"),
        amenities: Optional[List[str]] = Query(None, description="Repeat the key or comma-separate"),
        sort_by: Optional[str] = Query(None, alias="sortBy", description="newest, oldest, price_asc, price_desc"),
        page: int = Query(1, description="Page number"),
        page_size: Optional[int] = Query(None, alias="pageSize", description="Results per page"),
        db: AsyncSession = Depends(get_db),
        current_user: Optional[User] = Depends(get_current_user_optional)
):
    """
    **Property search**

    All supplied filters must match (logical AND). Missing or empty
    parameters impose no constraint.

    - **location**: case-insensitive substring of location, state, area or title
    - **state**, **area**: case-insensitive exact match
    - **propertyType**: house, apartment, duplex, land, ...
    - **status**: sale or rent (also "for sale", "for rent")
    - **minPrice**, **maxPrice**: inclusive price bounds
    - **bedrooms**, **bathrooms**: at least N ("3", "3+"), or "any"
    - **amenities**: listing must have every requested amenity
    - **sortBy**: newest (default), oldest, price_asc, price_desc

    Uninterpretable values return 400 INVALID_SEARCH_QUERY. No match returns
    an empty page with total 0.
    """
    raw = {
        "location": location,
        "state": state,
        "area": area,
        "propertyType": property_type,
        "status": listing_status,
        "minPrice": min_price,
        "maxPrice": max_price,
        "bedrooms": bedrooms,
        "bathrooms": bathrooms,
        "amenities": amenities,
        "sortBy": sort_by,
    }
    # Undeclared keys are passed through so they are rejected, not ignored
    for key in request.query_params.keys():
        if key not in QUERY_KEYS and key not in PAGING_KEYS:
            raw[key] = request.query_params.get(key)

    results = await property_service.search_listings(
        SqlPropertyRepository(db),
        raw,
        page=page,
        page_size=page_size
    )
    await _mark_favorites(db, current_user, results.items)
    return results


@router.get("/featured", response_model=List[PropertyResponse])
async def get_featured_properties(
        db: AsyncSession = Depends(get_db),
        current_user: Optional[User] = Depends(get_current_user_optional)
):
    """Featured listings, newest first"""
    properties = await property_service.get_featured(db)
    return await _respond(db, current_user, properties)


@router.get("/recent", response_model=List[PropertyResponse])
async def get_recent_properties(
        db: AsyncSession = Depends(get_db),
        current_user: Optional[User] = Depends(get_current_user_optional)
):
    """Most recently created listings"""
    properties = await property_service.get_recent(db)
    return await _respond(db, current_user, properties)


@router.get("", response_model=PropertyListResponse)
async def list_properties(
        page: int = Query(1, ge=1),
        page_size: int = Query(20, ge=1, le=100),
        db: AsyncSession = Depends(get_db),
        current_user: Optional[User] = Depends(get_current_user_optional)
):
    """All listings, newest first"""
    properties, total = await property_service.list_properties(db, (page - 1) * page_size, page_size)
    return PropertyListResponse(
        items=await _respond(db, current_user, properties),
        total=total,
        page=page,
        page_size=page_size,
        total_pages=page_count(total, page_size)
    )


@router.post("", response_model=PropertyResponse, status_code=status.HTTP_201_CREATED)
async def create_property(
        property_data: PropertyCreate,
        current_user: User = Depends(require_agent),
        db: AsyncSession = Depends(get_db)
):
    """
    Create new property listing

    Requires: Agent or Admin role
    """
    return await property_service.create_property(db, property_data)


# ==========================================
# DYNAMIC PARAMETER ROUTES (MUST COME AFTER SPECIFIC ROUTES)
# ==========================================

@router.get("/{property_id}", response_model=PropertyResponse)
async def get_property(
        property_id: UUID,
        db: AsyncSession = Depends(get_db),
        current_user: Optional[User] = Depends(get_current_user_optional)
):
    """Get property by ID"""
    property_obj = await property_service.get_or_404(db, property_id)
    items = await _respond(db, current_user, [property_obj])
    return items[0]


@router.get("/{property_id}/similar", response_model=List[PropertyResponse])
async def get_similar_properties(
        property_id: UUID,
        db: AsyncSession = Depends(get_db),
        current_user: Optional[User] = Depends(get_current_user_optional)
):
    """Listings in the same area with the same listing type"""
    properties = await property_service.get_similar(db, property_id)
    return await _respond(db, current_user, properties)


@router.put("/{property_id}", response_model=PropertyResponse)
async def replace_property(
        property_id: UUID,
        property_data: PropertyUpdate,
        current_user: User = Depends(require_agent),
        db: AsyncSession = Depends(get_db)
):
    """
    Replace a property listing

    Every field must be supplied; amenities are replaced as a set.
    Requires: Agent or Admin role
    """
    return await property_service.replace_property(db, property_id, property_data)


@router.delete("/{property_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_property(
        property_id: UUID,
        current_user: User = Depends(require_agent),
        db: AsyncSession = Depends(get_db)
):
    """
    Permanently delete a property with its favorites

    Requires: Agent or Admin role
    """
    await property_service.delete_property(db, property_id)
