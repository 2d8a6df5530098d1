from typing import Any, List, Mapping, Optional, Tuple, Union
from uuid import UUID
import logging
import math
import time

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, func

from app.models.property import INTEGER_MAX, Property, PropertyAmenity, utcnow
from app.models.favorite import Favorite
from app.schemas.property import (
    PropertyCreate,
    PropertyFields,
    PropertyResponse,
    PropertySearchResponse,
)
from app.schemas.search import SearchCriteria
from app.services.property_repository import PropertyRepository
from app.core.config import settings
from app.core.exceptions import PropertyNotFoundException, InvalidSearchQueryException
from app.core.monitoring import MetricsTracker, StructuredLogger

logger = logging.getLogger(__name__)
search_logger = StructuredLogger("propertyhub.search")


def page_count(total: int, page_size: int) -> int:
    return math.ceil(total / page_size) if total else 0


class PropertyService:
    """Service layer for property operations"""

    @staticmethod
    def _apply_fields(property_obj: Property, property_data: PropertyFields) -> None:
        data = property_data.model_dump(exclude={"amenities"})
        for field, value in data.items():
            setattr(property_obj, field, value)
        property_obj.set_amenities(property_data.amenities)

    @staticmethod
    async def create_property(db: AsyncSession, property_data: PropertyCreate) -> Property:
        """Create new property listing"""
        db_property = Property()
        PropertyService._apply_fields(db_property, property_data)

        db.add(db_property)
        await db.flush()

        MetricsTracker.track_property_write("create")
        logger.info(f"Created property {db_property.id}")
        return db_property

    @staticmethod
    async def get_by_id(db: AsyncSession, property_id: UUID) -> Optional[Property]:
        """Get property by ID"""
        result = await db.execute(select(Property).where(Property.id == property_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_or_404(db: AsyncSession, property_id: UUID) -> Property:
        property_obj = await PropertyService.get_by_id(db, property_id)
        if not property_obj:
            raise PropertyNotFoundException(property_id)
        return property_obj

    @staticmethod
    async def replace_property(
            db: AsyncSession,
            property_id: UUID,
            property_data: PropertyFields
    ) -> Property:
        """
        Replace every field of a property

        Amenities are replaced as a set. id and created_at never change.
        """
        property_obj = await PropertyService.get_or_404(db, property_id)

        PropertyService._apply_fields(property_obj, property_data)
        property_obj.updated_at = utcnow()
        await db.flush()

        MetricsTracker.track_property_write("replace")
        logger.info(f"Replaced property {property_id}")
        return property_obj

    @staticmethod
    async def delete_property(db: AsyncSession, property_id: UUID) -> None:
        """Hard delete a property with its amenities and favorites"""
        await PropertyService.get_or_404(db, property_id)

        await db.execute(delete(Favorite).where(Favorite.property_id == property_id))
        await db.execute(delete(PropertyAmenity).where(PropertyAmenity.property_id == property_id))
        await db.execute(delete(Property).where(Property.id == property_id))

        MetricsTracker.track_property_write("delete")
        logger.info(f"Deleted property {property_id}")

    @staticmethod
    async def list_properties(
            db: AsyncSession,
            skip: int = 0,
            limit: int = 20
    ) -> Tuple[List[Property], int]:
        """All properties, newest first"""
        total = (await db.execute(select(func.count(Property.id)))).scalar_one()
        result = await db.execute(
            select(Property)
            .order_by(Property.created_at.desc(), Property.id)
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    @staticmethod
    async def get_featured(db: AsyncSession, limit: int = None) -> List[Property]:
        result = await db.execute(
            select(Property)
            .where(Property.is_featured.is_(True))
            .order_by(Property.created_at.desc(), Property.id)
            .limit(limit or settings.FEATURED_LIMIT)
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_recent(db: AsyncSession, limit: int = None) -> List[Property]:
        result = await db.execute(
            select(Property)
            .order_by(Property.created_at.desc(), Property.id)
            .limit(limit or settings.RECENT_LIMIT)
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_similar(
            db: AsyncSession,
            property_id: UUID,
            limit: int = None
    ) -> List[Property]:
        """Listings in the same area with the same listing type"""
        property_obj = await PropertyService.get_or_404(db, property_id)

        query = select(Property).where(
            Property.id != property_obj.id,
            Property.listing_type == property_obj.listing_type,
        )
        if property_obj.area:
            query = query.where(func.lower(Property.area) == property_obj.area.lower())
        else:
            query = query.where(func.lower(Property.location) == property_obj.location.lower())

        result = await db.execute(
            query.order_by(Property.created_at.desc(), Property.id).limit(limit or settings.SIMILAR_LIMIT)
        )
        return list(result.scalars().all())

    @staticmethod
    async def search_listings(
            repository: PropertyRepository,
            criteria: Union[SearchCriteria, Mapping[str, Any]],
            page: int = 1,
            page_size: Optional[int] = None
    ) -> PropertySearchResponse:
        """
        Run a property search against any repository

        Args:
            repository: where the listings live (SQL or in memory)
            criteria: parsed SearchCriteria, or a flat query-string map
            page: 1-based page number
            page_size: defaults to DEFAULT_PAGE_SIZE, capped at MAX_PAGE_SIZE

        Returns:
            PropertySearchResponse (empty items and total 0 when nothing matches)

        Raises:
            InvalidSearchQueryException: criteria or paging cannot be interpreted
        """
        try:
            if not isinstance(criteria, SearchCriteria):
                criteria = SearchCriteria.from_query(criteria)
            if page_size is None:
                page_size = settings.DEFAULT_PAGE_SIZE
            if page < 1:
                raise InvalidSearchQueryException("page must be at least 1", field="page")
            if page_size < 1:
                raise InvalidSearchQueryException("pageSize must be at least 1", field="pageSize")
            page_size = min(page_size, settings.MAX_PAGE_SIZE)
            if (page - 1) * page_size > INTEGER_MAX:
                raise InvalidSearchQueryException("page is out of range", field="page")
        except InvalidSearchQueryException as exc:
            MetricsTracker.track_search_rejection(exc.field)
            search_logger.warning("property_search_rejected", field=exc.field, reason=exc.detail)
            raise

        start = time.perf_counter()
        items, total = await repository.find_matching(
            criteria,
            offset=(page - 1) * page_size,
            limit=page_size
        )
        duration = time.perf_counter() - start

        MetricsTracker.track_search(repository.backend, duration, total)
        search_logger.info(
            "property_search",
            backend=repository.backend,
            filters=criteria.active_filters(),
            sort_by=criteria.sort_by.value,
            total=total,
            page=page,
            duration_ms=round(duration * 1000, 2),
        )

        return PropertySearchResponse(
            items=[PropertyResponse.model_validate(item) for item in items],
            total=total,
            page=page,
            page_size=page_size,
            total_pages=page_count(total, page_size),
            filters_applied=criteria.active_filters(),
            sort_by=criteria.sort_by.value,
        )


property_service = PropertyService()
