from typing import Iterable, List, Set, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, and_, desc

from app.models.favorite import Favorite
from app.models.property import Property
from app.core.exceptions import (
    PropertyNotFoundException,
    FavoriteAlreadyExistsException,
    FavoriteNotFoundException,
)
from app.core.monitoring import MetricsTracker


class FavoriteService:
    """Service layer for favorites operations"""

    @staticmethod
    async def _get(db: AsyncSession, user_id: UUID, property_id: UUID):
        result = await db.execute(
            select(Favorite).where(
                and_(
                    Favorite.user_id == user_id,
                    Favorite.property_id == property_id
                )
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def add_favorite(db: AsyncSession, user_id: UUID, property_id: UUID) -> Favorite:
        """Add property to favorites"""
        property_result = await db.execute(
            select(Property.id).where(Property.id == property_id)
        )
        if property_result.scalar_one_or_none() is None:
            raise PropertyNotFoundException(property_id)

        if await FavoriteService._get(db, user_id, property_id):
            raise FavoriteAlreadyExistsException(property_id)

        favorite = Favorite(user_id=user_id, property_id=property_id)
        db.add(favorite)
        await db.flush()

        MetricsTracker.track_favorite("add")
        return favorite

    @staticmethod
    async def remove_favorite(db: AsyncSession, user_id: UUID, property_id: UUID) -> None:
        """Remove property from favorites"""
        favorite = await FavoriteService._get(db, user_id, property_id)
        if not favorite:
            raise FavoriteNotFoundException(property_id)

        await db.delete(favorite)
        await db.flush()
        MetricsTracker.track_favorite("remove")

    @staticmethod
    async def get_user_favorites(
            db: AsyncSession,
            user_id: UUID,
            skip: int = 0,
            limit: int = 20
    ) -> Tuple[List[Favorite], int]:
        """Get user's favorites with pagination, newest first"""
        count_query = select(func.count(Favorite.id)).where(Favorite.user_id == user_id)
        total = (await db.execute(count_query)).scalar_one()

        query = select(Favorite).where(
            Favorite.user_id == user_id
        ).order_by(
            desc(Favorite.created_at), Favorite.id
        ).offset(skip).limit(limit)

        result = await db.execute(query)
        return list(result.scalars().all()), total

    @staticmethod
    async def is_favorited(db: AsyncSession, user_id: UUID, property_id: UUID) -> bool:
        """Check if property is favorited by user"""
        return await FavoriteService._get(db, user_id, property_id) is not None

    @staticmethod
    async def favorited_ids(
            db: AsyncSession,
            user_id: UUID,
            property_ids: Iterable[UUID]
    ) -> Set[UUID]:
        """Subset of property_ids the user has favorited"""
        property_ids = list(property_ids)
        if not property_ids:
            return set()
        result = await db.execute(
            select(Favorite.property_id).where(
                Favorite.user_id == user_id,
                Favorite.property_id.in_(property_ids)
            )
        )
        return set(result.scalars().all())


favorite_service = FavoriteService()
