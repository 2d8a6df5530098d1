"""
Property data sources

The search layer reads listings through PropertyRepository and never
depends on whether records live in the database or in memory.
"""
from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.property import Property
from app.schemas.search import SearchCriteria, SortOrder
from app.services.property_filter import apply_filters, build_ordering, build_where, sort_properties


class PropertyRepository(ABC):
    """Read-only view over a collection of listings"""

    backend: str = "abstract"

    @abstractmethod
    async def find_all(self) -> List[Any]:
        """Every listing, newest first"""

    @abstractmethod
    async def find_by_id(self, property_id: UUID) -> Optional[Any]:
        """Listing with the given id, or None"""

    @abstractmethod
    async def find_matching(
            self,
            criteria: SearchCriteria,
            offset: int = 0,
            limit: Optional[int] = None
    ) -> Tuple[List[Any], int]:
        """One page of listings matching criteria, plus the total match count"""


class InMemoryPropertyRepository(PropertyRepository):
    """Repository over records held in memory (PropertyRecord or ORM rows)"""

    backend = "memory"

    def __init__(self, records: Iterable[Any] = ()):
        self._records = tuple(records)

    async def find_all(self) -> List[Any]:
        return sort_properties(self._records, SortOrder.NEWEST)

    async def find_by_id(self, property_id: UUID) -> Optional[Any]:
        for record in self._records:
            if record.id == property_id:
                return record
        return None

    async def find_matching(
            self,
            criteria: SearchCriteria,
            offset: int = 0,
            limit: Optional[int] = None
    ) -> Tuple[List[Any], int]:
        matches = apply_filters(self._records, criteria)
        end = offset + limit if limit is not None else None
        return matches[offset:end], len(matches)


class SqlPropertyRepository(PropertyRepository):
    """Repository backed by the properties table"""

    backend = "sql"

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_all(self) -> List[Property]:
        result = await self.db.execute(
            select(Property).order_by(*build_ordering(SortOrder.NEWEST))
        )
        return list(result.scalars().all())

    async def find_by_id(self, property_id: UUID) -> Optional[Property]:
        result = await self.db.execute(
            select(Property).where(Property.id == property_id)
        )
        return result.scalar_one_or_none()

    async def find_matching(
            self,
            criteria: SearchCriteria,
            offset: int = 0,
            limit: Optional[int] = None
    ) -> Tuple[List[Property], int]:
        query = select(Property)
        where = build_where(criteria)
        if where is not None:
            query = query.where(where)

        # Count total
        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar_one()

        query = query.order_by(*build_ordering(criteria.sort_by)).offset(offset)
        if limit is not None:
            query = query.limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all()), total
