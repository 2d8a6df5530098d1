from datetime import datetime, timedelta, timezone
from uuid import UUID

import pytest

from app.models.enums import Amenity
from app.models.property import Property, PropertyType, ListingType
from app.schemas.search import SearchCriteria
from app.services.property_repository import InMemoryPropertyRepository, SqlPropertyRepository

BASE_TIME = datetime(2026, 3, 1, tzinfo=timezone.utc)

LISTINGS = [
    # n, title, type, status, price, beds, baths, location, state, area, amenities, hours
    (1, "Lekki duplex", PropertyType.DUPLEX, ListingType.SALE, 85_000_000, 4, 4,
     "Lekki Phase 1, Lagos", "Lagos", "Lekki", [Amenity.SWIMMING_POOL, Amenity.GYM, Amenity.PARKING], 0),
    (2, "Ikoyi flat", PropertyType.FLAT, ListingType.RENT, 6_000_000, 3, 3,
     "Ikoyi, Lagos", "Lagos", "Ikoyi", [Amenity.GYM, Amenity.ELEVATOR], 1),
    (3, "Yaba studio", PropertyType.STUDIO, ListingType.RENT, 1_200_000, 0, 1,
     "Yaba, Lagos", "Lagos", "Yaba", [], 2),
    (4, "Maitama villa", PropertyType.VILLA, ListingType.SALE, 250_000_000, 6, 7,
     "Maitama, Abuja", "FCT", "Maitama", [Amenity.SWIMMING_POOL, Amenity.SECURITY], 2),
    (5, "Plot in Epe", PropertyType.LAND, ListingType.SALE, 15_000_000, 0, 0,
     "Epe, Lagos", "Lagos", "Epe", [], 3),
    (6, "50% off office", PropertyType.OFFICE, ListingType.RENT, 9_000_000, 0, 0,
     "Victoria Island, Lagos", "Lagos", "Victoria Island", [Amenity.PARKING], 4),
    (7, "500 sqm warehouse", PropertyType.COMMERCIAL, ListingType.SALE, 120_000_000, 0, 0,
     "Apapa, Lagos", "Lagos", "Apapa", [], 5),
    (8, "Wuse 2 apartment", PropertyType.APARTMENT, ListingType.RENT, 4_500_000, 2, 2,
     "Wuse_2, Abuja", "FCT", "Wuse", [Amenity.BACKUP_GENERATOR, Amenity.GYM], 5),
]

QUERIES = [
    {},
    {"location": "lagos"},
    {"location": "LEKKI"},
    {"location": "50%"},
    {"location": "_"},
    {"state": "fct"},
    {"area": "ikoyi"},
    {"propertyType": "land"},
    {"status": "rent"},
    {"minPrice": 6_000_000},
    {"maxPrice": "15000000"},
    {"minPrice": 1_200_000, "maxPrice": 9_000_000},
    {"bedrooms": 0},
    {"bedrooms": "3+"},
    {"bedrooms": "any", "bathrooms": "2"},
    {"amenities": "gym"},
    {"amenities": ["pool", "gym"]},
    {"amenities": ["security", "elevator"]},
    {"state": "Lagos", "status": "sale", "sortBy": "price_asc"},
    {"location": "a", "sortBy": "price_desc"},
    {"sortBy": "oldest"},
    {"state": "Lagos", "propertyType": "villa"},
    {"minPrice": "1200000.5"},
    {"maxPrice": "14999999.9"},
    {"minPrice": "6000000.0", "maxPrice": "6000000"},
    {"minPrice": "1e20"},
    {"minPrice": "3000000000"},
    {"maxPrice": "1e20"},
    {"bedrooms": "99999999999999999999"},
    {"bathrooms": 2147483648},
]


@pytest.fixture
async def seeded(session_factory):
    async with session_factory() as session:
        for n, title, ptype, status, price, beds, baths, location, state, area, amenities, hours in LISTINGS:
            prop = Property(
                id=UUID(int=n),
                title=title,
                property_type=ptype,
                listing_type=status,
                price=price,
                bedrooms=beds,
                bathrooms=baths,
                floor_area=100,
                location=location,
                state=state,
                area=area,
                is_featured=False,
                created_at=BASE_TIME + timedelta(hours=hours),
            )
            prop.set_amenities(amenities)
            session.add(prop)
        await session.commit()
    return session_factory


@pytest.mark.asyncio
@pytest.mark.parametrize("query", QUERIES)
async def test_sql_and_memory_backends_agree(seeded, query):
    criteria = SearchCriteria.from_query(query)

    async with seeded() as session:
        sql_repository = SqlPropertyRepository(session)
        memory_repository = InMemoryPropertyRepository(await sql_repository.find_all())

        sql_items, sql_total = await sql_repository.find_matching(criteria)
        memory_items, memory_total = await memory_repository.find_matching(criteria)

    assert [p.id for p in sql_items] == [p.id for p in memory_items]
    assert sql_total == memory_total == len(sql_items)


@pytest.mark.asyncio
async def test_sql_paging_matches_memory_paging(seeded):
    criteria = SearchCriteria.from_query({"sortBy": "price_asc"})

    async with seeded() as session:
        sql_repository = SqlPropertyRepository(session)
        memory_repository = InMemoryPropertyRepository(await sql_repository.find_all())

        sql_page, sql_total = await sql_repository.find_matching(criteria, offset=3, limit=3)
        memory_page, memory_total = await memory_repository.find_matching(criteria, offset=3, limit=3)

    assert sql_total == memory_total == len(LISTINGS)
    assert [p.id for p in sql_page] == [p.id for p in memory_page]
    assert len(sql_page) == 3


@pytest.mark.asyncio
async def test_expected_matches(seeded):
    async with seeded() as session:
        repository = SqlPropertyRepository(session)

        async def ids(**query):
            items, _ = await repository.find_matching(SearchCriteria.from_query(query))
            return [p.id.int for p in items]

        assert await ids(location="50%") == [6]
        assert await ids(location="_") == [8]
        assert await ids(amenities=["pool", "gym"]) == [1]
        assert await ids(state="Lagos", propertyType="villa") == []
        # tie on created_at falls back to id
        assert await ids(sortBy="oldest") == [1, 2, 3, 4, 5, 6, 7, 8]
        assert await ids(bedrooms=0, propertyType="studio") == [3]
        # fractional bounds round inward against whole-number prices
        assert 3 not in await ids(minPrice="1200000.5")
        assert 5 not in await ids(maxPrice="14999999.9")
        assert await ids(maxPrice="1200000.5") == [3]
        assert await ids(maxPrice="1199999.9") == []
        assert await ids(minPrice="249999999.5") == [4]
        assert await ids(minPrice="6000000.0", maxPrice="6000000") == [2]
        assert await ids(minPrice="1e20") == []
        assert len(await ids(maxPrice="1e20")) == len(LISTINGS)


@pytest.mark.asyncio
async def test_find_by_id(seeded):
    async with seeded() as session:
        repository = SqlPropertyRepository(session)

        found = await repository.find_by_id(UUID(int=4))
        missing = await repository.find_by_id(UUID(int=404))

    assert found.title == "Maitama villa"
    assert missing is None
