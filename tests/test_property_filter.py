import logging
from datetime import datetime, timedelta, timezone
from uuid import UUID

import pytest

from app.core.exceptions import InvalidSearchQueryException
from app.models.enums import Amenity
from app.schemas.property import PropertyRecord
from app.schemas.search import SearchCriteria, SortOrder
from app.services.property_filter import apply_filters, build_predicates, sort_properties
from app.services.property_repository import InMemoryPropertyRepository
from app.services.property_service import property_service

BASE_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)


def make_record(n: int, **overrides) -> PropertyRecord:
    fields = {
        "id": UUID(int=n),
        "title": f"Listing {n}",
        "property_type": "apartment",
        "listing_type": "sale",
        "price": 100,
        "location": "Somewhere",
        "bedrooms": 1,
        "bathrooms": 1,
        "floor_area": 80,
        "created_at": BASE_TIME + timedelta(days=n),
    }
    fields.update(overrides)
    return PropertyRecord(**fields)


def search(records, **params):
    return apply_filters(records, SearchCriteria.from_query(params))


@pytest.fixture
def lagos_abuja():
    return [
        make_record(1, price=100, bedrooms=2, state="Lagos", location="Ikeja, Lagos"),
        make_record(2, price=200, bedrooms=3, state="Abuja", location="Wuse, Abuja"),
    ]


def test_min_price_scenario(lagos_abuja):
    result = search(lagos_abuja, minPrice=150)

    assert [r.id for r in result] == [UUID(int=2)]


def test_non_overlapping_constraints_scenario(lagos_abuja):
    assert search(lagos_abuja, state="Lagos", bedrooms=3) == []


def test_empty_criteria_returns_everything_in_default_order(lagos_abuja):
    result = search(lagos_abuja)

    # newest first
    assert [r.id for r in result] == [UUID(int=2), UUID(int=1)]


def test_min_price_boundary_is_inclusive():
    records = [make_record(n, price=price) for n, price in enumerate([50, 100, 150], start=1)]

    for record in records:
        assert record in search(records, minPrice=record.price)


def test_max_price_below_price_excludes():
    records = [make_record(n, price=price) for n, price in enumerate([50, 100, 150], start=1)]

    for record in records:
        assert record not in search(records, maxPrice=record.price - 1)
        assert record in search(records, maxPrice=record.price)


def test_amenities_require_superset():
    both = make_record(1, amenities=["swimming_pool", "gym", "parking"])
    only_pool = make_record(2, amenities=["swimming_pool"])
    none = make_record(3, amenities=[])

    result = search([both, only_pool, none], amenities=["pool", "gym"])

    assert result == [both]


def test_filtering_is_idempotent(lagos_abuja):
    criteria = SearchCriteria.from_query({"location": "a", "maxPrice": 150})

    once = apply_filters(lagos_abuja, criteria)
    twice = apply_filters(once, criteria)

    assert once == twice


def test_input_is_not_mutated(lagos_abuja):
    records = list(lagos_abuja)
    snapshot = [r.model_dump() for r in records]

    result = search(records, sortBy="price_desc", minPrice=0)

    assert records == lagos_abuja
    assert [r.model_dump() for r in records] == snapshot
    assert result is not records


def test_location_is_case_insensitive_substring_over_several_fields():
    by_location = make_record(1, location="Lekki Phase 1, LAGOS")
    by_state = make_record(2, location="Phase 2", state="Lagos")
    by_area = make_record(3, location="Unknown", area="Lagos Island")
    by_title = make_record(4, title="Lagos penthouse")
    elsewhere = make_record(5, location="Kano")

    result = search([by_location, by_state, by_area, by_title, elsewhere], location="lAgOs")

    assert {r.id for r in result} == {UUID(int=n) for n in (1, 2, 3, 4)}


def test_state_and_area_are_exact_matches():
    lekki = make_record(1, state="Lagos", area="Lekki")
    lekki_phase = make_record(2, state="Lagos", area="Lekki Phase 1")

    assert search([lekki, lekki_phase], area="lekki") == [lekki]
    assert search([lekki, lekki_phase], state="LAGOS") == [lekki_phase, lekki]


def test_zero_bedrooms_is_a_real_constraint_and_any_is_none():
    studio = make_record(1, property_type="studio", bedrooms=0)
    family = make_record(2, bedrooms=4)

    assert search([studio, family], bedrooms=0) == [family, studio]
    assert search([studio, family], bedrooms="any") == [family, studio]
    assert search([studio, family], bedrooms="2+") == [family]


def test_property_type_and_status_equality():
    flat_rent = make_record(1, property_type="flat", listing_type="rent")
    flat_sale = make_record(2, property_type="flat", listing_type="sale")
    house_rent = make_record(3, property_type="house", listing_type="rent")

    result = search([flat_rent, flat_sale, house_rent], propertyType="Flat", status="for rent")

    assert result == [flat_rent]


def test_sort_orders_break_ties_by_id():
    a = make_record(3, price=100, created_at=BASE_TIME)
    b = make_record(1, price=100, created_at=BASE_TIME)
    c = make_record(2, price=50, created_at=BASE_TIME + timedelta(hours=1))

    assert sort_properties([a, b, c], SortOrder.PRICE_ASC) == [c, b, a]
    assert sort_properties([a, b, c], SortOrder.PRICE_DESC) == [b, a, c]
    assert sort_properties([a, b, c], SortOrder.NEWEST) == [c, b, a]
    assert sort_properties([a, b, c], SortOrder.OLDEST) == [b, a, c]


def test_unset_criteria_build_no_predicates():
    assert build_predicates(SearchCriteria.from_query({"bedrooms": "any", "location": ""})) == []


def test_non_residential_records_store_zero_rooms():
    land = make_record(1, property_type="land", bedrooms=5, bathrooms=2)

    assert land.bedrooms == 0
    assert land.bathrooms == 0
    assert search([land], bedrooms=1) == []


@pytest.mark.asyncio
async def test_in_memory_repository():
    records = [make_record(n, price=n * 100) for n in range(1, 6)]
    repository = InMemoryPropertyRepository(records)

    assert [r.id for r in await repository.find_all()] == [UUID(int=n) for n in (5, 4, 3, 2, 1)]
    assert await repository.find_by_id(UUID(int=3)) is records[2]
    assert await repository.find_by_id(UUID(int=99)) is None

    page, total = await repository.find_matching(
        SearchCriteria.from_query({"minPrice": 200, "sortBy": "price_asc"}),
        offset=1,
        limit=2
    )
    assert total == 4
    assert [r.price for r in page] == [300, 400]


@pytest.mark.asyncio
async def test_search_listings_from_plain_mapping():
    records = [
        make_record(1, state="Lagos", amenities=["gym"]),
        make_record(2, state="Abuja", amenities=["gym", "borehole"]),
        make_record(3, state="Abuja", amenities=[]),
    ]

    results = await property_service.search_listings(
        InMemoryPropertyRepository(records),
        {"state": "abuja", "amenities": "gym"},
        page=1,
        page_size=10
    )

    assert results.total == 1
    assert results.total_pages == 1
    assert results.items[0].id == UUID(int=2)
    assert results.items[0].amenities == [Amenity.GYM, Amenity.BOREHOLE]
    assert results.filters_applied == {"state": "abuja", "amenities": ["gym"]}


@pytest.mark.asyncio
async def test_search_listings_empty_result():
    results = await property_service.search_listings(
        InMemoryPropertyRepository([make_record(1)]),
        SearchCriteria.from_query({"location": "Nowhere"}),
    )

    assert results.items == []
    assert results.total == 0
    assert results.total_pages == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("query, paging", [
    ({"minPrice": "cheap"}, {}),
    ({}, {"page": 0}),
    ({}, {"page_size": 0}),
])
async def test_rejected_search_is_logged(caplog, query, paging):
    with caplog.at_level(logging.WARNING, logger="propertyhub.search"):
        with pytest.raises(InvalidSearchQueryException):
            await property_service.search_listings(
                InMemoryPropertyRepository([make_record(1)]),
                query,
                **paging
            )

    assert "property_search_rejected" in caplog.text
