"""Unit tests for package service."""

import pytest
import pytest_asyncio

from kashiyatra.core.exceptions import ConflictError, NotFoundError, ValidationError
from kashiyatra.schemas.booking import CreateBookingRequest
from kashiyatra.schemas.package import CreatePackageRequest, SearchPackagesRequest, UpdatePackageRequest
from kashiyatra.services.booking_service import BookingService
from kashiyatra.services.package_service import PackageService


async def add_package(service, data, **overrides):
    return await service.create_package(
        CreatePackageRequest.model_validate({**data, **overrides}),
        created_by="admin-1",
    )


@pytest.mark.asyncio
async def test_create_package(test_session, sample_package_data):
    """Test creating a package stores nested documents as given."""
    service = PackageService(test_session)

    package = await add_package(service, sample_package_data)

    assert package.id is not None
    assert package.name == sample_package_data["name"]
    assert package.duration_days == 3
    assert package.duration_nights == 2
    assert package.categories == ["spiritual", "cultural"]
    assert package.available_dates == ["2024-11-01", "2024-12-01"]
    assert package.itinerary[0]["title"] == "Arrival and aarti"
    assert package.created_by == "admin-1"
    assert package.is_active is True
    assert package.discount_percentage == 17


@pytest.mark.asyncio
async def test_get_package_not_found(test_session):
    service = PackageService(test_session)

    with pytest.raises(NotFoundError):
        await service.get_package("00000000-0000-0000-0000-000000000000")


@pytest.mark.asyncio
async def test_update_package_is_partial(test_session, package):
    service = PackageService(test_session)

    updated = await service.update_package(UpdatePackageRequest.model_validate({
        "id": str(package.id),
        "price": 1200000,
        "duration": {"days": 4, "nights": 3},
        "rating": {"average": 4.5, "count": 12},
        "originalPrice": None,
    }))

    assert updated.price == 1200000
    assert updated.duration_days == 4
    assert updated.rating_average == 4.5
    assert updated.rating_count == 12
    assert updated.original_price is None
    assert updated.name == "Kashi Vishwanath Darshan"


@pytest.mark.asyncio
async def test_delete_package(test_session, package):
    service = PackageService(test_session)

    await service.delete_package(str(package.id))

    with pytest.raises(NotFoundError):
        await service.get_package(str(package.id))


@pytest.mark.asyncio
async def test_delete_booked_package_conflicts(test_session, package, sample_booking_data):
    await BookingService(test_session).create_booking(
        CreateBookingRequest.model_validate(sample_booking_data), "user-1"
    )

    with pytest.raises(ConflictError):
        await PackageService(test_session).delete_package(str(package.id))


@pytest.mark.asyncio
async def test_list_categories(test_session, sample_package_data):
    service = PackageService(test_session)
    await add_package(service, sample_package_data)
    await add_package(service, sample_package_data, name="Sarnath Day Trip", categories=["budget", "cultural"])

    assert await service.list_categories() == ["budget", "cultural", "spiritual"]


@pytest.fixture
def catalogue_data(sample_package_data):
    """Four active packages and one inactive one."""
    base = sample_package_data
    return [
        {**base, "name": "Ganga Aarti Evening", "price": 200000, "duration": {"days": 1, "nights": 0},
         "categories": ["spiritual", "budget"]},
        {**base, "name": "Sarnath Heritage Walk", "price": 350000, "duration": {"days": 1, "nights": 0},
         "categories": ["cultural"], "description": "Buddhist stupas and the museum"},
        {**base, "name": "Royal Ghats Retreat", "price": 4500000, "duration": {"days": 5, "nights": 4},
         "categories": ["luxury", "premium"]},
        {**base, "name": "Family Temple Tour", "price": 900000, "duration": {"days": 3, "nights": 2},
         "categories": ["family", "spiritual"]},
        {**base, "name": "Retired Boat Ride", "price": 100000, "duration": {"days": 1, "nights": 0},
         "categories": ["spiritual"], "isActive": False},
    ]


@pytest_asyncio.fixture
async def catalogue(test_session, catalogue_data):
    service = PackageService(test_session)
    return [await add_package(service, data) for data in catalogue_data]


async def search(test_session, **filters):
    return await PackageService(test_session).search_packages(SearchPackagesRequest.model_validate(filters))


@pytest.mark.asyncio
async def test_search_lists_only_active_packages(test_session, catalogue):
    result = await search(test_session)

    assert result.success is True
    assert result.total == 4
    assert "Retired Boat Ride" not in {doc["name"] for doc in result.data}


@pytest.mark.asyncio
async def test_search_by_category(test_session, catalogue):
    result = await search(test_session, category="spiritual")

    assert {doc["name"] for doc in result.data} == {"Ganga Aarti Evening", "Family Temple Tour"}


@pytest.mark.asyncio
async def test_search_free_text_is_case_insensitive(test_session, catalogue):
    by_name = await search(test_session, search="GHATS")
    by_description = await search(test_session, search="stupas")
    by_category = await search(test_session, search="luxury")

    assert [doc["name"] for doc in by_name.data] == ["Royal Ghats Retreat"]
    assert [doc["name"] for doc in by_description.data] == ["Sarnath Heritage Walk"]
    assert [doc["name"] for doc in by_category.data] == ["Royal Ghats Retreat"]


@pytest.mark.asyncio
async def test_search_free_text_matches_category_values_only(test_session, catalogue):
    """Category text search looks at category names, never at how they are stored."""
    partial = await search(test_session, search="Spirit")

    assert {doc["name"] for doc in partial.data} == {"Ganga Aarti Evening", "Family Temple Tour"}
    for term in ('"', "[", "]", ", ", '", "'):
        result = await search(test_session, search=term)
        assert result.total == 0, term


@pytest.mark.asyncio
async def test_search_price_range_and_duration(test_session, catalogue):
    in_range = await search(test_session, minPrice=300000, maxPrice=900000, sort="price")
    one_day = await search(test_session, duration=1)

    assert [doc["price"] for doc in in_range.data] == [350000, 900000]
    assert {doc["name"] for doc in one_day.data} == {"Ganga Aarti Evening", "Sarnath Heritage Walk"}


@pytest.mark.asyncio
async def test_search_inverted_price_range(test_session, catalogue):
    with pytest.raises(ValidationError):
        await search(test_session, minPrice=500000, maxPrice=100000)


@pytest.mark.asyncio
async def test_search_sort_descending_and_multi_field(test_session, catalogue):
    by_price = await search(test_session, sort="-price")
    by_duration_then_name = await search(test_session, sort="duration.days,-name")

    assert [doc["price"] for doc in by_price.data] == [4500000, 900000, 350000, 200000]
    assert [doc["name"] for doc in by_duration_then_name.data] == [
        "Sarnath Heritage Walk",
        "Ganga Aarti Evening",
        "Family Temple Tour",
        "Royal Ghats Retreat",
    ]


@pytest.mark.asyncio
async def test_search_unknown_sort_field(test_session, catalogue):
    with pytest.raises(ValidationError) as exc_info:
        await search(test_session, sort="createdBy")

    assert exc_info.value.violations[0]["path"] == "sort"


@pytest.mark.asyncio
async def test_search_projection_always_includes_id(test_session, catalogue):
    result = await search(test_session, fields="name,price")

    assert all(set(doc) == {"id", "name", "price"} for doc in result.data)


@pytest.mark.asyncio
async def test_search_projection_unknown_field(test_session, catalogue):
    with pytest.raises(ValidationError):
        await search(test_session, fields="name,secret")


@pytest.mark.asyncio
async def test_search_pagination(test_session, catalogue):
    first = await search(test_session, sort="price", limit=3)
    second = await search(test_session, sort="price", limit=3, page=2)

    assert first.count == 3
    assert first.total == 4
    assert first.pagination.next.model_dump() == {"page": 2, "limit": 3}
    assert first.pagination.prev is None

    assert second.count == 1
    assert second.pagination.next is None
    assert second.pagination.prev.model_dump() == {"page": 1, "limit": 3}


@pytest.mark.asyncio
async def test_search_default_and_capped_limit(test_session, catalogue):
    default = await search(test_session)
    capped = await search(test_session, limit=1000)

    assert default.pagination.next is None
    assert capped.count == 4
