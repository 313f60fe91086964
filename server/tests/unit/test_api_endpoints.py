"""Integration tests for API endpoints."""

import re

import pytest

from kashiyatra.services.booking_service import BookingService
from kashiyatra.services.package_service import PackageService


async def create_booking(client, data, headers):
    response = await client.post("/v1/booking/create", json=data, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.mark.asyncio
async def test_create_booking_endpoint(test_client, sample_booking_data, user_headers):
    """Test the booking creation endpoint."""
    response = await test_client.post("/v1/booking/create", json=sample_booking_data, headers=user_headers)

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    data = body["data"]
    assert re.match(r"^KY\d+$", data["bookingId"])
    assert data["user"] == "user-1"
    assert data["tripDetails"]["endDate"] == "2024-02-02"
    assert data["pricing"] == sample_booking_data["pricing"]
    assert data["payment"]["status"] == "pending"
    assert data["cancellation"]["isCancelled"] is False
    assert response.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_create_booking_missing_auth(test_client, sample_booking_data):
    """Test booking creation without authentication."""
    response = await test_client.post("/v1/booking/create", json=sample_booking_data)

    assert response.status_code == 401
    data = response.json()
    assert data["status"] == 401
    assert "authentication" in data["title"].lower()


@pytest.mark.asyncio
async def test_create_booking_invalid_token(test_client, sample_booking_data):
    response = await test_client.post(
        "/v1/booking/create",
        json=sample_booking_data,
        headers={"Authorization": "Bearer not-a-jwt"}
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_booking_invalid_data(test_client, sample_booking_data, user_headers):
    """Test booking creation with a zero duration and an out-of-range field."""
    invalid_data = {
        **sample_booking_data,
        "tripDetails": {"startDate": "2024-01-30", "duration": 0},
    }

    response = await test_client.post("/v1/booking/create", json=invalid_data, headers=user_headers)

    assert response.status_code == 422
    data = response.json()
    assert data["status"] == 422
    assert "tripDetails.duration" in {violation["path"] for violation in data["violations"]}


@pytest.mark.asyncio
async def test_get_booking_by_booking_id_and_id(test_client, sample_booking_data, user_headers):
    created = await create_booking(test_client, sample_booking_data, user_headers)

    by_booking_id = await test_client.post(
        "/v1/booking/get", json={"bookingId": created["bookingId"]}, headers=user_headers
    )
    by_id = await test_client.post("/v1/booking/get", json={"id": created["id"]}, headers=user_headers)

    assert by_booking_id.status_code == 200
    assert by_id.status_code == 200
    assert by_booking_id.json()["data"] == by_id.json()["data"]
    assert by_booking_id.json()["data"]["travelers"] == created["travelers"]


@pytest.mark.asyncio
async def test_get_booking_requires_reference(test_client, user_headers):
    response = await test_client.post("/v1/booking/get", json={}, headers=user_headers)

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_get_booking_not_found(test_client, user_headers):
    response = await test_client.post("/v1/booking/get", json={"bookingId": "KY123"}, headers=user_headers)

    assert response.status_code == 404
    assert response.json()["resource_type"] == "booking"


@pytest.mark.asyncio
async def test_get_other_users_booking_forbidden(
    test_client, sample_booking_data, user_headers, other_user_headers, admin_headers
):
    created = await create_booking(test_client, sample_booking_data, user_headers)

    forbidden = await test_client.post(
        "/v1/booking/get", json={"bookingId": created["bookingId"]}, headers=other_user_headers
    )
    allowed = await test_client.post(
        "/v1/booking/get", json={"bookingId": created["bookingId"]}, headers=admin_headers
    )

    assert forbidden.status_code == 403
    assert allowed.status_code == 200


@pytest.mark.asyncio
async def test_update_booking_cannot_change_booking_id(test_client, sample_booking_data, user_headers):
    created = await create_booking(test_client, sample_booking_data, user_headers)

    response = await test_client.post(
        "/v1/booking/update",
        json={"id": created["bookingId"], "bookingId": "KY1"},
        headers=user_headers
    )

    assert response.status_code == 422
    assert "bookingId" in {violation["path"] for violation in response.json()["violations"]}


@pytest.mark.asyncio
async def test_update_booking_domain_validation(test_client, sample_booking_data, user_headers):
    """Moving the start date past the stored end date is rejected with violations."""
    created = await create_booking(test_client, sample_booking_data, user_headers)

    response = await test_client.post(
        "/v1/booking/update",
        json={"id": created["bookingId"], "tripDetails": {"startDate": "2024-05-01"}},
        headers=user_headers
    )

    assert response.status_code == 400
    data = response.json()
    assert data["title"] == "Validation Error"
    assert data["violations"][0]["path"] == "tripDetails.endDate"


@pytest.mark.asyncio
async def test_payment_and_cancel_flow(test_client, sample_booking_data, user_headers):
    created = await create_booking(test_client, sample_booking_data, user_headers)

    paid = await test_client.post(
        "/v1/booking/payment",
        json={"id": created["bookingId"], "status": "paid", "method": "upi", "transactionId": "txn_9"},
        headers=user_headers
    )
    assert paid.status_code == 200
    assert paid.json()["data"]["payment"]["paidAt"] is not None

    cancelled = await test_client.post(
        "/v1/booking/cancel",
        json={"id": created["bookingId"], "reason": "Illness", "refundAmount": 1000000},
        headers=user_headers
    )
    assert cancelled.status_code == 200
    data = cancelled.json()["data"]
    assert data["cancellation"]["isCancelled"] is True
    assert data["cancellation"]["refundAmount"] == 1000000
    assert data["status"] == "pending"
    assert data["payment"]["status"] == "paid"


@pytest.mark.asyncio
async def test_review_rating_out_of_range(test_client, sample_booking_data, user_headers):
    created = await create_booking(test_client, sample_booking_data, user_headers)

    rejected = await test_client.post(
        "/v1/booking/review", json={"id": created["bookingId"], "rating": 6}, headers=user_headers
    )
    accepted = await test_client.post(
        "/v1/booking/review", json={"id": created["bookingId"], "rating": 5, "comment": "Superb"}, headers=user_headers
    )

    assert rejected.status_code == 422
    assert accepted.status_code == 200
    assert accepted.json()["data"]["reviews"][0]["rating"] == 5


@pytest.mark.asyncio
async def test_assign_guide_requires_admin(test_client, sample_booking_data, user_headers, admin_headers):
    created = await create_booking(test_client, sample_booking_data, user_headers)
    payload = {"id": created["bookingId"], "guide": "guide-3"}

    forbidden = await test_client.post("/v1/booking/assign-guide", json=payload, headers=user_headers)
    assigned = await test_client.post("/v1/booking/assign-guide", json=payload, headers=admin_headers)

    assert forbidden.status_code == 403
    assert assigned.status_code == 200
    assert assigned.json()["data"]["assignedGuide"] == "guide-3"


@pytest.mark.asyncio
async def test_booking_search_endpoint(test_client, sample_booking_data, user_headers, other_user_headers):
    await create_booking(test_client, sample_booking_data, user_headers)
    await create_booking(test_client, sample_booking_data, other_user_headers)

    response = await test_client.post("/v1/booking/search", json={"limit": 10}, headers=user_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["total"] == 1
    assert data["count"] == 1
    assert data["data"][0]["user"] == "user-1"
    assert data["pagination"] == {"next": None, "prev": None}


@pytest.mark.asyncio
async def test_package_search_endpoint(test_client, package):
    """Package search is public and returns the paginated shape."""
    response = await test_client.post(
        "/v1/package/search",
        json={"category": "spiritual", "fields": "name,price", "limit": 5}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["data"] == [{"id": str(package.id), "name": package.name, "price": package.price}]


@pytest.mark.asyncio
async def test_package_search_bad_sort(test_client, package):
    response = await test_client.post("/v1/package/search", json={"sort": "-secret"})

    assert response.status_code == 400
    assert response.json()["violations"][0]["path"] == "sort"


@pytest.mark.asyncio
async def test_package_categories_endpoint(test_client, package):
    response = await test_client.get("/v1/package/categories")

    assert response.status_code == 200
    assert response.json() == {"success": True, "data": ["cultural", "spiritual"]}


@pytest.mark.asyncio
async def test_package_writes_require_admin(test_client, sample_package_data, user_headers, admin_headers):
    anonymous = await test_client.post("/v1/package/create", json=sample_package_data)
    forbidden = await test_client.post("/v1/package/create", json=sample_package_data, headers=user_headers)
    created = await test_client.post("/v1/package/create", json=sample_package_data, headers=admin_headers)

    assert anonymous.status_code == 401
    assert forbidden.status_code == 403
    assert created.status_code == 201
    data = created.json()["data"]
    assert data["createdBy"] == "admin-1"
    assert data["discountPercentage"] == 17

    updated = await test_client.post(
        "/v1/package/update", json={"id": data["id"], "isActive": False}, headers=admin_headers
    )
    assert updated.status_code == 200
    assert updated.json()["data"]["isActive"] is False

    deleted = await test_client.post("/v1/package/delete", json={"id": data["id"]}, headers=admin_headers)
    assert deleted.status_code == 200

    missing = await test_client.post("/v1/package/get", json={"id": data["id"]})
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_delete_booked_package_conflicts(test_client, package, sample_booking_data, user_headers, admin_headers):
    await create_booking(test_client, sample_booking_data, user_headers)

    response = await test_client.post("/v1/package/delete", json={"id": str(package.id)}, headers=admin_headers)

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_metrics_endpoint(test_client, sample_booking_data, user_headers):
    """Test the Prometheus metrics endpoint."""
    await create_booking(test_client, sample_booking_data, user_headers)

    response = await test_client.get("/metrics")

    assert response.status_code == 200
    assert "bookings_created_total" in response.text


@pytest.mark.asyncio
async def test_unexpected_errors_are_problem_details(test_client, user_headers, monkeypatch):
    """Unexpected failures surface as 500 Problem Details carrying an error_id."""
    async def broken(*args, **kwargs):
        raise RuntimeError("storage went away")

    monkeypatch.setattr(BookingService, "get_booking_for_user", broken)
    monkeypatch.setattr(PackageService, "list_categories", broken)

    booking = await test_client.post("/v1/booking/get", json={"bookingId": "KY1"}, headers=user_headers)
    categories = await test_client.get("/v1/package/categories")

    for response in (booking, categories):
        assert response.status_code == 500
        data = response.json()
        assert data["title"] == "Internal Server Error"
        assert data["status"] == 500
        assert data["error_id"]
        assert "storage went away" not in response.text
