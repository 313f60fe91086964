"""Booking router for booking lifecycle operations."""

import logging
from typing import Awaitable, Callable

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import AdminAuth, RequiredAuth
from ..core.exceptions import InternalServerError, ProblemDetailsException
from ..models.booking import Booking
from ..schemas.booking import (
    AddReviewRequest,
    AssignGuideRequest,
    BookingDocument,
    CancelBookingRequest,
    CreateBookingRequest,
    GetBookingRequest,
    SearchBookingsRequest,
    SearchBookingsResponse,
    UpdateBookingRequest,
    UpdatePaymentRequest,
)
from ..services.booking_service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/booking", tags=["booking"])

# Define dependencies to avoid B008 linting errors
DB_DEPENDENCY = Depends(get_db)


async def _respond(
    operation: str,
    call: Callable[[], Awaitable[Booking]],
    status_code: int = 200,
) -> JSONResponse:
    """Run a booking operation and render the booking document."""
    try:
        booking = await call()
        return JSONResponse(
            status_code=status_code,
            content={"success": True, "data": BookingDocument.from_model(booking).to_document()}
        )

    except ProblemDetailsException:
        # Re-raise Problem Details exceptions as-is
        raise

    except Exception as e:
        error = InternalServerError()
        logger.error(
            f"Unexpected error in booking {operation}",
            extra={"operation": operation, "error_id": error.error_id, "error": str(e)},
            exc_info=True
        )
        raise error from e


@router.post("/create", status_code=201)
async def create_booking(
    request: CreateBookingRequest,
    user: dict = RequiredAuth,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """
    Create a booking for the authenticated user.

    The bookingId is generated and the trip end date derived when omitted.
    """
    service = BookingService(db)
    return await _respond(
        "creation",
        lambda: service.create_booking(request, user["user_id"]),
        status_code=201
    )


@router.post("/get")
async def get_booking(
    request: GetBookingRequest,
    user: dict = RequiredAuth,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """Get a booking by id or bookingId."""
    service = BookingService(db)
    return await _respond("retrieval", lambda: service.get_booking_for_user(request.ref, user))


@router.post("/search", response_model=SearchBookingsResponse)
async def search_bookings(
    request: SearchBookingsRequest,
    user: dict = RequiredAuth,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """
    List bookings with filters, sorting and pagination.

    Non-admin callers only see their own bookings.
    """
    service = BookingService(db)

    try:
        response_data = await service.search_bookings(request, user)

        logger.info(
            "Bookings searched",
            extra={
                "user_id": user["user_id"],
                "total": response_data.total,
                "returned": response_data.count
            }
        )

        return JSONResponse(
            status_code=200,
            content=response_data.model_dump(mode="json", by_alias=True)
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        error = InternalServerError()
        logger.error(
            "Unexpected error in booking search",
            extra={"user_id": user["user_id"], "error_id": error.error_id, "error": str(e)},
            exc_info=True
        )
        raise error from e


@router.post("/update")
async def update_booking(
    request: UpdateBookingRequest,
    user: dict = RequiredAuth,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """Partially update a booking. The bookingId can never be changed."""
    service = BookingService(db)
    return await _respond("update", lambda: service.update_booking(request, user))


@router.post("/payment")
async def update_payment(
    request: UpdatePaymentRequest,
    user: dict = RequiredAuth,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """Update the payment record of a booking."""
    service = BookingService(db)
    return await _respond("payment update", lambda: service.update_payment(request, user))


@router.post("/assign-guide")
async def assign_guide(
    request: AssignGuideRequest,
    user: dict = AdminAuth,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """Assign a guide to a booking (admin only)."""
    service = BookingService(db)
    return await _respond("guide assignment", lambda: service.assign_guide(request))


@router.post("/cancel")
async def cancel_booking(
    request: CancelBookingRequest,
    user: dict = RequiredAuth,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """
    Cancel a booking.

    Booking and payment status are left unchanged; repeating the call
    returns the booking as it is.
    """
    service = BookingService(db)
    return await _respond("cancellation", lambda: service.cancel_booking(request, user))


@router.post("/review")
async def add_review(
    request: AddReviewRequest,
    user: dict = RequiredAuth,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """Add a review to a booking."""
    service = BookingService(db)
    return await _respond("review", lambda: service.add_review(request, user))
