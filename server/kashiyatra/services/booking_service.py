"""Booking service for business logic operations."""

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.dependencies import is_admin
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..core.observability import metrics_collector
from ..models.booking import Booking, PaymentStatus
from ..schemas.booking import (
    AddReviewRequest,
    AssignGuideRequest,
    BookingDocument,
    CancelBookingRequest,
    CreateBookingRequest,
    Review,
    SearchBookingsRequest,
    SearchBookingsResponse,
    UpdateBookingRequest,
    UpdatePaymentRequest,
)
from ..schemas.common import build_pagination
from .booking_rules import derive_end_date, format_booking_id, pricing_discrepancy, validate_booking
from .package_service import PackageService
from .query import parse_sort, resolve_limit
from .sequence_service import BOOKING_SEQUENCE, SequenceService

logger = logging.getLogger(__name__)

DEFAULT_SORT = "-createdAt"

SORTABLE_COLUMNS = {
    "createdAt": Booking.created_at,
    "tripDetails.startDate": Booking.start_date,
    "pricing.finalAmount": Booking.final_amount,
    "status": Booking.status,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BookingService:
    """Service for booking lifecycle operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.package_service = PackageService(db)
        self.sequence_service = SequenceService(db)

    async def _allocate_booking_id(self) -> str:
        """Draw the next booking sequence value and format the identifier."""
        sequence = await self.sequence_service.next_value(BOOKING_SEQUENCE)
        return format_booking_id(settings.booking_id_prefix, sequence)

    async def _validate(self, booking: Booking) -> None:
        """
        Reject a booking that breaks the document rules.

        The open transaction is rolled back before raising so a pending
        identifier allocation or partial edit is discarded. Rollback expires
        the booking, so everything reported is read beforehand.

        Raises:
            ValidationError: With one violation per offending field
        """
        violations = [v.model_dump() for v in validate_booking(booking)]
        if violations:
            logger.warning(
                "Booking validation failed",
                extra={"booking_id": booking.booking_id, "violations": violations}
            )
            await self.db.rollback()
            raise ValidationError(detail="Booking failed validation", violations=violations)

    def _check_pricing(self, booking: Booking) -> None:
        """Flag, but never correct, a pricing record that does not add up."""
        difference = pricing_discrepancy(
            booking.package_price,
            booking.extra_charges,
            booking.tax_amount,
            booking.discount,
            booking.final_amount,
        )
        if difference:
            metrics_collector.record_pricing_mismatch()
            logger.warning(
                "Booking pricing does not add up",
                extra={
                    "booking_id": booking.booking_id,
                    "final_amount": booking.final_amount,
                    "difference": difference
                }
            )

    async def _save(self, booking: Booking, action: str) -> Booking:
        """Validate, commit and reload a booking."""
        await self._validate(booking)
        booking_ref = booking.booking_id
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.error(
                "Booking write failed - integrity error",
                extra={"booking_id": booking_ref, "action": action, "error": str(e)}
            )
            raise ConflictError(
                detail="Booking could not be saved due to a constraint violation",
                conflicting_resource={"booking_id": booking_ref}
            ) from e
        await self.db.refresh(booking)
        return booking

    async def create_booking(self, request: CreateBookingRequest, user_id: str) -> Booking:
        """
        Create a booking for a package.

        The booking identifier is allocated from the booking sequence in the
        same transaction as the insert. The end date is derived from the
        start date and duration unless one is supplied.

        Args:
            request: Booking creation request
            user_id: ID of the user who owns the booking

        Returns:
            Created booking entity

        Raises:
            NotFoundError: If the package does not exist
            ValidationError: If the booking breaks a document rule
        """
        package = await self.package_service.get_package(request.package)

        trip = request.trip_details
        pricing = request.pricing
        contact = request.contact_info

        booking = Booking(
            user_id=user_id,
            package_id=package.id,
            travelers=[traveler.to_document() for traveler in request.travelers],
            start_date=trip.start_date,
            duration=trip.duration,
            end_date=derive_end_date(trip.start_date, trip.duration, trip.end_date),
            contact_email=contact.email,
            contact_phone=contact.phone,
            emergency_contact=contact.emergency_contact.to_document() if contact.emergency_contact else None,
            package_price=pricing.package_price,
            extra_charges=pricing.extra_charges,
            discount=pricing.discount,
            tax_amount=pricing.tax_amount,
            total_amount=pricing.total_amount,
            final_amount=pricing.final_amount,
            payment_status=PaymentStatus.PENDING.value,
            payment_method=request.payment_method.value if request.payment_method else None,
            status=request.status.value,
            special_requests=request.special_requests,
            is_cancelled=False,
            reviews=[],
        )

        # First write of the transaction; holds the counter row until commit
        booking.booking_id = await self._allocate_booking_id()

        self.db.add(booking)
        await self._save(booking, action="create")
        self._check_pricing(booking)

        metrics_collector.record_booking_created(str(package.id))
        logger.info(
            "Booking created successfully",
            extra={
                "booking_id": booking.booking_id,
                "id": str(booking.id),
                "package_id": str(package.id),
                "user_id": user_id,
                "start_date": booking.start_date.isoformat(),
                "end_date": booking.end_date.isoformat() if booking.end_date else None,
                "travelers": len(booking.travelers)
            }
        )
        return booking

    async def get_booking(self, ref: str) -> Booking:
        """
        Get a booking by internal ID or by its bookingId.

        Raises:
            NotFoundError: If no booking matches
        """
        try:
            stmt = select(Booking).where(Booking.id == UUID(ref))
        except ValueError:
            stmt = select(Booking).where(Booking.booking_id == ref)

        result = await self.db.execute(stmt)
        booking = result.scalar_one_or_none()
        if booking is None:
            logger.warning("Booking not found", extra={"booking_ref": ref})
            raise NotFoundError(resource_type="booking", resource_id=ref)
        return booking

    async def get_booking_for_user(self, ref: str, user: dict) -> Booking:
        """
        Get a booking the user is allowed to see.

        Raises:
            NotFoundError: If no booking matches
            AuthorizationError: If the user neither owns the booking nor is an admin
        """
        booking = await self.get_booking(ref)
        if booking.user_id != user["user_id"] and not is_admin(user):
            logger.warning(
                "Booking access denied",
                extra={"booking_id": booking.booking_id, "user_id": user["user_id"]}
            )
            raise AuthorizationError(detail="Not authorized to access this booking")
        return booking

    async def search_bookings(self, request: SearchBookingsRequest, user: dict) -> SearchBookingsResponse:
        """
        List bookings matching the filters.

        Non-admin users only ever see their own bookings, whatever ``user``
        filter they send.
        """
        conditions = []

        if is_admin(user):
            if request.user:
                conditions.append(Booking.user_id == request.user)
        else:
            conditions.append(Booking.user_id == user["user_id"])

        if request.package:
            try:
                conditions.append(Booking.package_id == UUID(request.package))
            except ValueError:
                raise ValidationError(
                    detail="Invalid package filter",
                    violations=[{"path": "package", "message": "package must be a package ID"}],
                )
        if request.status is not None:
            conditions.append(Booking.status == request.status.value)
        if request.payment_status is not None:
            conditions.append(Booking.payment_status == request.payment_status.value)
        if request.is_cancelled is not None:
            conditions.append(Booking.is_cancelled.is_(request.is_cancelled))

        order_by = parse_sort(request.sort, SORTABLE_COLUMNS, DEFAULT_SORT)
        limit = resolve_limit(request.limit)
        page = request.page

        total = await self.db.scalar(
            select(func.count()).select_from(Booking).where(*conditions)
        )
        stmt = (
            select(Booking)
            .where(*conditions)
            .order_by(*order_by, Booking.booking_id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        bookings = result.scalars().all()

        return SearchBookingsResponse(
            count=len(bookings),
            total=total,
            pagination=build_pagination(page, limit, total),
            data=[BookingDocument.from_model(booking) for booking in bookings],
        )

    async def update_booking(self, request: UpdateBookingRequest, user: dict) -> Booking:
        """
        Apply a partial update to the caller-editable fields of a booking.

        The end date is not re-derived when the start date or duration
        changes; it only moves when ``tripDetails.endDate`` is sent.

        Raises:
            NotFoundError: If no booking matches
            AuthorizationError: If the user may not edit the booking
            ValidationError: If the result breaks a document rule
        """
        booking = await self.get_booking_for_user(request.id, user)
        fields = request.model_fields_set

        if request.travelers is not None:
            booking.travelers = [traveler.to_document() for traveler in request.travelers]

        if request.trip_details is not None:
            trip = request.trip_details
            if trip.start_date is not None:
                booking.start_date = trip.start_date
            if trip.duration is not None:
                booking.duration = trip.duration
            if trip.end_date is not None:
                booking.end_date = trip.end_date

        if request.contact_info is not None:
            contact = request.contact_info
            booking.contact_email = contact.email
            booking.contact_phone = contact.phone
            booking.emergency_contact = (
                contact.emergency_contact.to_document() if contact.emergency_contact else None
            )

        if request.pricing is not None:
            pricing = request.pricing
            booking.package_price = pricing.package_price
            booking.extra_charges = pricing.extra_charges
            booking.discount = pricing.discount
            booking.tax_amount = pricing.tax_amount
            booking.total_amount = pricing.total_amount
            booking.final_amount = pricing.final_amount

        if "special_requests" in fields:
            booking.special_requests = request.special_requests

        if request.status is not None:
            booking.status = request.status.value

        await self._save(booking, action="update")
        if request.pricing is not None:
            self._check_pricing(booking)

        logger.info(
            "Booking updated",
            extra={
                "booking_id": booking.booking_id,
                "fields": sorted(fields - {"id"}),
                "user_id": user["user_id"]
            }
        )
        return booking

    async def update_payment(self, request: UpdatePaymentRequest, user: dict) -> Booking:
        """
        Record a payment state change.

        Payment status is independent of the booking status. When the
        payment becomes paid without an explicit time, paidAt is stamped
        with the current time once.
        """
        booking = await self.get_booking_for_user(request.id, user)

        booking.payment_status = request.status.value
        if request.method is not None:
            booking.payment_method = request.method.value
        if request.transaction_id is not None:
            booking.transaction_id = request.transaction_id
        if request.razorpay_order_id is not None:
            booking.razorpay_order_id = request.razorpay_order_id
        if request.razorpay_payment_id is not None:
            booking.razorpay_payment_id = request.razorpay_payment_id

        if request.paid_at is not None:
            booking.paid_at = request.paid_at
        elif request.status == PaymentStatus.PAID and booking.paid_at is None:
            booking.paid_at = _utcnow()

        await self._save(booking, action="payment")

        metrics_collector.record_payment_update(booking.payment_status)
        logger.info(
            "Booking payment updated",
            extra={
                "booking_id": booking.booking_id,
                "payment_status": booking.payment_status,
                "transaction_id": booking.transaction_id
            }
        )
        return booking

    async def assign_guide(self, request: AssignGuideRequest) -> Booking:
        """Assign a guide to a booking; callers must already be admins."""
        booking = await self.get_booking(request.id)
        booking.assigned_guide = request.guide

        await self._save(booking, action="assign_guide")

        logger.info(
            "Guide assigned to booking",
            extra={"booking_id": booking.booking_id, "guide": request.guide}
        )
        return booking

    async def cancel_booking(self, request: CancelBookingRequest, user: dict) -> Booking:
        """
        Cancel a booking.

        Sets the cancellation record only; the booking status and payment
        status are left as they are. Cancelling an already-cancelled booking
        returns it unchanged.

        Raises:
            NotFoundError: If no booking matches
            AuthorizationError: If the user may not cancel the booking
        """
        booking = await self.get_booking_for_user(request.id, user)

        if booking.is_cancelled:
            logger.info(
                "Booking already cancelled",
                extra={"booking_id": booking.booking_id}
            )
            return booking

        booking.is_cancelled = True
        booking.cancelled_at = _utcnow()
        booking.cancellation_reason = request.reason
        booking.refund_amount = request.refund_amount

        await self._save(booking, action="cancel")

        metrics_collector.record_booking_cancelled()
        logger.info(
            "Booking cancelled successfully",
            extra={
                "booking_id": booking.booking_id,
                "reason": request.reason,
                "refund_amount": request.refund_amount,
                "user_id": user["user_id"]
            }
        )
        return booking

    async def add_review(self, request: AddReviewRequest, user: dict) -> Booking:
        """
        Append a review to a booking.

        Raises:
            NotFoundError: If no booking matches
            AuthorizationError: If the user may not review the booking
        """
        booking = await self.get_booking_for_user(request.id, user)

        review = Review(rating=request.rating, comment=request.comment, created_at=_utcnow())
        # Reassign so the JSON column is marked dirty
        booking.reviews = [*booking.reviews, review.to_document()]

        await self._save(booking, action="review")

        metrics_collector.record_review_added(request.rating)
        logger.info(
            "Review added to booking",
            extra={
                "booking_id": booking.booking_id,
                "rating": request.rating,
                "review_count": len(booking.reviews)
            }
        )
        return booking
