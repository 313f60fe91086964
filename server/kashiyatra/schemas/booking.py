"""Booking-related Pydantic schemas."""

from datetime import date, datetime
from typing import Optional

from pydantic import ConfigDict, Field, model_validator

from ..models.booking import BookingStatus, Gender, IdProof, PaymentMethod, PaymentStatus
from .common import DocumentModel, PaginatedResponse

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class Traveler(DocumentModel):
    """One person's identity details attached to a booking."""

    name: str = Field(..., min_length=1, max_length=120, description="Traveler full name")
    age: Optional[int] = Field(None, ge=0, le=150, description="Age in years")
    gender: Optional[Gender] = Field(None, description="Gender")
    id_proof: Optional[IdProof] = Field(None, description="Identity document type")
    id_number: Optional[str] = Field(None, max_length=64, description="Identity document number")


class TripDetails(DocumentModel):
    """Trip dates; endDate is derived from startDate + duration when omitted."""

    start_date: date = Field(..., description="First day of the trip")
    duration: int = Field(..., gt=0, description="Trip length in days")
    end_date: Optional[date] = Field(None, description="Last day of the trip")


class TripDetailsUpdate(DocumentModel):
    start_date: Optional[date] = None
    duration: Optional[int] = Field(None, gt=0)
    end_date: Optional[date] = None


class EmergencyContact(DocumentModel):
    name: Optional[str] = Field(None, max_length=120)
    phone: Optional[str] = Field(None, max_length=32)
    relation: Optional[str] = Field(None, max_length=64)


class ContactInfo(DocumentModel):
    """Contact details for the booking."""

    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN, description="Contact email")
    phone: str = Field(..., min_length=1, max_length=32, description="Contact phone")
    emergency_contact: Optional[EmergencyContact] = Field(None, description="Emergency contact")


class Pricing(DocumentModel):
    """Caller-supplied pricing record, amounts in minor currency units."""

    package_price: int = Field(..., ge=0, description="Package price")
    extra_charges: int = Field(0, ge=0, description="Extra charges")
    discount: int = Field(0, ge=0, description="Discount")
    tax_amount: int = Field(0, ge=0, description="Tax amount")
    total_amount: int = Field(..., ge=0, description="Total before tax and discount as supplied")
    final_amount: int = Field(..., ge=0, description="Amount payable as supplied")


class PaymentInfo(DocumentModel):
    """Payment state of a booking."""

    status: PaymentStatus = Field(PaymentStatus.PENDING, description="Payment status")
    method: Optional[PaymentMethod] = Field(None, description="Payment method")
    transaction_id: Optional[str] = Field(None, description="Gateway transaction ID")
    razorpay_order_id: Optional[str] = Field(None, description="Razorpay order ID")
    razorpay_payment_id: Optional[str] = Field(None, description="Razorpay payment ID")
    paid_at: Optional[datetime] = Field(None, description="Payment time (ISO 8601)")


class Cancellation(DocumentModel):
    is_cancelled: bool = Field(False, description="Whether the booking is cancelled")
    cancelled_at: Optional[datetime] = None
    reason: Optional[str] = None
    refund_amount: Optional[int] = None


class Review(DocumentModel):
    """A traveler review of a booking."""

    rating: int = Field(..., ge=1, le=5, description="Rating from 1 to 5")
    comment: Optional[str] = Field(None, max_length=2000, description="Review text")
    created_at: datetime = Field(..., description="Review time (ISO 8601)")


class CreateBookingRequest(DocumentModel):
    """Request schema for creating a booking."""

    package: str = Field(..., description="Package to book")
    travelers: list[Traveler] = Field(default_factory=list, description="Travelers on the booking")
    trip_details: TripDetails = Field(..., description="Trip dates")
    contact_info: ContactInfo = Field(..., description="Contact details")
    pricing: Pricing = Field(..., description="Pricing record")
    payment_method: Optional[PaymentMethod] = Field(None, description="Intended payment method")
    status: BookingStatus = Field(BookingStatus.PENDING, description="Initial booking status")
    special_requests: Optional[str] = Field(None, max_length=2000, description="Special requests")


class BookingRef(DocumentModel):
    """Identifies a booking by internal ID or by its bookingId."""

    id: str = Field(..., min_length=1, description="Internal booking ID or bookingId")


class GetBookingRequest(DocumentModel):
    """Request schema for getting a booking by ``id`` or ``bookingId``."""

    id: Optional[str] = Field(None, min_length=1, description="Internal booking ID")
    booking_id: Optional[str] = Field(None, min_length=1, description="Booking identifier")

    @model_validator(mode="after")
    def check_reference(self) -> "GetBookingRequest":
        if not self.id and not self.booking_id:
            raise ValueError("Either id or bookingId is required")
        return self

    @property
    def ref(self) -> str:
        return self.id or self.booking_id


class SearchBookingsRequest(DocumentModel):
    """Request schema for listing bookings."""

    user: Optional[str] = Field(None, description="Filter by owner (admins only)")
    package: Optional[str] = Field(None, description="Filter by package ID")
    status: Optional[BookingStatus] = Field(None, description="Filter by booking status")
    payment_status: Optional[PaymentStatus] = Field(None, description="Filter by payment status")
    is_cancelled: Optional[bool] = Field(None, description="Filter by cancellation flag")
    sort: Optional[str] = Field(None, description="Comma-separated sort fields, '-' prefix for descending")
    page: int = Field(1, ge=1, description="Page number")
    limit: Optional[int] = Field(None, ge=1, description="Results per page")


class UpdateBookingRequest(BookingRef):
    """Partial update of the caller-editable booking fields."""

    model_config = ConfigDict(extra="forbid")

    travelers: Optional[list[Traveler]] = None
    trip_details: Optional[TripDetailsUpdate] = None
    contact_info: Optional[ContactInfo] = None
    pricing: Optional[Pricing] = None
    special_requests: Optional[str] = Field(None, max_length=2000)
    status: Optional[BookingStatus] = None


class UpdatePaymentRequest(BookingRef):
    """Request schema for updating a booking's payment record."""

    status: PaymentStatus = Field(..., description="New payment status")
    method: Optional[PaymentMethod] = None
    transaction_id: Optional[str] = Field(None, max_length=128)
    razorpay_order_id: Optional[str] = Field(None, max_length=128)
    razorpay_payment_id: Optional[str] = Field(None, max_length=128)
    paid_at: Optional[datetime] = None


class AssignGuideRequest(BookingRef):
    guide: str = Field(..., min_length=1, max_length=128, description="Guide user ID")


class CancelBookingRequest(BookingRef):
    """Request schema for cancelling a booking."""

    reason: Optional[str] = Field(None, max_length=2000, description="Cancellation reason")
    refund_amount: Optional[int] = Field(None, ge=0, description="Amount to refund")


class AddReviewRequest(BookingRef):
    """Request schema for reviewing a booking."""

    rating: int = Field(..., ge=1, le=5, description="Rating from 1 to 5")
    comment: Optional[str] = Field(None, max_length=2000, description="Review text")


class BookingDocument(DocumentModel):
    """Booking response schema."""

    id: str = Field(..., description="Internal booking ID")
    booking_id: str = Field(..., description="Booking identifier")
    user: str = Field(..., description="Owner user ID")
    package: str = Field(..., description="Booked package ID")
    travelers: list[Traveler]
    trip_details: TripDetails
    contact_info: ContactInfo
    pricing: Pricing
    payment: PaymentInfo
    status: BookingStatus
    special_requests: Optional[str] = None
    assigned_guide: Optional[str] = None
    cancellation: Cancellation
    reviews: list[Review]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, booking) -> "BookingDocument":
        """Build the document view of a booking row."""
        return cls(
            id=str(booking.id),
            booking_id=booking.booking_id,
            user=booking.user_id,
            package=str(booking.package_id),
            travelers=[Traveler.model_validate(t) for t in booking.travelers],
            trip_details=TripDetails(
                start_date=booking.start_date,
                duration=booking.duration,
                end_date=booking.end_date,
            ),
            contact_info=ContactInfo(
                email=booking.contact_email,
                phone=booking.contact_phone,
                emergency_contact=booking.emergency_contact,
            ),
            pricing=Pricing(
                package_price=booking.package_price,
                extra_charges=booking.extra_charges,
                discount=booking.discount,
                tax_amount=booking.tax_amount,
                total_amount=booking.total_amount,
                final_amount=booking.final_amount,
            ),
            payment=PaymentInfo(
                status=booking.payment_status,
                method=booking.payment_method,
                transaction_id=booking.transaction_id,
                razorpay_order_id=booking.razorpay_order_id,
                razorpay_payment_id=booking.razorpay_payment_id,
                paid_at=booking.paid_at,
            ),
            status=booking.status,
            special_requests=booking.special_requests,
            assigned_guide=booking.assigned_guide,
            cancellation=Cancellation(
                is_cancelled=booking.is_cancelled,
                cancelled_at=booking.cancelled_at,
                reason=booking.cancellation_reason,
                refund_amount=booking.refund_amount,
            ),
            reviews=[Review.model_validate(r) for r in booking.reviews],
            created_at=booking.created_at,
            updated_at=booking.updated_at,
        )


class SearchBookingsResponse(PaginatedResponse):
    """Response schema for booking search."""

    data: list[BookingDocument] = Field(..., description="Bookings on this page")
