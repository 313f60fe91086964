"""Booking model definition."""

from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base

if TYPE_CHECKING:
    from .package import Package


class BookingStatus(str, Enum):
    """Booking status enumeration."""
    CONFIRMED = "confirmed"
    PENDING = "pending"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class PaymentStatus(str, Enum):
    """Payment status enumeration."""
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    """Accepted payment methods."""
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    UPI = "upi"
    NETBANKING = "netbanking"
    WALLET = "wallet"


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class IdProof(str, Enum):
    """Identity documents a traveler may present."""
    AADHAR = "aadhar"
    PASSPORT = "passport"
    DRIVING_LICENSE = "driving_license"
    VOTER_ID = "voter_id"


class Booking(Base):
    """Booking entity representing a traveler's reservation against a package."""

    __tablename__ = "bookings"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Human-facing identifier, assigned once at creation
    booking_id: Mapped[str] = mapped_column(String(40), nullable=False, unique=True, index=True)

    # Ownership references
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    package_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("packages.id"),
        nullable=False,
        index=True
    )

    # Ordered list of traveler records
    travelers: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    # Trip details
    start_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)

    # Contact information
    contact_email: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_phone: Mapped[str] = mapped_column(String(32), nullable=False)
    emergency_contact: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    # Pricing (minor currency units, stored exactly as supplied)
    package_price: Mapped[int] = mapped_column(Integer, nullable=False)
    extra_charges: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    discount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    tax_amount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    final_amount: Mapped[int] = mapped_column(Integer, nullable=False)

    # Payment
    payment_status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PaymentStatus.PENDING.value,
        index=True
    )
    payment_method: Mapped[str | None] = mapped_column(String(20), nullable=True)
    transaction_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    razorpay_order_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    razorpay_payment_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=BookingStatus.PENDING.value,
        index=True
    )
    special_requests: Mapped[str | None] = mapped_column(Text, nullable=True)
    assigned_guide: Mapped[str | None] = mapped_column(String(128), nullable=True, index=True)

    # Cancellation is a soft state; bookings are never deleted
    is_cancelled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    refund_amount: Mapped[int | None] = mapped_column(Integer, nullable=True)

    reviews: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        server_default=func.now(),
        index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        nullable=False,
        server_default=func.now(),
        onupdate=func.now()
    )

    # Constraints
    __table_args__ = (
        CheckConstraint("duration > 0", name="ck_booking_duration_positive"),
        CheckConstraint("length(booking_id) > 0", name="ck_booking_booking_id_not_empty"),
        CheckConstraint("package_price >= 0", name="ck_booking_package_price_non_negative"),
        CheckConstraint("final_amount >= 0", name="ck_booking_final_amount_non_negative"),
    )

    # Relationships
    package: Mapped["Package"] = relationship("Package", back_populates="bookings")

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, booking_id='{self.booking_id}', "
            f"package_id={self.package_id}, status={self.status}, "
            f"payment_status={self.payment_status}, is_cancelled={self.is_cancelled})>"
        )
