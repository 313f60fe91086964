"""Booking derivation and validation rules.

These functions hold no database state. ``BookingService`` applies them to a
booking row before it is persisted, which keeps the rules testable on their
own.
"""

import re
import time
from datetime import date, timedelta
from enum import Enum
from typing import Any, Optional

from ..models.booking import Booking, BookingStatus, Gender, IdProof, PaymentMethod, PaymentStatus
from ..schemas.common import Violation


def derive_end_date(start_date: date, duration: int, end_date: Optional[date] = None) -> date:
    """
    Return the trip's end date.

    An explicit ``end_date`` always wins. Otherwise the end date is
    ``start_date`` plus ``duration`` calendar days.
    """
    if end_date is not None:
        return end_date
    return start_date + timedelta(days=duration)


def format_booking_id(prefix: str, sequence: int, now_ms: Optional[int] = None) -> str:
    """Format a booking identifier as ``<prefix><epoch millis><sequence>``."""
    if sequence < 1:
        raise ValueError("sequence must be positive")
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    return f"{prefix}{now_ms}{sequence}"


def booking_id_pattern(prefix: str) -> re.Pattern:
    return re.compile(rf"^{re.escape(prefix)}\d+$")


def pricing_discrepancy(
    package_price: int,
    extra_charges: int,
    tax_amount: int,
    discount: int,
    final_amount: int,
) -> int:
    """
    Difference between the supplied final amount and the sum of its components.

    Zero means the pricing record adds up. Totals are never corrected here;
    callers only use the result to flag a mismatch.
    """
    expected = package_price + extra_charges + tax_amount - discount
    return final_amount - expected


def _values(enum_cls: type[Enum]) -> set[str]:
    return {member.value for member in enum_cls}


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_booking(booking: Booking) -> list[Violation]:
    """
    Check a booking row against the booking document rules.

    Returns one violation per offending field, using document paths such as
    ``tripDetails.duration`` or ``reviews[0].rating``. An empty list means
    the booking may be persisted.
    """
    violations: list[Violation] = []

    def add(path: str, message: str) -> None:
        violations.append(Violation(path=path, message=message))

    required = (
        ("bookingId", booking.booking_id),
        ("user", booking.user_id),
        ("package", booking.package_id),
        ("tripDetails.startDate", booking.start_date),
        ("tripDetails.duration", booking.duration),
        ("contactInfo.email", booking.contact_email),
        ("contactInfo.phone", booking.contact_phone),
        ("pricing.packagePrice", booking.package_price),
        ("pricing.totalAmount", booking.total_amount),
        ("pricing.finalAmount", booking.final_amount),
    )
    for path, value in required:
        if _is_missing(value):
            add(path, "Field is required")

    if booking.duration is not None and booking.duration <= 0:
        add("tripDetails.duration", "Duration must be at least 1 day")

    if booking.start_date and booking.end_date and booking.end_date < booking.start_date:
        add("tripDetails.endDate", "End date cannot be before the start date")

    for index, traveler in enumerate(booking.travelers or []):
        if _is_missing(traveler.get("name")):
            add(f"travelers[{index}].name", "Traveler name is required")
        gender = traveler.get("gender")
        if gender is not None and gender not in _values(Gender):
            add(f"travelers[{index}].gender", f"'{gender}' is not a valid gender")
        id_proof = traveler.get("idProof")
        if id_proof is not None and id_proof not in _values(IdProof):
            add(f"travelers[{index}].idProof", f"'{id_proof}' is not a valid ID proof")
        age = traveler.get("age")
        if age is not None and age < 0:
            add(f"travelers[{index}].age", "Age cannot be negative")

    if booking.status not in _values(BookingStatus):
        add("status", f"'{booking.status}' is not a valid booking status")
    if booking.payment_status not in _values(PaymentStatus):
        add("payment.status", f"'{booking.payment_status}' is not a valid payment status")
    if booking.payment_method is not None and booking.payment_method not in _values(PaymentMethod):
        add("payment.method", f"'{booking.payment_method}' is not a valid payment method")

    amounts = (
        ("pricing.packagePrice", booking.package_price),
        ("pricing.extraCharges", booking.extra_charges),
        ("pricing.discount", booking.discount),
        ("pricing.taxAmount", booking.tax_amount),
        ("pricing.totalAmount", booking.total_amount),
        ("pricing.finalAmount", booking.final_amount),
        ("cancellation.refundAmount", booking.refund_amount),
    )
    for path, amount in amounts:
        if amount is not None and amount < 0:
            add(path, "Amount cannot be negative")

    for index, review in enumerate(booking.reviews or []):
        rating = review.get("rating")
        if not isinstance(rating, int) or not 1 <= rating <= 5:
            add(f"reviews[{index}].rating", "Rating must be between 1 and 5")

    return violations
