"""Service layer package."""

from .booking_service import BookingService
from .package_service import PackageService
from .sequence_service import SequenceService

__all__ = [
    "BookingService",
    "PackageService",
    "SequenceService",
]
