"""Models module exporting all database models."""

from .booking import Booking, BookingStatus, Gender, IdProof, PaymentMethod, PaymentStatus
from .package import Difficulty, Meals, Package, PackageCategory
from .sequence import Sequence

__all__ = [
    # Catalogue entities
    "Package",
    "PackageCategory",
    "Difficulty",
    "Meals",

    # Booking entities
    "Booking",
    "BookingStatus",
    "PaymentStatus",
    "PaymentMethod",
    "Gender",
    "IdProof",

    # Identifier allocation
    "Sequence",
]
