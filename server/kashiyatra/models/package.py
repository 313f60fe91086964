"""Package model definition."""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from sqlalchemy import JSON, Boolean, CheckConstraint, Float, Integer, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

if TYPE_CHECKING:
    from .booking import Booking

from ..core.database import Base


class PackageCategory(str, Enum):
    """Package category enumeration."""
    SPIRITUAL = "spiritual"
    CULTURAL = "cultural"
    BUDGET = "budget"
    PREMIUM = "premium"
    FAMILY = "family"
    ADVENTURE = "adventure"
    LUXURY = "luxury"


class Difficulty(str, Enum):
    EASY = "easy"
    MODERATE = "moderate"
    DIFFICULT = "difficult"


class Meals(str, Enum):
    """Meals included on an itinerary day."""
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    ALL = "all"
    NONE = "none"


class Package(Base):
    """Package entity representing a sellable multi-day itinerary."""

    __tablename__ = "packages"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Descriptive fields
    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    short_description: Mapped[str] = mapped_column(String(200), nullable=False)

    # Price information (minor units)
    price: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    original_price: Mapped[int | None] = mapped_column(Integer, nullable=True)

    duration_days: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    duration_nights: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    categories: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    inclusions: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    exclusions: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    itinerary: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    images: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    highlights: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    difficulty: Mapped[str] = mapped_column(String(20), nullable=False, default=Difficulty.EASY.value)
    max_travelers: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    available_dates: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)

    rating_average: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    rating_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_by: Mapped[str] = mapped_column(String(128), nullable=False)

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
        CheckConstraint("price >= 0", name="ck_package_price_non_negative"),
        CheckConstraint("original_price IS NULL OR original_price >= 0", name="ck_package_original_price_non_negative"),
        CheckConstraint("duration_days >= 1", name="ck_package_duration_days_positive"),
        CheckConstraint("rating_average >= 0 AND rating_average <= 5", name="ck_package_rating_range"),
    )

    # Relationships
    bookings: Mapped[list["Booking"]] = relationship(
        "Booking",
        back_populates="package",
        passive_deletes="all"
    )

    @property
    def discount_percentage(self) -> int:
        """Percentage saved against the original price, 0 when not discounted."""
        if self.original_price and self.original_price > self.price:
            return round((self.original_price - self.price) / self.original_price * 100)
        return 0

    def __repr__(self) -> str:
        return f"<Package(id={self.id}, name='{self.name}', price={self.price}, is_active={self.is_active})>"
