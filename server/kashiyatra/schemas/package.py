"""Package-related Pydantic schemas."""

from datetime import date, datetime
from typing import Annotated, Any, Optional

from pydantic import ConfigDict, Field, StringConstraints

from ..models.package import Difficulty, Meals, PackageCategory
from .common import DocumentModel, PaginatedResponse

PackageName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]


class Duration(DocumentModel):
    days: int = Field(..., ge=1, description="Number of days")
    nights: int = Field(0, ge=0, description="Number of nights")


class ItineraryDay(DocumentModel):
    """One day of a package itinerary."""

    day: int = Field(..., ge=1, description="Day number")
    title: str = Field(..., min_length=1, max_length=200, description="Day title")
    description: Optional[str] = None
    activities: list[str] = Field(default_factory=list)
    meals: Optional[Meals] = None


class Image(DocumentModel):
    url: str = Field(..., min_length=1)
    alt: Optional[str] = None
    caption: Optional[str] = None


class Rating(DocumentModel):
    average: float = Field(0, ge=0, le=5, description="Average rating")
    count: int = Field(0, ge=0, description="Number of ratings")


class CreatePackageRequest(DocumentModel):
    """Request schema for creating a package."""

    name: PackageName = Field(..., description="Package name")
    description: str = Field(..., min_length=1, description="Package description")
    short_description: str = Field(..., min_length=1, max_length=200, description="Short description")
    price: int = Field(..., ge=0, description="Price in minor units")
    original_price: Optional[int] = Field(None, ge=0, description="Price before discount")
    duration: Duration = Field(..., description="Package duration")
    categories: list[PackageCategory] = Field(..., min_length=1, description="Package categories")
    inclusions: list[str] = Field(..., min_length=1, description="What the package includes")
    exclusions: list[str] = Field(default_factory=list)
    itinerary: list[ItineraryDay] = Field(default_factory=list)
    images: list[Image] = Field(default_factory=list)
    highlights: list[str] = Field(default_factory=list)
    difficulty: Difficulty = Field(Difficulty.EASY)
    max_travelers: int = Field(10, ge=1, description="Maximum travelers per booking")
    available_dates: list[date] = Field(default_factory=list)
    is_active: bool = Field(True, description="Whether the package is listed")


class PackageRef(DocumentModel):
    id: str = Field(..., min_length=1, description="Package ID")


class GetPackageRequest(PackageRef):
    """Request schema for getting a package."""


class DeletePackageRequest(PackageRef):
    """Request schema for deleting a package."""


class UpdatePackageRequest(PackageRef):
    """Partial update of a package; omitted fields are left unchanged."""

    model_config = ConfigDict(extra="forbid")

    name: Optional[PackageName] = None
    description: Optional[str] = Field(None, min_length=1)
    short_description: Optional[str] = Field(None, min_length=1, max_length=200)
    price: Optional[int] = Field(None, ge=0)
    original_price: Optional[int] = Field(None, ge=0)
    duration: Optional[Duration] = None
    categories: Optional[list[PackageCategory]] = Field(None, min_length=1)
    inclusions: Optional[list[str]] = Field(None, min_length=1)
    exclusions: Optional[list[str]] = None
    itinerary: Optional[list[ItineraryDay]] = None
    images: Optional[list[Image]] = None
    highlights: Optional[list[str]] = None
    difficulty: Optional[Difficulty] = None
    max_travelers: Optional[int] = Field(None, ge=1)
    available_dates: Optional[list[date]] = None
    is_active: Optional[bool] = None
    rating: Optional[Rating] = None


class SearchPackagesRequest(DocumentModel):
    """Request schema for searching the package catalogue."""

    search: Optional[str] = Field(None, max_length=200, description="Free-text search")
    category: Optional[PackageCategory] = Field(None, description="Filter by category")
    min_price: Optional[int] = Field(None, ge=0, description="Lowest price, inclusive")
    max_price: Optional[int] = Field(None, ge=0, description="Highest price, inclusive")
    duration: Optional[int] = Field(None, ge=1, description="Exact number of days")
    sort: Optional[str] = Field(None, description="Comma-separated sort fields, '-' prefix for descending")
    fields: Optional[str] = Field(None, description="Comma-separated fields to return")
    page: int = Field(1, ge=1, description="Page number")
    limit: Optional[int] = Field(None, ge=1, description="Results per page")


class PackageDocument(DocumentModel):
    """Package response schema."""

    id: str
    name: str
    description: str
    short_description: str
    price: int
    original_price: Optional[int] = None
    discount_percentage: int = 0
    duration: Duration
    categories: list[PackageCategory]
    inclusions: list[str]
    exclusions: list[str]
    itinerary: list[ItineraryDay]
    images: list[Image]
    highlights: list[str]
    difficulty: Difficulty
    max_travelers: int
    available_dates: list[date]
    is_active: bool
    rating: Rating
    created_by: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, package) -> "PackageDocument":
        """Build the document view of a package row."""
        return cls(
            id=str(package.id),
            name=package.name,
            description=package.description,
            short_description=package.short_description,
            price=package.price,
            original_price=package.original_price,
            discount_percentage=package.discount_percentage,
            duration=Duration(days=package.duration_days, nights=package.duration_nights),
            categories=package.categories,
            inclusions=package.inclusions,
            exclusions=package.exclusions,
            itinerary=[ItineraryDay.model_validate(day) for day in package.itinerary],
            images=[Image.model_validate(image) for image in package.images],
            highlights=package.highlights,
            difficulty=package.difficulty,
            max_travelers=package.max_travelers,
            available_dates=package.available_dates,
            is_active=package.is_active,
            rating=Rating(average=package.rating_average, count=package.rating_count),
            created_by=package.created_by,
            created_at=package.created_at,
            updated_at=package.updated_at,
        )


class SearchPackagesResponse(PaginatedResponse):
    """Response schema for package search; documents may be projected."""

    data: list[dict[str, Any]] = Field(..., description="Packages on this page")


class CategoriesResponse(DocumentModel):
    success: bool = True
    data: list[str] = Field(..., description="Distinct categories in use")
