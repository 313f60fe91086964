"""Package service for business logic operations."""

import logging
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import String, cast, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..models.booking import Booking
from ..models.package import Package, PackageCategory
from ..schemas.common import build_pagination
from ..schemas.package import (
    CreatePackageRequest,
    PackageDocument,
    SearchPackagesRequest,
    SearchPackagesResponse,
    UpdatePackageRequest,
)
from .query import parse_sort, resolve_limit

logger = logging.getLogger(__name__)

DEFAULT_SORT = "-createdAt"

SORTABLE_COLUMNS = {
    "createdAt": Package.created_at,
    "price": Package.price,
    "name": Package.name,
    "duration.days": Package.duration_days,
    "rating.average": Package.rating_average,
    "rating.count": Package.rating_count,
}

PROJECTABLE_FIELDS = frozenset(
    field.alias or name for name, field in PackageDocument.model_fields.items()
)


def _column_values(data: dict[str, Any]) -> dict[str, Any]:
    """Map JSON-mode request data onto package column names."""
    values = {}
    for name, value in data.items():
        if name == "duration":
            values["duration_days"] = value["days"]
            values["duration_nights"] = value["nights"]
        elif name == "rating":
            values["rating_average"] = value["average"]
            values["rating_count"] = value["count"]
        else:
            values[name] = value
    return values


def _has_category(category: PackageCategory):
    return cast(Package.categories, String).contains(f'"{category.value}"', autoescape=True)


def project_document(document: dict[str, Any], fields: Optional[str]) -> dict[str, Any]:
    """
    Keep only the requested top-level fields of a package document.

    ``id`` is always kept. Unknown field names are rejected.
    """
    if not fields or not fields.strip():
        return document

    selected = {name.strip() for name in fields.split(",") if name.strip()}
    unknown = sorted(selected - PROJECTABLE_FIELDS)
    if unknown:
        raise ValidationError(
            detail="Unknown fields requested",
            violations=[{"path": "fields", "message": f"'{name}' is not a package field"} for name in unknown],
        )
    selected.add("id")
    return {key: value for key, value in document.items() if key in selected}


class PackageService:
    """Service for package catalogue operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_package(self, request: CreatePackageRequest, created_by: str) -> Package:
        """
        Create a new package.

        Args:
            request: Package creation request
            created_by: ID of the administrator creating the package

        Returns:
            Created package entity
        """
        package = Package(
            created_by=created_by,
            **_column_values(request.model_dump(mode="json")),
        )

        try:
            self.db.add(package)
            await self.db.commit()
            await self.db.refresh(package)
        except IntegrityError as e:
            await self.db.rollback()
            logger.error(
                "Package creation failed - integrity error",
                extra={"package_name": request.name, "error": str(e)}
            )
            raise ConflictError(detail="Package could not be created due to a constraint violation") from e

        logger.info(
            "Package created successfully",
            extra={
                "package_id": str(package.id),
                "package_name": package.name,
                "created_by": created_by
            }
        )
        return package

    async def get_package(self, package_id: str) -> Package:
        """
        Get a package by ID.

        Raises:
            NotFoundError: If the package does not exist
        """
        try:
            package_uuid = UUID(package_id)
        except ValueError:
            raise NotFoundError(resource_type="package", resource_id=package_id)

        package = await self.db.get(Package, package_uuid)
        if package is None:
            logger.warning("Package not found", extra={"package_id": package_id})
            raise NotFoundError(resource_type="package", resource_id=package_id)
        return package

    async def update_package(self, request: UpdatePackageRequest) -> Package:
        """
        Apply a partial update to a package.

        Only fields present in the request are changed; an explicit null is
        honoured for ``originalPrice`` and ignored for required fields.

        Raises:
            NotFoundError: If the package does not exist
        """
        package = await self.get_package(request.id)

        fields = request.model_fields_set - {"id"}
        data = request.model_dump(mode="json", include=fields)
        changes = {
            name: value
            for name, value in data.items()
            if value is not None or name == "original_price"
        }
        for column, value in _column_values(changes).items():
            setattr(package, column, value)

        try:
            await self.db.commit()
            await self.db.refresh(package)
        except IntegrityError as e:
            await self.db.rollback()
            logger.error(
                "Package update failed - integrity error",
                extra={"package_id": request.id, "error": str(e)}
            )
            raise ConflictError(detail="Package update violates a constraint") from e

        logger.info(
            "Package updated",
            extra={"package_id": request.id, "fields": sorted(changes)}
        )
        return package

    async def delete_package(self, package_id: str) -> None:
        """
        Delete a package that has never been booked.

        Raises:
            NotFoundError: If the package does not exist
            ConflictError: If bookings reference the package
        """
        package = await self.get_package(package_id)

        booking_count = await self.db.scalar(
            select(func.count()).select_from(Booking).where(Booking.package_id == package.id)
        )
        if booking_count:
            logger.warning(
                "Package deletion refused - package has bookings",
                extra={"package_id": package_id, "booking_count": booking_count}
            )
            raise ConflictError(
                detail=f"Package {package_id} has bookings and cannot be deleted; deactivate it instead",
                conflicting_resource={"package_id": package_id, "booking_count": booking_count}
            )

        await self.db.delete(package)
        await self.db.commit()
        logger.info("Package deleted", extra={"package_id": package_id})

    async def list_categories(self) -> list[str]:
        """Return the distinct categories used by any package, sorted."""
        result = await self.db.execute(select(Package.categories))
        categories = set()
        for row in result.scalars():
            categories.update(row or [])
        return sorted(categories)

    async def search_packages(self, request: SearchPackagesRequest) -> SearchPackagesResponse:
        """
        Search active packages with filtering, sorting, projection and paging.

        Raises:
            ValidationError: On an unknown sort or projection field, or an
                inverted price range
        """
        if (
            request.min_price is not None
            and request.max_price is not None
            and request.min_price > request.max_price
        ):
            raise ValidationError(
                detail="Invalid price range",
                violations=[{"path": "minPrice", "message": "minPrice cannot exceed maxPrice"}],
            )

        conditions = [Package.is_active.is_(True)]

        if request.search and request.search.strip():
            term = request.search.strip()
            text_matches = [
                Package.name.icontains(term, autoescape=True),
                Package.description.icontains(term, autoescape=True),
            ]
            # Categories are stored as JSON text, so match whole quoted values
            text_matches.extend(
                _has_category(category)
                for category in PackageCategory
                if term.lower() in category.value
            )
            conditions.append(or_(*text_matches))
        if request.category is not None:
            conditions.append(_has_category(request.category))
        if request.min_price is not None:
            conditions.append(Package.price >= request.min_price)
        if request.max_price is not None:
            conditions.append(Package.price <= request.max_price)
        if request.duration is not None:
            conditions.append(Package.duration_days == request.duration)

        order_by = parse_sort(request.sort, SORTABLE_COLUMNS, DEFAULT_SORT)
        limit = resolve_limit(request.limit)
        page = request.page

        total = await self.db.scalar(
            select(func.count()).select_from(Package).where(*conditions)
        )

        stmt = (
            select(Package)
            .where(*conditions)
            .order_by(*order_by, Package.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        packages = result.scalars().all()

        data = [
            project_document(PackageDocument.from_model(package).to_document(), request.fields)
            for package in packages
        ]
        # Validate the projection even when the page is empty
        if not data:
            project_document({}, request.fields)

        logger.info(
            "Package search completed",
            extra={"total": total, "page": page, "limit": limit, "returned": len(data)}
        )

        return SearchPackagesResponse(
            count=len(data),
            total=total,
            pagination=build_pagination(page, limit, total),
            data=data,
        )
