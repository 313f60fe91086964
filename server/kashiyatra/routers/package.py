"""Package router for catalogue operations."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import AdminAuth
from ..core.exceptions import InternalServerError, ProblemDetailsException
from ..schemas.package import (
    CategoriesResponse,
    CreatePackageRequest,
    DeletePackageRequest,
    GetPackageRequest,
    PackageDocument,
    SearchPackagesRequest,
    SearchPackagesResponse,
    UpdatePackageRequest,
)
from ..services.package_service import PackageService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/package", tags=["package"])

# Define dependencies to avoid B008 linting errors
DB_DEPENDENCY = Depends(get_db)


def _internal_error(operation: str, error: Exception) -> InternalServerError:
    problem = InternalServerError()
    logger.error(
        f"Unexpected error in package {operation}",
        extra={"operation": operation, "error_id": problem.error_id, "error": str(error)},
        exc_info=True
    )
    return problem


@router.post("/create", status_code=201)
async def create_package(
    request: CreatePackageRequest,
    user: dict = AdminAuth,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """Create a package (admin only)."""
    service = PackageService(db)

    try:
        package = await service.create_package(request, created_by=user["user_id"])
        return JSONResponse(
            status_code=201,
            content={"success": True, "data": PackageDocument.from_model(package).to_document()}
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        raise _internal_error("creation", e) from e


@router.post("/get")
async def get_package(
    request: GetPackageRequest,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """Get a package by ID."""
    service = PackageService(db)

    try:
        package = await service.get_package(request.id)
        return JSONResponse(
            status_code=200,
            content={"success": True, "data": PackageDocument.from_model(package).to_document()}
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        raise _internal_error("retrieval", e) from e


@router.post("/search", response_model=SearchPackagesResponse)
async def search_packages(
    request: SearchPackagesRequest,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """
    Search active packages.

    Supports free-text search, category, price and duration filters,
    multi-field sorting, field projection and pagination.
    """
    service = PackageService(db)

    try:
        response_data = await service.search_packages(request)
        return JSONResponse(
            status_code=200,
            content=response_data.model_dump(mode="json", by_alias=True)
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        raise _internal_error("search", e) from e


@router.get("/categories", response_model=CategoriesResponse)
async def list_categories(db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
    """List the distinct categories used across packages."""
    service = PackageService(db)

    try:
        categories = await service.list_categories()
        return JSONResponse(
            status_code=200,
            content=CategoriesResponse(data=categories).to_document()
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        raise _internal_error("category listing", e) from e


@router.post("/update")
async def update_package(
    request: UpdatePackageRequest,
    user: dict = AdminAuth,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """Partially update a package (admin only)."""
    service = PackageService(db)

    try:
        package = await service.update_package(request)
        return JSONResponse(
            status_code=200,
            content={"success": True, "data": PackageDocument.from_model(package).to_document()}
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        raise _internal_error("update", e) from e


@router.post("/delete")
async def delete_package(
    request: DeletePackageRequest,
    user: dict = AdminAuth,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """Delete a package that has no bookings (admin only)."""
    service = PackageService(db)

    try:
        await service.delete_package(request.id)
        logger.info(
            "Package deleted by admin",
            extra={"package_id": request.id, "user_id": user["user_id"]}
        )
        return JSONResponse(
            status_code=200,
            content={"success": True, "data": {}}
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        raise _internal_error("deletion", e) from e
