from typing import Any
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, Query, status as http_status
from fastapi.responses import RedirectResponse
from starlette.requests import Request

from nursejobs.core.config import Settings, get_settings
from nursejobs.core.taxonomy import TaxonomyRegistry, get_taxonomy_registry
from nursejobs.schemas.listings import BrowseStats
from nursejobs.services.listings import ListingService
from nursejobs.services.paths import parse_listing_path
from nursejobs.services.repository import RepositoryUnavailableError, get_repository

router = APIRouter()


def get_listing_service(
    repository=Depends(get_repository),
    taxonomy: TaxonomyRegistry = Depends(get_taxonomy_registry),
    settings: Settings = Depends(get_settings),
) -> ListingService:
    return ListingService.from_settings(repository, taxonomy, settings)


@router.get("", response_model=BrowseStats)
async def browse(service: ListingService = Depends(get_listing_service)) -> BrowseStats:
    try:
        return await service.browse_stats()
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=http_status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc


@router.get("/{listing_path:path}", response_model=None)
async def listing_page(
    listing_path: str,
    request: Request,
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    service: ListingService = Depends(get_listing_service),
    settings: Settings = Depends(get_settings),
) -> Any:
    page_size = limit if limit is not None else settings.default_page_size
    if page_size > settings.max_page_size:
        raise HTTPException(
            status_code=http_status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"limit must be <= {settings.max_page_size}",
        )

    listing_request = parse_listing_path(listing_path.split("/"), service.taxonomy)
    if listing_request is None:
        raise HTTPException(status_code=http_status.HTTP_404_NOT_FOUND, detail="listing not found")

    try:
        if listing_request.job_slug is not None:
            detail = await service.job_detail(listing_request.job_slug)
            if detail is None:
                raise HTTPException(status_code=http_status.HTTP_404_NOT_FOUND, detail="job not found")
            return detail

        resolved = await service.resolve(listing_request, page=page, limit=page_size)
        if resolved is None:
            raise HTTPException(status_code=http_status.HTTP_404_NOT_FOUND, detail="listing not found")

        if resolved.canonical_path != request.url.path:
            query: dict[str, int] = {}
            if page > 1:
                query["page"] = page
            if limit is not None:
                query["limit"] = limit
            destination = resolved.canonical_path + (f"?{urlencode(query)}" if query else "")
            return RedirectResponse(destination, status_code=http_status.HTTP_301_MOVED_PERMANENTLY)

        if resolved.salary:
            return await service.salary_page(resolved)
        return await service.listing_page(resolved)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=http_status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
