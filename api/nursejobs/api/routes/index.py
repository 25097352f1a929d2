from fastapi import APIRouter, Depends, HTTPException, status as http_status

from nursejobs.core.taxonomy import TaxonomyRegistry, get_taxonomy_registry
from nursejobs.schemas.listings import PageInventoryOut
from nursejobs.services.inventory import PageInventory
from nursejobs.services.repository import RepositoryUnavailableError, get_repository

router = APIRouter()


@router.get("/pages", response_model=PageInventoryOut)
async def list_pages(
    repository=Depends(get_repository),
    taxonomy: TaxonomyRegistry = Depends(get_taxonomy_registry),
) -> PageInventoryOut:
    try:
        pages = await PageInventory(repository, taxonomy).build()
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=http_status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return PageInventoryOut(total=len(pages), pages=pages)
