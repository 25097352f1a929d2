from fastapi import APIRouter

from nursejobs.api.routes import health, index, listings

api_router = APIRouter()
api_router.include_router(health.router, tags=["health"])
api_router.include_router(listings.router, prefix="/jobs/nursing", tags=["listings"])
api_router.include_router(index.router, prefix="/index", tags=["index"])
