"""API router initialization."""

# Hey future me, this is the MAIN router aggregator. Paths are mounted at the root (no /api
# prefix) because existing clients call /index and /tracks/{id}/stream directly.

from fastapi import APIRouter

from localify.api.routers import albums, artists, health, library, tracks

api_router = APIRouter()

api_router.include_router(library.router, tags=["Library"])
api_router.include_router(tracks.router, prefix="/tracks", tags=["Tracks"])
api_router.include_router(albums.router, prefix="/albums", tags=["Albums"])
api_router.include_router(artists.router, prefix="/artists", tags=["Artists"])
api_router.include_router(health.router, tags=["Health"])

__all__ = ["api_router"]
