from fastapi import APIRouter

from curator.api.endpoints import admin, auth, chunks, documents, profiles, search

# Create API router
api_router = APIRouter()

# Include routers
api_router.include_router(documents.router, prefix="/documents", tags=["Documents"])
api_router.include_router(chunks.router, prefix="/chunks", tags=["Chunks"])
api_router.include_router(admin.router, prefix="/admin", tags=["Admin"])
api_router.include_router(profiles.router, prefix="/profiles", tags=["Profiles"])
api_router.include_router(search.router, prefix="/search", tags=["Search"])
api_router.include_router(auth.router, prefix="/auth", tags=["Auth"])

__all__ = ["api_router"]
