"""
Root and health routes for the Aniportal FastAPI application
"""

from fastapi import APIRouter

from aniportal.config import Config

router = APIRouter()


@router.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information"""
    return {
        "message": "Welcome to Aniportal",
        "provider": "Jikan",
        "version": Config.VERSION,
        "docs": Config.DOCS_URL,
        "endpoints": {
            "recent": "/api/recent?page=1",
            "popular": "/api/popular?page=1",
            "top_airing": "/api/top-airing?page=1",
            "spotlight": "/api/spotlight",
            "search": "/api/search?keyword=anime_name&page=1",
            "genres": "/api/genres",
            "genre": "/api/genres/{genre_id}",
            "info": "/api/anime/{anime_id}",
            "episodes": "/api/anime/{anime_id}/episodes",
            "profile": "/api/profile",
        }
    }


@router.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "provider": "Jikan",
        "message": "API is running"
    }
