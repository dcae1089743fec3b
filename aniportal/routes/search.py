"""
Search routes for the Aniportal FastAPI application
"""

from fastapi import APIRouter, Depends, HTTPException, Query

from aniportal.config import get_jikan_client
from aniportal.errors import UpstreamError
from aniportal.jikan import JikanClient
from aniportal.models import SearchPage

router = APIRouter(prefix="/api")


@router.get("/search", response_model=SearchPage, tags=["Search"])
async def search_anime(
    keyword: str = Query(..., min_length=1, description="Anime name to search for"),
    page: int = Query(1, ge=1, description="Upstream page number"),
    client: JikanClient = Depends(get_jikan_client),
):
    """
    Search for anime by name

    - **keyword**: The anime name or query to search for
    - **page**: Result page, as reported by `totalPages`
    """
    try:
        return await client.search(keyword, page)
    except UpstreamError as e:
        raise HTTPException(
            status_code=502,
            detail=f"Search failed: {str(e)}"
        )
