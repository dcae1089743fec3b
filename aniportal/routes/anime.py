"""
Anime detail routes for the Aniportal FastAPI application
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path

from aniportal.config import get_jikan_client
from aniportal.errors import NotFoundError, UpstreamError
from aniportal.jikan import JikanClient
from aniportal.models import AnimeDetail, EpisodeLink

router = APIRouter(prefix="/api")


@router.get("/anime/{anime_id}", response_model=AnimeDetail, tags=["Anime Info"])
async def get_anime_info(
    anime_id: int = Path(..., ge=1, description="MyAnimeList anime id"),
    client: JikanClient = Depends(get_jikan_client),
):
    """
    Get detailed information about an anime

    - **anime_id**: The anime id from any listing
    """
    try:
        return await client.fetch_anime_detail(str(anime_id))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except UpstreamError as e:
        raise HTTPException(
            status_code=502,
            detail=f"Failed to get anime info: {str(e)}"
        )


@router.get("/anime/{anime_id}/episodes", response_model=List[EpisodeLink], tags=["Episodes"])
async def get_episodes(
    anime_id: int = Path(..., ge=1, description="MyAnimeList anime id"),
    client: JikanClient = Depends(get_jikan_client),
):
    """
    Get the episode list that drives the player

    - **anime_id**: The anime id
    """
    try:
        return await client.fetch_episodes(str(anime_id))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except UpstreamError as e:
        raise HTTPException(
            status_code=502,
            detail=f"Failed to get episodes: {str(e)}"
        )
