"""
Genre routes for the Aniportal FastAPI application
"""

from fastapi import APIRouter, Depends, HTTPException, Path

from aniportal.config import get_jikan_client
from aniportal.errors import NotFoundError, UpstreamError
from aniportal.jikan import JikanClient
from aniportal.models import FetchResult, Genre, GenreListing

router = APIRouter(prefix="/api")


@router.get("/genres", response_model=FetchResult[Genre], tags=["Genres"])
async def list_genres(client: JikanClient = Depends(get_jikan_client)):
    """All anime genres with their title counts"""
    return await client.genres_result()


@router.get("/genres/{genre_id}", response_model=GenreListing, tags=["Genres"])
async def genre_anime(
    genre_id: int = Path(..., ge=1, description="MyAnimeList genre id"),
    client: JikanClient = Depends(get_jikan_client),
):
    """Most popular anime of one genre"""
    try:
        genre = await client.resolve_genre(genre_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except UpstreamError as e:
        raise HTTPException(
            status_code=502,
            detail=f"Failed to resolve genre: {str(e)}"
        )

    result = await client.anime_by_genre_result(genre_id)
    return GenreListing(
        genre_id=genre.genre_id,
        name=genre.name,
        status=result.status,
        cause=result.cause,
        data=result.data,
    )
