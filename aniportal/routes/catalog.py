"""
Catalog listing routes (recent, popular, top airing, spotlight)

Listings are aggregated from several upstream pages and cut into grid pages
here. Upstream failures come back as ``status: "error"`` with an empty grid.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from aniportal.config import Config, get_jikan_client
from aniportal.jikan import JikanClient
from aniportal.models import (
    EpisodeSummary,
    FetchResult,
    GridPage,
    PopularAnimeSummary,
    TopAiringSummary,
)
from aniportal.utils import paginate

router = APIRouter(prefix="/api")


def _grid(result: FetchResult, page: int, per_page: Optional[int]) -> GridPage:
    per_page = per_page or Config.GRID_PAGE_SIZE
    items, has_next = paginate(result.data, page, per_page)
    return GridPage(
        status=result.status,
        cause=result.cause,
        page=page,
        per_page=per_page,
        total=len(result.data),
        has_next=has_next,
        data=items,
    )


@router.get("/recent", response_model=GridPage[EpisodeSummary], tags=["Discovery"])
async def recent_episodes(
    page: int = Query(1, ge=1, description="Grid page number"),
    per_page: Optional[int] = Query(None, ge=1, le=75, description="Cards per page"),
    client: JikanClient = Depends(get_jikan_client),
):
    """Episodes of the anime airing this season"""
    return _grid(await client.recent_episodes_result(), page, per_page)


@router.get("/popular", response_model=GridPage[PopularAnimeSummary], tags=["Discovery"])
async def popular_anime(
    page: int = Query(1, ge=1, description="Grid page number"),
    per_page: Optional[int] = Query(None, ge=1, le=75, description="Cards per page"),
    client: JikanClient = Depends(get_jikan_client),
):
    """Top ranked anime"""
    return _grid(await client.popular_anime_result(), page, per_page)


@router.get("/top-airing", response_model=GridPage[TopAiringSummary], tags=["Discovery"])
async def top_airing(
    page: int = Query(1, ge=1, description="Grid page number"),
    per_page: Optional[int] = Query(None, ge=1, le=75, description="Cards per page"),
    client: JikanClient = Depends(get_jikan_client),
):
    """Anime airing this season, with episode counts and genres"""
    return _grid(await client.top_airing_result(), page, per_page)


@router.get("/spotlight", response_model=FetchResult[TopAiringSummary], tags=["Discovery"])
async def spotlight(client: JikanClient = Depends(get_jikan_client)):
    """Top airing anime for the hero carousel"""
    return await client.spotlight_result()
