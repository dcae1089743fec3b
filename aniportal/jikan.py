"""
Jikan (MyAnimeList) metadata aggregator

Fetches paginated listings from the Jikan v4 API, flattens multi-page results
and projects upstream records into the card shapes the front-end renders.

Listing operations never raise for upstream trouble: they log and return an
empty list (or an error-tagged ``FetchResult`` from the ``*_result`` forms).
Single-record operations propagate failures to the caller.
"""

from __future__ import annotations

import asyncio
import logging
import math
from typing import Any, Callable, Dict, List, Optional

import requests
from starlette.concurrency import run_in_threadpool

from aniportal.cache import TTLCache
from aniportal.errors import (
    InsufficientPagesError,
    NotFoundError,
    UpstreamError,
    UpstreamParseError,
    UpstreamStatusError,
    UpstreamUnavailableError,
)
from aniportal.models import (
    AnimeDetail,
    EpisodeLink,
    EpisodeSummary,
    FetchResult,
    Genre,
    GenreAnimeSummary,
    PopularAnimeSummary,
    SearchPage,
    TopAiringSummary,
)
from aniportal.utils import build_http_session, mal_url, pages_for, unique_by

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.jikan.moe/v4"
# Upstream listing page size is fixed by Jikan.
JIKAN_PAGE_SIZE = 25
UNKNOWN = "Unknown"

# Genres linked from the navigation, keyed by MAL genre id. Ids outside this
# table are resolved against the upstream genre list.
FEATURED_GENRES: Dict[int, str] = {
    1: "Action",
    2: "Adventure",
    4: "Comedy",
    7: "Mystery",
    8: "Drama",
    10: "Fantasy",
    14: "Horror",
    18: "Mecha",
    22: "Romance",
    24: "Sci-Fi",
    30: "Sports",
    36: "Slice of Life",
    37: "Supernatural",
    41: "Thriller",
}

Record = Dict[str, Any]


# ==================== Projections ====================

def _image(record: Record, fmt: str = "jpg", size: str = "image_url") -> Optional[str]:
    images = record.get("images") or {}
    return (images.get(fmt) or {}).get(size)


def _or_unknown(value) -> str:
    return UNKNOWN if value is None else str(value)


def project_episode(record: Record) -> EpisodeSummary:
    # Jikan has no per-episode feed for seasonal listings; cards open episode 1.
    return EpisodeSummary(
        episode_id=str(record["mal_id"]),
        anime_title=record["title"],
        episode_num="1",
        sub_or_dub="sub",
        anime_img=_image(record),
        episode_url=mal_url(record["mal_id"]),
    )


def project_popular(record: Record) -> PopularAnimeSummary:
    return PopularAnimeSummary(
        anime_id=str(record["mal_id"]),
        anime_title=record["title"],
        anime_img=_image(record),
        released_date=_or_unknown(record.get("year")),
        anime_url=mal_url(record["mal_id"]),
    )


def project_top_airing(record: Record) -> TopAiringSummary:
    return TopAiringSummary(
        anime_id=str(record["mal_id"]),
        anime_title=record["title"],
        anime_img=_image(record),
        latest_ep=_or_unknown(record.get("episodes")),
        anime_url=mal_url(record["mal_id"]),
        genres=[g["name"] for g in record.get("genres") or []],
    )


def project_genre_anime(record: Record) -> GenreAnimeSummary:
    return GenreAnimeSummary(
        anime_id=str(record["mal_id"]),
        anime_title=record["title"],
        anime_img=_image(record, "webp", "large_image_url") or _image(record),
        score=record.get("score"),
        episodes=record.get("episodes"),
        anime_url=mal_url(record["mal_id"]),
    )


def project_genre(record: Record) -> Genre:
    return Genre(genre_id=record["mal_id"], name=record["name"], count=record.get("count") or 0)


def project_detail(record: Record) -> AnimeDetail:
    genres = unique_by([g["name"] for g in record.get("genres") or []], key=lambda name: name)
    aired = (record.get("aired") or {}).get("string")
    return AnimeDetail(
        anime_title=record["title"],
        synopsis=record.get("synopsis") or "",
        type=record.get("type") or UNKNOWN,
        released_date=aired or _or_unknown(record.get("year")),
        status=record.get("status") or UNKNOWN,
        genres=genres,
        total_episodes=record.get("episodes") or 0,
        anime_img=_image(record, "jpg", "large_image_url") or _image(record),
    )


def project_episode_link(anime_id: str, record: Record) -> EpisodeLink:
    number = int(record["mal_id"])
    return EpisodeLink(
        episode_id=f"{anime_id}-{number}",
        episode_num=number,
        title=record.get("title"),
        episode_url=record.get("url") or f"{mal_url(anime_id)}/episode/{number}",
    )


def _project_all(records: List[Record], projection: Callable[[Record], Any]) -> list:
    """Project records, dropping repeated ``mal_id`` values.

    Listing pages can shift between concurrent requests, so the same anime
    may show up on two pages.
    """
    try:
        records = unique_by(records, key=lambda r: r.get("mal_id"))
        return [projection(r) for r in records]
    except (KeyError, TypeError, AttributeError, ValueError) as e:
        raise UpstreamParseError(f"Unexpected record shape: {e!r}") from e


def _last_visible_page(payload: Record) -> Optional[int]:
    pagination = payload.get("pagination") or {}
    value = pagination.get("last_visible_page")
    return value if isinstance(value, int) else None


# ==================== Client ====================

class JikanClient:
    """Aggregator over the Jikan v4 REST API"""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        retries: int = 2,
        cache_ttl: float = 3600,
        cache_maxsize: int = 256,
        item_count: int = 3 * JIKAN_PAGE_SIZE,
        max_episode_pages: int = 10,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.item_count = item_count
        self.max_episode_pages = max_episode_pages
        self._session = session or build_http_session(retries)
        self._cache: TTLCache = TTLCache(ttl_seconds=cache_ttl, maxsize=cache_maxsize)

    # ---------- transport ----------

    def _get_json(self, path: str, params: Optional[dict] = None) -> Record:
        """Blocking GET returning the decoded JSON envelope"""
        url = f"{self.base_url}{path}"
        try:
            response = self._session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise UpstreamUnavailableError(f"GET {url} failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise UpstreamStatusError(response.status_code, url)

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamParseError(f"GET {url} returned a non-JSON body") from e

        if not isinstance(payload, dict) or "data" not in payload:
            raise UpstreamParseError(f"GET {url} returned no 'data' field")
        return payload

    async def _get(self, path: str, params: Optional[dict] = None) -> Record:
        # requests is blocking; keep the event loop free.
        return await run_in_threadpool(self._get_json, path, params)

    async def fan_out(self, path: str, params: Optional[dict] = None,
                      item_count: Optional[int] = None) -> List[Record]:
        """Fetch enough pages of ``path`` for ``item_count`` items.

        Pages are requested concurrently and concatenated in page order. Any
        failing page fails the whole fan-out. Raises InsufficientPagesError
        when upstream has fewer pages than needed.
        """
        count = self.item_count if item_count is None else item_count
        pages = pages_for(count, JIKAN_PAGE_SIZE)
        base_params = dict(params or {})
        payloads = await asyncio.gather(
            *(self._get(path, {**base_params, "page": n}) for n in range(1, pages + 1))
        )

        available = _last_visible_page(payloads[0])
        if available is not None and available < pages:
            raise InsufficientPagesError(pages, available, path)

        records: List[Record] = []
        for payload in payloads:
            data = payload["data"]
            if not isinstance(data, list):
                raise UpstreamParseError(f"{path} 'data' is not a list")
            records.extend(data)
        return records

    async def _cached_fan_out(self, path: str, params: Optional[dict],
                              item_count: Optional[int]) -> List[Record]:
        count = self.item_count if item_count is None else item_count
        key = ("fan_out", path, tuple(sorted((params or {}).items())), count)
        return await self._cache.get_or_set(key, lambda: self.fan_out(path, params, count))

    async def _cached_get(self, path: str, params: Optional[dict] = None) -> Record:
        key = ("get", path, tuple(sorted((params or {}).items())))
        return await self._cache.get_or_set(key, lambda: self._get(path, params))

    async def _listing(self, name: str, load, projection) -> FetchResult:
        try:
            records = await load()
            items = _project_all(records, projection)
        except UpstreamError as e:
            logger.warning("Failed to fetch %s: %s", name, e)
            return FetchResult.failure(str(e))
        return FetchResult.success(items)

    # ---------- listings ----------

    async def recent_episodes_result(self, item_count: Optional[int] = None) -> FetchResult[EpisodeSummary]:
        return await self._listing(
            "recent episodes",
            lambda: self._cached_fan_out("/seasons/now", None, item_count),
            project_episode,
        )

    async def popular_anime_result(self, item_count: Optional[int] = None) -> FetchResult[PopularAnimeSummary]:
        return await self._listing(
            "popular anime",
            lambda: self._cached_fan_out("/top/anime", None, item_count),
            project_popular,
        )

    async def top_airing_result(self, item_count: Optional[int] = None) -> FetchResult[TopAiringSummary]:
        # Same upstream listing as recent episodes, different card.
        return await self._listing(
            "top airing",
            lambda: self._cached_fan_out("/seasons/now", None, item_count),
            project_top_airing,
        )

    async def spotlight_result(self, limit: int = 10) -> FetchResult[TopAiringSummary]:
        async def load():
            payload = await self._cached_get("/top/anime", {"filter": "airing", "limit": limit})
            return payload["data"]
        return await self._listing("spotlight", load, project_top_airing)

    async def genres_result(self) -> FetchResult[Genre]:
        async def load():
            payload = await self._cached_get("/genres/anime")
            return payload["data"]
        return await self._listing("genres", load, project_genre)

    async def anime_by_genre_result(self, genre_id: int, limit: int = 24) -> FetchResult[GenreAnimeSummary]:
        params = {"genres": genre_id, "order_by": "popularity", "sort": "desc", "limit": limit}

        async def load():
            payload = await self._cached_get("/anime", params)
            return payload["data"]
        return await self._listing(f"genre {genre_id} anime", load, project_genre_anime)

    async def fetch_recent_episodes(self) -> List[EpisodeSummary]:
        return (await self.recent_episodes_result()).data

    async def fetch_popular_anime(self) -> List[PopularAnimeSummary]:
        return (await self.popular_anime_result()).data

    async def fetch_top_airing(self) -> List[TopAiringSummary]:
        return (await self.top_airing_result()).data

    async def fetch_spotlight(self) -> List[TopAiringSummary]:
        return (await self.spotlight_result()).data

    async def fetch_genres(self) -> List[Genre]:
        return (await self.genres_result()).data

    async def fetch_anime_by_genre(self, genre_id: int) -> List[GenreAnimeSummary]:
        return (await self.anime_by_genre_result(genre_id)).data

    async def resolve_genre(self, genre_id: int) -> Genre:
        """Look up a genre by id, featured table first, then upstream"""
        if genre_id in FEATURED_GENRES:
            return Genre(genre_id=genre_id, name=FEATURED_GENRES[genre_id])
        result = await self.genres_result()
        if not result.ok:
            raise UpstreamError(f"Genre list unavailable: {result.cause}")
        for genre in result.data:
            if genre.genre_id == genre_id:
                return genre
        raise NotFoundError(f"Unknown genre id {genre_id}")

    # ---------- single records ----------

    async def fetch_anime_detail(self, anime_id: str) -> AnimeDetail:
        """Detail record for one anime. Upstream failures propagate."""
        try:
            payload = await self._cached_get(f"/anime/{anime_id}")
        except UpstreamStatusError as e:
            if e.status_code == 404:
                raise NotFoundError(f"Anime {anime_id} not found") from e
            raise

        record = payload["data"]
        try:
            return project_detail(record)
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            raise UpstreamParseError(f"Unexpected anime record for {anime_id}: {e!r}") from e

    async def fetch_episodes(self, anime_id: str) -> List[EpisodeLink]:
        """Episode list for one anime, up to ``max_episode_pages`` pages"""
        path = f"/anime/{anime_id}/episodes"
        try:
            first = await self._cached_get(path, {"page": 1})
        except UpstreamStatusError as e:
            if e.status_code == 404:
                raise NotFoundError(f"Anime {anime_id} not found") from e
            raise

        payloads = [first]
        last_page = min(_last_visible_page(first) or 1, self.max_episode_pages)
        if last_page > 1:
            payloads.extend(await asyncio.gather(
                *(self._cached_get(path, {"page": n}) for n in range(2, last_page + 1))
            ))

        records = [record for payload in payloads for record in payload["data"] or []]
        return _project_all(records, lambda r: project_episode_link(anime_id, r))

    async def search(self, keyword: str, page: int = 1) -> SearchPage:
        """One page of keyword search results. Upstream failures propagate."""
        keyword = keyword.strip()
        if not keyword:
            return SearchPage(query=keyword, page=page, total_pages=0, has_next=False, results=[])

        payload = await self._cached_get("/anime", {"q": keyword, "page": page, "sfw": "true"})
        results = _project_all(payload["data"] or [], project_popular)

        pagination = payload.get("pagination") or {}
        items = pagination.get("items") or {}
        if items.get("per_page"):
            total_pages = math.ceil((items.get("total") or 0) / items["per_page"])
        else:
            total_pages = _last_visible_page(payload) or (1 if results else 0)

        return SearchPage(
            query=keyword,
            page=page,
            total_pages=total_pages,
            has_next=bool(pagination.get("has_next_page")),
            results=results,
        )

    async def search_anime(self, keyword: str, page: int = 1) -> List[PopularAnimeSummary]:
        return (await self.search(keyword, page)).results

    def clear_cache(self) -> None:
        self._cache.clear()
