"""Utility functions for the Aniportal FastAPI application."""

from __future__ import annotations

import math
from typing import List, Sequence, Tuple, TypeVar

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

T = TypeVar("T")

MAL_ANIME_URL = "https://myanimelist.net/anime/{}"
USER_AGENT = "aniportal/1.0"


def build_http_session(retries: int = 2) -> requests.Session:
    """Requests session with connection pooling + light retries.

    Retries only cover throttling and gateway errors; they never turn a
    failed page into a partial success.
    """
    session = requests.Session()
    retry = Retry(
        total=retries,
        connect=retries,
        read=retries,
        backoff_factor=0.5,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=("GET",),
        raise_on_status=False,
        respect_retry_after_header=True,
    )
    adapter = HTTPAdapter(pool_connections=20, pool_maxsize=20, max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.headers.update({"Accept": "application/json", "User-Agent": USER_AGENT})
    return session


def mal_url(mal_id) -> str:
    """Public MyAnimeList page for an anime id"""
    return MAL_ANIME_URL.format(mal_id)


def pages_for(item_count: int, page_size: int) -> int:
    """Number of upstream pages needed to hold ``item_count`` items"""
    if item_count < 1:
        raise ValueError(f"item_count must be positive, got {item_count}")
    return math.ceil(item_count / page_size)


def paginate(items: Sequence[T], page: int, per_page: int) -> Tuple[List[T], bool]:
    """Cut a 1-based page out of ``items``.

    Returns the slice and whether another page follows.
    """
    start = (page - 1) * per_page
    end = start + per_page
    return list(items[start:end]), len(items) > end


def unique_by(items: Sequence[T], key) -> List[T]:
    """Drop repeated items, keeping the first occurrence of each key"""
    seen = set()
    out = []
    for item in items:
        k = key(item)
        if k in seen:
            continue
        seen.add(k)
        out.append(item)
    return out
