"""
Configuration and provider setup for the Aniportal FastAPI application
"""

import os
from functools import lru_cache

from dotenv import load_dotenv

from aniportal.auth import SupabaseClient
from aniportal.jikan import JikanClient

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


def _env_list(name: str, default: str) -> list:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


class Config:
    """Application configuration"""

    # API settings
    TITLE = "Aniportal API"
    DESCRIPTION = "Anime catalog, detail and profile API backed by Jikan and Supabase"
    VERSION = "1.0.0"
    DOCS_URL = "/docs"
    REDOC_URL = "/redoc"

    # CORS settings
    ALLOW_ORIGINS = _env_list("ALLOW_ORIGINS", "*")
    ALLOW_CREDENTIALS = True
    ALLOW_METHODS = ["*"]
    ALLOW_HEADERS = ["*"]

    # Server settings
    HOST = os.getenv("API_HOST", "0.0.0.0")
    PORT = int(os.getenv("API_PORT", "8000"))
    RELOAD = _env_bool("API_RELOAD", "true")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # Upstream metadata API
    JIKAN_BASE_URL = os.getenv("JIKAN_BASE_URL", "https://api.jikan.moe/v4")
    HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "10"))
    HTTP_RETRIES = int(os.getenv("HTTP_RETRIES", "2"))
    CACHE_TTL = float(os.getenv("CACHE_TTL", "3600"))
    CACHE_MAXSIZE = int(os.getenv("CACHE_MAXSIZE", "256"))
    # 75 items = three upstream pages of 25
    FANOUT_ITEM_COUNT = int(os.getenv("FANOUT_ITEM_COUNT", "75"))
    MAX_EPISODE_PAGES = int(os.getenv("MAX_EPISODE_PAGES", "10"))
    GRID_PAGE_SIZE = int(os.getenv("GRID_PAGE_SIZE", "8"))

    # Auth / profile backend
    SUPABASE_URL = os.getenv("SUPABASE_URL", "")
    SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY", "")


def get_jikan_client() -> JikanClient:
    """Get the configured Jikan aggregator instance"""
    return _get_cached_jikan_client()


@lru_cache(maxsize=1)
def _get_cached_jikan_client() -> JikanClient:
    """Create a single aggregator per process.

    The aggregator owns the response cache, so sharing it is what makes the
    cache useful across requests.
    """
    return JikanClient(
        base_url=Config.JIKAN_BASE_URL,
        timeout=Config.HTTP_TIMEOUT,
        retries=Config.HTTP_RETRIES,
        cache_ttl=Config.CACHE_TTL,
        cache_maxsize=Config.CACHE_MAXSIZE,
        item_count=Config.FANOUT_ITEM_COUNT,
        max_episode_pages=Config.MAX_EPISODE_PAGES,
    )


def get_auth_backend() -> SupabaseClient:
    """Get the configured auth/profile backend client"""
    return _get_cached_auth_backend()


@lru_cache(maxsize=1)
def _get_cached_auth_backend() -> SupabaseClient:
    return SupabaseClient(
        url=Config.SUPABASE_URL,
        anon_key=Config.SUPABASE_ANON_KEY,
        timeout=Config.HTTP_TIMEOUT,
        retries=Config.HTTP_RETRIES,
    )
