import pytest
from fastapi.testclient import TestClient

from aniportal import create_app
from aniportal.config import get_auth_backend, get_jikan_client
from aniportal.jikan import JikanClient


class FakeResponse:
    """Stand-in for requests.Response"""

    def __init__(self, payload=None, status_code=200, invalid_json=False):
        self.status_code = status_code
        self._payload = payload
        self._invalid_json = invalid_json

    def json(self):
        if self._invalid_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload


def anime_record(mal_id, title=None, year=None, episodes=None, genres=(), image="img"):
    return {
        "mal_id": mal_id,
        "title": title or f"Anime {mal_id}",
        "images": {
            "jpg": {"image_url": f"{image}-{mal_id}.jpg", "large_image_url": f"{image}-{mal_id}-l.jpg"},
            "webp": {"image_url": f"{image}-{mal_id}.webp", "large_image_url": f"{image}-{mal_id}-l.webp"},
        },
        "year": year,
        "episodes": episodes,
        "genres": [{"mal_id": i, "name": name} for i, name in enumerate(genres, start=1)],
        "score": 8.5,
    }


def listing_page(records, last_visible_page=3, has_next=True):
    return {
        "data": records,
        "pagination": {
            "last_visible_page": last_visible_page,
            "has_next_page": has_next,
            "items": {"count": len(records), "total": 25 * last_visible_page, "per_page": 25},
        },
    }


def page_records(page, count=25):
    """Distinct records for a listing page: page 2 holds ids 201..225"""
    return [anime_record(page * 100 + i, year=2000 + i) for i in range(1, count + 1)]


class FakeJikan:
    """Routes upstream GETs by path to canned payloads or exceptions"""

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []

    def __call__(self, url, params=None, timeout=None):
        path = url.split("/v4", 1)[1]
        self.calls.append((path, dict(params or {})))
        key = (path, (params or {}).get("page"))
        handler = self.routes.get(key, self.routes.get(path))
        if handler is None:
            return FakeResponse({"status": 404, "message": "Not Found"}, status_code=404)
        if isinstance(handler, BaseException):
            raise handler
        if isinstance(handler, FakeResponse):
            return handler
        return FakeResponse(handler)


@pytest.fixture
def jikan():
    return JikanClient(base_url="https://api.jikan.moe/v4", retries=0, cache_ttl=60)


@pytest.fixture
def app():
    return create_app()


@pytest.fixture
def client(app, jikan):
    app.dependency_overrides[get_jikan_client] = lambda: jikan
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def override_backend(app):
    def _override(backend):
        app.dependency_overrides[get_auth_backend] = lambda: backend
    return _override
