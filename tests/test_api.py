"""
Tests for the Aniportal HTTP surface.
"""

from unittest.mock import patch

import requests

from conftest import FakeJikan, FakeResponse, anime_record, listing_page, page_records


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["provider"] == "Jikan"
    assert "/api/anime/{anime_id}" in data["endpoints"].values()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_popular_grid_pages(client):
    routes = {("/top/anime", n): listing_page(page_records(n)) for n in (1, 2, 3)}
    with patch("requests.Session.get", side_effect=FakeJikan(routes)):
        first = client.get("/api/popular")
        second = client.get("/api/popular", params={"page": 2, "per_page": 10})

    assert first.status_code == 200
    body = first.json()
    assert body["status"] == "ok"
    assert body["total"] == 75
    assert body["perPage"] == 8
    assert body["hasNext"] is True
    assert [item["animeId"] for item in body["data"]] == [str(101 + i) for i in range(8)]
    assert body["data"][0]["releasedDate"] == "2001"

    page_two = second.json()
    assert [item["animeId"] for item in page_two["data"]] == [str(111 + i) for i in range(10)]


def test_listing_failure_is_tagged_not_raised(client):
    with patch("requests.Session.get", side_effect=requests.ConnectionError("offline")):
        response = client.get("/api/recent")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "error"
    assert body["data"] == []
    assert body["total"] == 0
    assert "offline" in body["cause"]


def test_top_airing_cards(client):
    routes = {("/seasons/now", n): listing_page([anime_record(n, episodes=n, genres=("Comedy",))]) for n in (1, 2, 3)}
    with patch("requests.Session.get", side_effect=FakeJikan(routes)):
        response = client.get("/api/top-airing")
    data = response.json()["data"]
    assert [item["latestEp"] for item in data] == ["1", "2", "3"]
    assert data[0]["genres"] == ["Comedy"]


def test_spotlight(client):
    fake = FakeJikan({"/top/anime": {"data": [anime_record(1), anime_record(2)]}})
    with patch("requests.Session.get", side_effect=fake):
        response = client.get("/api/spotlight")
    assert response.json()["status"] == "ok"
    assert len(response.json()["data"]) == 2
    assert fake.calls[0][1] == {"filter": "airing", "limit": 10}


def test_anime_detail(client):
    record = anime_record(5114, title="Fullmetal Alchemist: Brotherhood", episodes=64, genres=("Action",))
    with patch("requests.Session.get", side_effect=FakeJikan({"/anime/5114": {"data": record}})):
        response = client.get("/api/anime/5114")
    assert response.status_code == 200
    data = response.json()
    assert data["animeTitle"] == "Fullmetal Alchemist: Brotherhood"
    assert data["totalEpisodes"] == 64
    assert data["genres"] == ["Action"]


def test_anime_detail_not_found(client):
    with patch("requests.Session.get", side_effect=FakeJikan()):
        response = client.get("/api/anime/999999999")
    assert response.status_code == 404
    assert response.json()["error_type"] == "HTTPException"


def test_anime_detail_upstream_error(client):
    routes = {"/anime/1": FakeResponse(invalid_json=True)}
    with patch("requests.Session.get", side_effect=FakeJikan(routes)):
        response = client.get("/api/anime/1")
    assert response.status_code == 502


def test_anime_episodes(client):
    routes = {("/anime/1/episodes", 1): listing_page(
        [{"mal_id": 1, "title": "Pilot", "url": "https://myanimelist.net/anime/1/x/episode/1"}],
        last_visible_page=1, has_next=False)}
    with patch("requests.Session.get", side_effect=FakeJikan(routes)):
        response = client.get("/api/anime/1/episodes")
    assert response.status_code == 200
    assert response.json() == [{
        "episodeId": "1-1",
        "episodeNum": 1,
        "title": "Pilot",
        "episodeUrl": "https://myanimelist.net/anime/1/x/episode/1",
    }]


def test_search(client):
    payload = listing_page([anime_record(20, title="Naruto", year=2002)], last_visible_page=1, has_next=False)
    with patch("requests.Session.get", side_effect=FakeJikan({"/anime": payload})):
        response = client.get("/api/search", params={"keyword": "naruto"})
    assert response.status_code == 200
    body = response.json()
    assert body["query"] == "naruto"
    assert body["hasNext"] is False
    assert body["results"] == [{
        "animeId": "20",
        "animeTitle": "Naruto",
        "animeImg": "img-20.jpg",
        "releasedDate": "2002",
        "animeUrl": "https://myanimelist.net/anime/20",
    }]


def test_search_requires_keyword(client):
    assert client.get("/api/search").status_code == 422


def test_search_upstream_failure(client):
    with patch("requests.Session.get", side_effect=requests.Timeout("slow")):
        response = client.get("/api/search", params={"keyword": "naruto"})
    assert response.status_code == 502


def test_genre_page(client):
    routes = {"/anime": listing_page([anime_record(3, episodes=24)])}
    with patch("requests.Session.get", side_effect=FakeJikan(routes)):
        response = client.get("/api/genres/22")
    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "Romance"
    assert body["data"][0]["episodes"] == 24


def test_unknown_genre_is_404(client):
    routes = {"/genres/anime": {"data": [{"mal_id": 1, "name": "Action", "count": 10}]}}
    with patch("requests.Session.get", side_effect=FakeJikan(routes)):
        response = client.get("/api/genres/4242")
    assert response.status_code == 404


def test_genre_index_failure(client):
    with patch("requests.Session.get", side_effect=FakeJikan({"/genres/anime": FakeResponse(status_code=503)})):
        response = client.get("/api/genres")
    assert response.json()["status"] == "error"


def test_genre_page_upstream_outage_is_502(client):
    routes = {"/genres/anime": FakeResponse({"message": "maintenance"}, status_code=503)}
    with patch("requests.Session.get", side_effect=FakeJikan(routes)):
        response = client.get("/api/genres/62")
    assert response.status_code == 502
    assert "Unknown genre" not in response.json()["detail"]
