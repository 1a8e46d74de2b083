from datetime import datetime, timedelta

import pytest

from catalog_api.shared_functions import utc_now
from conftest import auth_header


def test_upcoming_lists_future_releases_soonest_first(client, make_movie):
    now = utc_now()
    make_movie("Later", releaseDate=now + timedelta(days=40))
    make_movie("Sooner", releaseDate=now + timedelta(days=5))
    make_movie("Past", releaseDate=now - timedelta(days=5))

    body = client.get("/api/movies/upcoming").get_json()
    assert [movie["title"] for movie in body["data"]] == ["Sooner", "Later"]
    assert body["pagination"]["totalItems"] == 2


def test_search_by_title_and_genre(client, make_movie):
    make_movie("The Matrix", genre=["Action", "Sci-Fi"])
    make_movie("Matrix Reloaded", genre=["Action"])
    make_movie("Amelie", genre=["Comedy"])

    body = client.get("/api/movies/search?title=matrix&genre=Sci-Fi").get_json()
    assert [movie["title"] for movie in body["data"]] == ["The Matrix"]


def test_search_unknown_director_is_not_found(client):
    response = client.get("/api/movies/search?director=NonexistentName")
    assert response.status_code == 404
    assert response.get_json()["error"] == "Director with name NonexistentName not found"


def test_search_unknown_actor_is_not_found(client):
    response = client.get("/api/movies/search?actor=Nobody")
    assert response.status_code == 404
    assert response.get_json()["error"] == "Actor with name Nobody not found"


def test_search_by_director_resolves_names(client, make_person, make_movie):
    nolan = make_person("Christopher Nolan", "director")
    actor = make_person("Cillian Murphy")
    make_movie("Oppenheimer", directors=[nolan], actors=[actor])
    make_movie("Other")

    body = client.get("/api/movies/search?director=nolan").get_json()
    assert len(body["data"]) == 1
    movie = body["data"][0]
    assert movie["directors"] == [{"_id": str(nolan), "name": "Christopher Nolan"}]
    assert movie["actors"] == [{"_id": str(actor), "name": "Cillian Murphy"}]


def test_director_lookup_ignores_actors_with_that_name(client, make_person, make_movie):
    make_person("Kevin Costner", "actor")
    response = client.get("/api/movies/search?director=Costner")
    assert response.status_code == 404


def test_filter_by_rating_and_year(client, make_movie):
    make_movie("Good 2010", averageRating=4.5, releaseDate=datetime(2010, 6, 1))
    make_movie("Bad 2010", averageRating=2, releaseDate=datetime(2010, 6, 1))
    make_movie("Good 2011", averageRating=4.8, releaseDate=datetime(2011, 1, 1))

    body = client.get("/api/movies/filter?rating=4&releaseYear=2010").get_json()
    assert [movie["title"] for movie in body["data"]] == ["Good 2010"]


def test_advanced_filter_by_decade_and_keyword(client, make_movie):
    make_movie("Heat", releaseDate=datetime(1995, 12, 15), synopsis="A heist in Los Angeles")
    make_movie("Ronin", releaseDate=datetime(1998, 9, 25), synopsis="Mercenaries in France")
    make_movie("Inside Man", releaseDate=datetime(2006, 3, 24), synopsis="A heist in Manhattan")

    body = client.get("/api/movies/advanced-filter?decade=1990s&keywords=heist").get_json()
    assert [movie["title"] for movie in body["data"]] == ["Heat"]


def test_advanced_filter_rejects_unknown_age_rating(client):
    response = client.get("/api/movies/advanced-filter?ageRating=XXX")
    assert response.status_code == 400


@pytest.mark.parametrize("decade", ["9999s", "0000s", "199s"])
def test_advanced_filter_rejects_out_of_range_decades(client, decade):
    response = client.get(f"/api/movies/advanced-filter?decade={decade}")
    assert response.status_code == 400


def test_top_genre_requires_genre(client):
    assert client.get("/api/movies/top-genre").status_code == 400


def test_top_genre_sorts_by_rating(client, make_movie):
    make_movie("Okay", genre=["Horror"], averageRating=3)
    make_movie("Great", genre=["Horror"], averageRating=5)
    make_movie("Elsewhere", genre=["Comedy"], averageRating=5)

    body = client.get("/api/movies/top-genre?genre=horror").get_json()
    assert [movie["title"] for movie in body["data"]] == ["Great", "Okay"]


def test_top_month_only_includes_current_month(client, make_movie):
    now = utc_now()
    make_movie("This Month", releaseDate=datetime(now.year, now.month, 1, 12), averageRating=3)
    make_movie("Long Ago", releaseDate=datetime(2001, 1, 1), averageRating=5)

    body = client.get("/api/movies/top-month").get_json()
    assert [movie["title"] for movie in body["data"]] == ["This Month"]


def test_pagination_block_and_window(client, make_movie):
    for index in range(7):
        make_movie(f"Movie {index}", genre=["Drama"])

    body = client.get("/api/movies/search?genre=Drama&page=2&limit=3").get_json()
    assert len(body["data"]) == 3
    assert body["pagination"] == {"currentPage": 2, "totalPages": 3, "totalItems": 7, "itemsPerPage": 3}

    last = client.get("/api/movies/search?genre=Drama&page=3&limit=3").get_json()
    assert len(last["data"]) == 1


def test_empty_result_has_one_page(client):
    body = client.get("/api/movies/search?title=nothing&page=0&limit=-4").get_json()
    assert body["data"] == []
    assert body["pagination"] == {"currentPage": 1, "totalPages": 1, "totalItems": 0, "itemsPerPage": 1}


def test_search_limit_is_capped(client, make_movie):
    make_movie("Only")
    body = client.get("/api/movies/search?limit=500").get_json()
    assert body["pagination"]["itemsPerPage"] == 100


def test_movie_detail(client, make_movie, make_person):
    actor = make_person("Keanu Reeves")
    movie_id = make_movie("John Wick", actors=[actor])

    body = client.get(f"/api/movies/{movie_id}").get_json()
    assert body["movie"]["title"] == "John Wick"
    assert body["movie"]["actors"][0]["name"] == "Keanu Reeves"


def test_movie_detail_errors(client):
    assert client.get("/api/movies/not-an-id").status_code == 400
    assert client.get("/api/movies/0123456789abcdef01234567").status_code == 404


def test_movie_detail_cache_refreshes_after_review(client, make_movie, user_token):
    movie_id = make_movie("Cached")
    assert client.get(f"/api/movies/{movie_id}").get_json()["movie"]["averageRating"] == 0

    client.post("/api/reviews/", json={"movie": str(movie_id), "rating": 5}, headers=auth_header(user_token))
    assert client.get(f"/api/movies/{movie_id}").get_json()["movie"]["averageRating"] == 5
