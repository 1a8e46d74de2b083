import pytest

from catalog_api.database import MOVIES
from conftest import auth_header


@pytest.fixture
def movie_id(make_movie):
    return make_movie("Arrival")


def post_review(client, token, movie_id, rating, text=None):
    payload = {"movie": str(movie_id), "rating": rating}
    if text is not None:
        payload["reviewText"] = text
    return client.post("/api/reviews/", json=payload, headers=auth_header(token))


def test_review_sets_average_and_blocks_second_review(client, db, user_token, movie_id):
    response = post_review(client, user_token, movie_id, 4)
    assert response.status_code == 201
    assert db[MOVIES].find_one({"_id": movie_id})["averageRating"] == 4

    again = post_review(client, user_token, movie_id, 5)
    assert again.status_code == 400
    assert again.get_json()["error"] == "You have already reviewed this movie"


def test_average_is_mean_of_all_reviews(client, db, register, movie_id):
    for name, rating in (("ann", 5), ("ben", 4), ("cat", 2)):
        assert post_review(client, register(name), movie_id, rating).status_code == 201

    assert db[MOVIES].find_one({"_id": movie_id})["averageRating"] == pytest.approx(11 / 3)
    body = client.get(f"/api/reviews/average/{movie_id}").get_json()
    assert body["averageRating"] == pytest.approx(11 / 3)
    assert body["totalReviews"] == 3


@pytest.mark.parametrize("rating", [0, 6, 3.5, "4", True])
def test_invalid_ratings_are_rejected(client, user_token, movie_id, rating):
    assert post_review(client, user_token, movie_id, rating).status_code == 400


def test_review_for_unknown_movie(client, user_token):
    response = post_review(client, user_token, "0123456789abcdef01234567", 3)
    assert response.status_code == 404
    assert response.get_json()["error"] == "The following movie IDs do not exist: 0123456789abcdef01234567"


def test_update_recomputes_average(client, db, user_token, movie_id):
    review_id = post_review(client, user_token, movie_id, 2).get_json()["review"]["_id"]
    response = client.put(f"/api/reviews/{review_id}", json={"rating": 5, "reviewText": "Better the second time"}, headers=auth_header(user_token))
    assert response.status_code == 200
    assert response.get_json()["review"]["reviewText"] == "Better the second time"
    assert db[MOVIES].find_one({"_id": movie_id})["averageRating"] == 5


def test_only_author_can_update(client, register, user_token, movie_id):
    review_id = post_review(client, user_token, movie_id, 2).get_json()["review"]["_id"]
    response = client.put(f"/api/reviews/{review_id}", json={"rating": 5}, headers=auth_header(register("mallory")))
    assert response.status_code == 403


def test_update_requires_a_field(client, user_token, movie_id):
    review_id = post_review(client, user_token, movie_id, 2).get_json()["review"]["_id"]
    assert client.put(f"/api/reviews/{review_id}", json={}, headers=auth_header(user_token)).status_code == 400


def test_delete_resets_average_when_last_review_goes(client, db, user_token, admin_token, register, movie_id):
    own = post_review(client, user_token, movie_id, 3).get_json()["review"]["_id"]
    other = post_review(client, register("bob"), movie_id, 5).get_json()["review"]["_id"]

    assert client.delete(f"/api/reviews/{other}", headers=auth_header(user_token)).status_code == 403
    assert client.delete(f"/api/reviews/{other}", headers=auth_header(admin_token)).status_code == 200
    assert db[MOVIES].find_one({"_id": movie_id})["averageRating"] == 3

    assert client.delete(f"/api/reviews/{own}", headers=auth_header(user_token)).status_code == 200
    assert db[MOVIES].find_one({"_id": movie_id})["averageRating"] == 0


def test_movie_reviews_include_username(client, user_token, movie_id):
    post_review(client, user_token, movie_id, 4, "Quiet and clever")
    body = client.get(f"/api/reviews/{movie_id}").get_json()
    assert body["reviews"][0]["user"]["username"] == "alice"
    assert body["reviews"][0]["reviewText"] == "Quiet and clever"


def test_no_reviews_is_not_found(client, movie_id):
    assert client.get(f"/api/reviews/{movie_id}").status_code == 404
    assert client.get(f"/api/reviews/average/{movie_id}").status_code == 404


def test_highlights(client, register, movie_id):
    post_review(client, register("ann"), movie_id, 5, "short")
    post_review(client, register("ben"), movie_id, 2, "a much longer review with many words")
    post_review(client, register("cat"), movie_id, 4, "medium length")

    body = client.get(f"/api/reviews/highlights/{movie_id}").get_json()
    assert [review["rating"] for review in body["topRatedReviews"]] == [5, 4]
    assert body["mostDiscussedReviews"][0]["rating"] == 2


@pytest.mark.parametrize("rating", ["NaN", "Infinity", "-Infinity"])
def test_non_finite_ratings_are_rejected(client, user_token, movie_id, rating):
    response = client.post(
        "/api/reviews/",
        data=f'{{"movie": "{movie_id}", "rating": {rating}}}',
        content_type="application/json",
        headers=auth_header(user_token),
    )
    assert response.status_code == 400
    assert response.get_json()["error"] == "Rating must be a whole number between 1 and 5"


def test_review_body_must_be_an_object(client, user_token):
    response = client.post("/api/reviews/", json=[1, 2], headers=auth_header(user_token))
    assert response.status_code == 400
    assert response.get_json()["error"] == "Request body must be a JSON object"
