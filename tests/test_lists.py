import pytest

from catalog_api.database import USERS
from conftest import auth_header


@pytest.fixture
def movies(make_movie):
    return [make_movie(title) for title in ("Alien", "Aliens", "Alien 3")]


def test_wishlist_add_list_and_remove(client, user_token, movies):
    headers = auth_header(user_token)
    for movie_id in movies:
        assert client.post("/api/wishlist/add", json={"movieId": str(movie_id)}, headers=headers).status_code == 200

    duplicate = client.post("/api/wishlist/add", json={"movieId": str(movies[0])}, headers=headers)
    assert duplicate.status_code == 400
    assert duplicate.get_json()["error"] == "Movie already in wishlist"

    body = client.get("/api/wishlist/?page=1&limit=2", headers=headers).get_json()
    assert [movie["title"] for movie in body["wishlist"]] == ["Alien", "Aliens"]
    assert body["pagination"] == {"currentPage": 1, "totalPages": 2, "totalItems": 3, "itemsPerPage": 2}

    removed = client.delete("/api/wishlist/remove", json={"movieId": str(movies[1])}, headers=headers)
    assert removed.get_json()["wishlist"] == [str(movies[0]), str(movies[2])]

    missing = client.delete("/api/wishlist/remove", json={"movieId": str(movies[1])}, headers=headers)
    assert missing.status_code == 400
    assert missing.get_json()["error"] == "Movie not found in wishlist"


def test_wishlist_rejects_unknown_movie(client, user_token):
    response = client.post("/api/wishlist/add", json={"movieId": "0123456789abcdef01234567"}, headers=auth_header(user_token))
    assert response.status_code == 404
    assert response.get_json()["missing"] == ["0123456789abcdef01234567"]


def test_wishlist_requires_movie_id(client, user_token):
    assert client.post("/api/wishlist/add", json={}, headers=auth_header(user_token)).status_code == 400


def create_list(client, token, name, description=None):
    payload = {"name": name}
    if description is not None:
        payload["description"] = description
    return client.post("/api/customlist/create-new", json=payload, headers=auth_header(token))


def test_custom_list_add_duplicate_and_remove(client, db, user_token, movies):
    headers = auth_header(user_token)
    created = create_list(client, user_token, "Horror night", "Scary ones")
    assert created.status_code == 201
    list_id = created.get_json()["customList"]["_id"]
    assert [str(oid) for oid in db[USERS].find_one({"username": "alice"})["customLists"]] == [list_id]

    for movie_id in movies[:2]:
        added = client.post(f"/api/customlist/{list_id}/add-movie", json={"movieId": str(movie_id)}, headers=headers)
        assert added.status_code == 200

    duplicate = client.post(f"/api/customlist/{list_id}/add-movie", json={"movieId": str(movies[1])}, headers=headers)
    assert duplicate.status_code == 400
    assert duplicate.get_json()["error"] == "Movie already in the list"

    removed = client.delete(f"/api/customlist/{list_id}/remove-movie", json={"movieId": str(movies[1])}, headers=headers)
    assert removed.status_code == 200
    assert removed.get_json()["customList"]["movies"] == [str(movies[0])]

    missing = client.delete(f"/api/customlist/{list_id}/remove-movie", json={"movieId": str(movies[1])}, headers=headers)
    assert missing.status_code == 404
    assert missing.get_json()["error"] == "Movie not found in the custom list"


def test_custom_list_names_are_unique_per_owner(client, register, user_token):
    assert create_list(client, user_token, "Favorites").status_code == 201
    duplicate = create_list(client, user_token, "Favorites")
    assert duplicate.status_code == 400
    assert duplicate.get_json()["error"] == "A custom list with this name already exists"
    assert create_list(client, register("bob"), "Favorites").status_code == 201


def test_custom_list_rejects_unknown_movie(client, user_token):
    list_id = create_list(client, user_token, "Empty").get_json()["customList"]["_id"]
    response = client.post(f"/api/customlist/{list_id}/add-movie", json={"movieId": "0123456789abcdef01234567"}, headers=auth_header(user_token))
    assert response.status_code == 404
    body = response.get_json()
    assert body["error"] == "The following movie IDs do not exist: 0123456789abcdef01234567"
    assert body["missing"] == ["0123456789abcdef01234567"]


def test_custom_list_owner_checks(client, register, user_token, movies):
    list_id = create_list(client, user_token, "Mine").get_json()["customList"]["_id"]
    intruder = auth_header(register("mallory"))

    assert client.post(f"/api/customlist/{list_id}/add-movie", json={"movieId": str(movies[0])}, headers=intruder).status_code == 403
    assert client.put(f"/api/customlist/{list_id}/update", json={"name": "Theirs"}, headers=intruder).status_code == 403
    assert client.delete(f"/api/customlist/delete/{list_id}", headers=intruder).status_code == 403


def test_custom_list_update_and_delete(client, db, user_token):
    headers = auth_header(user_token)
    list_id = create_list(client, user_token, "Draft").get_json()["customList"]["_id"]

    updated = client.put(f"/api/customlist/{list_id}/update", json={"description": "Final cut"}, headers=headers)
    assert updated.get_json()["customList"]["description"] == "Final cut"
    assert client.put(f"/api/customlist/{list_id}/update", json={}, headers=headers).status_code == 400

    assert client.delete(f"/api/customlist/delete/{list_id}", headers=headers).status_code == 200
    assert db[USERS].find_one({"username": "alice"})["customLists"] == []


def test_custom_list_listings_populate_movies(client, register, user_token, make_person, make_movie):
    actor = make_person("Sigourney Weaver")
    movie_id = make_movie("Alien", actors=[actor])
    list_id = create_list(client, user_token, "Space").get_json()["customList"]["_id"]
    client.post(f"/api/customlist/{list_id}/add-movie", json={"movieId": str(movie_id)}, headers=auth_header(user_token))
    create_list(client, register("bob"), "Other")

    mine = client.get("/api/customlist/", headers=auth_header(user_token)).get_json()
    assert [custom_list["name"] for custom_list in mine["customLists"]] == ["Space"]
    movie = mine["customLists"][0]["movies"][0]
    assert movie["title"] == "Alien"
    assert movie["actors"] == [{"_id": str(actor), "name": "Sigourney Weaver"}]
    assert "runtime" not in movie

    everyone = client.get("/api/customlist/all").get_json()
    assert everyone["pagination"]["totalItems"] == 2
