import pytest

from conftest import auth_header


def news_payload(**overrides):
    payload = {
        "title": "Festival lineup announced",
        "description": "The full program is out.",
        "content": "Twenty films compete this year.",
        "category": "Industry",
    }
    payload.update(overrides)
    return payload


def test_admin_publishes_news_with_related_items(client, admin_token, make_movie, make_person):
    movie_id = make_movie("Anora")
    actor_id = make_person("Mikey Madison")

    created = client.post("/api/news/add-news", json=news_payload(
        relatedMovies=[str(movie_id)], relatedActors=[str(actor_id)],
    ), headers=auth_header(admin_token))
    assert created.status_code == 201
    news_id = created.get_json()["news"]["_id"]

    article = client.get(f"/api/news/{news_id}").get_json()["news"]
    assert article["relatedMovies"] == [{"_id": str(movie_id), "title": "Anora"}]
    assert article["relatedActors"] == [{"_id": str(actor_id), "name": "Mikey Madison"}]


def test_news_detail_follows_renamed_people_and_movies(client, admin_token, make_movie, make_person):
    headers = auth_header(admin_token)
    movie_id = make_movie("Anora")
    actor_id = make_person("Mikey Madison")
    news_id = client.post("/api/news/add-news", json=news_payload(
        relatedMovies=[str(movie_id)], relatedActors=[str(actor_id)],
    ), headers=headers).get_json()["news"]["_id"]
    client.get(f"/api/news/{news_id}")

    assert client.put(f"/api/moviesCRUD/people/{actor_id}", json={"name": "M. Madison"}, headers=headers).status_code == 200
    assert client.put(f"/api/moviesCRUD/{movie_id}", json={"title": "Anora (2024)"}, headers=headers).status_code == 200

    article = client.get(f"/api/news/{news_id}").get_json()["news"]
    assert article["relatedActors"] == [{"_id": str(actor_id), "name": "M. Madison"}]
    assert article["relatedMovies"] == [{"_id": str(movie_id), "title": "Anora (2024)"}]

    assert client.delete(f"/api/moviesCRUD/people/{actor_id}", headers=headers).status_code == 200
    assert client.get(f"/api/news/{news_id}").get_json()["news"]["relatedActors"] == [{"_id": str(actor_id), "name": None}]


def test_news_validation(client, admin_token, make_person):
    person_id = make_person("Not A Movie")
    headers = auth_header(admin_token)

    assert client.post("/api/news/add-news", json=news_payload(category="Gossip"), headers=headers).status_code == 400
    assert client.post("/api/news/add-news", json=news_payload(title=""), headers=headers).status_code == 400
    wrong_collection = client.post("/api/news/add-news", json=news_payload(relatedMovies=[str(person_id)]), headers=headers)
    assert wrong_collection.status_code == 400
    assert wrong_collection.get_json()["missing"] == [str(person_id)]
    not_a_list = client.post("/api/news/add-news", json=news_payload(relatedActors=str(person_id)), headers=headers)
    assert not_a_list.get_json()["error"] == "Related actors should be an array of ObjectIds."


def test_news_update_and_delete(client, admin_token):
    headers = auth_header(admin_token)
    news_id = client.post("/api/news/add-news", json=news_payload(), headers=headers).get_json()["news"]["_id"]
    client.get(f"/api/news/{news_id}")

    updated = client.put(f"/api/news/update-news/{news_id}", json={"title": "Lineup revised"}, headers=headers)
    assert updated.status_code == 200
    assert client.get(f"/api/news/{news_id}").get_json()["news"]["title"] == "Lineup revised"
    assert client.put(f"/api/news/update-news/{news_id}", json={}, headers=headers).status_code == 400

    assert client.delete(f"/api/news/delete-news/{news_id}", headers=headers).status_code == 200
    assert client.get(f"/api/news/{news_id}").status_code == 404


def test_news_listing_and_categories(client, admin_token):
    headers = auth_header(admin_token)
    client.post("/api/news/add-news", json=news_payload(), headers=headers)
    client.post("/api/news/add-news", json=news_payload(category="Drama"), headers=headers)

    assert client.get("/api/news/").get_json()["pagination"]["totalItems"] == 2
    drama = client.get("/api/news/category/Drama").get_json()
    assert len(drama["news"]) == 1
    assert client.get("/api/news/category/Actors").status_code == 404


def create_discussion(client, token, **overrides):
    payload = {"title": "Best sequel ever?", "content": "Which sequel beats the original?", "category": "Movies"}
    payload.update(overrides)
    return client.post("/api/discussion/create-new", json=payload, headers=auth_header(token))


@pytest.mark.parametrize("overrides", [
    {"title": "Hi"},
    {"content": "Too short"},
    {"category": "Sports"},
    {"relatedMovie": ["0123456789abcdef01234567"]},
    {"relatedMovie": ""},
])
def test_discussion_validation(client, user_token, overrides):
    assert create_discussion(client, user_token, **overrides).status_code == 400


def test_discussion_with_comments(client, register, user_token, admin_token, make_movie):
    movie_id = make_movie("Aliens")
    created = create_discussion(client, user_token, relatedMovie=[str(movie_id)])
    assert created.status_code == 201
    discussion_id = created.get_json()["discussion"]["_id"]

    commenter = register("bob")
    comment = client.post(f"/api/discussion/{discussion_id}/comments", json={"content": "Aliens, clearly."}, headers=auth_header(commenter))
    assert comment.status_code == 201
    comment_id = comment.get_json()["comment"]["_id"]

    detail = client.get(f"/api/discussion/{discussion_id}").get_json()["discussion"]
    assert detail["createdBy"]["username"] == "alice"
    assert detail["relatedMovie"] == [{"_id": str(movie_id), "title": "Aliens"}]
    assert detail["comments"][0]["createdBy"]["username"] == "bob"

    assert client.delete(f"/api/discussion/{discussion_id}/comments/{comment_id}", headers=auth_header(user_token)).status_code == 403
    assert client.delete(f"/api/discussion/{discussion_id}/comments/{comment_id}", headers=auth_header(admin_token)).status_code == 200
    assert client.get(f"/api/discussion/{discussion_id}").get_json()["discussion"]["comments"] == []


def test_discussion_edit_and_delete_permissions(client, register, user_token, admin_token):
    discussion_id = create_discussion(client, user_token).get_json()["discussion"]["_id"]
    stranger = auth_header(register("mallory"))

    assert client.put(f"/api/discussion/{discussion_id}", json={"title": "Hijacked"}, headers=stranger).status_code == 403
    edited = client.put(f"/api/discussion/{discussion_id}", json={"title": "Best sequel of all time?"}, headers=auth_header(user_token))
    assert edited.get_json()["discussion"]["title"] == "Best sequel of all time?"

    assert client.delete(f"/api/discussion/{discussion_id}", headers=stranger).status_code == 403
    assert client.delete(f"/api/discussion/{discussion_id}", headers=auth_header(admin_token)).status_code == 200
    assert client.get(f"/api/discussion/{discussion_id}").status_code == 404


def test_discussion_listing(client, user_token):
    create_discussion(client, user_token)
    create_discussion(client, user_token, title="Second thread")
    body = client.get("/api/discussion/?limit=1").get_json()
    assert len(body["discussions"]) == 1
    assert body["pagination"]["totalPages"] == 2
    assert body["discussions"][0]["createdBy"]["username"] == "alice"
