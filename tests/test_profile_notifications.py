from datetime import datetime, timedelta

from catalog_api.api_notifications.notification_service import check_upcoming_movies, find_relevant_movies
from catalog_api.database import USERS
from catalog_api.shared_functions import add_months, utc_now
from conftest import auth_header


def test_profile_hides_password(client, user_token):
    body = client.get("/api/profile/", headers=auth_header(user_token)).get_json()
    assert body["user"]["username"] == "alice"
    assert "password" not in body["user"]


def test_manage_profile(client, user_token, make_person):
    actor = make_person("Tilda Swinton")
    response = client.put("/api/profile/manage", json={
        "nickName": "Al",
        "favoriteGenres": ["Drama", "Sci-Fi"],
        "favoriteActors": [str(actor)],
        "sendNotifications": False,
    }, headers=auth_header(user_token))
    assert response.status_code == 200
    user = response.get_json()["user"]
    assert user["profile"]["nickName"] == "Al"
    assert user["profile"]["favoriteActors"] == [str(actor)]
    assert user["sendNotifications"] is False
    assert "password" not in user


def test_manage_profile_rejects_unknown_actor(client, user_token):
    response = client.put("/api/profile/manage", json={"favoriteActors": ["0123456789abcdef01234567"]}, headers=auth_header(user_token))
    assert response.status_code == 400


def test_manage_profile_requires_a_field(client, user_token):
    assert client.put("/api/profile/manage", json={"email": "new@x.com"}, headers=auth_header(user_token)).status_code == 400


def test_notification_settings(client, user_token):
    response = client.patch("/api/notifications/settings", json={"remainder": False}, headers=auth_header(user_token))
    assert response.status_code == 200
    assert response.get_json()["settings"] == {"remindersForNewReleases": False, "sendNotifications": True}

    assert client.patch("/api/notifications/settings", json={}, headers=auth_header(user_token)).status_code == 400
    assert client.patch("/api/notifications/settings", json={"notifications": "yes"}, headers=auth_header(user_token)).status_code == 400


def test_add_months_clamps_day():
    assert add_months(datetime(2024, 1, 31), 1) == datetime(2024, 2, 29)
    assert add_months(datetime(2024, 12, 15), 1) == datetime(2025, 1, 15)


def test_relevance_is_genre_or_actor_overlap():
    actor = object()
    user = {"profile": {"favoriteGenres": ["Horror"], "favoriteActors": [actor]}}
    movies = [
        {"title": "Genre", "genre": ["Horror"], "actors": []},
        {"title": "Actor", "genre": ["Comedy"], "actors": [actor]},
        {"title": "Neither", "genre": ["Comedy"], "actors": []},
    ]
    assert [movie["title"] for movie in find_relevant_movies(user, movies)] == ["Genre", "Actor"]


def set_preferences(db, username, genres, **flags):
    db[USERS].update_one({"username": username}, {"$set": {"profile.favoriteGenres": genres, **flags}})


def test_batch_notifies_matching_users_and_survives_failures(db, register, email_sender, make_movie):
    now = utc_now()
    make_movie("Soon <Horror>", genre=["Horror"], releaseDate=now + timedelta(days=10), synopsis="Boo")
    make_movie("Too Late", genre=["Horror"], releaseDate=now + timedelta(days=60))

    for name in ("ann", "ben", "cat", "dan"):
        register(name)
    register("boss", role="admin")
    set_preferences(db, "ann", ["Horror"])
    set_preferences(db, "ben", ["Horror"])
    set_preferences(db, "cat", ["Comedy"])
    set_preferences(db, "dan", ["Horror"], remindersForNewReleases=False, sendNotifications=False)
    set_preferences(db, "boss", ["Horror"])
    email_sender.fail_for.add("ann@x.com")

    summary = check_upcoming_movies(db, email_sender, now=now)

    assert summary == {"upcomingMovies": 1, "usersChecked": 3, "emailsSent": 1, "emailsFailed": 1}
    assert [message["to"] for message in email_sender.sent] == ["ben@x.com"]
    html = email_sender.sent[0]["html"]
    assert "Soon &lt;Horror&gt;" in html
    assert "Too Late" not in html
    text = email_sender.sent[0]["text"]
    assert "Soon <Horror>" in text
    assert "<h3>" not in text


def test_admin_can_trigger_batch(client, admin_token, email_sender):
    response = client.post("/api/notifications/check-upcoming", headers=auth_header(admin_token))
    assert response.status_code == 200
    assert response.get_json()["summary"]["emailsSent"] == 0
    assert email_sender.sent == []
