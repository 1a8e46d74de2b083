from datetime import timedelta

import fakeredis
import mongomock
import pytest

from catalog_api import create_app
from catalog_api.database import MOVIES, PEOPLE
from catalog_api.shared_functions import utc_now

TEST_PASSWORD = "passw0rd"


class RecordingEmailSender:
    """Collects messages instead of calling the email provider."""

    def __init__(self):
        self.sent = []
        self.fail_for = set()

    def send(self, to, subject, text, html):
        if to in self.fail_for:
            raise RuntimeError(f"provider rejected {to}")
        self.sent.append({"to": to, "subject": subject, "text": text, "html": html})


@pytest.fixture
def email_sender():
    return RecordingEmailSender()


@pytest.fixture
def app(email_sender):
    app = create_app(
        {
            "TESTING": True,
            "JWT_SECRET": "test-secret",
            "MONGO_DB_NAME": "catalog_test",
            "SWAGGER_ENABLED": False,
            "LOG_LEVEL": "WARNING",
        },
        mongo_client=mongomock.MongoClient(),
        redis_client=fakeredis.FakeRedis(),
        email_sender=email_sender,
    )
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db(app):
    return app.extensions["mongo_db"]


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def register(client):
    def _register(username, role="user", password=TEST_PASSWORD):
        response = client.post("/api/auth/register", json={
            "username": username,
            "email": f"{username}@x.com",
            "password": password,
            "role": role,
        })
        assert response.status_code == 201, response.get_json()
        login = client.post("/api/auth/login", json={"email": f"{username}@x.com", "password": password})
        assert login.status_code == 200
        return login.get_json()["token"]

    return _register


@pytest.fixture
def user_token(register):
    return register("alice")


@pytest.fixture
def admin_token(register):
    return register("root", role="admin")


@pytest.fixture
def make_person(db):
    def _make_person(name, person_type="actor"):
        return db[PEOPLE].insert_one({
            "name": name,
            "type": person_type,
            "awards": [],
            "photos": [],
            "filmography": [],
            "socialLinks": {},
        }).inserted_id

    return _make_person


@pytest.fixture
def make_movie(db):
    def _make_movie(title, **fields):
        now = utc_now()
        document = {
            "title": title,
            "genre": ["Drama"],
            "actors": [],
            "directors": [],
            "crew": [],
            "releaseDate": now - timedelta(days=365),
            "runtime": 120,
            "synopsis": "",
            "averageRating": 0,
            "trivia": [],
            "goofs": [],
            "soundtrack": [],
            "awards": [],
            "ageRating": "PG-13",
            "countryOfOrigin": "USA",
            "language": "English",
            "createdAt": now,
            "updatedAt": now,
        }
        document.update(fields)
        return db[MOVIES].insert_one(document).inserted_id

    return _make_movie
