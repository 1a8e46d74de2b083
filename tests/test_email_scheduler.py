import mongomock
import pytest
import requests
from apscheduler.triggers.cron import CronTrigger

from catalog_api import scheduler
from catalog_api.api_notifications.email_service import SENDGRID_URL, EmailDeliveryError, SendGridEmailSender


class FakeResponse:
    def __init__(self, status_code):
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeSession:
    def __init__(self, status_code=202):
        self.status_code = status_code
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        return FakeResponse(self.status_code)


def test_sendgrid_request_shape():
    session = FakeSession()
    SendGridEmailSender("key", "from@x.com", session=session).send("to@x.com", "Hello", "Hi", "<p>Hi</p>")

    url, kwargs = session.calls[0]
    assert url == SENDGRID_URL
    assert kwargs["headers"]["Authorization"] == "Bearer key"
    assert kwargs["json"]["personalizations"] == [{"to": [{"email": "to@x.com"}]}]
    assert kwargs["json"]["content"] == [
        {"type": "text/plain", "value": "Hi"},
        {"type": "text/html", "value": "<p>Hi</p>"},
    ]
    assert kwargs["timeout"] > 0


def test_sendgrid_errors_are_wrapped():
    with pytest.raises(EmailDeliveryError):
        SendGridEmailSender("key", "from@x.com", session=FakeSession(401)).send("to@x.com", "Hello", "body", "<p>body</p>")


def test_missing_api_key_is_an_error():
    session = FakeSession()
    with pytest.raises(EmailDeliveryError):
        SendGridEmailSender(None, "from@x.com", session=session).send("to@x.com", "Hello", "body", "<p>body</p>")
    assert session.calls == []


class StubRunner:
    def run_job(self):
        return {}


def test_scheduler_runs_daily_at_configured_time():
    blocking = scheduler.build_scheduler(StubRunner(), hour=6, minute=30)
    jobs = blocking.get_jobs()
    assert len(jobs) == 1
    assert isinstance(jobs[0].trigger, CronTrigger)
    assert str(jobs[0].trigger.fields[5]) == "6"
    assert str(jobs[0].trigger.fields[6]) == "30"


def test_run_once(monkeypatch):
    sent = []

    class Sender:
        def send(self, to, subject, text, html):
            sent.append(to)

    monkeypatch.setattr(scheduler, "create_mongo_client", lambda config: mongomock.MongoClient())
    monkeypatch.setattr(scheduler, "create_email_sender", lambda config: Sender())
    assert scheduler.main(["--run-once"]) == 0
    assert sent == []
