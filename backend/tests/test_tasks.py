import hashlib
import hmac

from draftpress.application.tasks import TaskDispatcher
from draftpress.application.tasks import webhooks
from draftpress.extensions import db
from draftpress.models import Webhook


def test_dispatcher_retries_until_success(app):
    dispatcher = TaskDispatcher(app, max_attempts=3, backoff_seconds=0, run_inline=True)
    attempts = []

    def flaky(payload):
        attempts.append(payload)
        if len(attempts) < 3:
            raise RuntimeError("try again")

    dispatcher.subscribe("publish", flaky)
    dispatcher.dispatch("publish", {"id": "page-1"})

    assert len(attempts) == 3


def test_failing_task_never_reaches_the_caller(app):
    dispatcher = TaskDispatcher(app, max_attempts=2, backoff_seconds=0, run_inline=True)

    def broken(payload):
        raise RuntimeError("always")

    dispatcher.subscribe("publish", broken)
    dispatcher.dispatch("publish", {})
    dispatcher.dispatch("unknown-event", {})


def test_background_dispatcher_runs_tasks(app):
    dispatcher = TaskDispatcher(app, max_workers=1, run_inline=False)
    seen = []

    dispatcher.subscribe("publish", seen.append)
    dispatcher.dispatch("publish", {"id": "page-1"})
    dispatcher.shutdown(wait=True)

    assert seen == [{"id": "page-1"}]


def test_sign_payload_is_hmac_sha256():
    body = b'{"event":"publish"}'
    expected = hmac.new(b"secret", body, hashlib.sha256).hexdigest()
    assert webhooks.sign_payload("secret", body) == expected


class FakeResponse:
    status = 204

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


def test_publish_delivers_signed_webhooks(engine, monkeypatch, save):
    sent = []

    def fake_urlopen(request, timeout):
        sent.append(request)
        return FakeResponse()

    monkeypatch.setattr(webhooks.urllib.request, "urlopen", fake_urlopen)
    db.session.add(Webhook(url="https://hooks.example.com/site", secret="s3cret", events=["publish"]))
    db.session.add(Webhook(url="https://hooks.example.com/off", events=["publish"], enabled=False))
    db.session.add(Webhook(url="https://hooks.example.com/unpub", events=["unpublish"]))
    db.session.commit()

    page = save("page", name="About", slug="about")
    engine.publisher.publish("page", page.id)

    assert [request.full_url for request in sent] == ["https://hooks.example.com/site"]
    request = sent[0]
    signature = request.get_header(webhooks.SIGNATURE_HEADER.capitalize())
    assert signature == f"sha256={webhooks.sign_payload('s3cret', request.data)}"
    assert b'"event": "publish"' in request.data
