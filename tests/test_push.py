"""FCM push: message shape, service-account auth, best-effort delivery."""
import json
from urllib.parse import parse_qs

import httpx
import jwt
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from rainwatch.services.push import FCM_SCOPE, FcmNotifier, build_message

TOKEN_URI = "https://oauth.example/token"
SEND_URL = "https://fcm.googleapis.com/v1/projects/rainwatch-test/messages:send"
IMAGE = "https://rainshot.example/?dt=202610191405"


@pytest.fixture(scope="module")
def rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def service_account(rsa_key):
    pem = rsa_key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ).decode()
    return {
        "client_email": "push@rainwatch-test.iam.gserviceaccount.com",
        "private_key": pem,
        "private_key_id": "k1",
        "token_uri": TOKEN_URI,
    }


class FakeFcm:
    """Token endpoint + send endpoint behind one MockTransport."""

    def __init__(self, send_status: int = 200, token_status: int = 200, send_text: str | None = None) -> None:
        self.send_status = send_status
        self.send_text = send_text
        self.token_status = token_status
        self.token_requests: list[dict] = []
        self.sends: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if str(request.url) == TOKEN_URI:
            self.token_requests.append(parse_qs(request.content.decode()))
            if self.token_status != 200:
                return httpx.Response(self.token_status, json={"error": "invalid_grant"})
            return httpx.Response(200, json={"access_token": "tok-1", "expires_in": 3600})
        self.sends.append(request)
        if self.send_status != 200:
            return httpx.Response(self.send_status, text="internal")
        if self.send_text is not None:
            return httpx.Response(200, text=self.send_text)
        return httpx.Response(200, json={"name": "projects/rainwatch-test/messages/1"})


def _notifier(service_account, fake: FakeFcm) -> FcmNotifier:
    return FcmNotifier("rainwatch-test", service_account, http=httpx.Client(transport=httpx.MockTransport(fake)))


def test_build_message_shape():
    msg = build_message("Rain coverage: 45%", "Rain coverage over Singapore: 60%", IMAGE, "all", now=1_000.0)
    m = msg["message"]
    assert m["topic"] == "all"
    assert m["notification"] == {
        "title": "Rain coverage: 45%",
        "body": "Rain coverage over Singapore: 60%",
        "image": IMAGE,
    }
    assert m["apns"]["headers"] == {"apns-expiration": "1120", "apns-collapse-id": "latest-radar"}
    assert m["apns"]["payload"]["aps"]["mutable-content"] == 1
    assert m["android"] == {"ttl": "7200s"}
    assert m["webpush"]["headers"]["TTL"] == "120"


def test_unconfigured_push_is_skipped(monkeypatch):
    monkeypatch.delenv("FCM_CREDENTIALS_BASE64", raising=False)
    monkeypatch.delenv("FCM_CREDENTIALS_PATH", raising=False)
    assert FcmNotifier(project_id="").send("t", "b", IMAGE, "all") is False
    notifier = FcmNotifier(project_id="rainwatch-test")
    assert notifier.is_configured() is False
    assert notifier.send("t", "b", IMAGE, "all") is False


def test_send_exchanges_jwt_and_posts_message(service_account, rsa_key):
    fake = FakeFcm()
    notifier = _notifier(service_account, fake)
    assert notifier.send("title", "body", IMAGE, "all", {"ttl_seconds": 120, "collapse_key": "latest-radar"})

    (form,) = fake.token_requests
    assert form["grant_type"] == ["urn:ietf:params:oauth:grant-type:jwt-bearer"]
    claims = jwt.decode(form["assertion"][0], rsa_key.public_key(), algorithms=["RS256"], audience=TOKEN_URI)
    assert claims["iss"] == service_account["client_email"]
    assert claims["scope"] == FCM_SCOPE

    (sent,) = fake.sends
    assert str(sent.url) == SEND_URL
    assert sent.headers["authorization"] == "Bearer tok-1"
    body = json.loads(sent.content)
    assert body["message"]["notification"]["image"] == IMAGE
    assert body["message"]["topic"] == "all"


def test_access_token_is_cached(service_account):
    fake = FakeFcm()
    notifier = _notifier(service_account, fake)
    assert notifier.send("a", "b", IMAGE, "all")
    assert notifier.send("c", "d", IMAGE, "all")
    assert len(fake.token_requests) == 1
    assert len(fake.sends) == 2


def test_fcm_error_returns_false(service_account):
    fake = FakeFcm(send_status=500)
    assert _notifier(service_account, fake).send("a", "b", IMAGE, "all") is False
    assert len(fake.sends) == 1


def test_token_failure_skips_send(service_account):
    fake = FakeFcm(token_status=400)
    assert _notifier(service_account, fake).send("a", "b", IMAGE, "all") is False
    assert fake.sends == []


def test_accepted_send_with_non_json_body_still_succeeds(service_account):
    fake = FakeFcm(send_text="<html>ok</html>")
    assert _notifier(service_account, fake).send("a", "b", IMAGE, "all") is True
    assert len(fake.sends) == 1
