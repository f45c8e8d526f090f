import os

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from fastapi.testclient import TestClient

from src.notificator.core.config import Settings
from src.notificator.main import create_app
from src.notificator.services.vapid_keys import b64url_encode

API_KEY = "test-api-key"
ENDPOINT = "https://push.example.com/send/abc123"


class FakeResponse:
    def __init__(self, status_code=201, reason="Created", text=""):
        self.status_code = status_code
        self.reason = reason
        self.text = text


@pytest.fixture
def settings(tmp_path):
    return Settings(api_key=API_KEY, key_file=str(tmp_path / "vapid_keys.json"))


@pytest.fixture
def subscriber():
    """A browser-side key pair plus the subscription it would hand out."""
    private_key = ec.generate_private_key(ec.SECP256R1())
    public_raw = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.X962,
        format=serialization.PublicFormat.UncompressedPoint,
    )
    auth_secret = os.urandom(16)
    return {
        "private_key": private_key,
        "auth_secret": auth_secret,
        "subscription": {
            "endpoint": ENDPOINT,
            "keys": {"p256dh": b64url_encode(public_raw), "auth": b64url_encode(auth_secret)},
        },
    }


@pytest.fixture
def sent_requests(monkeypatch):
    """Record outgoing pushes instead of sending them; answers 201."""
    calls = []

    def fake_post(url, data=None, headers=None, timeout=None):
        calls.append({"url": url, "data": data, "headers": headers, "timeout": timeout})
        return FakeResponse()

    monkeypatch.setattr("src.notificator.services.push_service.requests.post", fake_post)
    return calls


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def auth_headers():
    return {"api_key": API_KEY}
