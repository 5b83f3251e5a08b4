"""Shared fixtures: an in-memory vault server behind a dummy httpx.AsyncClient."""
import asyncio
import json
from pathlib import Path

import httpx
import pytest

from simple_vault.secrets.domains import preferences
from simple_vault.secrets.workflows.session import VaultSession

BASE_URL = "http://vault.test/api/v1"
CREATED_AT = "2024-05-01T12:00:00Z"


class FakeResponse:
    def __init__(self, status_code, payload=None, content=None):
        self.status_code = status_code
        if content is None:
            content = b"" if payload is None else json.dumps(payload).encode()
        self.content = content

    @property
    def is_success(self):
        return 200 <= self.status_code < 300

    def json(self):
        return json.loads(self.content)


class FakeVault:
    """Minimal stand-in for the vault API, keyed the way the real server is."""

    def __init__(self):
        self.secrets = {}
        self.requests = []
        self.headers = []
        self.failures = {}
        self.overrides = {}
        self.empty_list_as_null = False
        self._next_id = 1

    def add_secret(self, name, data, description=""):
        secret_id = f"sec-{self._next_id}"
        self._next_id += 1
        self.secrets[secret_id] = {
            "id": secret_id,
            "userId": "user-1",
            "name": name,
            "description": description,
            "data": dict(data),
            "createdAt": CREATED_AT,
            "updatedAt": CREATED_AT,
        }
        return secret_id

    def requests_for(self, method):
        return [r for r in self.requests if r[0] == method]

    def client_factory(self, *args, **kwargs):
        return DummyAsyncClient(self, **kwargs)

    def handle(self, method, url, payload):
        path = httpx.URL(url).path
        self.requests.append((method, url, payload))

        failure = self.failures.get(method)
        if failure == "network":
            raise httpx.ConnectError("connection refused")
        if failure is not None:
            return FakeResponse(failure, {"error": "simulated failure"})
        if (method, path) in self.overrides:
            return self.overrides[(method, path)]

        if path == "/health":
            return FakeResponse(200, {"status": "healthy"})
        if path == "/secrets/access" and method == "POST":
            return self._access(payload)
        if path == "/secrets":
            if method == "GET":
                items = list(self.secrets.values())
                if not items and self.empty_list_as_null:
                    items = None
                return FakeResponse(200, {"secrets": items})
            if method == "POST":
                if not payload.get("name") or payload.get("data") is None:
                    return FakeResponse(400, {"error": "name and data are required"})
                secret_id = self.add_secret(payload["name"], payload["data"], payload.get("description", ""))
                return FakeResponse(201, self.secrets[secret_id])
        if path.startswith("/secrets/"):
            secret_id = path[len("/secrets/"):]
            if secret_id not in self.secrets:
                return FakeResponse(404, {"error": "Secret not found"})
            if method == "GET":
                return FakeResponse(200, self.secrets[secret_id])
            if method == "PUT":
                self.secrets[secret_id].update(
                    name=payload["name"],
                    description=payload.get("description", ""),
                    data=dict(payload["data"]),
                )
                return FakeResponse(200, self.secrets[secret_id])
            if method == "DELETE":
                del self.secrets[secret_id]
                return FakeResponse(200, {"message": "Secret deleted successfully"})
        return FakeResponse(404, {"error": "not found"})

    def _access(self, payload):
        if payload.get("accessKey") != "AK" or payload.get("secretKey") != "SK":
            return FakeResponse(401, {"message": "Authentication failed"})
        for secret in self.secrets.values():
            if secret["name"] == payload.get("name"):
                return FakeResponse(200, {
                    "name": secret["name"],
                    "description": secret["description"],
                    "data": secret["data"],
                })
        return FakeResponse(404, {"message": "Secret not found"})


class DummyAsyncClient:
    def __init__(self, vault, base_url=None, timeout=None, headers=None):
        self._vault = vault
        self.base_url = base_url
        self.timeout = timeout
        self.headers = headers or {}

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def request(self, method, url, json=None):
        # Yield once so concurrent callers interleave like real network calls
        await asyncio.sleep(0)
        self._vault.headers.append(dict(self.headers))
        return self._vault.handle(method, url, json)


class ConfirmStub:
    def __init__(self, answer=True):
        self.answer = answer
        self.asked = []

    def __call__(self, secret_id):
        self.asked.append(secret_id)
        return self.answer


@pytest.fixture
def temp_home(tmp_path, monkeypatch):
    """Fixture to create a temporary home directory for testing."""
    fake_home = tmp_path / "home"
    fake_home.mkdir()
    monkeypatch.setenv("HOME", str(fake_home))
    monkeypatch.setattr(Path, "home", lambda: fake_home)

    fake_config_dir = fake_home / ".config" / "simple-vault"
    monkeypatch.setattr(preferences, "PREFERENCES_DIR", fake_config_dir)
    monkeypatch.setattr(preferences, "PREFERENCES_FILE", fake_config_dir / "preferences.json")

    monkeypatch.delenv("VAULT_API_URL", raising=False)
    monkeypatch.delenv("VAULT_API_TOKEN", raising=False)
    return fake_home


@pytest.fixture
def fake_vault(temp_home, monkeypatch):
    vault = FakeVault()
    monkeypatch.setattr("simple_vault.secrets.domains.api_client.httpx.AsyncClient", vault.client_factory)
    monkeypatch.setenv("VAULT_API_URL", BASE_URL)
    return vault


@pytest.fixture
def confirm():
    return ConfirmStub()


@pytest.fixture
def session(fake_vault, confirm):
    return VaultSession(confirm=confirm)


@pytest.fixture
def db_secret_id(fake_vault):
    return fake_vault.add_secret("db", {"user": "root", "pass": "x"}, description="Primary database")
