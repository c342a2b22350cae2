"""Shared fixtures: an in-memory stand-in for the user API."""

import json

import httpx
import pytest

from userprobe.client import UserApiClient

BASE_URL = "http://probe.test"


class FakeUserApi:
    """Implements the documented create/list contract over a list of dicts.

    Flags flip individual behaviours off so tests can exercise a
    misbehaving server.
    """

    def __init__(self, enforce_unique=True, require_fields=True):
        self.users = []
        self.requests = []
        self.enforce_unique = enforce_unique
        self.require_fields = require_fields

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "POST" and request.url.path == "/user/create":
            return self._create(json.loads(request.content or b"{}"))
        if request.method == "GET" and request.url.path == "/user/get":
            return httpx.Response(200, json=self.users)
        return httpx.Response(404, json={"success": False})

    def _create(self, data: dict) -> httpx.Response:
        username, email, password = data.get("username"), data.get("email"), data.get("password")
        if self.require_fields and not (username and email and password):
            return httpx.Response(400, json={"success": False, "message": "Missing fields"})
        if self.enforce_unique and any(u["username"] == username for u in self.users):
            return httpx.Response(400, json={"success": False, "message": "Username taken"})
        self.users.append({
            "id": len(self.users) + 1,
            "username": username,
            "email": email,
            "password": password,
            "created_at": "2026-10-19T12:00:00Z",
            "updated_at": "2026-10-19T12:00:00Z",
        })
        return httpx.Response(200, json={
            "success": True,
            "message": "User Successully created",
            "details": {"username": username, "email": email},
        })


@pytest.fixture
def fake_api():
    return FakeUserApi()


@pytest.fixture
def api(fake_api):
    """UserApiClient wired to fake_api instead of the network."""
    with UserApiClient(BASE_URL, transport=httpx.MockTransport(fake_api)) as client:
        yield client


@pytest.fixture
def results_dir(tmp_path, monkeypatch):
    """Point the results root at a temp dir."""
    root = tmp_path / "results"
    monkeypatch.setenv("USERPROBE_RESULTS_DIR", str(root))
    return root
