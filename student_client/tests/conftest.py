"""
Pytest configuration for student_client. In-memory credential DB and a throwaway key file so tests
don't touch the real store. Provides a fake EduLens backend (FastAPI, served in-process via
httpx.ASGITransport) that counts refresh calls and records the Authorization header it sees.
"""
import asyncio
import os
import tempfile

os.environ["EDULENS_CREDENTIAL_DB_URL"] = "sqlite:///:memory:"
os.environ["EDULENS_CREDENTIAL_KEY_PATH"] = os.path.join(tempfile.gettempdir(), "edulens_test_credential_key")

import httpx
import pytest
from cryptography.fernet import Fernet
from fastapi import Body, FastAPI, Header, Response
from fastapi.responses import JSONResponse

from student_client.api_client import APIClient
from student_client.credential_store import CredentialStore
from student_client.database import make_engine, make_session_factory
from student_client.session import StudentSession

BASE_URL = "http://edulens.test"


class FakeBackend:
    """Mutable state behind the fake API; tests tweak the fields directly."""

    def __init__(self):
        self.valid_access: set[str] = {"good-at"}
        self.valid_refresh: set[str] = {"good-rt"}
        self.next_access = "new1"
        self.rotate_refresh_to: str | None = None
        # Replaces the normal refresh payload when set (e.g. {"access_token": ""})
        self.refresh_payload: dict | None = None
        self.refresh_status = 200
        self.refresh_delay = 0.01
        self.refresh_calls = 0
        self.refresh_bodies: list[dict] = []
        # (method, path, Authorization header or None)
        self.calls: list[tuple[str, str, str | None]] = []
        # Always 401 on /me, even with a fresh token
        self.me_always_401 = False


def build_app(backend: FakeBackend) -> FastAPI:
    app = FastAPI(title="Fake EduLens API")

    def _authorized(authorization: str | None) -> bool:
        if not authorization or not authorization.startswith("Bearer "):
            return False
        return authorization[len("Bearer "):] in backend.valid_access

    @app.post("/auth/refresh")
    async def refresh(payload: dict = Body(...), authorization: str | None = Header(None)):
        backend.calls.append(("POST", "/auth/refresh", authorization))
        backend.refresh_calls += 1
        backend.refresh_bodies.append(payload)
        await asyncio.sleep(backend.refresh_delay)
        if backend.refresh_status != 200:
            return JSONResponse({"detail": "refresh rejected"}, status_code=backend.refresh_status)
        if payload.get("refresh_token") not in backend.valid_refresh:
            return JSONResponse({"detail": "invalid refresh token"}, status_code=401)
        if backend.refresh_payload is not None:
            return backend.refresh_payload
        backend.valid_access = {backend.next_access}
        data = {"access_token": backend.next_access, "token_type": "bearer"}
        if backend.rotate_refresh_to:
            backend.valid_refresh = {backend.rotate_refresh_to}
            data["refresh_token"] = backend.rotate_refresh_to
        return data

    @app.get("/me")
    async def me(authorization: str | None = Header(None)):
        backend.calls.append(("GET", "/me", authorization))
        if backend.me_always_401 or not _authorized(authorization):
            return JSONResponse({"detail": "Not authenticated"}, status_code=401, headers={"X-Request-ID": "req-401"})
        return {"id": "u-1", "role": "student", "institution_id": "inst-9"}

    @app.get("/my/courses")
    async def courses(authorization: str | None = Header(None)):
        backend.calls.append(("GET", "/my/courses", authorization))
        if not _authorized(authorization):
            return JSONResponse({"detail": "Not authenticated"}, status_code=401)
        return [{"id": "c1", "code": "BIO101", "title": "Biology"}]

    @app.post("/auth/logout")
    async def logout_endpoint(authorization: str | None = Header(None)):
        backend.calls.append(("POST", "/auth/logout", authorization))
        if not _authorized(authorization):
            return JSONResponse({"detail": "Not authenticated"}, status_code=401)
        return Response(status_code=204)

    @app.post("/auth/dev-login")
    async def dev_login(payload: dict = Body(...), authorization: str | None = Header(None)):
        backend.calls.append(("POST", "/auth/dev-login", authorization))
        return {
            "access_token": "good-at",
            "refresh_token": "good-rt",
            "token_type": "bearer",
            "role": payload.get("role", "student"),
            "user_id": "u-1",
        }

    return app


class MemoryHooks:
    """TokenHooks over plain attributes; counts set/clear calls."""

    def __init__(self, access_token: str | None = None, refresh_token: str | None = None):
        self.access_token = access_token
        self.refresh_token = refresh_token
        self.set_calls = 0
        self.clear_calls = 0

    def get_access_token(self):
        return self.access_token

    def get_refresh_token(self):
        return self.refresh_token

    def set_tokens(self, access_token, refresh_token):
        self.set_calls += 1
        self.access_token = access_token
        self.refresh_token = refresh_token

    def clear_tokens(self):
        self.clear_calls += 1
        self.access_token = None
        self.refresh_token = None


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def memory_hooks():
    return MemoryHooks


@pytest.fixture
def make_client(backend):
    """Factory: APIClient wired to the fake backend with the given hooks."""

    def _make(hooks=None, **kwargs):
        transport = httpx.ASGITransport(app=build_app(backend))
        return APIClient(BASE_URL, token_hooks=hooks, transport=transport, **kwargs)

    return _make


@pytest.fixture
def store():
    engine = make_engine("sqlite:///:memory:")
    return CredentialStore(make_session_factory(engine), key=Fernet.generate_key(), service="test.edulens")


@pytest.fixture
def session(store):
    return StudentSession(store)
