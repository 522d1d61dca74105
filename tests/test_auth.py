from types import SimpleNamespace

import pytest
from fastapi import HTTPException

from app.modules.auth.schemas import LoginRequest, RegisterRequest
from app.modules.auth.service import AuthService, TokenCache, clear_auth_cache


class FakeAuth:
    def __init__(self):
        self.get_user_calls = 0
        self.sign_ins = 0
        self.sign_up_error = None
        self.revoked = []
        self.admin = SimpleNamespace(sign_out=self.revoked.append)

    def sign_up(self, credentials):
        if self.sign_up_error:
            raise self.sign_up_error
        self.last_sign_up = credentials
        return SimpleNamespace(user=SimpleNamespace(id="new-user", email=credentials["email"]))

    def sign_in_with_password(self, credentials):
        self.sign_ins += 1
        if credentials["password"] != "secret":
            raise Exception("Invalid login credentials")
        return SimpleNamespace(
            user=SimpleNamespace(id="farmer-1", email=credentials["email"]),
            session=SimpleNamespace(access_token="jwt-token"),
        )

    def get_user(self, jwt):
        self.get_user_calls += 1
        if jwt != "jwt-token":
            raise Exception("invalid JWT")
        return SimpleNamespace(user=SimpleNamespace(
            id="farmer-1", email="farmer@example.com", user_metadata={"display_name": "Amal"}, app_metadata=None
        ))


@pytest.fixture
def auth():
    clear_auth_cache()
    shared, session = FakeAuth(), FakeAuth()
    service = AuthService(
        SimpleNamespace(auth=shared),
        session_client_factory=lambda: SimpleNamespace(auth=session),
        admin_supabase=SimpleNamespace(auth=shared),
    )
    yield service, shared, session
    clear_auth_cache()


def test_register_passes_profile_metadata(auth):
    service, _, session = auth
    response = service.register(RegisterRequest(email="new@example.com", password="pw", display_name="Amal"))
    assert response.user_id == "new-user"
    assert session.last_sign_up["options"]["data"] == {"display_name": "Amal"}


def test_register_existing_user(auth):
    service, _, session = auth
    session.sign_up_error = Exception("User already registered")
    with pytest.raises(HTTPException) as exc_info:
        service.register(RegisterRequest(email="new@example.com", password="pw"))
    assert exc_info.value.status_code == 400


def test_login_runs_on_a_throwaway_client(auth):
    service, shared, session = auth
    token = service.login(LoginRequest(email="farmer@example.com", password="secret"))
    assert token.access_token == "jwt-token"
    assert token.token_type == "bearer"
    assert session.sign_ins == 1
    assert shared.sign_ins == 0


def test_login_with_wrong_password(auth):
    service, _, _ = auth
    with pytest.raises(HTTPException) as exc_info:
        service.login(LoginRequest(email="farmer@example.com", password="nope"))
    assert exc_info.value.status_code == 401


def test_current_user_is_cached(auth):
    service, shared, _ = auth
    first = service.get_current_user("jwt-token")
    second = service.get_current_user("jwt-token")
    assert first == second
    assert first["app_metadata"] == {}
    assert shared.get_user_calls == 1


def test_logout_revokes_token_and_drops_cached_user(auth):
    service, shared, _ = auth
    service.get_current_user("jwt-token")
    assert service.logout("jwt-token") is True
    assert shared.revoked == ["jwt-token"]
    service.get_current_user("jwt-token")
    assert shared.get_user_calls == 2


def test_invalid_token(auth):
    service, _, _ = auth
    with pytest.raises(HTTPException) as exc_info:
        service.get_current_user("forged")
    assert exc_info.value.status_code == 401


def test_token_cache_expires_entries(monkeypatch):
    clock = [100.0]
    monkeypatch.setattr("app.modules.auth.service.time.monotonic", lambda: clock[0])
    cache = TokenCache(ttl=60, max_size=2)
    cache.put("a", {"id": "1"})
    assert cache.get("a") == {"id": "1"}

    clock[0] = 161.0
    assert cache.get("a") is None


def test_token_cache_evicts_expired_entries_when_full(monkeypatch):
    clock = [0.0]
    monkeypatch.setattr("app.modules.auth.service.time.monotonic", lambda: clock[0])
    cache = TokenCache(ttl=10, max_size=2)
    cache.put("a", {"id": "1"})
    cache.put("b", {"id": "2"})

    clock[0] = 20.0
    cache.put("c", {"id": "3"})
    assert cache.get("c") == {"id": "3"}
